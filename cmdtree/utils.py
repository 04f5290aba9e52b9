"""
cmdtree internal helpers.

- Unset: "argument not given" marker, for parameters where None is a real value.
- coalesce(object, default): Unset -> default, anything else unchanged.
- rename(name): decorator fixing the name of a generated function.
- mirror(name): read-only property over ``self._<name>``.

    >>> coalesce(Unset, 80)
    80
    >>> coalesce(None, 80) is None
    True
"""
from typing import final


@final
class UnsetType:
    """
    Type of the Unset marker. There is exactly one instance and it is falsy.

    ``str | Unset`` works in isinstance checks.
    """
    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType can't be subclassed")

    def __or__(self, other, /):
        return type(self) | other

    def __ror__(self, other, /):
        return other | type(self)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"


Unset = UnsetType()


def coalesce(object, default=None, /):
    return default if object is Unset else object


def rename(name, /):
    """
    Decorator giving a generated function a stable __name__ and __qualname__.
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorator(function):
        function.__name__ = function.__qualname__ = name
        return function
    return decorator


def _snapshot(object):
    # Containers are copied one level deep; commands and streams are shared.
    match object:
        case dict():
            return dict(object)
        case list() | tuple():
            return list(object)
        case set() | frozenset():
            return set(object)
        case _:
            return object


def mirror(name, /):
    """
    Read-only property returning ``self._<name>``.

    Dicts, lists and sets come back as copies, so ``command.children.clear()``
    leaves the tree untouched.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _snapshot(getattr(self, "_" + name))
    return property(getter)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
)
