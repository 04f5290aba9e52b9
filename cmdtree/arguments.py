"""
cmdtree positional arguments: values that consume the trailing tokens of a command line.

Contract
- A positional value is any object with a callable ``set(tokens)``. It receives
  every token left after flag parsing (possibly none) in one call and raises
  ValueError when the tokens do not fit its requirements.
- A value may additionally offer ``predict(prefix)``; the completion bridge
  then uses it when the binding carries no predictor of its own.

Built-in values
- Strings(length=Unset): list of strings; exactly ``length`` tokens when given.
- Integers(length=Unset): list of ints; same arity rule, and every token must be
  a decimal integer.
- Function(callback): hands the tokens to a user callback.

Binding
- Positional ties a value to the command that declared it, together with the
  usage fragment shown in the usage line and the details paragraph.
"""
import re

from .predict import Config, settable
from .utils import Unset, coalesce, mirror


def format_tokens(tokens, /):
    """
    Render a token list the way error messages quote it: "[a b c]".
    """
    return "[%s]" % " ".join(tokens)


def _length(cls, length):
    if length is Unset:
        return None
    if not isinstance(length, int) or isinstance(length, bool):
        raise TypeError(f"{cls.__name__}() 'length' must be an integer")
    if length < 1:
        raise ValueError(f"{cls.__name__}() 'length' must be positive")
    return length


class _Arguments(list):
    def __init__(self, iterable=(), /, length=Unset):
        super().__init__(iterable)
        self._length = _length(type(self), length)

    @property
    def length(self):
        return self._length

    def _check_length(self, tokens):
        if self._length is not None and len(tokens) != self._length:
            raise ValueError("required %d positional args, got %s" % (self._length, format_tokens(tokens)))


class Strings(_Arguments):
    """
    String positional arguments.

    Without a length any number of tokens is accepted. With a length, set()
    fails unless exactly that many tokens are given. On failure the list keeps
    its previous content.

    >>> names = Strings(length=2)
    >>> names.set(["a", "b"])
    >>> names
    ['a', 'b']
    """

    def set(self, tokens, /):
        tokens = list(tokens)
        self._check_length(tokens)
        self[:] = tokens


class Integers(_Arguments):
    """
    Integer positional arguments; arity rules as in Strings.

    The first token that is not an ASCII decimal integer fails the whole call
    with its zero-based position.
    """

    def set(self, tokens, /):
        tokens = list(tokens)
        self._check_length(tokens)
        values = []
        for index, token in enumerate(tokens):
            if not re.fullmatch(r"[+-]?[0-9]+", token):
                raise ValueError("invalid int positional argument at position %d with value %s" % (index, token))
            values.append(int(token))
        self[:] = values


class Function:
    """
    Positional value backed by a callback receiving the token list.

    The callback rejects tokens by raising; any Exception it raises reaches
    the parser as a ValueError chained to the original error.
    """

    def __init__(self, callback, /):
        if not callable(callback):
            raise TypeError("Function() argument must be callable")
        self._callback = callback

    def set(self, tokens, /):
        try:
            self._callback(list(tokens))
        except ValueError:
            raise
        except Exception as error:
            raise ValueError(str(error) or type(error).__name__) from error

    def __repr__(self):
        return "function(%s)" % getattr(self._callback, "__qualname__", repr(self._callback))


class Positional:
    """
    Positional binding of one command.

    - value: settable object receiving the tokens.
    - usage: fragment shown after the command path in the usage line.
    - details: paragraph shown under "Positional arguments:".
    - config: predict.Config used for completion and per-token checks.
    - owner: the command that declared the binding. Sub-commands created later
      share the same binding object, so owner tells own from inherited.
    """
    usage = mirror("usage")
    details = mirror("details")
    config = mirror("config")
    owner = mirror("owner")

    def __init__(self, value, usage="", details="", config=Unset, owner=None):
        if not settable(value):
            raise TypeError("positional value must have a set method")
        if not isinstance(usage, str) or not isinstance(details, str):
            raise TypeError("positional usage and details must be strings")
        config = coalesce(config, Config())
        if not isinstance(config, Config):
            raise TypeError("positional config must be a predict config")
        self._value = value
        self._usage = usage or "[args...]"
        self._details = details
        self._config = config
        self._owner = owner

    @property
    def value(self):
        # Handed out as is: the caller reads parsed tokens from this object.
        return self._value

    def check(self, tokens, /):
        """
        Run the configured check on every token before anything is set.
        """
        for token in tokens:
            try:
                self._config.check(token)
            except ValueError as error:
                raise ValueError('arg "%s": %s' % (token, error)) from error

    def set(self, tokens, /):
        tokens = list(tokens)
        self.check(tokens)
        self._value.set(tokens)

    def __repr__(self):
        return "positional(usage=%r, value=%r)" % (self._usage, self._value)


__all__ = (
    "format_tokens",
    "Strings",
    "Integers",
    "Function",
    "Positional",
)
