"""
Completion predictors and value checks.

Capabilities
- A value is *settable* when it has a callable ``set``.
- A value is *predictable* when it has a callable ``predict(prefix) -> list[str]``.
Both are queried on the object itself (duck-typed), never through inheritance,
so flag values, positional values and predictors can opt in independently.

Predictors
- Values(*values): a fixed set of candidates.
- Files(pattern="*"), Dirs(pattern="*"): filesystem candidates. They also know
  how to check an already typed value (existing path matching the pattern).
- Nothing: no candidates.
- Something: a value is expected but cannot be guessed.
- Or(*predictors): union of several predictors.

Options
- values(*values), predictor(p), check() build the configuration attached to a
  flag or to positional arguments; options(*opts) folds them into a Config.
  Config.check(value) only enforces anything when check() was given.
"""
import fnmatch
import os


def settable(object, /):
    """
    Capability query: object accepts values through a callable ``set``.
    """
    return callable(getattr(object, "set", None))


def predictable(object, /):
    """
    Capability query: object offers completion candidates through ``predict``.
    """
    return callable(getattr(object, "predict", None))


class Values:
    def __init__(self, *values):
        for value in values:
            if not isinstance(value, str):
                raise TypeError("Values() arguments must be strings")
        self._values = tuple(values)

    def predict(self, prefix, /):
        return list(self._values)

    def __repr__(self):
        return "values(%s)" % ", ".join(map(repr, self._values))


class Nothing:
    def predict(self, prefix, /):
        return []

    def __repr__(self):
        return "nothing"


class Something:
    """
    A value is expected but nothing can be suggested; the shell keeps the
    word open instead of offering files.
    """

    def predict(self, prefix, /):
        return [""]

    def __repr__(self):
        return "something"


class Or:
    def __init__(self, *predictors):
        for object in predictors:
            if not predictable(object):
                raise TypeError("Or() arguments must be predictors")
        self._predictors = predictors

    def predict(self, prefix, /):
        predictions = []
        for object in self._predictors:
            for prediction in object.predict(prefix):
                if prediction not in predictions:
                    predictions.append(prediction)
        return predictions

    def __repr__(self):
        return "or(%s)" % ", ".join(map(repr, self._predictors))


class Files:
    """
    Predict files matching a glob pattern, plus directories to walk into.
    """
    _files = True

    def __init__(self, pattern="*"):
        if not isinstance(pattern, str) or not pattern:
            raise TypeError(f"{type(self).__name__}() pattern must be a non-empty string")
        self._pattern = pattern

    @property
    def pattern(self):
        return self._pattern

    def predict(self, prefix, /):
        directory = os.path.dirname(prefix)
        try:
            entries = sorted(os.scandir(directory or "."), key=lambda entry: entry.name)
        except OSError:
            return []
        predictions = []
        for entry in entries:
            path = os.path.join(directory, entry.name)
            if entry.is_dir():
                if self._files or fnmatch.fnmatch(entry.name, self._pattern):
                    predictions.append(path + os.sep)
            elif self._files and fnmatch.fnmatch(entry.name, self._pattern):
                predictions.append(path)
        return [prediction for prediction in predictions if prediction.startswith(prefix)]

    def check(self, value, /):
        if not os.path.isfile(value):
            raise ValueError("file %r does not exist" % value)
        if not fnmatch.fnmatch(os.path.basename(value), self._pattern):
            raise ValueError("file %r does not match %r" % (value, self._pattern))

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__.lower(), self._pattern)


class Dirs(Files):
    """
    Predict directories matching a glob pattern.
    """
    _files = False

    def check(self, value, /):
        if not os.path.isdir(value):
            raise ValueError("directory %r does not exist" % value)
        if not fnmatch.fnmatch(os.path.basename(os.path.normpath(value)), self._pattern):
            raise ValueError("directory %r does not match %r" % (value, self._pattern))


class Config:
    """
    Completion/check configuration of one flag value or positional binding.

    - predictor: the predictor offering candidates (or None).
    - checked: when True, check(value) validates typed values against the
      predictor (its own ``check`` if it has one, otherwise membership in its
      predictions).
    """

    def __init__(self, predictor=None, checked=False):
        if predictor is not None and not predictable(predictor):
            raise TypeError("Config() predictor must be predictable")
        self._predictor = predictor
        self._checked = bool(checked)

    @property
    def predictor(self):
        return self._predictor

    @property
    def checked(self):
        return self._checked

    def predict(self, prefix, /):
        if self._predictor is None:
            return []
        return self._predictor.predict(prefix)

    def check(self, value, /):
        if not self._checked or self._predictor is None:
            return
        if callable(getattr(self._predictor, "check", None)):
            self._predictor.check(value)
            return
        predictions = self._predictor.predict(value)
        if value not in predictions:
            raise ValueError("not in allowed values: %s" % ",".join(predictions))

    def __bool__(self):
        return self._predictor is not None

    def __repr__(self):
        return "config(predictor=%r, checked=%r)" % (self._predictor, self._checked)


class Option:
    """
    A single configuration step, applied by options().
    """

    def __init__(self, name, apply):
        self._name = name
        self._apply = apply

    def __repr__(self):
        return self._name


def values(*values):
    """
    Predict one of the given values.
    """
    return predictor(Values(*values))


def predictor(object, /):
    """
    Predict with any predictable object.
    """
    if not predictable(object):
        raise TypeError("predictor() argument must be predictable")

    def apply(settings):
        settings["predictor"] = object
    return Option("predictor(%r)" % object, apply)


def check():
    """
    Reject typed values that the configured predictor would not predict.
    """
    def apply(settings):
        settings["checked"] = True
    return Option("check()", apply)


def options(*options):
    """
    Fold predict options into a Config.
    """
    settings = {"predictor": None, "checked": False}
    for option in options:
        if not isinstance(option, Option):
            raise TypeError("options() arguments must be predict options")
        option._apply(settings)
    return Config(**settings)


__all__ = (
    "settable",
    "predictable",
    "Values",
    "Nothing",
    "Something",
    "Or",
    "Files",
    "Dirs",
    "Config",
    "Option",
    "values",
    "predictor",
    "check",
    "options",
)
