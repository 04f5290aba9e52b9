r"""
cmdtree flag sets: named, typed, settable values for one command level.

Overview
- Values
  • BoolValue, StringValue, IntValue, FloatValue, DurationValue hold one typed
    value each. They expose ``set(text)``, ``value`` and ``str(value)``.
  • Non-bool values are *predictable*: their ``predict(prefix)`` forwards to the
    predict.Config they were declared with, and ``set`` runs its check first.
    Bool values are not predictable (they never take a completion value).
  • Any object with a callable ``set(text)`` can be registered with FlagSet.var().

- FlagSet
  • var(value, name, usage) registers a flag; names are unique per set.
  • visit_all(fn) visits flags sorted by name; lookup(name) finds one.
  • visit(fn) visits only the flags given a value by parse() or set(name, text);
    parsed tells whether parse() ran.
  • copy_into(other) registers the same value objects on another set, which is
    how a sub-command inherits its parent's flags.
  • parse(tokens) consumes leading flag tokens and returns the rest.
  • format_defaults() renders the flag listing used in usage output.

Parse grammar
- "-name", "--name", "-name=value", "--name=value" and, for non-bool flags,
  "-name value". Bool flags accept an inline value only ("-name=false").
- Parsing stops at the first token that is not a flag, at a lone "-", or right
  after "--" (which is consumed).
- "-h", "-help" and "--help", unless declared as flags, call the usage callback
  and raise HelpRequested.
"""
import datetime
import re

from .faults import FlagRedefinedError, HelpRequested, InvalidNameError, FaultCode
from .predict import options
from .utils import Unset, coalesce


class FlagError(ValueError):
    """
    a token sequence could not be applied to a flag set.
    """


class BoolValue:
    typename = ""
    is_bool = True

    def __init__(self, default=False):
        self._value = bool(default)

    @property
    def value(self):
        return self._value

    def set(self, text, /):
        match text:
            case "1" | "t" | "T" | "true" | "TRUE" | "True":
                self._value = True
            case "0" | "f" | "F" | "false" | "FALSE" | "False":
                self._value = False
            case _:
                raise ValueError("parse error")

    def __str__(self):
        return "true" if self._value else "false"

    def __bool__(self):
        return self._value

    def __repr__(self):
        return "bool-value(%s)" % self


class _PredictableValue:
    """
    Shared behavior of value types that take an argument on the command line.
    """
    typename = "value"
    is_bool = False

    def __init__(self, default, *predictions):
        self._config = options(*predictions)
        self._value = self._convert(default) if isinstance(default, str) else default

    @property
    def value(self):
        return self._value

    @property
    def config(self):
        return self._config

    def _convert(self, text):
        raise NotImplementedError

    def set(self, text, /):
        self._config.check(text)
        self._value = self._convert(text)

    def predict(self, prefix, /):
        return self._config.predict(prefix)

    def __repr__(self):
        return "%s-value(%s)" % (self.typename, self)


class StringValue(_PredictableValue):
    typename = "string"

    def __init__(self, default="", *predictions):
        super().__init__(str(default), *predictions)

    def _convert(self, text):
        return text

    def __str__(self):
        return self._value


class IntValue(_PredictableValue):
    typename = "int"

    def __init__(self, default=0, *predictions):
        super().__init__(int(default) if not isinstance(default, str) else default, *predictions)

    def _convert(self, text):
        if not text.isascii():
            raise ValueError("parse error")
        try:
            return int(text, 0)
        except ValueError:
            raise ValueError("parse error") from None

    def __str__(self):
        return str(self._value)

    def __int__(self):
        return self._value


class FloatValue(_PredictableValue):
    typename = "float"

    def __init__(self, default=0.0, *predictions):
        super().__init__(float(default) if not isinstance(default, str) else default, *predictions)

    def _convert(self, text):
        if not text.isascii():
            raise ValueError("parse error")
        try:
            return float(text)
        except ValueError:
            raise ValueError("parse error") from None

    def __str__(self):
        text = repr(self._value)
        return text[:-2] if text.endswith(".0") else text

    def __float__(self):
        return self._value


_DURATION_UNITS = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60_000_000,
    "h": 3_600_000_000,
}


def parse_duration(text, /):
    """
    Parse a duration such as "300ms", "-1.5h" or "2h45m" into a timedelta.
    """
    match = re.fullmatch(r"([-+]?)((?:(?:\d+\.?\d*|\.\d+)(?:ns|us|µs|ms|s|m|h))+|0)", text)
    if not match:
        raise ValueError("invalid duration %r" % text)
    micros = 0.0
    for number, unit in re.findall(r"(\d+\.?\d*|\.\d+)(ns|us|µs|ms|s|m|h)", match[2]):
        micros += float(number) * _DURATION_UNITS[unit]
    return datetime.timedelta(microseconds=-micros if match[1] == "-" else micros)


def format_duration(delta, /):
    """
    Render a timedelta the way parse_duration reads it ("1h30m0s", "250ms").
    """
    micros = delta // datetime.timedelta(microseconds=1)
    if not micros:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    def trim(number):
        return number.rstrip("0").rstrip(".")

    if micros < 1000:
        return "%s%dµs" % (sign, micros)
    if micros < 1_000_000:
        return "%s%sms" % (sign, trim("%.3f" % (micros / 1000)))
    hours, rest = divmod(micros, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds = trim("%.6f" % (rest / 1_000_000)) + "s"
    if hours:
        return "%s%dh%dm%s" % (sign, hours, minutes, seconds)
    if minutes:
        return "%s%dm%s" % (sign, minutes, seconds)
    return sign + seconds


class DurationValue(_PredictableValue):
    typename = "duration"

    def __init__(self, default=datetime.timedelta(), *predictions):
        super().__init__(default, *predictions)

    def _convert(self, text):
        return parse_duration(text)

    def __str__(self):
        return format_duration(self._value)


class Flag:
    """
    One registered flag: name, value object, usage text and default rendering.
    """

    def __init__(self, name, value, usage):
        self._name = name
        self._value = value
        self._usage = usage
        self._default = str(value)

    name = property(lambda self: self._name)
    value = property(lambda self: self._value)
    usage = property(lambda self: self._usage)
    default = property(lambda self: self._default)

    @property
    def is_bool(self):
        return bool(getattr(self._value, "is_bool", False))

    def unquote_usage(self):
        """
        Return (typename, usage) for the flag listing.

        A back-quoted word in the usage names the value ("a `path` to read"
        becomes ("path", "a path to read")); otherwise the value type decides.
        """
        if (match := re.search(r"`([^`]*)`", self._usage)):
            return match[1], self._usage[:match.start()] + match[1] + self._usage[match.end():]
        return getattr(self._value, "typename", "value"), self._usage

    def is_zero_default(self):
        try:
            zero = str(type(self._value)())
        except TypeError:
            return False
        return self._default == zero

    def __repr__(self):
        return "flag(name=%r, value=%r)" % (self._name, self._value)


class FlagSet:
    """
    Flags of one command level.

    The set does not know about sub-commands; a Command owns one FlagSet and
    forwards flag declarations to it.
    """

    def __init__(self, name, /, usage=Unset):
        self._name = name
        self._usage = coalesce(usage, None)
        self._formal = {}
        # Names of the flags given a value by parse() or set().
        self._actual = set()
        self._parsed = False

    @property
    def name(self):
        return self._name

    @property
    def parsed(self):
        """
        True once parse() was called, whatever its outcome.
        """
        return self._parsed

    def __contains__(self, name):
        return name in self._formal

    def __len__(self):
        return len(self._formal)

    def var(self, value, name, usage=""):
        """
        Register value under name; returns the value object as the handle.
        """
        if not callable(getattr(value, "set", None)):
            raise TypeError("var() value must have a set method")
        if not isinstance(name, str) or not name:
            raise InvalidNameError("flag name must be a non-empty string")
        if name.startswith("-"):
            raise InvalidNameError("flag %r begins with -" % name)
        if "=" in name:
            raise InvalidNameError("flag %r contains =" % name)
        if name in self._formal:
            raise FlagRedefinedError("%s flag redefined: %s" % (self._name, name))
        self._formal[name] = Flag(name, value, usage)
        return value

    def lookup(self, name, /):
        return self._formal.get(name)

    def visit_all(self, visitor, /):
        for name in sorted(self._formal):
            visitor(self._formal[name])

    def visit(self, visitor, /):
        """
        Like visit_all(), restricted to the flags that were explicitly set.
        """
        for name in sorted(self._actual):
            visitor(self._formal[name])

    def set(self, name, text, /):
        """
        Set flag name from text, as if "-name=text" had been parsed.

        Raises FlagError for an unknown name or a value the flag rejects.
        """
        flag = self._formal.get(name)
        if flag is None:
            raise FlagError("no such flag -%s" % name)
        try:
            flag.value.set(text)
        except ValueError as error:
            raise FlagError("invalid value %r for flag -%s: %s" % (text, name, error)) from error
        self._actual.add(name)

    def copy_into(self, other, /):
        """
        Register every flag of this set on other, sharing the value objects.
        """
        self.visit_all(lambda flag: other.var(flag.value, flag.name, flag.usage))
        return other

    def _usage_requested(self):
        if self._usage is not None:
            self._usage()

    def _fail(self, message):
        self._usage_requested()
        return FlagError(message)

    def parse(self, tokens, /):
        """
        Apply the leading flag tokens and return the remaining tokens.

        Raises FlagError on a malformed, unknown or invalid flag and
        HelpRequested for an undeclared -h/-help/--help.
        """
        self._parsed = True
        tokens = list(tokens)
        while tokens:
            token = tokens[0]
            if len(token) < 2 or not token.startswith("-"):
                break
            minuses = 2 if token[1] == "-" else 1
            if token == "--":
                del tokens[0]
                break
            name = token[minuses:]
            if not name or name[0] in "-=":
                raise self._fail("bad flag syntax: %s" % token)
            del tokens[0]

            name, assigned, value = name.partition("=")
            flag = self._formal.get(name)
            if flag is None:
                if name in ("h", "help"):
                    self._usage_requested()
                    raise HelpRequested("help requested", code=FaultCode.HELP_REQUESTED, title="help")
                raise self._fail("flag provided but not defined: -%s" % name)

            if flag.is_bool:
                try:
                    flag.value.set(value if assigned else "true")
                except ValueError as error:
                    raise self._fail("invalid boolean value %r for -%s: %s" % (value, name, error)) from error
                self._actual.add(name)
                continue

            if not assigned:
                if not tokens:
                    raise self._fail("flag needs an argument: -%s" % name)
                value = tokens.pop(0)
            try:
                flag.value.set(value)
            except ValueError as error:
                raise self._fail("invalid value %r for flag -%s: %s" % (value, name, error)) from error
            self._actual.add(name)
        return tokens

    def format_defaults(self):
        """
        Render one entry per flag, sorted by name:

            "  -name type\\n    \\tusage (default value)\\n"
        """
        lines = []

        def visitor(flag):
            line = "  -" + flag.name
            typename, usage = flag.unquote_usage()
            if flag.is_bool and "`" not in flag.usage:
                typename = ""
            if typename:
                line += " " + typename
            # Short bool flags fit on the same line as their usage.
            line += "\t" if len(line) <= 4 else "\n    \t"
            line += usage.replace("\n", "\n    \t")
            if not flag.is_zero_default():
                if isinstance(flag.value, StringValue):
                    line += ' (default "%s")' % flag.default.replace("\\", "\\\\").replace('"', '\\"')
                else:
                    line += " (default %s)" % flag.default
            lines.append(line + "\n")

        self.visit_all(visitor)
        return "".join(lines)

    def print_defaults(self, output, /):
        output.write(self.format_defaults())

    def __repr__(self):
        return "flag-set(name=%r, flags=%r)" % (self._name, sorted(self._formal))


__all__ = (
    "FlagError",
    "BoolValue",
    "StringValue",
    "IntValue",
    "FloatValue",
    "DurationValue",
    "parse_duration",
    "format_duration",
    "Flag",
    "FlagSet",
)
