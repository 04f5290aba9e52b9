"""
cmdtree faults (errors, warnings, help requests) and their disposition.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the library
  can surface, grouped by domain so logs and searches stay predictable.
- ConfigurationError: the fatal category. Raised synchronously while a command
  tree is being declared (or validated right before parsing). These are
  programming errors in the declaration, never user input, and they are never
  routed through an error-handling policy.
- CommandException: recoverable parse errors. They carry a message plus options
  (code, title, hint, context, ...) and know how to render themselves with rich
  and how to apply the configured ErrorHandling policy.
- HelpRequested: the distinguished "render usage, then stop" outcome. It travels
  the same channel as parse errors but is recognizable as non-failure.
- CommandWarning: soft diagnostics emitted with warnings.warn.
- trigger(): central entry point to surface a fault with runtime options.

Propagation
- Every command level prepends its own name to a fault's "context" while the
  fault bubbles up, so str(fault) reads as a path:
  "cmd > cmd sub1 > cmd sub1 sub1: bad flags: flag provided but not defined: -x".

Host customization
- __codes__ in __main__ remaps FaultCode labels (see FaultCode.normalize).
- __styles__ in __main__ overrides the rendering palette.
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import Enum, IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes used across the library (stable identifiers).

    grouping (by high-level domain)
    - configuration (10xxx): declaration-time contract violations.
    - routing (111xx): sub-command selection.
    - flags (112xx): flag-set parsing.
    - positionals (113xx): positional arguments collection.
    - completion (114xx): completion installation.
    - help (119xx): usage requested by the user.
    - warnings (12xxx): soft diagnostics.
    """
    # --- configuration errors (10xxx) ---
    INVALID_NAME                = 10101
    DUPLICATED_COMMAND          = 10102
    FLAG_AFTER_COMMANDS         = 10111
    FLAG_REDEFINED              = 10112
    INCONSISTENT_FLAGS          = 10113
    POSITIONAL_AFTER_COMMANDS   = 10121
    POSITIONAL_REDEFINED        = 10122
    INVALID_POSITIONAL          = 10123
    MISSING_PROGRAM             = 10131
    NOT_ROOT                    = 10132

    # --- routing errors (111xx) ---
    UNKNOWN_COMMAND             = 11101
    MISSING_COMMAND             = 11102

    # --- flag errors (112xx) ---
    BAD_FLAGS                   = 11201

    # --- positional errors (113xx) ---
    BAD_POSITIONALS             = 11301
    UNEXPECTED_POSITIONALS      = 11302

    # --- completion errors (114xx) ---
    INSTALL_FAILED              = 11401

    # --- help (119xx) ---
    HELP_REQUESTED              = 11900

    # --- warnings (12xxx) ---
    UNSUPPORTED_SHELL           = 12101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ErrorHandling(Enum):
    """
    disposition of a parse fault once it reaches the root command.

    - EXIT: render the fault to the command output and exit with status 2.
      a help request exits with status 0 (usage was already rendered).
    - RAISE: raise the fault to the caller.
    - RETURN: return the fault object to the caller (None on success).
    """
    EXIT = "exit"
    RAISE = "raise"
    RETURN = "return"


class ConfigurationError(Exception):
    """
    fatal, declaration-time contract violation.

    raised immediately by the declaration api (or by the validation pass that
    runs before parsing). embedding applications may treat it as a crash of
    their start-up self test.
    """
    code = Unset

    def __init__(self, message, /):
        super().__init__(message)
        self.message = message


class InvalidNameError(ConfigurationError):
    code = FaultCode.INVALID_NAME
class DuplicatedCommandError(ConfigurationError):
    code = FaultCode.DUPLICATED_COMMAND
class FlagAfterCommandsError(ConfigurationError):
    code = FaultCode.FLAG_AFTER_COMMANDS
class FlagRedefinedError(ConfigurationError):
    code = FaultCode.FLAG_REDEFINED
class InconsistentFlagsError(ConfigurationError):
    code = FaultCode.INCONSISTENT_FLAGS
class PositionalAfterCommandsError(ConfigurationError):
    code = FaultCode.POSITIONAL_AFTER_COMMANDS
class PositionalRedefinedError(ConfigurationError):
    code = FaultCode.POSITIONAL_REDEFINED
class InvalidPositionalError(ConfigurationError):
    code = FaultCode.INVALID_POSITIONAL
class MissingProgramError(ConfigurationError):
    code = FaultCode.MISSING_PROGRAM
class NotRootError(ConfigurationError):
    code = FaultCode.NOT_ROOT


def _styler(options, styles):
    def styler(style):
        return styles[style] if options.get("colorful", False) else ""
    return styler


def _text(options):
    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not options.get("colorful", False):
            return Text(str(fragment))
        return Text(str(fragment), style)
    return text


class CommandException(Exception):
    """
    recoverable parse error.

    options (all optional, merged through __replace__)
    - code: FaultCode of the fault.
    - title: short, lowercased title used in the rendered header.
    - hint: one actionable sentence.
    - context: names of the command levels the fault travelled through.
    - tool: the root command (used for the program name in the header).
    - policy: ErrorHandling applied by __trigger__.
    - output: writable stream used by the EXIT policy.
    - colorful: style the rendered fault.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def context(self):
        return tuple(self.options.get("context", ()))

    def __str__(self):
        return " > ".join((*self.context, str(self.message)))

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        styler = _styler(self.options, styles)
        text = _text(self.options)

        prog = text(getattr(main, "__prog__", getattr(self.options.get("tool"), "name", "cmdtree")), styler("prog-name"))
        code = self.code.normalize() if self.code else "-"

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code, styler("code")),
            " | ",
            text(self.options.get("title", "error"), styler("error-title")),
            " ]"
        )
        message = text(str(self), styler("error-message"))
        if not self.options.get("hint"):
            return Group(header, message)
        hint = Text.assemble(text(" → ", styler("hint-arrow")), text(self.options["hint"], styler("hint")))
        return Group(header, message, hint)

    def __trigger__(self):
        match self.options.get("policy", ErrorHandling.RAISE):
            case ErrorHandling.RETURN:
                return self
            case ErrorHandling.RAISE:
                raise self from self.__cause__
            case ErrorHandling.EXIT:
                console = Console(
                    file=self.options.get("output") or sys.stderr,
                    no_color=not self.options.get("colorful", False),
                    highlight=False,
                )
                console.print(self)
                sys.exit(2)
            case policy:
                raise TypeError(f"unexpected error handling {policy!r}")

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        replaced = type(self)(self.message, **{**self.options, **overrides})
        # Keep the original cause (e.g. a converter error) visible on the replacement.
        replaced.__cause__ = self.__cause__
        replaced.__suppress_context__ = True
        return replaced


class UnknownCommandError(CommandException): ...
class MissingCommandError(CommandException): ...
class BadFlagsError(CommandException): ...
class BadPositionalsError(CommandException): ...
class UnexpectedPositionalsError(CommandException): ...
class InstallError(CommandException): ...


class HelpRequested(CommandException):
    """
    usage was rendered on request (-h, -help or --help).

    not a failure: under the EXIT policy the process exits with status 0 and
    nothing else is printed.
    """

    def __trigger__(self):
        if self.options.get("policy") is ErrorHandling.EXIT:
            sys.exit(0)
        return super().__trigger__()


class CommandWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message)

    def __trigger__(self):
        warnings.warn(self, stacklevel=len(inspect.stack()))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnsupportedShellWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - returns whatever __trigger__ returns (the fault itself under ErrorHandling.RETURN).

    typical options
    - tool, policy, output, colorful, code, title, hint, context.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    return copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "ErrorHandling",
    "ConfigurationError",
    "InvalidNameError",
    "DuplicatedCommandError",
    "FlagAfterCommandsError",
    "FlagRedefinedError",
    "InconsistentFlagsError",
    "PositionalAfterCommandsError",
    "PositionalRedefinedError",
    "InvalidPositionalError",
    "MissingProgramError",
    "NotRootError",
    "CommandException",
    "UnknownCommandError",
    "MissingCommandError",
    "BadFlagsError",
    "BadPositionalsError",
    "UnexpectedPositionalsError",
    "InstallError",
    "HelpRequested",
    "CommandWarning",
    "UnsupportedShellWarning",
    "trigger",
)
