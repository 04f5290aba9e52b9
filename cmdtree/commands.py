"""
cmdtree command layer: declare a tree of sub-commands, then parse a command line against it.

What this module provides
- Command: one node of the command tree. The root is built with root(...) (or
  Command(...)); sub-commands with command.command(...). Every node owns:
  • a FlagSet (flags declared on it plus the ones inherited from its parent),
  • an optional positional binding (arguments/arguments_var),
  • its children, keyed by name.
- root(...): builder for the root command.

Command line shape
    [command] [sub commands...] [flags...] [positional args...]

- Flags of a node and of all its ancestors are accepted only after the last
  sub-command name; the leaf parses them all (inherited flags share their value
  objects with the ancestor that declared them).
- Only leaves collect positional arguments. A binding declared on a node is
  inherited by the sub-commands created after it.

Declaration rules (ConfigurationError subclasses, raised immediately)
- Flags and positional arguments must be declared before the first sub-command.
- A flag name is unique along a root-to-leaf path.
- Positional arguments are declared at most once along a root-to-leaf path.
- Sub-command names are non-empty, do not start with "-", and are unique among
  siblings.

Parsing
- parse(tokens) first answers shell completion requests (then exits with
  status 0), validates the tree, resets the "parsed" state of every node and
  walks the tokens. Faults travel up as CommandException instances, each level
  prepending its name to the fault context, and the root disposes of them
  according to its ErrorHandling policy.

Quick start
    from cmdtree import root

    app = root("app", synopsis="an example")
    verbose = app.boolean("verbose", False, "print more")
    build = app.command("build", "build the project")
    jobs = build.integer("jobs", 1, "parallel `jobs`")
    targets = build.arguments("[target...]", "targets to build")

    app.parse()
    if build.parsed:
        ...
"""
import copy
import datetime
import difflib
import functools
import operator
import os
import re
import sys

from .arguments import Positional, Strings, format_tokens
from .completion import HELP_TOKENS, Completer, complete
from .faults import *
from .flags import BoolValue, DurationValue, FlagError, FlagSet, FloatValue, IntValue, StringValue
from .formatter import wrap
from .install import detect
from . import predict
from .predict import settable
from .utils import *


class CommandType(type):
    """
    Metaclass giving commands introspectable, read-only attributes.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      backed by "_<name>" (see utils.mirror).
    - Derive __typename__ from the class name ("Command" -> "command") for use
      in declaration error messages.
    - Provide stable __repr__/__rich_repr__ built from __displayable__ (or
      __introspectable__ when unset).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - command(name='app build', synopsis='build the project', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _process_strings(cls, metadata):
    """
    Validate the free-text metadata of a command (synopsis, details).
    """
    for name in ("synopsis", "details"):
        if not isinstance(metadata[name], str):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")


def _process_name(cls, name, parent):
    """
    Validate a command name; sub-command names also get the parent's rules.
    """
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    if not name:
        raise InvalidNameError(f"{cls.__typename__} name can't be empty")
    if parent is Unset:
        return
    if name.startswith("-"):
        raise InvalidNameError(f"{cls.__typename__} name {name!r} can't start with a dash")
    if re.search(r"\s", name):
        raise InvalidNameError(f"{cls.__typename__} name {name!r} can't contain whitespace")
    if name in parent._children:
        raise DuplicatedCommandError(f"sub command {name!r} already exists in {parent.name!r}")


def _process_policy(cls, metadata):
    if not isinstance(metadata["error_handling"], ErrorHandling):
        raise TypeError(f"{cls.__typename__} 'error_handling' must be an ErrorHandling member")
    if not callable(getattr(metadata["output"], "write", None)):
        raise TypeError(f"{cls.__typename__} 'output' must be a writable stream")


class Command(metaclass=CommandType):
    """
    One node of a command tree.

    Lifecycle
    - Declaration: flags, positional arguments, then sub-commands. Breaking that
      order raises a ConfigurationError right away.
    - Parsing: root.parse(tokens). Afterwards, every node on the selected path
      reports parsed=True and the value handles returned at declaration time
      hold the parsed values.

    Inheritance from the parent (sub-commands only)
    - A snapshot of the parent's flags (same value objects).
    - The parent's positional binding, if any.
    - error_handling and output, unless overridden; environ and colorful always.
    """

    __introspectable__ = (
        "name",
        "synopsis",
        "details",
        "error_handling",
        "output",
        "parent",
        "children",
        "flags",
        "positional",
        "parsed",
        "colorful",
    )

    __displayable__ = (
        "name",
        "synopsis",
        "children",
        "positional",
        "parsed",
    )

    def __init__(
            self,
            name=Unset,
            synopsis="",
            details="",
            error_handling=Unset,
            output=Unset,
            *,
            parent=Unset,
            environ=Unset,
            colorful=Unset,
    ):
        cls = type(self)
        if parent is not Unset and not isinstance(parent, Command):
            raise TypeError(f"{cls.__typename__} 'parent' must be a command")

        if parent is Unset:
            name = coalesce(name, os.path.basename(sys.argv[0]) if sys.argv else "")
            _process_name(cls, name, parent)
            metadata = {
                "synopsis": synopsis,
                "details": details,
                "error_handling": coalesce(error_handling, ErrorHandling.EXIT),
                "output": coalesce(output, sys.stderr),
            }
            environ = coalesce(environ, os.environ)
            colorful = bool(coalesce(colorful, False))
        else:
            _process_name(cls, name, parent)
            metadata = {
                "synopsis": synopsis,
                "details": details,
                "error_handling": coalesce(error_handling, parent.error_handling),
                "output": coalesce(output, parent.output),
            }
            if environ is not Unset or colorful is not Unset:
                raise TypeError(f"{cls.__typename__} 'environ' and 'colorful' are root options")
            environ = parent._environ
            colorful = parent.colorful
            name = parent.name + " " + name

        _process_strings(cls, metadata)
        _process_policy(cls, metadata)

        self._name = name
        self._synopsis = metadata["synopsis"]
        self._details = metadata["details"]
        self._error_handling = metadata["error_handling"]
        self._output = metadata["output"]
        self._environ = environ
        self._colorful = colorful
        self._parent = coalesce(parent)
        self._children = {}
        self._flags = FlagSet(name, usage=self.usage)
        self._positional = None
        self._parsed = False

        if parent is not Unset:
            parent._flags.copy_into(self._flags)
            self._positional = parent._positional

    @property
    def is_root(self):
        return self._parent is None

    @property
    def root(self):
        """
        Return the topmost command of the tree.
        """
        command = self
        while command.parent:
            command = command.parent
        return command

    def _walk(self):
        yield self
        for name in sorted(self._children):
            yield from self._children[name]._walk()

    # --- flags -----------------------------------------------------------------

    def _declare(self, name, value, usage):
        if self._children:
            raise FlagAfterCommandsError(f"flag {name} was defined after sub commands of {self._name!r}")
        return self._flags.var(value, name, usage)

    def var(self, value, name, usage=""):
        """
        Declare a flag backed by any object with a ``set(text)`` method.

        A ``predict(prefix)`` method on the object is used for completion of
        the flag value. Returns the object.

        ``set`` rejects a value by raising ValueError, which parse() reports
        as bad flags; any other exception is a bug and propagates.
        """
        if not settable(value):
            raise TypeError("var() value must have a set method")
        return self._declare(name, value, usage)

    def boolean(self, name, default=False, usage=""):
        return self._declare(name, BoolValue(default), usage)

    def string(self, name, default="", usage="", *options):
        return self._declare(name, StringValue(default, *options), usage)

    def integer(self, name, default=0, usage="", *options):
        return self._declare(name, IntValue(default, *options), usage)

    def floating(self, name, default=0.0, usage="", *options):
        return self._declare(name, FloatValue(default, *options), usage)

    def duration(self, name, default=datetime.timedelta(), usage="", *options):
        return self._declare(name, DurationValue(default, *options), usage)

    # --- positional arguments --------------------------------------------------

    def arguments(self, usage="", details="", *options):
        """
        Accept any number of positional arguments, collected into a Strings list.

        The returned list is filled in place when this command (or a
        sub-command created later) is selected.
        """
        value = Strings()
        self.arguments_var(value, usage, details, *options)
        return value

    def arguments_var(self, value, usage="", details="", *options):
        """
        Bind the positional arguments to value (anything with ``set(tokens)``).

        ``set`` rejects tokens by raising ValueError (reported as bad
        positional args); other exceptions propagate.

        Scope
        - usage: fragment of the usage line; defaults to "[args...]".
        - details: paragraph printed under "Positional arguments:".
        - options: predict options (values(...), predictor(...), check()).

        Rules
        - Must be called before the first sub-command is added.
        - At most once along a root-to-leaf path: a binding declared here, or
          inherited from an ancestor, rules out another one.

        Returns the binding.
        """
        if not settable(value):
            raise InvalidPositionalError("positional value must have a set method")
        if self._children:
            raise PositionalAfterCommandsError(f"positional args must be defined before sub commands of {self._name!r}")
        if self._positional is not None:
            raise PositionalRedefinedError(
                f"positional args of {self._name!r} were already defined by {self._positional.owner.name!r}"
            )
        self._positional = Positional(value, usage, details, predict.options(*options), owner=self)
        return self._positional

    # --- sub-commands ----------------------------------------------------------

    def command(self, name, synopsis="", details="", output=Unset, error_handling=Unset):
        """
        Create a sub-command named name under this command and return it.
        """
        child = type(self)(name, synopsis, details, error_handling, output, parent=self)
        self._children[name] = child
        return child

    # --- validation ------------------------------------------------------------

    def _validate(self, inherited=frozenset(), binding=None):
        """
        Check the whole subtree: every flag set holds its parent's flags and no
        path carries two positional bindings.
        """
        current = set()
        self._flags.visit_all(lambda flag: current.add(flag.name))
        if missing := sorted(inherited - current):
            raise InconsistentFlagsError(f"flag {missing[0]} was defined after sub commands {self._name}")
        if binding is not None and self._positional is not None and self._positional is not binding:
            raise PositionalRedefinedError(
                f"positional args of {self._name!r} conflict with the ones of {binding.owner.name!r}"
            )
        for child in self._children.values():
            child._validate(frozenset(current), self._positional)

    # --- parsing ---------------------------------------------------------------

    def _fault(self, cls, message, /, **options):
        return cls(message, **{"hint": f"run '{self._name} -h' for usage"} | options)

    def _parse(self, tokens):
        # The first token names this command (program name or sub-command).
        tokens = tokens[1:]

        if self._children:
            if not tokens:
                self.usage()
                raise self._fault(
                    MissingCommandError,
                    "must provide sub command",
                    code=FaultCode.MISSING_COMMAND,
                    title="missing command",
                    hint=f"choose one of: {", ".join(sorted(self._children))}",
                )
            token = tokens[0]
            if token not in self._children:
                if token in HELP_TOKENS:
                    self.usage()
                    raise HelpRequested("help requested", code=FaultCode.HELP_REQUESTED, title="help")
                matches = difflib.get_close_matches(token, sorted(self._children), n=1)
                raise self._fault(
                    UnknownCommandError,
                    f"invalid command: {token}",
                    code=FaultCode.UNKNOWN_COMMAND,
                    title="unknown command",
                    **({"hint": f"did you mean {matches[0]!r}?"} if matches else {}),
                )
            try:
                tokens = self._children[token]._parse(tokens)
            except CommandException as fault:
                raise copy.replace(fault, context=(self._name, *fault.context)) from fault.__cause__
            self._parsed = True
            return tokens

        try:
            tokens = self._flags.parse(tokens)
        except FlagError as error:
            raise self._fault(
                BadFlagsError,
                f"{self._name}: bad flags: {error}",
                code=FaultCode.BAD_FLAGS,
                title="bad flags",
            ) from error

        if self._positional is None:
            if tokens:
                raise self._fault(
                    UnexpectedPositionalsError,
                    f"{self._name}: bad positional args: positional args not expected, got {format_tokens(tokens)}",
                    code=FaultCode.UNEXPECTED_POSITIONALS,
                    title="unexpected arguments",
                )
        else:
            try:
                self._positional.set(tokens)
            except ValueError as error:
                raise self._fault(
                    BadPositionalsError,
                    f"{self._name}: bad positional args: {error}",
                    code=FaultCode.BAD_POSITIONALS,
                    title="bad arguments",
                ) from error

        self._parsed = True
        return []

    def parse(self, tokens=Unset, /):
        """
        Parse a command line (sys.argv by default, program name included).

        Outcome
        - Success: returns None; the selected path reports parsed=True.
        - Fault: disposed of by the root's error_handling. RETURN hands back
          the CommandException (a HelpRequested instance after -h), RAISE
          raises it, EXIT renders it to output and exits with status 2 (0 for
          help).

        Raises NotRootError on a sub-command, MissingProgramError without any
        token, and the ConfigurationError found by tree validation.
        """
        if not self.is_root:
            raise NotRootError(f"parse() must be called on the root command, not on {self._name!r}")
        tokens = list(coalesce(tokens, sys.argv))
        if not tokens:
            raise MissingProgramError("parse() needs at least the program name")
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() tokens must be strings")

        for command in self._walk():
            command._parsed = False

        try:
            if complete(self._name, Completer(self), environ=self._environ):
                sys.exit(0)
            self._validate()
            self._parse(tokens)
        except CommandException as fault:
            return trigger(
                fault,
                tool=self,
                policy=self._error_handling,
                output=self._output,
                colorful=self._colorful,
            )
        return None

    # --- usage -----------------------------------------------------------------

    def format_usage(self):
        """
        Render the help text of this command.

        Layout
        - "Usage: <path> [flags] <positional usage>" on a leaf, or
          "Usage: <path> [a|b]" when sub-commands exist ("[subcommands...]"
          once the list gets longer than 30 characters).
        - The synopsis, then the details indented and wrapped at 80 columns.
        - With sub-commands: the "Subcommands:" listing, sorted by name, and on
          the root the completion install hints when $SHELL is supported.
        - On a leaf: the "Flags:" listing and the positional details.
        """
        names = sorted(self._children)
        parts = []

        usage = "Usage: " + self._name
        if not names:
            if len(self._flags):
                usage += " [flags]"
            if self._positional is not None:
                usage += " " + self._positional.usage
        else:
            listing = "[" + "|".join(names) + "]"
            usage += " " + (listing if len(listing) <= 30 else "[subcommands...]")
        parts.append(usage + "\n\n")

        if self._synopsis:
            parts.append(self._synopsis + "\n\n")
        if self._details:
            parts.append(wrap(self._details) + "\n\n")

        if names:
            parts.append("Subcommands:\n\n")
            width = max(map(len, names))
            for name in names:
                parts.append("  %-*s\t%s\n" % (width, name, self._children[name].synopsis))
            parts.append("\n")
            if self.is_root and detect(self._environ):
                parts.append(_completion_usage(self._name) + "\n")
        else:
            if len(self._flags):
                parts.append("Flags:\n\n" + self._flags.format_defaults() + "\n")
            if self._positional is not None and self._positional.details:
                parts.append("Positional arguments:\n\n" + wrap(self._positional.details) + "\n\n")

        return "".join(parts)

    def usage(self):
        """
        Write the help text of this command to its output.
        """
        self._output.write(self.format_usage())


def _completion_usage(name):
    return (
        "Bash Completion:\n"
        "\n"
        f"Install bash completion by running: 'COMP_INSTALL=1 {name}'.\n"
        f"Uninstall by running: 'COMP_UNINSTALL=1 {name}'.\n"
        "Skip installation prompt with environment variable: 'COMP_YES=1'.\n"
    )


def root(
        name=Unset,
        synopsis="",
        details="",
        error_handling=ErrorHandling.EXIT,
        output=Unset,
        *,
        environ=Unset,
        colorful=False,
):
    """
    Build the root command of a new command tree.

    Options
    - name: program name shown in usage and errors (default: basename of sys.argv[0]).
    - synopsis, details: help texts.
    - error_handling: ErrorHandling policy applied by parse().
    - output: stream receiving usage and rendered faults (default: sys.stderr).
    - environ: environment consulted for completion (default: os.environ).
    - colorful: style rendered faults.
    """
    return Command(
        name,
        synopsis,
        details,
        error_handling,
        output,
        environ=environ,
        colorful=colorful,
    )


__all__ = (
    "CommandType",
    "Command",
    "root",
)
