"""
Shell completion: the command tree seen by the completion engine.

Completer wraps one command and answers the questions the engine asks while
walking a partial command line:
- sub_command_list() / sub_command_get(name): children, sorted by name.
- flag_list(): flag names, only on leaves (flags are parsed at the leaf).
- flag_get(name): the flag value when it can predict, else None. A None answer
  also means the flag takes no value (bool flags).
- args_get(): the positional predictor, falling back to the positional value.

candidates() runs the walk; complete() is the program-side half of the
``complete -C`` protocol and of the install/uninstall requests.
"""
import os
import sys

from .faults import FaultCode, UnsupportedShellWarning, trigger
from .install import detect, install, uninstall
from .predict import predictable
from .utils import Unset, coalesce

HELP_TOKENS = ("-h", "-help", "--help")


class Completer:
    def __init__(self, command, /):
        self._command = command

    @property
    def command(self):
        return self._command

    def sub_command_list(self):
        return sorted(self._command.children)

    def sub_command_get(self, name, /):
        child = self._command.children.get(name)
        return None if child is None else type(self)(child)

    def flag_list(self):
        if self._command.children:
            return []
        names = []
        self._command.flags.visit_all(lambda flag: names.append(flag.name))
        return names

    def flag_get(self, name, /):
        flag = self._command.flags.lookup(name)
        if flag is None or not predictable(flag.value):
            return None
        return flag.value

    def args_get(self):
        binding = self._command.positional
        if binding is None:
            return None
        if binding.config:
            return binding.config
        if predictable(binding.value):
            return binding.value
        return None

    def __repr__(self):
        return "completer(%r)" % self._command.name


def _split(line):
    words = line.split()
    if not line or line[-1].isspace():
        words.append("")
    return words[:-1], words[-1]


def candidates(completer, line, /):
    """
    Candidates for the last word of line (the words after the program name).

    The walk descends through sub-command names, lets a value-taking flag
    swallow the next word and stops treating words as flags after "--". The
    result is filtered by the last word and sorted.
    """
    completed, prefix = _split(line)
    pending = None
    terminated = False
    for word in completed:
        if pending is not None:
            pending = None
        elif word == "--" and not terminated:
            terminated = True
        elif word.startswith("-") and not terminated:
            name, assigned, _ = word.lstrip("-").partition("=")
            if not assigned:
                pending = completer.flag_get(name)
        elif (child := completer.sub_command_get(word)) is not None:
            completer = child

    if pending is not None:
        predictions = pending.predict(prefix)
    elif prefix.startswith("-") and not terminated:
        dashes = prefix[:len(prefix) - len(prefix.lstrip("-"))]
        name, assigned, value = prefix[len(dashes):].partition("=")
        if assigned:
            predictor = completer.flag_get(name)
            predictions = [] if predictor is None else [
                "%s%s=%s" % (dashes, name, prediction) for prediction in predictor.predict(value)
            ]
        else:
            predictions = ["-" + name for name in completer.flag_list()] + ["-h"]
    else:
        predictions = [] if terminated else completer.sub_command_list()
        if not predictions and (predictor := completer.args_get()) is not None:
            predictions = list(predictor.predict(prefix))
        if not prefix and not terminated:
            predictions += ["-" + name for name in completer.flag_list()] + ["-h"]

    return sorted({prediction for prediction in predictions if prediction.startswith(prefix)})


def complete(name, completer, /, environ=Unset, output=Unset, binary=Unset):
    """
    Answer a completion request found in environ; return True when one was handled.

    - COMP_LINE (cut at COMP_POINT): print one candidate per line to output.
    - COMP_INSTALL=1 / COMP_UNINSTALL=1: install or remove the completion of
      name for the shell named by $SHELL (COMP_YES=1 skips the prompt).
    The caller is expected to exit with status 0 after a handled request.
    """
    environ = coalesce(environ, os.environ)
    output = coalesce(output, sys.stdout)

    if "COMP_LINE" in environ:
        line = environ["COMP_LINE"]
        if (point := environ.get("COMP_POINT", "")).isdigit():
            line = line[:int(point)]
        _, separator, rest = line.lstrip().partition(" ")
        # Still typing the program name itself.
        if not separator:
            return True
        for candidate in candidates(completer, rest):
            output.write(candidate + "\n")
        return True

    installing = environ.get("COMP_INSTALL") == "1"
    if not installing and environ.get("COMP_UNINSTALL") != "1":
        return False

    shell = detect(environ)
    if shell is None:
        trigger(
            UnsupportedShellWarning(
                "completion is not supported for shell %r" % environ.get("SHELL", ""),
                code=FaultCode.UNSUPPORTED_SHELL,
            )
        )
        return True
    (install if installing else uninstall)(
        name,
        os.path.abspath(coalesce(binary, sys.argv[0])),
        shell,
        home=environ.get("HOME") or os.path.expanduser("~"),
        yes=environ.get("COMP_YES") == "1",
        output=output,
    )
    return True


__all__ = (
    "HELP_TOKENS",
    "Completer",
    "candidates",
    "complete",
)
