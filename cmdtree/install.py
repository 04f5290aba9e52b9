"""
Shell completion installer.

Supported shells
- bash: one ``complete -C <binary> <name>`` line in ~/.bashrc.
- zsh: the same line (with ``-o nospace``) in ~/.zshrc, after enabling
  bashcompinit when the file does not already do it.
- fish: a completion function in ~/.config/fish/completions/<name>.fish.

In every case the shell runs the program itself with COMP_LINE/COMP_POINT set,
and the program prints its candidates (see cmdtree.completion).

Failures (already installed, not installed, unwritable files) raise
InstallError; an unknown shell family is a ValueError.
"""
import os
import re
import shlex
import sys

from rich.console import Console
from rich.prompt import Confirm

from .faults import FaultCode, InstallError
from .utils import Unset, coalesce

SHELLS = ("bash", "zsh", "fish")


def detect(environ, /):
    """
    Return the shell family named by $SHELL ("bash", "zsh" or "fish"), or None.
    """
    shell = os.path.basename(environ.get("SHELL", "")).lower()
    return shell if shell in SHELLS else None


class _RcInstaller:
    """
    Completion line appended to a shell start-up file.
    """
    filename = ".bashrc"
    options = ""
    preamble = ()

    def __init__(self, home):
        self.path = os.path.join(home, self.filename)

    def _read(self):
        try:
            with open(self.path, encoding="utf-8") as file:
                return file.read().splitlines()
        except FileNotFoundError:
            return []

    def _matches(self, line, name):
        return re.fullmatch(r"complete (-o nospace )?-C .+ %s" % re.escape(shlex.quote(name)), line.strip()) is not None

    def installed(self, name):
        return any(self._matches(line, name) for line in self._read())

    def install(self, name, binary):
        lines = self._read()
        additions = [line for line in self.preamble if line not in lines]
        additions.append("complete %s-C %s %s" % (self.options, shlex.quote(binary), shlex.quote(name)))
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as file:
            if lines and lines[-1]:
                file.write("\n")
            file.write("\n".join(additions) + "\n")

    def uninstall(self, name):
        lines = [line for line in self._read() if not self._matches(line, name)]
        with open(self.path, "w", encoding="utf-8") as file:
            file.write("".join(line + "\n" for line in lines))


class _ZshInstaller(_RcInstaller):
    filename = ".zshrc"
    options = "-o nospace "
    preamble = ("autoload -U +X bashcompinit && bashcompinit",)


class _FishInstaller:
    template = (
        "function __complete_{name}\n"
        "    set -lx COMP_LINE (commandline -cp)\n"
        "    test -z (commandline -ct)\n"
        "    and set COMP_LINE \"$COMP_LINE \"\n"
        "    {binary}\n"
        "end\n"
        "complete -f -c {name} -a \"(__complete_{name})\"\n"
    )

    def __init__(self, home):
        self.home = home
        self.path = Unset

    def _path(self, name):
        return os.path.join(self.home, ".config", "fish", "completions", name + ".fish")

    def installed(self, name):
        self.path = self._path(name)
        return os.path.isfile(self.path)

    def install(self, name, binary):
        self.path = self._path(name)
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as file:
            file.write(self.template.format(name=name, binary=shlex.quote(binary)))

    def uninstall(self, name):
        self.path = self._path(name)
        os.remove(self.path)


def _installer(shell, home):
    match shell:
        case "bash":
            return _RcInstaller(home)
        case "zsh":
            return _ZshInstaller(home)
        case "fish":
            return _FishInstaller(home)
        case _:
            raise ValueError("unsupported shell %r" % shell)


def _confirm(question, output):
    return Confirm.ask(question, console=Console(file=output, highlight=False), default=False)


def install(name, binary, shell, /, home=Unset, yes=False, output=Unset):
    """
    Install completion of program name (run as binary) for shell.

    Asks for confirmation on stdin unless yes is true; returns False when the
    user declines, True once installed.
    """
    home = coalesce(home, os.path.expanduser("~"))
    output = coalesce(output, sys.stdout)
    installer = _installer(shell, home)
    if installer.installed(name):
        raise InstallError(
            "already installed in %s" % installer.path,
            code=FaultCode.INSTALL_FAILED,
            title="completion install",
            hint="uninstall first with COMP_UNINSTALL=1 %s" % name,
        )
    if not yes and not _confirm("Install completion for %s?" % name, output):
        return False
    try:
        installer.install(name, binary)
    except OSError as error:
        raise InstallError(str(error), code=FaultCode.INSTALL_FAILED, title="completion install") from error
    Console(file=output, highlight=False).print("Installed completion for %s in %s" % (name, installer.path), markup=False, soft_wrap=True)
    return True


def uninstall(name, binary, shell, /, home=Unset, yes=False, output=Unset):
    """
    Remove completion of program name for shell; the counterpart of install().
    """
    home = coalesce(home, os.path.expanduser("~"))
    output = coalesce(output, sys.stdout)
    installer = _installer(shell, home)
    if not installer.installed(name):
        raise InstallError(
            "not installed in %s" % installer.path,
            code=FaultCode.INSTALL_FAILED,
            title="completion uninstall",
            hint="install with COMP_INSTALL=1 %s" % name,
        )
    if not yes and not _confirm("Uninstall completion for %s?" % name, output):
        return False
    try:
        installer.uninstall(name)
    except OSError as error:
        raise InstallError(str(error), code=FaultCode.INSTALL_FAILED, title="completion uninstall") from error
    Console(file=output, highlight=False).print("Uninstalled completion for %s from %s" % (name, installer.path), markup=False, soft_wrap=True)
    return True


__all__ = (
    "SHELLS",
    "detect",
    "install",
    "uninstall",
)
