"""
Install module behavioral tests (shell start-up files).

Scope
- Validate install/uninstall for bash, zsh and fish under a temporary HOME.
- Validate the failure modes and the declined confirmation.

Conventions
- Test method names follow CamelCase per project convention.
- Confirmation prompts are skipped (yes=True) or patched.
"""

from __future__ import annotations

import io
import os
import tempfile
import unittest
from unittest import TestCase, mock

from cmdtree.faults import FaultCode, InstallError
from cmdtree.install import detect, install, uninstall


class TestDetect(TestCase):

    def testShells(self):
        for shell, expected in (
                ("/bin/bash", "bash"),
                ("/usr/local/bin/zsh", "zsh"),
                ("/usr/bin/fish", "fish"),
                ("/bin/csh", None),
                ("", None),
        ):
            with self.subTest(shell=shell):
                self.assertEqual(detect({"SHELL": shell}), expected)
        self.assertIsNone(detect({}))


class TestInstall(TestCase):

    def setUp(self):
        self.home = tempfile.TemporaryDirectory()
        self.addCleanup(self.home.cleanup)
        self.output = io.StringIO()

    def path(self, *names):
        return os.path.join(self.home.name, *names)

    def read(self, *names):
        with open(self.path(*names), encoding="utf-8") as file:
            return file.read()

    def install(self, shell, **options):
        return install("app", "/opt/app", shell, home=self.home.name, output=self.output, **{"yes": True} | options)

    def uninstall(self, shell, **options):
        return uninstall("app", "/opt/app", shell, home=self.home.name, output=self.output, **{"yes": True} | options)

    def testBashKeepsExistingContent(self):
        with open(self.path(".bashrc"), "w", encoding="utf-8") as file:
            file.write("export EDITOR=vi")
        self.assertTrue(self.install("bash"))
        self.assertEqual(self.read(".bashrc"), "export EDITOR=vi\ncomplete -C /opt/app app\n")
        self.assertTrue(self.uninstall("bash"))
        self.assertEqual(self.read(".bashrc"), "export EDITOR=vi\n")

    def testZsh(self):
        self.assertTrue(self.install("zsh"))
        self.assertEqual(
            self.read(".zshrc"),
            "autoload -U +X bashcompinit && bashcompinit\ncomplete -o nospace -C /opt/app app\n",
        )
        self.assertTrue(self.uninstall("zsh"))
        self.assertEqual(self.read(".zshrc"), "autoload -U +X bashcompinit && bashcompinit\n")

    def testFish(self):
        self.assertTrue(self.install("fish"))
        content = self.read(".config", "fish", "completions", "app.fish")
        self.assertIn("function __complete_app", content)
        self.assertIn("complete -f -c app -a \"(__complete_app)\"", content)
        self.assertTrue(self.uninstall("fish"))
        self.assertFalse(os.path.exists(self.path(".config", "fish", "completions", "app.fish")))

    def testAlreadyInstalled(self):
        self.install("bash")
        with self.assertRaises(InstallError) as context:
            self.install("bash")
        self.assertEqual(context.exception.code, FaultCode.INSTALL_FAILED)
        self.assertIn("already installed in", str(context.exception))

    def testNotInstalled(self):
        with self.assertRaises(InstallError) as context:
            self.uninstall("zsh")
        self.assertIn("not installed in", str(context.exception))

    def testDeclined(self):
        with mock.patch("cmdtree.install._confirm", return_value=False) as confirm:
            self.assertFalse(self.install("bash", yes=False))
        confirm.assert_called_once()
        self.assertFalse(os.path.exists(self.path(".bashrc")))

    def testUnknownShell(self):
        with self.assertRaises(ValueError):
            self.install("tcsh")

    def testReportsPath(self):
        self.install("bash")
        self.assertEqual(self.output.getvalue(), "Installed completion for app in %s\n" % self.path(".bashrc"))


if __name__ == "__main__":
    unittest.main()
