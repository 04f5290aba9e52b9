"""
Completion module behavioral tests (candidate walk and shell protocol).

Scope
- Validate candidates for sub-commands, flag names, flag values and
  positional arguments over the sample tree of the commands tests.
- Validate the COMP_LINE protocol and the install/uninstall requests.

Conventions
- Test method names follow CamelCase per project convention.
- Shell start-up files are written under a temporary HOME only.
"""

from __future__ import annotations

import io
import os
import tempfile
import unittest
from unittest import TestCase

from cmdtree import root, Completer, candidates, complete, values, ErrorHandling
from cmdtree.faults import UnsupportedShellWarning

from test_commands import SampleTree


class TestCandidates(TestCase):

    def setUp(self):
        self.completer = Completer(SampleTree().root)

    def assertCandidates(self, line, expected):
        with self.subTest(line=line):
            self.assertEqual(candidates(self.completer, line), sorted(expected))

    def testSubCommands(self):
        self.assertCandidates("su", ["sub1", "sub2"])
        self.assertCandidates("", ["-h", "sub1", "sub2"])
        self.assertCandidates("sub1 ", ["-h", "sub1", "sub2"])

    def testFlagNames(self):
        self.assertCandidates("sub1 sub1 -f", ["-flag1", "-flag0", "-flag11"])
        self.assertCandidates("sub1 sub2 -", ["-flag0", "-flag1", "-flag12", "-h"])

    def testFlagValues(self):
        self.assertCandidates("sub1 sub1 -flag1 ", ["foo", "bar"])
        self.assertCandidates("sub1 sub1 -flag1 f", ["foo"])
        self.assertCandidates("sub1 sub1 -flag1=b", ["-flag1=bar"])

    def testPositionalArguments(self):
        self.assertCandidates("sub2 ", ["-flag0", "-h", "one", "two"])
        self.assertCandidates("sub2 o", ["one"])

    def testFlagValueIsConsumed(self):
        self.assertCandidates("sub1 sub1 -flag1 foo ", ["-flag0", "-flag1", "-flag11", "-h"])

    def testDoubleDashStopsFlags(self):
        self.assertCandidates("sub2 -- -", [])
        self.assertCandidates("sub2 -- ", ["one", "two"])

    def testCompleter(self):
        completer = self.completer.sub_command_get("sub1")
        self.assertEqual(completer.sub_command_list(), ["sub1", "sub2"])
        self.assertEqual(completer.flag_list(), [])
        self.assertIsNone(self.completer.sub_command_get("missing"))
        leaf = completer.sub_command_get("sub1")
        self.assertEqual(leaf.flag_list(), ["flag0", "flag1", "flag11"])
        self.assertIsNone(leaf.flag_get("flag0"))
        self.assertEqual(leaf.flag_get("flag1").predict(""), ["foo", "bar"])
        self.assertIsNone(leaf.args_get())


class TestCompleteProtocol(TestCase):

    def setUp(self):
        self.tree = SampleTree()
        self.output = io.StringIO()
        self.completer = Completer(self.tree.root)

    def testNoRequest(self):
        self.assertFalse(complete("cmd", self.completer, environ={}, output=self.output))
        self.assertEqual(self.output.getvalue(), "")

    def testCompLine(self):
        self.assertTrue(complete("cmd", self.completer, environ={"COMP_LINE": "cmd su"}, output=self.output))
        self.assertEqual(self.output.getvalue(), "sub1\nsub2\n")

    def testCompPointCutsTheLine(self):
        environ = {"COMP_LINE": "cmd sub2 ignored", "COMP_POINT": "9"}
        self.assertTrue(complete("cmd", self.completer, environ=environ, output=self.output))
        self.assertEqual(self.output.getvalue(), "-flag0\n-h\none\ntwo\n")

    def testProgramNameOnly(self):
        self.assertTrue(complete("cmd", self.completer, environ={"COMP_LINE": "cm"}, output=self.output))
        self.assertEqual(self.output.getvalue(), "")

    def testInstallAndUninstall(self):
        with tempfile.TemporaryDirectory() as home:
            environ = {"COMP_INSTALL": "1", "COMP_YES": "1", "SHELL": "/bin/bash", "HOME": home}
            self.assertTrue(complete("cmd", self.completer, environ=environ, output=self.output, binary="/opt/bin/cmd"))
            with open(os.path.join(home, ".bashrc"), encoding="utf-8") as file:
                self.assertEqual(file.read(), "complete -C /opt/bin/cmd cmd\n")

            environ = {"COMP_UNINSTALL": "1", "COMP_YES": "1", "SHELL": "/bin/bash", "HOME": home}
            self.assertTrue(complete("cmd", self.completer, environ=environ, output=self.output, binary="/opt/bin/cmd"))
            with open(os.path.join(home, ".bashrc"), encoding="utf-8") as file:
                self.assertEqual(file.read(), "")
        self.assertIn("Installed completion for cmd", self.output.getvalue())
        self.assertIn("Uninstalled completion for cmd", self.output.getvalue())

    def testUnsupportedShell(self):
        environ = {"COMP_INSTALL": "1", "SHELL": "/bin/csh"}
        with self.assertWarns(UnsupportedShellWarning):
            self.assertTrue(complete("cmd", self.completer, environ=environ, output=self.output))

    def testFlagValueOnRootLeaf(self):
        output = io.StringIO()
        app = root("cmd", error_handling=ErrorHandling.RETURN, output=io.StringIO(), environ={})
        app.string("color", "", "", values("red", "green"))
        self.assertTrue(complete("cmd", Completer(app), environ={"COMP_LINE": "cmd -color "}, output=output))
        self.assertEqual(output.getvalue(), "green\nred\n")


if __name__ == "__main__":
    unittest.main()
