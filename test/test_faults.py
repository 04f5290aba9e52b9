"""
Faults module behavioral tests (codes, rendering, policies).

Scope
- Validate message/context composition and option merging through copy.replace.
- Validate every ErrorHandling policy of trigger().
- Validate the plain (uncolored) rich rendering.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import io
import unittest
from unittest import TestCase

from rich.console import Console

from cmdtree.faults import (
    BadFlagsError,
    CommandException,
    CommandWarning,
    ErrorHandling,
    FaultCode,
    HelpRequested,
    trigger,
)


class TestCommandException(TestCase):

    def testContext(self):
        fault = BadFlagsError("leaf: bad flags: boom", context=("cmd", "cmd sub"))
        self.assertEqual(str(fault), "cmd > cmd sub > leaf: bad flags: boom")
        self.assertEqual(fault.context, ("cmd", "cmd sub"))
        self.assertEqual(BadFlagsError("boom").context, ())

    def testReplaceKeepsTypeOptionsAndCause(self):
        cause = ValueError("cause")
        fault = BadFlagsError("boom", code=FaultCode.BAD_FLAGS, hint="try again")
        fault.__cause__ = cause
        replaced = copy.replace(fault, context=("cmd",))
        self.assertIsInstance(replaced, BadFlagsError)
        self.assertIs(replaced.__cause__, cause)
        self.assertEqual(replaced.code, FaultCode.BAD_FLAGS)
        self.assertEqual(replaced.options["hint"], "try again")
        self.assertEqual(fault.context, ())

    def testOptionsAreReadOnly(self):
        with self.assertRaises(TypeError):
            CommandException("boom").options["code"] = 1

    def testNormalize(self):
        self.assertEqual(FaultCode.BAD_FLAGS.normalize(), "11201")

    def testRendering(self):
        output = io.StringIO()
        fault = BadFlagsError("boom", code=FaultCode.BAD_FLAGS, title="bad flags", hint="run 'cmd -h' for usage")
        Console(file=output, width=120).print(fault)
        self.assertEqual(output.getvalue(), (
            "[ cmdtree — 11201 | bad flags ]\n"
            "boom\n"
            " → run 'cmd -h' for usage\n"
        ))


class TestTrigger(TestCase):

    def testReturn(self):
        fault = trigger(BadFlagsError("boom"), policy=ErrorHandling.RETURN)
        self.assertIsInstance(fault, BadFlagsError)
        self.assertIs(fault.options["policy"], ErrorHandling.RETURN)

    def testRaise(self):
        with self.assertRaises(BadFlagsError):
            trigger(BadFlagsError("boom"), policy=ErrorHandling.RAISE)

    def testExit(self):
        output = io.StringIO()
        with self.assertRaises(SystemExit) as context:
            trigger(BadFlagsError("boom", title="bad flags"), policy=ErrorHandling.EXIT, output=output)
        self.assertEqual(context.exception.code, 2)
        self.assertIn("boom", output.getvalue())

    def testHelpExitsWithSuccess(self):
        output = io.StringIO()
        with self.assertRaises(SystemExit) as context:
            trigger(HelpRequested("help requested"), policy=ErrorHandling.EXIT, output=output)
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(output.getvalue(), "")

    def testWarning(self):
        with self.assertWarns(CommandWarning):
            trigger(CommandWarning("careful"))

    def testRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("boom"))


if __name__ == "__main__":
    unittest.main()
