"""
Formatter module behavioral tests (indent and wrap).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from cmdtree.formatter import wrap


class TestWrap(TestCase):

    def testShortText(self):
        self.assertEqual(wrap("hello world"), "  hello world")

    def testWidthCountsIndent(self):
        self.assertEqual(wrap("one two three", width=8), "  one\n  two\n  three")

    def testLinesStayWithinWidth(self):
        text = " ".join(["word"] * 60)
        for line in wrap(text).split("\n"):
            self.assertLessEqual(len(line), 80)
            self.assertTrue(line.startswith("  word"))

    def testLongWordIsKept(self):
        word = "x" * 100
        self.assertEqual(wrap("a " + word + " b"), "  a\n  " + word + "\n  b")

    def testNewlinesArePreserved(self):
        self.assertEqual(wrap("first\n\nsecond"), "  first\n\n  second")

    def testCustomIndent(self):
        self.assertEqual(wrap("a b", indent="> "), "> a b")
        self.assertEqual(wrap("a b", indent=""), "a b")

    def testValidation(self):
        with self.assertRaises(TypeError):
            wrap(None)
        with self.assertRaises(ValueError):
            wrap("text", width=2)


if __name__ == "__main__":
    unittest.main()
