"""
Fault tests (codes, options, grouping and rich rendering).
"""
import unittest
import warnings
from unittest import TestCase

from rich.console import Console

from pennant.faults import *


def _render(fault):
    console = Console(color_system=None, force_terminal=False, width=120)
    with console.capture() as capture:
        report(fault, console=console)
    return capture.get()


class TestFlagException(TestCase):

    def testMessageAndOptions(self):
        fault = UnknownFlagError("flag provided but not defined: -x", flag="x")
        self.assertEqual(str(fault), "flag provided but not defined: -x")
        self.assertEqual(fault.options["flag"], "x")
        self.assertIs(fault.code, FaultCode.UNKNOWN_FLAG)
        with self.assertRaises(TypeError):
            fault.options["flag"] = "y"

    def testOptionOverrides(self):
        fault = ParseError("bad", hint="try again", title="oops")
        self.assertEqual((fault.hint, fault.title), ("try again", "oops"))

    def testTaxonomy(self):
        self.assertTrue(issubclass(ParseError, ValueError))
        self.assertTrue(issubclass(FlagNotFoundError, KeyError))
        self.assertTrue(issubclass(FlagTypeError, TypeError))
        self.assertTrue(issubclass(InvalidValueError, ArgumentSyntaxError))
        self.assertTrue(issubclass(UndeclaredFlagError, DefinitionError))

    def testMessageMustBeString(self):
        with self.assertRaises(TypeError):
            FlagException(42)

    def testRendering(self):
        output = _render(MissingRequiredFlagError("missing required flag -bool", prog="tool"))
        self.assertIn("[ tool — 21121 | Missing Required Flag ]", output)
        self.assertIn("missing required flag -bool", output)

    def testRenderingHint(self):
        output = _render(DispatchExhaustedError("cannot proceed with arguments []", prog="tool"))
        self.assertIn("→ pick one of the listed commands", output)

    def testPlainExceptionsRenderTheirMessage(self):
        self.assertEqual(_render(RuntimeError("plain")).strip(), "plain")


class TestFaultGroup(TestCase):

    def testJoinSkipsNone(self):
        self.assertIsNone(join())
        self.assertIsNone(join(None, None))
        error = ValueError("a")
        group = join(None, error)
        self.assertEqual(group.exceptions, (error,))

    def testJoinKeepsOrder(self):
        group = join(ValueError("first"), RuntimeError("second"))
        self.assertIsInstance(group, ExceptionGroup)
        self.assertEqual(str(group), "first\nsecond")
        self.assertIs(group.code, FaultCode.FAULT_GROUP)

    def testJoinRejectsNonExceptions(self):
        with self.assertRaises(TypeError):
            join("error")

    def testSplitKeepsType(self):
        group = join(ValueError("first"), RuntimeError("second"))
        matched, rest = group.split(ValueError)
        self.assertIsInstance(matched, FaultGroup)
        self.assertEqual(str(matched), "first")
        self.assertEqual(str(rest), "second")

    def testRendering(self):
        output = _render(FaultGroup([ParseError("first"), RuntimeError("second")], prog="tool"))
        self.assertIn("Several Errors", output)
        self.assertIn("first", output)
        self.assertIn("second", output)


class TestWarnings(TestCase):

    def testWarningCarriesOptions(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            warnings.warn(InvalidEnvironmentWarning("ignoring $X", variable="X"))
        self.assertIs(caught[0].category, InvalidEnvironmentWarning)
        self.assertEqual(caught[0].message.options["variable"], "X")
        self.assertIs(caught[0].message.code, FaultCode.INVALID_ENVIRONMENT)

    def testWarningRendering(self):
        output = _render(InvalidEnvironmentWarning("ignoring $X", prog="tool"))
        self.assertIn("Invalid Environment", output)
        self.assertIn("→ fix or unset the environment variable", output)


class TestFaultCode(TestCase):

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.PARSE_ERROR.normalize(), "21101")


if __name__ == "__main__":
    unittest.main()
