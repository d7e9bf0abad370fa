"""
Context and FlagTable tests (publishing, typed lookups, values, cancellation).
"""
import unittest
from unittest import TestCase

from pennant.context import *
from pennant.context import get as get_flag
from pennant.faults import FlagNotFoundError, FlagTypeError
from pennant.flags import Flag
from pennant.values import Slot, generic_var


def _flag(name, value):
    return Flag(name, "", generic_var(Slot(value), str, str), str(value))


class TestFlagTable(TestCase):

    def testPublishAccumulates(self):
        table = FlagTable()
        table.publish([_flag("a", 1)])
        table.publish([_flag("b", 2)])
        self.assertEqual(sorted(table), ["a", "b"])
        self.assertEqual(len(table), 2)

    def testLastPublishWins(self):
        table = FlagTable()
        table.publish([_flag("a", 1)])
        table.publish([_flag("a", 2)])
        self.assertEqual(table.get("a"), 2)

    def testGetAndLookup(self):
        table = FlagTable()
        flag = _flag("a", 1)
        table.publish([flag])
        self.assertEqual(table.get("a"), 1)
        self.assertIsNone(table.get("b"))
        self.assertEqual(table.get("b", 3), 3)
        self.assertIs(table.lookup("a"), flag)
        self.assertIsNone(table.lookup("b"))
        self.assertIs(table["a"], flag)

    def testTypedDistinguishesMissingFromMistyped(self):
        table = FlagTable()
        table.publish([_flag("a", 1)])
        self.assertEqual(table.typed("a", int), 1)
        with self.assertRaises(FlagNotFoundError):
            table.typed("b", int)
        with self.assertRaises(KeyError):
            table.typed("b", int)
        with self.assertRaises(FlagTypeError) as context:
            table.typed("a", str)
        self.assertIsInstance(context.exception, TypeError)
        self.assertEqual(str(context.exception), "flag -a holds int, not str")

    def testTypedKeepsBoolApartFromInt(self):
        table = FlagTable()
        table.publish([_flag("b", True)])
        self.assertIs(table.typed("b", bool), True)
        self.assertIs(table.typed("b", int | bool), True)
        with self.assertRaises(FlagTypeError) as context:
            table.typed("b", int)
        self.assertEqual(str(context.exception), "flag -b holds bool, not int")


class TestContext(TestCase):

    def testValues(self):
        context = Context(user="jo")
        self.assertEqual(context["user"], "jo")
        self.assertIsNone(context.get("missing"))
        self.assertIn("user", context)
        with self.assertRaises(KeyError):
            context["missing"]

    def testDeriveLayersValuesAndSharesTable(self):
        parent = Context(user="jo", mode="a")
        child = parent.derive(mode="b")
        self.assertEqual((child["user"], child["mode"]), ("jo", "b"))
        self.assertEqual(parent["mode"], "a")
        self.assertIs(child.table, parent.table)

    def testEmptyTableIsShared(self):
        table = FlagTable()
        self.assertIs(Context(table).derive().table, table)

    def testRejectsForeignTable(self):
        with self.assertRaises(TypeError):
            Context({})

    def testCancelPropagatesDownward(self):
        parent = Context()
        child = parent.cancellable()
        grandchild = child.derive()
        child.cancel()
        self.assertFalse(parent.cancelled)
        self.assertTrue(grandchild.cancelled)
        self.assertEqual(grandchild.reason, "cancelled")

    def testDeriveFromCancelled(self):
        parent = Context()
        parent.cancel("stop")
        child = parent.derive()
        self.assertTrue(child.cancelled)
        self.assertEqual(child.reason, "stop")

    def testWait(self):
        context = Context()
        self.assertFalse(context.wait(0))
        context.cancel()
        self.assertTrue(context.wait(0))

    def testDeadline(self):
        child = Context().deadline(0.01)
        self.assertTrue(child.wait(5))
        self.assertEqual(child.reason, "deadline exceeded")

    def testDeadlineReleasedByCancel(self):
        child = Context().deadline(60)
        child.cancel()
        self.assertEqual(child.reason, "cancelled")

    def testHelpers(self):
        context = Context()
        context.table.publish([_flag("a", 1)])
        self.assertEqual(get_flag(context, "a"), 1)
        self.assertIsNotNone(lookup(context, "a"))
        self.assertIsNone(get_flag(None, "a"))
        self.assertIsNone(lookup(None, "a"))


if __name__ == "__main__":
    unittest.main()
