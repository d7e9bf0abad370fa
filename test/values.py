"""
Value cell tests (single, list and slice disciplines, internal and external storage).

Scope
- Round trip: format(parse(x)) reproduces x for every discipline.
- Overwrite / append / split-and-replace semantics.
- Default formatting of internal versus external storage.
- Failed sets leave the held value untouched.
"""
import unittest
from unittest import TestCase

from pennant.values import *


def _number(text):
    return int(text)


class TestSingleValue(TestCase):
    """Overwrite discipline."""

    def testInternalFormatsEmptyUntilSet(self):
        cell = generic(_number, str)
        self.assertEqual(cell.format(), "")
        cell.set("7")
        self.assertEqual(cell.format(), "7")
        self.assertEqual(cell.get(), 7)

    def testVarFormatsInitialValue(self):
        slot = Slot(12)
        cell = generic_var(slot, _number, str)
        self.assertEqual(cell.format(), "12")
        self.assertEqual(str(cell), "12")

    def testVarWritesThroughToSlot(self):
        slot = Slot(0)
        cell = generic_var(slot, _number, str)
        cell.set("42")
        self.assertEqual(slot.value, 42)
        self.assertIs(cell.slot, slot)

    def testLastSetWins(self):
        cell = generic(_number, str)
        cell.set("1")
        cell.set("2")
        self.assertEqual(cell.get(), 2)

    def testFailedSetKeepsValue(self):
        slot = Slot(5)
        cell = generic_var(slot, _number, str)
        with self.assertRaises(ValueError):
            cell.set("five")
        self.assertEqual(slot.value, 5)

    def testRoundTrip(self):
        cell = generic(_number, str)
        for text in ("0", "-3", "1024"):
            cell.set(text)
            self.assertEqual(cell.format(), text)

    def testBooleanMarker(self):
        self.assertTrue(generic(bool, str, boolean=True).boolean)
        self.assertFalse(generic(_number, str).boolean)

    def testRejectsNonCallables(self):
        with self.assertRaises(TypeError):
            generic("int", str)
        with self.assertRaises(TypeError):
            generic(_number, None)

    def testRejectsForeignStorage(self):
        with self.assertRaises(TypeError):
            generic_var([0], _number, str)


class TestListValue(TestCase):
    """Append discipline."""

    def testAppendsInOrder(self):
        cell = generic_list(_number, str)
        for text in ("3", "1", "2"):
            cell.set(text)
        self.assertEqual(cell.get(), [3, 1, 2])
        self.assertEqual(cell.format(), "[3 1 2]")

    def testEmptyFormatsEmpty(self):
        self.assertEqual(generic_list(_number, str).format(), "")

    def testVarAppendsToCallerList(self):
        values = [1]
        cell = generic_list_var(values, _number, str)
        cell.set("2")
        self.assertEqual(values, [1, 2])
        self.assertIs(cell.get(), values)

    def testFailedSetKeepsValues(self):
        cell = generic_list(_number, str)
        cell.set("1")
        with self.assertRaises(ValueError):
            cell.set("x")
        self.assertEqual(cell.get(), [1])

    def testRejectsImmutableStorage(self):
        with self.assertRaises(TypeError):
            generic_list_var((1, 2), _number, str)


class TestSliceValue(TestCase):
    """Split-and-replace discipline."""

    def testSplitsOnSeparator(self):
        cell = generic_slice(",", _number, str)
        cell.set("1,2,3")
        self.assertEqual(cell.get(), [1, 2, 3])
        self.assertEqual(cell.format(), "1,2,3")

    def testLaterSetReplaces(self):
        cell = generic_slice(",", _number, str)
        cell.set("1,2,3")
        cell.set("4")
        self.assertEqual(cell.get(), [4])

    def testVarReplacesCallerListInPlace(self):
        values = [9, 9]
        cell = generic_slice_var(values, ":", _number, str)
        cell.set("1:2")
        self.assertEqual(values, [1, 2])
        self.assertEqual(cell.format(), "1:2")

    def testBadFragmentLeavesSequenceUnchanged(self):
        values = [7]
        cell = generic_slice_var(values, ",", _number, str)
        with self.assertRaises(ValueError):
            cell.set("1,x,3")
        self.assertEqual(values, [7])

    def testMultiCharacterSeparator(self):
        cell = generic_slice(" | ", str, str)
        cell.set("a | b")
        self.assertEqual(cell.get(), ["a", "b"])
        self.assertEqual(cell.sep, " | ")

    def testEmptySeparatorRejected(self):
        with self.assertRaises(ValueError):
            generic_slice("", _number, str)
        with self.assertRaises(TypeError):
            generic_slice(None, _number, str)


class TestFuncValue(TestCase):

    def testCallsFunctionAndHoldsNothing(self):
        seen = []
        cell = FuncValue(seen.append)
        cell.set("a")
        cell.set("b")
        self.assertEqual(seen, ["a", "b"])
        self.assertEqual(cell.format(), "")
        self.assertIsNone(cell.get())

    def testRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            FuncValue(None)


class TestSlot(TestCase):

    def testDefaultsToNone(self):
        self.assertIsNone(Slot().value)

    def testRepr(self):
        self.assertEqual(repr(Slot(3)), "Slot(3)")


if __name__ == "__main__":
    unittest.main()
