"""
Utility tests (Unset sentinel, coalesce, rename, mirror, validate_name).
"""
import copy
import unittest
from unittest import TestCase

from pennant.utils import *


class TestUnset(TestCase):

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)

    def testFalsyAndPrintable(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testFinal(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnionSupport(self):
        self.assertIsInstance(Unset, str | UnsetType)


class TestCoalesce(TestCase):

    def testOnlyUnsetIsReplaced(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertIsNone(coalesce(Unset))


class TestRename(TestCase):

    def testDirect(self):
        function = rename(lambda: None, "named")
        self.assertEqual((function.__name__, function.__qualname__), ("named", "named"))

    def testDecorator(self):
        @rename("other")
        def function():
            pass

        self.assertEqual(function.__name__, "other")

    def testBadArguments(self):
        with self.assertRaises(TypeError):
            rename(1, "x")
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):

    def testReturnsCopies(self):
        class Holder:
            items = mirror("items")
            mapping = mirror("mapping")

            def __init__(self):
                self._items = [1, 2]
                self._mapping = {"a": 1}

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        holder.mapping["b"] = 2
        self.assertEqual(holder.mapping, {"a": 1})
        with self.assertRaises(AttributeError):
            holder.items = ()


class TestValidateName(TestCase):

    def testAccepted(self):
        self.assertEqual(validate_name("listen-port", "flag"), "listen-port")

    def testRejected(self):
        with self.assertRaises(TypeError):
            validate_name(1, "flag")
        for name in ("", "-x", "a=b"):
            with self.assertRaises(ValueError):
                validate_name(name, "flag")


if __name__ == "__main__":
    unittest.main()
