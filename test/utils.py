"""
Tests for the Unset sentinel and the small helpers of helmsman.utils.

This module verifies:
- Singleton identity, falsy semantics and representation of `Unset`.
- PEP 604 unions with the sentinel in isinstance checks.
- Copying preserves identity; the type cannot be subclassed.
- coalesce() only replaces the sentinel.
- rename() in both its direct and decorator forms.
"""
import copy
import unittest
from unittest import TestCase

from helmsman.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` singleton.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the module-level instance on every call.
        """
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testRepr(self) -> None:
        """
        __repr__() is the literal string 'Unset'.
        """
        self.assertEqual(repr(Unset), "Unset")

    def testFalsely(self) -> None:
        """
        The sentinel is falsy but distinct from None and False.
        """
        self.assertFalse(bool(Unset))
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testUnionInIsinstance(self) -> None:
        """
        `str | Unset` and `Unset | str` both work as isinstance targets.
        """
        self.assertTrue(isinstance("name", str | Unset))
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance(Unset, Unset | str))
        self.assertFalse(isinstance(42, str | Unset))

    def testCopyDeepcopyPreserveSingleton(self) -> None:
        """
        copy() and deepcopy() preserve the identity of the singleton.
        """
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(copy.deepcopy({"key": Unset})["key"], Unset)

    def testFinalClass(self) -> None:
        """
        The class is final: attempts to subclass must fail with TypeError.
        """
        with self.assertRaises(TypeError):
            type("UnsetType", (UnsetType,), {})


class CoalesceTest(TestCase):

    def testReplacesUnset(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))

    def testPreservesFalseyValues(self) -> None:
        for value in (None, 0, "", [], False):
            self.assertIs(coalesce(value, "fallback"), value)


class RenameTest(TestCase):

    def testDirectForm(self) -> None:
        function = rename(lambda: None, "named")
        self.assertEqual(function.__name__, "named")
        self.assertEqual(function.__qualname__, "named")

    def testDecoratorForm(self) -> None:
        @rename("coerce")
        def anonymous(value, previous):
            return value

        self.assertEqual(anonymous.__name__, "coerce")
        self.assertEqual(anonymous("x", None), "x")

    def testRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 42)
        with self.assertRaises(TypeError):
            rename()


if __name__ == '__main__':
    unittest.main()
