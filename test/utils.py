"""
Tests for the shared helpers in gommander.utils.

This module verifies:
- The Unset sentinel: singleton identity, falsy semantics, representation,
  copy/pickle identity, thread safety and finality.
- coalesce(): only Unset is replaced, other falsy values survive.
- mirror(): read-only properties handing out detached containers.
- truthy(): environment-style switches.
"""
import copy
import pickle
import unittest
from threading import Thread, Lock
from unittest import TestCase

from gommander.utils import *


class TestUnset(TestCase):
    """
    Test suite for the `Unset` singleton.
    """

    def setUp(self) -> None:
        self.unset: UnsetType = UnsetType()

    def testSingleton(self) -> None:
        """
        The constructor returns the same object reference on every call.
        """
        self.assertIs(self.unset, UnsetType())
        self.assertIs(self.unset, Unset)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")
        self.assertEqual(str(Unset), "Unset")

    def testFalsely(self) -> None:
        self.assertFalse(bool(Unset))

    def testNotEqualToOtherFalsyValues(self) -> None:
        """
        Falsy does not imply equality with None, False, 0 or "".
        """
        for value in (None, False, 0, ""):
            with self.subTest(value=value):
                self.assertNotEqual(Unset, value)

    def testUnionWithTypes(self) -> None:
        """
        `str | Unset` builds a union usable with isinstance().
        """
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("x", str | Unset)
        self.assertNotIsInstance(1, str | Unset)

    def testCopyDeepcopyPreserveSingleton(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testPickleRoundTrip(self) -> None:
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testThreadSafetySingleton(self) -> None:
        """
        Concurrent constructions return the same instance.
        """
        results: list[UnsetType] = []
        lock: Lock = Lock()

        def worker():
            instance = UnsetType()
            with lock:
                results.append(instance)

        threads: list[Thread] = [Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(results), 16)
        for instance in results:
            self.assertIs(instance, Unset)

    def testFinalClass(self) -> None:
        with self.assertRaises(TypeError):
            type("UnsetType", (UnsetType,), {})


class TestHelpers(TestCase):

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "x"), "x")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce("", "x"), "")
        self.assertIsNone(coalesce(None, "x"))
        self.assertEqual(coalesce(0, 1), 0)

    def testMirrorDetachesContainers(self) -> None:
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = {"a": [1, 2]}

        holder = Holder()
        holder.items["a"].append(3)
        self.assertEqual(holder.items, {"a": [1, 2]})
        with self.assertRaises(AttributeError):
            holder.items = {}

    def testMirrorRequiresString(self) -> None:
        with self.assertRaises(TypeError):
            mirror(1)

    def testRename(self) -> None:
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")
        with self.assertRaises(TypeError):
            rename(1, "x")

    def testTruthy(self) -> None:
        for text in ("1", "true", "YES", " on "):
            with self.subTest(text=text):
                self.assertTrue(truthy(text))
        for text in (None, "", "0", "off", "no", "maybe"):
            with self.subTest(text=text):
                self.assertFalse(truthy(text))


if __name__ == '__main__':
    unittest.main()
