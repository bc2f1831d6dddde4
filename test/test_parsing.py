# python
"""
Parsing behavioral tests (global scanner, module parser, parsed result sets).

Scope
- Validate order independence, last-occurrence-wins and positional filling.
- Validate every parse fault (unknown/empty token, missing value/action/required, invalid value).
- Validate that parsed values never leak between two passes over the same specs.

Conventions
- Test method names follow CamelCase per project convention.
- argv lists always start with the program name, as sys.argv does.
"""

from __future__ import annotations

import itertools
import os
import tempfile
import unittest
from unittest import TestCase

from helmsman import (
    Cardinal, Option, Flag, Kind, Module, Globals,
    ParsedArguments, scan_globals, parse_module,
    FaultCode, InvalidValueError, UnknownTokenError, EmptyTokenError,
    MissingValueError, MissingRequiredError, MissingActionError,
)


def noop(arguments, globals):
    pass


class TestParsedArguments(TestCase):
    """Behavioral tests for the per-pass result set."""

    def setUp(self):
        self.identifier = Option("-i", "--identifier")
        self.dmg = Cardinal("dmg")
        self.verbose = Flag("-v", "--verbose")
        self.limit = Option("--limit", kind=Kind.UINT, default=10)
        self.parsed = ParsedArguments((self.identifier, self.dmg), (self.verbose, self.limit))

    def testLookupByEveryKey(self):
        self.parsed.assign(self.identifier, "com.example", required=True)
        self.assertEqual(self.parsed["-i"], "com.example")
        self.assertEqual(self.parsed["--identifier"], "com.example")
        self.assertEqual(self.parsed[self.identifier], "com.example")

    def testLookupByName(self):
        self.parsed.assign(self.dmg, "image.dmg", required=True)
        self.assertEqual(self.parsed["dmg"], "image.dmg")

    def testDeclaredDefaults(self):
        self.assertIs(self.parsed["--verbose"], False)
        self.assertIs(self.parsed.get("--verbose", "fallback"), False)
        self.assertEqual(self.parsed["--limit"], 10)
        self.assertNotIn("--verbose", self.parsed)

    def testMissingWithoutDefault(self):
        self.assertIsNone(self.parsed["--identifier"])
        self.assertIsNone(self.parsed["dmg"])
        self.assertIsNone(self.parsed.get("--identifier"))
        self.assertEqual(self.parsed.get("--identifier", "fallback"), "fallback")

    def testUndeclaredKey(self):
        with self.assertRaises(KeyError):
            self.parsed["--unknown"]
        self.assertEqual(self.parsed.get("--unknown", 1), 1)
        self.assertNotIn("--unknown", self.parsed)
        self.assertNotIn(Option("--identifier"), self.parsed)

    def testPlaceMovesToEnd(self):
        self.parsed.assign(self.identifier, "a", required=True)
        self.parsed.assign(self.dmg, "b", required=True)
        self.parsed.assign(self.identifier, "c", required=True)
        self.assertEqual(self.parsed.required, (self.dmg, self.identifier))
        self.assertEqual(self.parsed["-i"], "c")
        self.assertEqual(len(self.parsed), 2)

    def testIterationOrder(self):
        self.parsed.assign(self.verbose, True, required=False)
        self.parsed.assign(self.dmg, "b", required=True)
        self.assertEqual(list(self.parsed), [self.dmg, self.verbose])


class TestModuleParser(TestCase):
    """Behavioral tests for parse_module."""

    def setUp(self):
        self.identifier = Option("-i", "--identifier", descr="The identifier of the cryptex")
        self.version = Option("-V", "--version", descr="The version of the cryptex")
        self.dmg = Cardinal("dmg", descr="Path to cryptex dmg")
        self.tc = Cardinal("tc", descr="Path to trust cache")
        self.count = Option("-c", "--count", kind=Kind.INT)
        self.im4p = Flag("-w", "--im4p", descr="Wrap in an IM4P container")
        self.module = Module(
            "install", noop,
            required=[self.identifier, self.version, self.dmg, self.tc],
            optional=[self.count, self.im4p],
        )

    def parse(self, *tokens):
        return parse_module(self.module, ["prog", "install", *tokens], 2)

    def testFlaggedArgumentsInAnyOrder(self):
        flagged = [("-i", "com.example"), ("--version", "1.0")]
        for permutation in itertools.permutations(flagged):
            with self.subTest(order=permutation):
                parsed = self.parse(*itertools.chain.from_iterable(permutation), "a.dmg", "b.tc")
                self.assertEqual(parsed["--identifier"], "com.example")
                self.assertEqual(parsed["-V"], "1.0")
                self.assertEqual(parsed["dmg"], "a.dmg")
                self.assertEqual(parsed["tc"], "b.tc")

    def testPositionalsFillInDeclarationOrder(self):
        parsed = self.parse("a.dmg", "-i", "x", "b.tc", "-V", "2")
        self.assertEqual(parsed["dmg"], "a.dmg")
        self.assertEqual(parsed["tc"], "b.tc")

    def testLastOccurrenceWins(self):
        parsed = self.parse("--identifier", "A", "-V", "1", "a", "b", "--identifier", "B")
        self.assertEqual(parsed["--identifier"], "B")
        self.assertEqual(parsed.required[-1], self.identifier)
        self.assertEqual(len(parsed.required), 4)

    def testOptionalFlagAndValue(self):
        parsed = self.parse("-i", "x", "-V", "1", "a", "b", "--im4p", "-c", "0x10")
        self.assertIs(parsed["--im4p"], True)
        self.assertEqual(parsed["-c"], 16)
        self.assertEqual(parsed.optional, (self.im4p, self.count))

    def testOptionalOmitted(self):
        parsed = self.parse("-i", "x", "-V", "1", "a", "b")
        self.assertIs(parsed["--im4p"], False)
        self.assertIsNone(parsed.get("--count"))
        self.assertEqual(parsed.optional, ())

    def testPendingValueTakesFlagLookingToken(self):
        parsed = self.parse("-i", "-V", "-V", "1", "a", "b")
        self.assertEqual(parsed["-i"], "-V")
        self.assertEqual(parsed["-V"], "1")

    def testEmptyTokenIsAPositionalValue(self):
        parsed = self.parse("-i", "", "-V", "1", "", "b")
        self.assertEqual(parsed["-i"], "")
        self.assertEqual(parsed["dmg"], "")

    def testNotEnoughArguments(self):
        with self.assertRaises(MissingRequiredError) as context:
            self.parse("-i", "x", "-V", "1", "a")
        self.assertIn("<tc>", str(context.exception))
        self.assertEqual(context.exception.options["code"], FaultCode.MISSING_REQUIRED)

    def testMissingFlaggedRequired(self):
        with self.assertRaises(MissingRequiredError) as context:
            self.parse("-V", "1", "a", "b")
        self.assertIn("--identifier", str(context.exception))

    def testMissingValue(self):
        with self.assertRaises(MissingValueError) as context:
            self.parse("-V", "1", "a", "b", "-i")
        self.assertEqual(context.exception.options["token"], "-i")

    def testUnknownToken(self):
        with self.assertRaises(UnknownTokenError) as context:
            self.parse("-i", "x", "-V", "1", "a", "b", "extra")
        self.assertEqual(context.exception.options["index"], 8)
        self.assertIn("eighth position", str(context.exception))

    def testUnknownFlagSuggestion(self):
        with self.assertRaises(UnknownTokenError) as context:
            self.parse("-i", "x", "-V", "1", "a", "b", "--identifer")
        self.assertEqual(context.exception.options["hint"], "did you mean '--identifier'?")

    def testInvalidValue(self):
        with self.assertRaises(InvalidValueError) as context:
            self.parse("-i", "x", "-V", "1", "a", "b", "--count", "abc")
        fault = context.exception
        self.assertEqual(fault.options["argument"], self.count)
        self.assertIn("number", str(fault))
        self.assertIsInstance(fault.__cause__, ValueError)

    def testInvalidPositionalValue(self):
        with tempfile.TemporaryDirectory() as root:
            module = Module("read", noop, required=[Cardinal("src", kind=Kind.FILE_PATH)])
            with self.assertRaises(InvalidValueError) as context:
                parse_module(module, ["prog", "read", os.path.join(root, "missing")], 2)
        self.assertIn("<src>", str(context.exception))

    def testValuesNeverLeakBetweenPasses(self):
        first = self.parse("-i", "x", "-V", "1", "a", "b", "--im4p")
        second = self.parse("-i", "y", "-V", "2", "c", "d")
        self.assertEqual(first["-i"], "x")
        self.assertIs(first["--im4p"], True)
        self.assertEqual(second["-i"], "y")
        self.assertIs(second["--im4p"], False)
        self.assertNotIn("--im4p", second)


class TestGlobalScanner(TestCase):
    """Behavioral tests for scan_globals."""

    def setUp(self):
        self.udid = Option("-u", "--udid", descr="UDID of the device")
        self.debug = Flag("-d", "--debug")
        self.host = Option("--host", default="localhost")
        self.listing = Module("list", noop)
        self.mount = Module("mount", noop, required=[Cardinal("dmg")])
        self.modules = {module.name: module for module in (self.listing, self.mount)}

    def testModuleSelectionWithoutGlobals(self):
        module, start, parsed = scan_globals(["prog", "mount", "a.dmg"], self.modules)
        self.assertIs(module, self.mount)
        self.assertEqual(start, 2)
        self.assertEqual(len(parsed), 0)

    def testGlobalsBeforeModule(self):
        globals = Globals(optional=[self.udid, self.debug])
        module, start, parsed = scan_globals(
            ["prog", "-d", "--udid", "0000", "list"], self.modules, globals
        )
        self.assertIs(module, self.listing)
        self.assertEqual(start, 5)
        self.assertEqual(parsed["-u"], "0000")
        self.assertIs(parsed["--debug"], True)

    def testRequiredGlobalMissing(self):
        globals = Globals(required=[self.udid])
        with self.assertRaises(MissingRequiredError) as context:
            scan_globals(["prog", "list"], self.modules, globals)
        self.assertIn("--udid", str(context.exception))

    def testRequiredGlobalFlagMissing(self):
        globals = Globals(required=[Flag("-y", "--yes")])
        with self.assertRaises(MissingRequiredError) as context:
            scan_globals(["prog", "list"], self.modules, globals)
        self.assertIn("--yes", str(context.exception))

    def testRequiredGlobalFlagSupplied(self):
        globals = Globals(required=[Flag("-y", "--yes")])
        module, _, parsed = scan_globals(["prog", "-y", "list"], self.modules, globals)
        self.assertIs(module, self.listing)
        self.assertIs(parsed["--yes"], True)

    def testOptionalGlobalOmittedIsNone(self):
        globals = Globals(optional=[self.udid, self.debug])
        _, _, parsed = scan_globals(["prog", "list"], self.modules, globals)
        self.assertIsNone(parsed["--udid"])
        self.assertIs(parsed["--debug"], False)

    def testRequiredGlobalResolvedByDefault(self):
        globals = Globals(required=[self.host])
        _, _, parsed = scan_globals(["prog", "list"], self.modules, globals)
        self.assertEqual(parsed["--host"], "localhost")

    def testModuleNameAsGlobalValue(self):
        globals = Globals(optional=[self.udid])
        module, _, parsed = scan_globals(["prog", "-u", "list", "mount"], self.modules, globals)
        self.assertIs(module, self.mount)
        self.assertEqual(parsed["--udid"], "list")

    def testEmptyToken(self):
        with self.assertRaises(EmptyTokenError):
            scan_globals(["prog", "", "list"], self.modules)

    def testUnknownToken(self):
        with self.assertRaises(UnknownTokenError) as context:
            scan_globals(["prog", "lsit"], self.modules)
        self.assertIn("first position", str(context.exception))
        self.assertEqual(context.exception.options["hint"], "did you mean 'list'?")

    def testMissingAction(self):
        with self.assertRaises(MissingActionError):
            scan_globals(["prog"], self.modules)
        with self.assertRaises(MissingActionError):
            scan_globals(["prog", "-d"], self.modules, Globals(optional=[self.debug]))

    def testMissingGlobalValue(self):
        with self.assertRaises(MissingValueError):
            scan_globals(["prog", "--udid"], self.modules, Globals(optional=[self.udid]))

    def testInvalidGlobalValue(self):
        port = Option("--port", kind=Kind.UINT)
        with self.assertRaises(InvalidValueError):
            scan_globals(["prog", "--port", "http", "list"], self.modules, Globals(optional=[port]))


if __name__ == "__main__":
    unittest.main()
