"""
Tokenizer tests (operand/unknown split, option occurrences, separators).

Scope
- Validate exact matches by arity, short clusters and inline long values.
- Validate the one-way switch from operands to unknown tokens.
- Validate that "--" keeps every following token verbatim.
- Validate token accounting: nothing is lost or duplicated.

Conventions
- Test method names follow CamelCase per project convention.
- A recording emit callback stands in for the binder.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import Option, Tokenizer, OptionMissingArgumentError, maybe_option


def tokenizer(*declarations):
    options = [Option(flags) for flags in declarations]
    occurrences = []

    def find(token):
        return next((option for option in options if option.matches(token)), None)

    def emit(option, value=None):
        occurrences.append((option.long, value))

    return Tokenizer(find, emit), occurrences


class TestTokenizer(TestCase):
    """Behavioral tests for the single-pass matcher."""

    def testBooleanAndRequiredValue(self):
        tokens, occurrences = tokenizer("-p, --pepper", "-C, --chdir <path>")
        parsed = tokens(["-p", "--chdir", "/tmp", "extra"])
        self.assertEqual(parsed.operands, ["extra"])
        self.assertEqual(parsed.unknown, [])
        self.assertEqual(occurrences, [("--pepper", None), ("--chdir", "/tmp")])

    def testRequiredValueMayLookLikeAnOption(self):
        tokens, occurrences = tokenizer("-C, --chdir <path>")
        tokens(["-C", "-weird"])
        self.assertEqual(occurrences, [("--chdir", "-weird")])

    def testRequiredValueMissing(self):
        tokens, _ = tokenizer("-C, --chdir <path>")
        with self.assertRaises(OptionMissingArgumentError) as context:
            tokens(["--chdir"])
        self.assertEqual(context.exception.options["flag"], "--chdir")

    def testOptionalValueNotTakenFromOptionShapedToken(self):
        tokens, occurrences = tokenizer("-c, --cheese [type]", "-p, --pepper")
        tokens(["--cheese", "-p"])
        self.assertEqual(occurrences, [("--cheese", None), ("--pepper", None)])

    def testOptionalValueTaken(self):
        tokens, occurrences = tokenizer("-c, --cheese [type]")
        parsed = tokens(["--cheese", "blue", "op"])
        self.assertEqual(occurrences, [("--cheese", "blue")])
        self.assertEqual(parsed.operands, ["op"])

    def testShortClusterOfBooleans(self):
        tokens, occurrences = tokenizer("-a", "-b", "-c")
        parsed = tokens(["-abc"])
        self.assertEqual([long for long, _ in occurrences], ["-a", "-b", "-c"])
        self.assertEqual(parsed.operands, [])

    def testShortClusterAttachedValue(self):
        tokens, occurrences = tokenizer("-p, --pepper", "-x <value>")
        tokens(["-px5"])
        self.assertEqual(occurrences, [("--pepper", None), ("-x", "5")])

    def testShortClusterValueOptionWithoutAttachedValue(self):
        tokens, occurrences = tokenizer("-p, --pepper", "-x <value>")
        with self.assertRaises(OptionMissingArgumentError):
            tokens(["-px"])
        self.assertEqual(occurrences, [("--pepper", None)])

    def testShortClusterValueOptionTakesFollowingToken(self):
        tokens, occurrences = tokenizer("-p, --pepper", "-x <value>")
        tokens(["-px", "10"])
        self.assertEqual(occurrences, [("--pepper", None), ("-x", "10")])

    def testInlineLongValue(self):
        tokens, occurrences = tokenizer("--size <n>")
        tokens(["--size=a=b"])
        self.assertEqual(occurrences, [("--size", "a=b")])

    def testInlineValueOnBooleanIsUnknown(self):
        tokens, occurrences = tokenizer("--verbose")
        parsed = tokens(["--verbose=1"])
        self.assertEqual(occurrences, [])
        self.assertEqual(parsed.unknown, ["--verbose=1"])

    def testUnknownSwitchIsOneWay(self):
        tokens, occurrences = tokenizer("--known <value>")
        parsed = tokens(["sub", "--unknown", "uuu", "op", "--known", "kkk"])
        self.assertEqual(parsed.operands, ["sub"])
        self.assertEqual(parsed.unknown, ["--unknown", "uuu", "op"])
        self.assertEqual(occurrences, [("--known", "kkk")])

    def testSeparatorKeepsTokensInOperands(self):
        tokens, occurrences = tokenizer("-p, --pepper")
        parsed = tokens(["sub", "--", "--pepper", "-x"])
        self.assertEqual(parsed.operands, ["sub", "--pepper", "-x"])
        self.assertEqual(parsed.unknown, [])
        self.assertEqual(occurrences, [])

    def testSeparatorKeptAfterSwitchToUnknown(self):
        tokens, _ = tokenizer("-p, --pepper")
        parsed = tokens(["--unknown", "--", "--pepper"])
        self.assertEqual(parsed.unknown, ["--unknown", "--", "--pepper"])

    def testSingleDashIsAnOperand(self):
        tokens, _ = tokenizer("-p")
        self.assertEqual(tokens(["-"]).operands, ["-"])
        self.assertFalse(maybe_option("-"))

    def testTokenAccounting(self):
        tokens, occurrences = tokenizer("-p, --pepper", "-C, --chdir <path>", "-c, --cheese [type]")
        argv = ["a", "-C", "dir", "b", "--cheese", "c", "--nope", "d", "-p", "--", "e"]
        parsed = tokens(argv)
        consumed = [value for _, value in occurrences if value is not None]
        flags = ["-C", "--cheese", "-p"]
        self.assertEqual(
            sorted(parsed.operands + parsed.unknown + consumed + flags),
            sorted(argv),
        )
        self.assertEqual(parsed.operands, ["a", "b"])
        # known options keep matching after the switch to unknown
        self.assertEqual(parsed.unknown, ["--nope", "d", "--", "e"])


if __name__ == "__main__":
    unittest.main()
