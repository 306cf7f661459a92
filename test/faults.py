"""
Faults module tests (codes, options, rendering, triggering).

Scope
- Validate stable codes and machine-readable kinds.
- Validate the read-only options mapping and its defaults.
- Validate __replace__ / trigger() handler dispatch and default termination.
- Validate rich rendering, including the __main__ host hooks.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import sys
import unittest
from unittest import TestCase
from unittest.mock import patch

from rich.console import Console

from helmsman import program
from helmsman.faults import (
    FaultCode,
    CommandError,
    CommandExit,
    UnknownOptionError,
    MissingArgumentError,
    terminate,
    trigger,
)


def render(fault):
    console = Console(file=io.StringIO(), color_system=None, width=120)
    console.print(fault)
    return console.file.getvalue()


class TestFaultCode(TestCase):
    """Stable identifiers and kinds."""

    def testKinds(self):
        self.assertEqual(FaultCode.UNKNOWN_OPTION.kind, "unknown-option")
        self.assertEqual(FaultCode.MISSING_MANDATORY_OPTION_VALUE.kind, "missing-mandatory-option-value")
        self.assertEqual(FaultCode.HELP_DISPLAYED.kind, "help-displayed")

    def testNormalizeDefaultsToValue(self):
        self.assertEqual(FaultCode.UNKNOWN_COMMAND.normalize(), "11101")

    def testNormalizeUsesHostCodes(self):
        main = sys.modules["__main__"]
        with patch.object(main, "__codes__", {FaultCode.UNKNOWN_COMMAND: "E-CMD"}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_COMMAND.normalize(), "E-CMD")


class TestCommandError(TestCase):
    """Options, replacement and triggering."""

    def testDefaults(self):
        fault = UnknownOptionError("unknown option '--x'", flag="--x")
        self.assertEqual(str(fault), "unknown option '--x'")
        self.assertIs(fault.code, FaultCode.UNKNOWN_OPTION)
        self.assertEqual(fault.kind, "unknown-option")
        self.assertEqual(fault.exit_code, 1)
        self.assertIsNone(fault.command)
        self.assertEqual(fault.options["title"], "unknown option")

    def testOptionsAreReadOnly(self):
        fault = MissingArgumentError("missing required argument 'a'")
        with self.assertRaises(TypeError):
            fault.options["exit_code"] = 3

    def testMessageMustBeAString(self):
        with self.assertRaises(TypeError):
            CommandError(None)

    def testReplaceKeepsTypeAndMergesOptions(self):
        fault = UnknownOptionError("unknown option '--x'", flag="--x")
        replaced = fault.__replace__(exit_code=2)
        self.assertIsInstance(replaced, UnknownOptionError)
        self.assertEqual(replaced.exit_code, 2)
        self.assertEqual(replaced.options["flag"], "--x")
        self.assertEqual(fault.exit_code, 1)

    def testTriggerCallsHandler(self):
        seen = []
        result = trigger(MissingArgumentError("missing"), handler=lambda fault: seen.append(fault) or "handled")
        self.assertEqual(result, "handled")
        self.assertIsInstance(seen[0], MissingArgumentError)
        self.assertIn("handler", seen[0].options)

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(object())

    def testTerminatePrintsAndExits(self):
        stderr = io.StringIO()
        with patch("helmsman.faults.console", Console(file=stderr, color_system=None)):
            with self.assertRaises(SystemExit) as context:
                terminate(UnknownOptionError("unknown option '--x'"))
        self.assertEqual(context.exception.code, 1)
        self.assertIn("unknown option '--x'", stderr.getvalue())

    def testTerminateSilentForExit(self):
        stderr = io.StringIO()
        with patch("helmsman.faults.console", Console(file=stderr, color_system=None)):
            with self.assertRaises(SystemExit) as context:
                terminate(CommandExit("help displayed", exit_code=0))
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(stderr.getvalue(), "")


class TestRendering(TestCase):
    """Rich output of faults."""

    def testHeaderUsesRootCommandName(self):
        cli = program("pizza")
        bake = cli.command("bake")
        fault = UnknownOptionError("unknown option '--x'", command=bake, hint="try 'pizza bake --help'")
        text = render(fault)
        self.assertIn("pizza", text)
        self.assertIn("11112", text)
        self.assertIn("unknown option '--x'", text)
        self.assertIn("try 'pizza bake --help'", text)

    def testHostProgramName(self):
        main = sys.modules["__main__"]
        with patch.object(main, "__prog__", "oven", create=True):
            text = render(MissingArgumentError("missing required argument 'a'"))
        self.assertIn("oven", text)


if __name__ == "__main__":
    unittest.main()
