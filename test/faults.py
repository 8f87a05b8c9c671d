"""
Faults module behavioral tests (codes, messages, rendering).

Scope
- Validate fault codes, titles and host-side code remapping.
- Validate validation and delegated messages.
- Validate plain and fancy rendering through trigger().

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured through rich consoles writing to io.StringIO.
"""

from __future__ import annotations

import io
import sys
import unittest
from unittest import TestCase, mock

from rich.console import Console

from toolshell import (
    Presentation,
    FaultCode,
    CommandException,
    CommandParsingError,
    UnrecognizedOptionError,
    MissingValueError,
    InvalidOptionsError,
    InvalidArgumentsError,
    DelegatedCommandError,
    ValidationError,
    trigger,
)


def console():
    return Console(file=io.StringIO(), soft_wrap=True, highlight=False)


class TestFaultCodes(TestCase):
    """Behavioral tests for FaultCode."""

    def testCodesAreStable(self):
        self.assertEqual(FaultCode.UNRECOGNIZED_OPTION, 11112)
        self.assertEqual(FaultCode.INVALID_ARGUMENTS, 11132)
        self.assertEqual(FaultCode.DELEGATED_ERROR, 11141)

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.MISSING_VALUE.normalize(), "11114")

    def testNormalizeHonorsHostCodes(self):
        with mock.patch.object(sys.modules["__main__"], "__codes__", {FaultCode.MISSING_VALUE: "E-MISSING"}, create=True):
            self.assertEqual(FaultCode.MISSING_VALUE.normalize(), "E-MISSING")
            self.assertEqual(FaultCode.MALFORMED_TOKEN.normalize(), "11111")

    def testFaultsCarryTheirCode(self):
        fault = UnrecognizedOptionError("Unrecognized option '--x'")
        self.assertIs(fault.code, FaultCode.UNRECOGNIZED_OPTION)
        self.assertIsInstance(fault, CommandParsingError)
        self.assertEqual(fault.options["title"], "unrecognized option")

    def testOptionsOverrideDefaults(self):
        fault = MissingValueError("Missing value for option '-o'", hint="pass a value", code=FaultCode.MALFORMED_TOKEN)
        self.assertEqual(fault.hint, "pass a value")
        self.assertIs(fault.code, FaultCode.MALFORMED_TOKEN)


class TestMessages(TestCase):
    """Behavioral tests for fault messages."""

    def testValidationMessages(self):
        self.assertEqual(str(InvalidOptionsError()), "Invalid option(s).")
        self.assertEqual(str(InvalidArgumentsError()), "Missing or invalid argument(s).")

    def testValidationGroupJoinsCategories(self):
        fault = ValidationError([InvalidOptionsError(), InvalidArgumentsError()])
        self.assertEqual(
            str(fault),
            "Invalid option(s). Missing or invalid argument(s). Use --help for more information.",
        )
        self.assertEqual(len(fault.exceptions), 2)

    def testDelegatedMessageNamesTheKind(self):
        fault = DelegatedCommandError(ValueError("boom"))
        self.assertEqual(str(fault), "ValueError: boom")
        self.assertIs(fault.code, FaultCode.DELEGATED_ERROR)

    def testDelegatedRequiresException(self):
        with self.assertRaises(TypeError):
            DelegatedCommandError("boom")

    def testReplaceKeepsMessage(self):
        fault = DelegatedCommandError(KeyError("k")).__replace__(prog="tool")
        self.assertEqual(fault.options["prog"], "tool")
        self.assertIsInstance(fault.exception, KeyError)


class TestRendering(TestCase):
    """Behavioral tests for trigger() and rendering."""

    def testPlainRenderingIsOneLine(self):
        output = console()
        trigger(
            UnrecognizedOptionError("Unrecognized option '--x'"),
            console=output,
            presentation=Presentation(colorful=False),
        )
        self.assertEqual(output.file.getvalue(), "Unrecognized option '--x'\n")

    def testPlainValidationRendering(self):
        output = console()
        trigger(
            ValidationError([InvalidArgumentsError()]),
            console=output,
            presentation=Presentation(colorful=False),
        )
        self.assertEqual(
            output.file.getvalue(),
            "Missing or invalid argument(s). Use --help for more information.\n",
        )

    def testFancyRenderingShowsCodeTitleAndHint(self):
        output = console()
        trigger(
            MissingValueError("Missing value for option '-o'", hint="pass a value"),
            console=output,
            presentation=Presentation(fancy=True, colorful=False),
            prog="tool",
        )
        rendered = output.file.getvalue()
        self.assertIn("11114", rendered)
        self.assertIn("Missing Value", rendered)
        self.assertIn("Missing value for option '-o'", rendered)
        self.assertIn("pass a value", rendered)

    def testTriggerRequiresConsole(self):
        with self.assertRaises(TypeError):
            trigger(InvalidOptionsError())

    def testTriggerRejectsPlainExceptions(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("boom"), console=console())

    def testRichProtocol(self):
        fault = CommandException("plain", presentation=Presentation(colorful=False))
        self.assertEqual(fault.__rich__().plain, "plain")


if __name__ == "__main__":
    unittest.main()
