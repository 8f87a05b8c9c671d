"""
Shell behavioral tests (end-to-end runs, exit codes, streams).

Scope
- Validate the exit-code rules of ToolShell.run for top-level and
  subcommand tools.
- Validate help/version output, validation and execution diagnostics.
- Validate construction errors for malformed tools and declarations.
- Validate argv normalization, reuse across runs and run_async.

Conventions
- Test method names follow CamelCase per project convention.
- stdout/stderr are io.StringIO instances handed to the shell.
"""

from __future__ import annotations

import asyncio
import io
import unittest
from unittest import TestCase, mock

from toolshell import (
    Arity,
    Option,
    Argument,
    ValueType,
    Presentation,
    ToolShell,
    Context,
    invoke,
)
from toolshell.templates import TemplateTool, TemplateSubCommandTool, describe

PLAIN = Presentation(colorful=False)


class Recorder:
    """Top-level tool recording every context it receives."""

    name = "recorder"
    title = "Recorder Tool"

    def __init__(self, options=(), arguments=(), result=0):
        self.options = list(options)
        self.arguments = list(arguments)
        self.result = result
        self.contexts = []

    def declare(self):
        return self.options, self.arguments

    def execute(self, context):
        self.contexts.append(context)
        return self.result


class Failing:
    name = "failing"

    def execute(self, context):
        raise RuntimeError("boom")


class Commands:
    name = "commands"

    def __init__(self):
        self.calls = []

    def register(self, registrar):
        registrar.command("build", self.build, descr="Build things", arguments=[Argument("target", required=True)])

        @registrar.command("clean", title="Clean", options=[Option("-a|--all", "Everything")])
        def clean(context):
            self.calls.append(("clean", context.option("--all").has_value()))
            return 2

    def build(self, context):
        self.calls.append(("build", context.argument("target").value_as(str)))


def shell(tool, **options):
    options.setdefault("presentation", PLAIN)
    return ToolShell(tool, stdout=io.StringIO(), stderr=io.StringIO(), **options)


def out(shell):
    return shell.console.file.getvalue()


def err(shell):
    return shell.error.file.getvalue()


class TestTopLevelTool(TestCase):
    """End-to-end tests for top-level tools."""

    def testEmptyInvocationShowsHelp(self):
        tool = Recorder(arguments=[Argument("arg1", "Argument 1", required=True)])
        runner = shell(tool)
        self.assertEqual(runner.run([]), 1)
        self.assertIn("Usage:", out(runner))
        self.assertIn("arg1", out(runner))
        self.assertEqual(tool.contexts, [])

    def testEmptyInvocationValidatesWhenHelpIsDisabled(self):
        tool = Recorder(arguments=[Argument("arg1", "Argument 1", required=True)])
        runner = shell(tool, show_help_on_empty=False)
        self.assertEqual(runner.run([]), 1)
        self.assertIn("Missing or invalid argument(s).", err(runner))
        self.assertEqual(tool.contexts, [])

    def testValidInvocationRunsAction(self):
        runner = shell(TemplateTool())
        self.assertEqual(runner.run(["-o", "x", "a", "b", "3"]), 0)
        self.assertIn("Hello, World!", out(runner))
        self.assertIn("Argument arg3: value = 3", out(runner))
        self.assertEqual(err(runner), "")

    def testActionReceivesBoundContext(self):
        tool = Recorder(
            options=[Option("-n|--count <n>", "Count", Arity.SINGLE_VALUE, type=ValueType.INT32)],
            arguments=[Argument("name", "Name", required=True)],
        )
        shell(tool).run(["--count=3", "alice"])
        context, = tool.contexts
        self.assertIsInstance(context, Context)
        self.assertEqual(context.name, "recorder")
        self.assertEqual(context.option("-n").value_as(int), 3)
        self.assertEqual(context.argument("name").value_as(str), "alice")
        with self.assertRaises(KeyError):
            context.option("--missing")
        with self.assertRaises(KeyError):
            context.argument("missing")

    def testReturnValueIsExitCode(self):
        self.assertEqual(shell(Recorder(result=7)).run(["--", ]), 7)

    def testNoneReturnMeansSuccess(self):
        self.assertEqual(shell(Recorder(result=None), show_help_on_empty=False).run([]), 0)

    def testNonIntegerReturnIsReported(self):
        runner = shell(Recorder(result="done"), show_help_on_empty=False)
        self.assertEqual(runner.run([]), 1)
        self.assertTrue(err(runner).startswith("TypeError: "))

    def testExceptionIsReported(self):
        runner = shell(Failing())
        self.assertEqual(runner.run(["--"]), 1)
        self.assertEqual(err(runner), "RuntimeError: boom\n")

    def testInvalidOptionIsReported(self):
        tool = Recorder(options=[Option("-n <n>", "Count", Arity.SINGLE_VALUE, type=ValueType.INT32)])
        runner = shell(tool)
        self.assertEqual(runner.run(["-n", "abc"]), 1)
        self.assertEqual(err(runner), "Invalid option(s). Use --help for more information.\n")
        self.assertEqual(tool.contexts, [])

    def testBothCategoriesAreReported(self):
        runner = shell(TemplateTool())
        self.assertEqual(runner.run(["a", "b", "x"]), 1)
        self.assertEqual(err(runner), "Missing or invalid argument(s). Use --help for more information.\n")

        tool = Recorder(
            options=[Option("-n <n>", "Count", Arity.SINGLE_VALUE, type=ValueType.INT32)],
            arguments=[Argument("name", "Name", required=True)],
        )
        runner = shell(tool)
        self.assertEqual(runner.run(["-n", "abc"]), 1)
        self.assertEqual(
            err(runner),
            "Invalid option(s). Missing or invalid argument(s). Use --help for more information.\n",
        )

    def testRequiredArgumentRejectsEmptyString(self):
        tool = Recorder(arguments=[Argument("name", "Name", required=True)])
        runner = shell(tool)
        self.assertEqual(runner.run([""]), 1)
        self.assertIn("Missing or invalid argument(s).", err(runner))

    def testSyntaxFaultIsReported(self):
        runner = shell(TemplateTool())
        self.assertEqual(runner.run(["--nope"]), 1)
        self.assertEqual(err(runner), "Unrecognized option '--nope'\n")
        self.assertEqual(out(runner), "")

    def testHelpExitsWithZero(self):
        runner = shell(TemplateTool())
        self.assertEqual(runner.run(["--help"]), 0)
        help = out(runner)
        self.assertIn("Top-Level Execution Tool 1.0", help)
        self.assertIn("Usage: template [options] <arg1> <arg2> [arg3]", help)
        self.assertIn("-o|--option <value>", help)
        self.assertIn("Option 1§", help)
        self.assertIn("Option 2+", help)
        self.assertIn("Argument 1*", help)
        self.assertIn("--version", help)
        self.assertIn("Created by Your Name", help)

    def testHelpHidesHiddenDeclarations(self):
        tool = Recorder(options=[Option("--secret", "Secret", hidden=True)])
        runner = shell(tool)
        runner.run(["--help"])
        self.assertNotIn("--secret", out(runner))

    def testVersionExitsWithZero(self):
        runner = shell(TemplateTool())
        self.assertEqual(runner.run(["--version"]), 0)
        self.assertEqual(out(runner), "Top-Level Execution Tool 1.0\n")

    def testVersionRequiresVersion(self):
        runner = shell(Recorder())
        self.assertEqual(runner.run(["--version"]), 1)
        self.assertEqual(err(runner), "Unrecognized option '--version'\n")
        self.assertNotIn("--version", out(runner))

    def testKeywordsOverrideToolAttributes(self):
        runner = shell(TemplateTool(), name="custom", title="Custom", version="2.0")
        self.assertEqual((runner.name, runner.title, runner.version), ("custom", "Custom", "2.0"))
        runner.run(["--version"])
        self.assertEqual(out(runner), "Custom 2.0\n")

    def testNameDefaultsToClassName(self):
        class ReportBuilder:
            def execute(self, context):
                return 0

        self.assertEqual(shell(ReportBuilder()).name, "report-builder")


class TestSubCommandTool(TestCase):
    """End-to-end tests for subcommand tools."""

    def testEmptyRequiredArgumentIsRejected(self):
        runner = shell(TemplateSubCommandTool())
        self.assertEqual(runner.run(["example", ""]), 1)
        self.assertIn("Missing or invalid argument(s).", err(runner))

    def testCommandRuns(self):
        runner = shell(TemplateSubCommandTool())
        self.assertEqual(runner.run(["example", "a", "", "1.5"]), 0)
        self.assertIn("Hello, World! This is the 'example' command.", out(runner))

    def testDecimalArgumentIsValidated(self):
        runner = shell(TemplateSubCommandTool())
        self.assertEqual(runner.run(["example", "a", "b", "lots"]), 1)
        self.assertIn("Missing or invalid argument(s).", err(runner))

    def testMissingCommandShowsHelp(self):
        runner = shell(TemplateSubCommandTool(), show_help_on_empty=False)
        self.assertEqual(runner.run([]), 1)
        self.assertIn("Commands:", out(runner))
        self.assertIn("Tool top-level help text", out(runner))

    def testUnknownCommandIsReported(self):
        runner = shell(TemplateSubCommandTool())
        self.assertEqual(runner.run(["sample"]), 1)
        self.assertEqual(err(runner), "Unrecognized command or argument 'sample'\n")

    def testCommandHelp(self):
        runner = shell(TemplateSubCommandTool())
        self.assertEqual(runner.run(["example", "--help"]), 0)
        help = out(runner)
        self.assertIn("Command title help text", help)
        self.assertIn("Usage: template example [options] [arg1] <arg2> [arg3]", help)
        self.assertIn("Command bottom-level help text", help)
        self.assertNotIn("--version", help)

    def testDirectAndDecoratorRegistration(self):
        tool = Commands()
        runner = shell(tool)
        self.assertEqual(set(runner.commands), {"build", "clean"})
        self.assertEqual(runner.run(["build", "all"]), 0)
        self.assertEqual(runner.run(["clean", "--all"]), 2)
        self.assertEqual(tool.calls, [("build", "all"), ("clean", True)])


class TestConstruction(TestCase):
    """Construction errors for malformed tools."""

    def testToolWithoutEntryPointRejected(self):
        with self.assertRaises(TypeError):
            shell(object())

    def testDuplicateCommandRejected(self):
        class Duplicate:
            def register(self, registrar):
                registrar.command("run", lambda context: 0)
                registrar.command("run", lambda context: 0)

        with self.assertRaises(ValueError):
            shell(Duplicate())

    def testEmptyRegistrationRejected(self):
        class Empty:
            def register(self, registrar):
                pass

        with self.assertRaises(ValueError):
            shell(Empty())

    def testDuplicateAliasRejected(self):
        with self.assertRaises(ValueError):
            shell(Recorder(options=[Option("-a", "A"), Option("-b|-a", "B")]))

    def testReservedSwitchRejected(self):
        with self.assertRaises(ValueError):
            shell(Recorder(options=[Option("--help", "Help")]))
        with self.assertRaises(ValueError):
            shell(Recorder(options=[Option("--version", "Version")]), version="1.0")

    def testVersionSwitchFreeWithoutVersion(self):
        runner = shell(Recorder(options=[Option("--version", "Own version flag")]))
        self.assertEqual(runner.run(["--version"]), 0)

    def testMultipleArgumentMustBeLast(self):
        with self.assertRaises(ValueError):
            shell(Recorder(arguments=[Argument("files", multiple=True), Argument("target")]))

    def testDuplicateArgumentRejected(self):
        with self.assertRaises(ValueError):
            shell(Recorder(arguments=[Argument("a"), Argument("a")]))

    def testPresentationMustBePresentation(self):
        with self.assertRaises(TypeError):
            ToolShell(Recorder(), presentation={"fancy": True})


class TestArgv(TestCase):
    """argv normalization, reuse and async runs."""

    def testStringIsSplitShellStyle(self):
        tool = Recorder(arguments=[Argument("a"), Argument("b")])
        shell(tool).run("'first value' second")
        self.assertEqual([argument.values for argument in tool.contexts[0].arguments], [("first value",), ("second",)])

    def testIterableIsUsedVerbatim(self):
        tool = Recorder(arguments=[Argument("a"), Argument("b")])
        shell(tool).run(iter([" x ", ""]))
        self.assertEqual([argument.values for argument in tool.contexts[0].arguments], [(" x ",), ("",)])

    def testUnbalancedQuotationIsReported(self):
        tool = Recorder(arguments=[Argument("a")])
        runner = shell(tool)
        self.assertEqual(runner.run('"abc'), 1)
        self.assertEqual(err(runner), "Malformed command line: No closing quotation\n")
        self.assertEqual(tool.contexts, [])

    def testNonStringTokenRejected(self):
        with self.assertRaises(TypeError):
            shell(Recorder()).run(["a", 1])

    def testUnsetReadsSysArgv(self):
        tool = Recorder(arguments=[Argument("a")])
        with mock.patch("sys.argv", ["prog", "from-argv"]):
            shell(tool).run()
        self.assertEqual(tool.contexts[0].argument("a").values, ("from-argv",))

    def testRunsDoNotShareState(self):
        tool = Recorder(options=[Option("-o <v>", "Value", Arity.SINGLE_VALUE)])
        runner = shell(tool)
        self.assertEqual(runner.run(["-o", "a"]), 0)
        self.assertEqual(runner.run(["-o", "b"]), 0)
        self.assertEqual([context.option("-o").values for context in tool.contexts], [("a",), ("b",)])
        self.assertEqual(tool.options[0].values, ())

    def testRunAsync(self):
        tool = Recorder(arguments=[Argument("a")], result=5)
        self.assertEqual(asyncio.run(shell(tool).run_async(["x"])), 5)

    def testInvoke(self):
        tool = Recorder(arguments=[Argument("a")])
        self.assertEqual(invoke(tool, ["x"], stdout=io.StringIO(), stderr=io.StringIO()), 0)
        self.assertEqual(invoke(shell(tool), ["y"]), 0)
        self.assertEqual(len(tool.contexts), 2)


class TestTemplates(TestCase):
    """The sample tools summarize their bound declarations."""

    def testDescribeOption(self):
        option = Option("-o|--option", "Option 1", Arity.SINGLE_VALUE)
        self.assertEqual(
            describe(option),
            "Option -o|--option: value = (null), values = (empty), has_value = False, type = string, arity = single",
        )

    def testDescribeArgument(self):
        argument = Argument("arg2", "Argument 2", required=True, empty=True)
        argument.bind("")
        self.assertEqual(
            describe(argument),
            "Argument arg2: value = , type = string, required = True, empty = True",
        )


if __name__ == "__main__":
    unittest.main()
