"""
Registration, help and description behavioral tests.

Scope
- Validate registration errors (names, arity, groups, commands, help options).
- Validate help detection and rendering through the configured console.
- Validate argument descriptors and usage fragments.
- Validate error kinds, result flags and error rendering.

Conventions
- Test method names follow CamelCase per project convention.
- Every parser writes its console output to an in-memory stream.
"""

import io
import math
import unittest
import warnings
from unittest import TestCase

from rich.console import Console

from argbind import (
    Argument,
    ArgumentNameError,
    ArgumentParser,
    DuplicateCommand,
    DuplicateOption,
    ErrorKind,
    HelpFormatter,
    HelpOptionsHiddenWarning,
    MixingGroupTypes,
    Options,
    ParseResultBuilder,
    RequiredExclusiveOption,
    Variable,
    VoidValue,
    usage_fragment,
)
from argbind.values import ConvertedValue


def makeParser(**config):
    parser = ArgumentParser()
    parser.config(program="tool", stream=(stream := io.StringIO()), **config)
    return parser, stream


class Empty(Options):
    def add_arguments(self, parser):
        pass


class TestNames(TestCase):
    """Behavioral tests for argument name validation."""

    def testMixedNamesRejected(self):
        parser, _ = makeParser()
        with self.assertRaises(ArgumentNameError):
            parser.add_argument(Variable(str), "--name", "name")

    def testWhitespaceRejected(self):
        parser, _ = makeParser()
        with self.assertRaises(ArgumentNameError):
            parser.add_argument(Variable(str), "--my name")

    def testMissingNameRejected(self):
        parser, _ = makeParser()
        with self.assertRaises(ArgumentNameError):
            parser.add_argument(Variable(str))
        with self.assertRaises(ArgumentNameError):
            parser.add_argument(Variable(str), "")

    def testLongShortNameRejected(self):
        parser, _ = makeParser()
        with self.assertRaises(ArgumentNameError):
            parser.add_argument(Variable(str), "-ab")

    def testDashesAreNotNames(self):
        parser, _ = makeParser()
        with self.assertRaises(ArgumentNameError):
            parser.add_argument(Variable(str), "--")

    def testNameErrorsAreValueErrors(self):
        self.assertTrue(issubclass(ArgumentNameError, ValueError))

    def testDuplicateOption(self):
        parser, _ = makeParser()
        parser.add_argument(Variable(str), "-n", "--name")
        with self.assertRaises(DuplicateOption):
            parser.add_argument(Variable(str), "--name")

    def testDuplicateOptionNamesGroup(self):
        parser, _ = makeParser()
        with parser.add_group("io"):
            parser.add_argument(Variable(str), "--input")
        with self.assertRaises(DuplicateOption) as context:
            parser.add_argument(Variable(str), "--input")
        self.assertEqual(context.exception.group, "io")

    def testFailedRegistrationLeavesNoTrace(self):
        parser, _ = makeParser()
        name = Variable(str)
        parser.add_argument(name, "--name")
        with self.assertRaises(DuplicateOption):
            parser.add_argument(name, "-n", "--name")
        with self.assertRaises(ValueError):
            parser.describe_argument("-n")

    def testOptionNames(self):
        parser, _ = makeParser()
        option = parser.add_argument(Variable(str), "--name", "-n")
        self.assertEqual((option.short_name, option.long_name), ("-n", "--name"))
        self.assertEqual(option.names, ("-n", "--name"))
        self.assertEqual(option.name, "--name")
        self.assertFalse(option.positional)


class TestArity(TestCase):
    """Behavioral tests for arity resolution."""

    def makeArgument(self, type, *names, **metadata):
        return Argument(ConvertedValue(Variable(type)), *names, **metadata)

    def testDefaults(self):
        cases = (
            ((str, "--name"), {}, (1, 1)),
            ((bool, "--flag"), {}, (0, 0)),
            ((int, "-v"), {"count": True}, (0, 0)),
            ((list[str], "--item"), {}, (1, 1)),
            ((str, "name"), {}, (1, 1)),
            ((list[str], "names"), {}, (0, math.inf)),
        )
        for arguments, metadata, arity in cases:
            with self.subTest(arguments=arguments):
                argument = self.makeArgument(*arguments, **metadata)
                self.assertEqual((argument.min_args, argument.max_args), arity)

    def testNargsForms(self):
        cases = (
            (2, (2, 2)),
            ("?", (0, 1)),
            ("*", (0, math.inf)),
            ("+", (1, math.inf)),
            ((1, 3), (1, 3)),
            ((1, math.inf), (1, math.inf)),
        )
        for nargs, arity in cases:
            with self.subTest(nargs=nargs):
                argument = self.makeArgument(list[str], "--items", nargs=nargs)
                self.assertEqual((argument.min_args, argument.max_args), arity)

    def testMinargsOverride(self):
        argument = self.makeArgument(list[str], "--items", nargs="+", minargs=2)
        self.assertEqual((argument.min_args, argument.max_args), (2, math.inf))

    def testInvalidNargs(self):
        for nargs in ("x", -1, (3, 1), 1.5, True):
            with self.subTest(nargs=nargs):
                with self.assertRaises((TypeError, ValueError)):
                    self.makeArgument(list[str], "--items", nargs=nargs)

    def testScalarPositionalTakesOneArgument(self):
        with self.assertRaises(TypeError):
            self.makeArgument(str, "name", nargs="+")

    def testPositionalCannotBeRequiredExplicitly(self):
        with self.assertRaises(TypeError):
            self.makeArgument(str, "name", required=True)

    def testPositionalRequiredFromMinimum(self):
        self.assertTrue(self.makeArgument(str, "name").required)
        self.assertFalse(self.makeArgument(str, "name", nargs="?").required)

    def testCounterNeedsInteger(self):
        with self.assertRaises(TypeError):
            self.makeArgument(str, "-v", count=True)

    def testFlagRejectsNargs(self):
        with self.assertRaises(TypeError):
            self.makeArgument(bool, "--flag", flag=True, nargs=1)

    def testBoolWithNargsTakesValues(self):
        argument = self.makeArgument(bool, "--enabled", nargs=1)
        self.assertEqual((argument.min_args, argument.max_args), (1, 1))

    def testBadDefaultRejected(self):
        with self.assertRaises(ValueError):
            self.makeArgument(int, "--level", default="high")

    def testChoicesMustBeStrings(self):
        with self.assertRaises(TypeError):
            self.makeArgument(int, "--level", choices=[1, 2])
        with self.assertRaises(ValueError):
            self.makeArgument(str, "--mode", choices=["a", "a"])

    def testActionArity(self):
        with self.assertRaises(TypeError):
            self.makeArgument(str, "--name", action=lambda target: None)
        with self.assertRaises(TypeError):
            self.makeArgument(str, "--name", action="upper")

    def testValueRequired(self):
        with self.assertRaises(TypeError):
            Argument(Variable(str), "--name")


class TestGroups(TestCase):
    """Behavioral tests for group registration."""

    def testGroupsAreCaseInsensitive(self):
        parser, _ = makeParser()
        first = parser.add_group("Input").group
        second = parser.add_group("INPUT").group
        self.assertIs(first, second)
        self.assertEqual(first.name, "input")

    def testMixingGroupTypes(self):
        parser, _ = makeParser()
        parser.add_group("mode")
        with self.assertRaises(MixingGroupTypes):
            parser.add_exclusive_group("MODE")

    def testRequiredOptionInExclusiveGroup(self):
        parser, _ = makeParser()
        parser.add_exclusive_group("mode")
        with self.assertRaises(RequiredExclusiveOption):
            parser.add_argument(Variable(str), "--fast", required=True)

    def testPositionalStaysOutOfExclusiveGroup(self):
        parser, _ = makeParser()
        with parser.add_exclusive_group("mode"):
            positional = parser.add_argument(Variable(str), "source")
        self.assertIsNone(positional.group)

    def testEndGroup(self):
        parser, _ = makeParser()
        parser.add_group("io")
        inside = parser.add_argument(Variable(str), "--input")
        parser.end_group()
        outside = parser.add_argument(Variable(str), "--output")
        self.assertEqual(inside.group.name, "io")
        self.assertIsNone(outside.group)

    def testGroupConfiguration(self):
        parser, _ = makeParser()
        group = parser.add_group("io").required().title("Input/Output").description("Where data goes.").group
        self.assertTrue(group.required)
        self.assertEqual(group.title, "Input/Output")
        self.assertEqual(group.description, "Where data goes.")

    def testGroupNameRequired(self):
        parser, _ = makeParser()
        with self.assertRaises(ValueError):
            parser.add_group("  ")


class TestCommandRegistration(TestCase):
    """Behavioral tests for command registration."""

    def testCommandNames(self):
        parser, _ = makeParser()
        with self.assertRaises(ValueError):
            parser.add_command("", Empty)
        with self.assertRaises(ValueError):
            parser.add_command("-build", Empty)
        with self.assertRaises(TypeError):
            parser.add_command("build", None)

    def testDuplicateCommand(self):
        parser, _ = makeParser()
        parser.add_command("build", Empty)
        with self.assertRaises(DuplicateCommand):
            parser.add_command("build", Empty)

    def testCommandHelpText(self):
        parser, _ = makeParser()
        config = parser.add_command("build", Empty).help("Build it.")
        self.assertEqual(config.command.help, "Build it.")


class TestHelp(TestCase):
    """Behavioral tests for help detection and rendering."""

    def testHelpOptionStopsParsing(self):
        parser, stream = makeParser(description="Does things.")
        name = Variable(str)
        parser.add_argument(name, "--name", required=True, help="Who to greet.")

        result = parser.parse_args(["--bogus", "--help"])

        self.assertTrue(result.help_shown)
        self.assertTrue(result.exit_requested)
        self.assertEqual([error.kind for error in result.errors], [ErrorKind.EXIT_REQUESTED])
        output = stream.getvalue()
        self.assertIn("usage", output)
        self.assertIn("--name", output)
        self.assertIn("Who to greet.", output)
        self.assertIn("Does things.", output)

    def testHelpInsideCluster(self):
        parser, stream = makeParser()
        verbose = Variable(bool)
        parser.add_argument(verbose, "-v")

        result = parser.parse_args(["-vh"])

        self.assertTrue(result.help_shown)
        self.assertIn("usage", stream.getvalue())

    def testHelpAfterTerminatorIsAValue(self):
        parser, _ = makeParser()
        files = Variable(list[str])
        parser.add_argument(files, "files")

        result = parser.parse_args(["--", "--help"])

        self.assertFalse(result.help_shown)
        self.assertEqual(files.value, ["--help"])

    def testCustomHelpOption(self):
        parser, _ = makeParser()
        parser.add_help_option("-?", "--usage")

        self.assertTrue(parser.parse_args(["--usage"]).help_shown)
        self.assertFalse(parser.parse_args(["--help"]).help_shown)

    def testHelpOptionMustBeAnOption(self):
        parser, _ = makeParser()
        with self.assertRaises(ArgumentNameError):
            parser.add_help_option("help")

    def testDefaultHelpUsesFreeName(self):
        parser, _ = makeParser()
        parser.add_argument(Variable(str), "-h", "--host")
        help = parser.add_default_help_option()
        self.assertEqual(help.names, ("--help",))

    def testHiddenDefaultHelpWarns(self):
        parser, _ = makeParser()
        parser.add_argument(Variable(str), "-h", "--host")
        parser.add_argument(Variable(bool), "--help")
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            result = parser.parse_args(["--help"])
        self.assertTrue(any(issubclass(warning.category, HelpOptionsHiddenWarning) for warning in caught))
        self.assertFalse(result.help_shown)

    def testHelpOnEmpty(self):
        parser, stream = makeParser(help_on_empty=True)
        parser.add_argument(Variable(str), "--name", required=True)

        result = parser.parse_args([])

        self.assertTrue(result.help_shown)
        self.assertEqual([error.kind for error in result.errors], [ErrorKind.EXIT_REQUESTED])
        self.assertIn("usage", stream.getvalue())

    def testFormatterRendersSections(self):
        parser, _ = makeParser(epilog="See the manual.")
        parser.add_argument(Variable(int), "-c", "--count", help="How many.")
        parser.add_argument(Variable(str), "--mode", choices=["fast", "slow"])
        with parser.add_exclusive_group("output").title("Output"):
            parser.add_argument(Variable(bool), "--json")
            parser.add_argument(Variable(bool), "--text")
        parser.add_argument(Variable(list[str]), "files", nargs="+", metavar="FILE")
        parser.add_command("build", Empty).help("Build it.")

        console = Console(file=io.StringIO(), width=100)
        HelpFormatter(colorful=False).format(parser, console)
        output = console.file.getvalue()

        for fragment in ("usage: tool", "-c, --count COUNT", "How many.", "fast", "Output",
                         "mutually exclusive", "FILE [FILE ...]", "build", "Build it.",
                         "See the manual.", "positional arguments", "options"):
            with self.subTest(fragment=fragment):
                self.assertIn(fragment, output)

    def testExplicitUsage(self):
        parser, _ = makeParser(usage="tool [stuff]")
        console = Console(file=io.StringIO(), width=80)
        HelpFormatter(fancy=True).format(parser, console)
        self.assertIn("tool [stuff]", console.file.getvalue())

    def testCustomFormatter(self):
        calls = []

        class Recorder:
            def format(self, parser, console):
                calls.append(parser.program)

        parser, _ = makeParser(formatter=Recorder())
        parser.parse_args(["-h"])
        self.assertEqual(calls, ["tool"])


class TestDescriptors(TestCase):
    """Behavioral tests for argument descriptors and usage fragments."""

    def testUsageFragments(self):
        cases = (
            ((1, 1), "M"),
            ((0, 1), "[M]"),
            ((0, math.inf), "[M ...]"),
            ((2, 2), "M M"),
            ((1, math.inf), "M [M ...]"),
            ((1, 3), "M [M {0..2}]"),
            ((0, 0), ""),
        )
        for (minimum, maximum), fragment in cases:
            with self.subTest(arity=(minimum, maximum)):
                self.assertEqual(usage_fragment("M", minimum, maximum), fragment)

    def testDescribeOption(self):
        parser, _ = makeParser()
        with parser.add_group("tuning").required().description("Knobs."):
            parser.add_argument(Variable(int), "-c", "--count", help="How many.")

        description = parser.describe_argument("--count")

        self.assertEqual(description.help_name, "--count")
        self.assertEqual(description.short_name, "-c")
        self.assertEqual(description.metavar, "COUNT")
        self.assertEqual(description.arguments, "COUNT")
        self.assertEqual(description.help, "How many.")
        self.assertFalse(description.is_required)
        self.assertEqual(description.group.name, "tuning")
        self.assertEqual(description.group.description, "Knobs.")
        self.assertTrue(description.group.is_required)
        self.assertFalse(description.group.is_exclusive)

    def testDescribeFlagHasNoArguments(self):
        parser, _ = makeParser()
        parser.add_argument(Variable(bool), "--dry-run")
        self.assertEqual(parser.describe_argument("--dry-run").arguments, "")

    def testDescribePositional(self):
        parser, _ = makeParser()
        parser.add_argument(Variable(list[str]), "files", nargs="+")
        description = parser.describe_argument("files")
        self.assertTrue(description.is_positional)
        self.assertTrue(description.is_required)
        self.assertEqual(description.arguments, "files [files ...]")

    def testDescribeCommand(self):
        parser, _ = makeParser()
        parser.add_command("build", Empty).help("Build it.")
        description = parser.describe_argument("build")
        self.assertTrue(description.is_command)
        self.assertEqual(description.help, "Build it.")

    def testDescribeArgumentsOrder(self):
        parser, _ = makeParser()
        parser.add_argument(Variable(str), "source")
        parser.add_argument(Variable(str), "--name")
        parser.add_command("build", Empty)
        self.assertEqual([description.help_name for description in parser.describe_arguments()],
                         ["--name", "source", "build"])

    def testDescribeUnknown(self):
        parser, _ = makeParser()
        with self.assertRaises(ValueError):
            parser.describe_argument("--missing")


class TestResults(TestCase):
    """Behavioral tests for results, error kinds and error rendering."""

    def testBuilderIgnoresControlEntries(self):
        builder = ParseResultBuilder()
        builder.add_error("", ErrorKind.EXIT_REQUESTED)
        self.assertFalse(builder.has_argument_problems())
        builder.add_ignored("x")
        self.assertTrue(builder.has_argument_problems())

    def testResultTruthiness(self):
        self.assertTrue(ParseResultBuilder().get_result())
        builder = ParseResultBuilder()
        builder.add_error("--x", ErrorKind.MISSING_OPTION)
        result = builder.get_result()
        self.assertFalse(result)
        self.assertTrue(result.has_error(ErrorKind.MISSING_OPTION, "--x"))
        self.assertFalse(result.has_error(ErrorKind.MISSING_OPTION, "--y"))

    def testErrorDescriptions(self):
        self.assertEqual(ErrorKind.UNKNOWN_OPTION.describe("--x"), "unknown option: '--x'")
        self.assertEqual(ErrorKind.EXIT_REQUESTED.describe(""), "")
        self.assertEqual(ErrorKind.MISSING_OPTION.normalize(), "11125")

    def testErrorsRenderedOnConsole(self):
        parser, stream = makeParser()
        result = parser.parse_args(["--bogus", "stray"])
        output = stream.getvalue()
        self.assertTrue(result.errors_shown)
        self.assertIn("unknown option: '--bogus'", output)
        self.assertIn("ignored arguments", output)
        self.assertIn("'stray'", output)

    def testConfigValidation(self):
        parser = ArgumentParser()
        with self.assertRaises(TypeError):
            parser.config(program=3)
        with self.assertRaises(TypeError):
            parser.config(console="stdout")
        with self.assertRaises(TypeError):
            parser.config(context=[("a", 1)])
        parser.config(program="tool", epilog="bye")
        config = parser.get_config()
        self.assertEqual((config["program"], config["epilog"]), ("tool", "bye"))
        with self.assertRaises(TypeError):
            config["program"] = "other"

    def testVoidValueTargets(self):
        parser, _ = makeParser()
        switch = parser.add_argument(VoidValue(), "--switch")
        self.assertTrue(parser.parse_args(["--switch"]))
        self.assertTrue(switch.was_assigned())


if __name__ == '__main__':
    unittest.main()
