"""
Argbind argument parser: registration, invocation and post-pass validation.

Quick start
    from argbind import ArgumentParser, Variable

    count = Variable(int)
    files = Variable(list[str])

    parser = ArgumentParser()
    parser.config(program="tool", description="Process some files.")
    parser.add_argument(count, "-n", "--count", help="How many times.")
    parser.add_argument(files, "files", nargs="+", metavar="FILE")

    result = parser.parse_args(["-n", "3", "a.txt", "b.txt"])
    if result:
        print(count.value, files.value)  # 3 ['a.txt', 'b.txt']

Parse flow
1. Every target goes back to its zero state (shared targets once).
2. A help option anywhere before "--" or the first command name renders help
   and stops (help_shown, exit_requested, EXIT_REQUESTED).
3. The matcher scans the tokens (see argbind.parser).
4. Unless an exit was requested: defaults are assigned to unassigned targets,
   then missing options, missing arguments, exclusive-group violations and
   unmet required groups are all collected.
5. When the input had problems, they are rendered on the error console and
   the result is flagged errors_shown.
"""
import os.path
import sys
import warnings
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .commands import Command, CommandConfig
from .faults import ArgumentNameError, ErrorKind, HelpOptionsHiddenWarning, MixingGroupTypes, styles
from .formatter import HelpFormatter, describe_argument, describe_command
from .groups import OptionGroup, GroupConfig
from .options import Argument
from .parser import Parser, ParserDefinition
from .result import ParseResultBuilder
from .values import ConvertedValue, Environment, Value, VoidValue
from .utils import Unset


class ArgumentParser:
    """
    Declarative command-line parser binding arguments to caller-owned targets.

    Registration
    - add_argument(target, *names, **metadata) → Argument
    - add_help_option(*names) / add_default_help_option()
    - add_group(name) / add_exclusive_group(name) → GroupConfig; end_group()
    - add_command(name, factory) → CommandConfig
    - add_arguments(options): register an option structure and keep it alive.

    Invocation
    - parse_args(args=Unset, /, skip=0) → ParseResult

    Configuration
    - config(program=, usage=, description=, epilog=, console=, stream=,
      help_on_empty=, context=, formatter=) and get_config().

    A parser mutates its definitions and the bound targets while parsing; it is
    not thread-safe, and one instance must not run two parses at once.
    """

    def __init__(self):
        self._definition = ParserDefinition()
        self._config = {
            "program": "",
            "usage": "",
            "description": "",
            "epilog": "",
            "console": None,
            "stream": None,
            "help_on_empty": False,
            "context": MappingProxyType({}),
            "formatter": None,
        }
        self._help_names = set()
        self._help_checked = False
        self._targets = []
        self._groups = {}
        self._group = None

    # --- configuration ---

    def config(
            self,
            *,
            program=Unset,
            usage=Unset,
            description=Unset,
            epilog=Unset,
            console=Unset,
            stream=Unset,
            help_on_empty=Unset,
            context=Unset,
            formatter=Unset,
    ):
        """
        Update the parser configuration; omitted settings are left untouched.

        Parameters
        - program, usage, description, epilog: str shown by the help formatter.
        - console: rich Console used for help and errors (overrides stream).
        - stream: file-like object receiving help and errors.
        - help_on_empty: show help when no tokens are given and some argument
          is required (instead of reporting the missing arguments).
        - context: Mapping exposed to actions as env.context.
        - formatter: object with format(parser, console); defaults to HelpFormatter().

        Returns the parser for chaining.
        """
        updates = {}
        for name, value in (("program", program), ("usage", usage), ("description", description), ("epilog", epilog)):
            if value is Unset:
                continue
            elif not isinstance(value, str):
                raise TypeError(f"parser {name!r} must be a string")
            updates[name] = value

        if console is not Unset:
            if console is not None and not isinstance(console, Console):
                raise TypeError("parser 'console' must be a rich Console")
            updates["console"] = console
        if stream is not Unset:
            if stream is not None and not callable(getattr(stream, "write", None)):
                raise TypeError("parser 'stream' must be a writable file-like object")
            updates["stream"] = stream
        if help_on_empty is not Unset:
            if not isinstance(help_on_empty, bool):
                raise TypeError("parser 'help_on_empty' must be a boolean")
            updates["help_on_empty"] = help_on_empty
        if context is not Unset:
            if not isinstance(context, Mapping):
                raise TypeError("parser 'context' must be a mapping")
            updates["context"] = MappingProxyType(dict(context))
        if formatter is not Unset:
            if formatter is not None and not callable(getattr(formatter, "format", None)):
                raise TypeError("parser 'formatter' must provide format(parser, console)")
            updates["formatter"] = formatter

        self._config.update(updates)
        return self

    def get_config(self):
        return MappingProxyType(dict(self._config))

    @property
    def program(self):
        """
        Program name: the configured one, else __prog__ from __main__, else argv[0].
        """
        if self._config["program"]:
            return self._config["program"]
        return getattr(__import__("__main__"), "__prog__", os.path.basename(sys.argv[0]) if sys.argv else "")

    # --- registration ---

    def add_argument(self, target, /, *names, **metadata):
        """
        Register an option ("-n", "--name") or a positional ("name") bound to `target`.

        `target` is a Value, or anything advertising a Target through
        __target__() (Variable, Target). Registering a second argument on the
        same variable shares its adapter, so both count assignments together.
        See argbind.options.Argument for the metadata keywords.
        """
        value = target if isinstance(target, Value) else ConvertedValue(target)
        value = self._definition.share(value)
        argument = Argument(value, *names, **metadata)
        argument.join(self._group)
        if argument.positional:
            return self._definition.add_positional(argument)
        return self._definition.add_option(argument)

    def add_help_option(self, /, *names):
        """
        Add an option that renders the help and stops the parser.

        Without an explicit call, -h/--help are added at the first parse when
        they are not taken by other options.
        """
        if not names or not all(isinstance(name, str) and name.startswith("-") for name in names if name):
            raise ArgumentNameError("a help argument must be an option")
        argument = self.add_argument(
            VoidValue(),
            *names,
            help="Display this help message and exit.",
            action=self._help_action,
        )
        self._help_names.update(argument.names)
        self._help_checked = True
        return argument

    def add_default_help_option(self):
        """
        Add -h and/or --help, whichever is still free.

        Emits HelpOptionsHiddenWarning and returns None when both are taken.
        """
        names = [name for name in ("-h", "--help") if self._definition.find_option(name) is None]
        if not names:
            self._help_checked = True
            warnings.warn(HelpOptionsHiddenWarning("the default help options are hidden by other options"), stacklevel=2)
            return None
        return self.add_help_option(*names)

    def add_group(self, name, /):
        return self._activate_group(name, False)

    def add_exclusive_group(self, name, /):
        return self._activate_group(name, True)

    def end_group(self):
        self._group = None

    def _activate_group(self, name, exclusive, /):
        group = OptionGroup(name, exclusive)
        if (existing := self._groups.get(group.name)) is not None:
            if existing.exclusive != exclusive:
                raise MixingGroupTypes(group.name)
            group = existing
        else:
            self._groups[group.name] = group
        self._group = group
        return GroupConfig(group, self)

    def add_command(self, name, factory, /):
        return CommandConfig(self._definition.add_command(Command(name, factory)))

    def add_arguments(self, options, /):
        """
        Register an option structure: keep a reference and call its add_arguments(parser).
        """
        if options is None:
            return None
        if not callable(getattr(options, "add_arguments", None)):
            raise TypeError("add_arguments() argument must provide add_arguments(parser)")
        self._targets.append(options)
        options.add_arguments(self)
        return options

    def find_command(self, name, /):
        return self._definition.find_command(name)

    # --- description ---

    def describe_arguments(self):
        """
        Descriptors of every option, positional and command, in that order.
        """
        return [
            *map(describe_argument, self._definition.options),
            *map(describe_argument, self._definition.positionals),
            *map(describe_command, self._definition.commands),
        ]

    def describe_argument(self, name, /):
        if not isinstance(name, str):
            raise TypeError("describe_argument() argument must be a string")
        if name.startswith("-"):
            argument = self._definition.find_option(name)
        else:
            argument = self._definition.find_positional(name)
            if argument is None and (command := self._definition.find_command(name)) is not None:
                return describe_command(command)
        if argument is None:
            raise ValueError("unknown argument %r" % name)
        return describe_argument(argument)

    # --- invocation ---

    def parse_args(self, args=Unset, /, skip=0):
        """
        Parse `args` (sys.argv[1:] when omitted) into the registered targets.

        Parameters
        - args: Iterable[str]; None or non-string tokens record INVALID_INPUT.
        - skip: int, leading tokens to drop (e.g. 1 for a full argv).

        Returns
        - ParseResult: truthy when no errors were recorded and nothing was ignored.
        """
        if isinstance(skip, bool) or not isinstance(skip, int):
            raise TypeError("parse_args() 'skip' must be an integer")

        builder = ParseResultBuilder()
        if args is Unset:
            args = sys.argv[1:]

        if args is None or isinstance(args, str) or not isinstance(args, Iterable):
            builder.add_error("args", ErrorKind.INVALID_INPUT)
        else:
            args = list(args)
            if not all(isinstance(token, str) for token in args):
                builder.add_error("args", ErrorKind.INVALID_INPUT)
            else:
                self._verify()
                self._parse_args(args[max(skip, 0):], builder)

        if builder.has_argument_problems():
            builder.signal_errors_shown()
            result = builder.get_result()
            self.describe_errors(result)
            return result
        return builder.get_result()

    def _verify(self):
        if not self._help_checked:
            self.end_group()
            self.add_default_help_option()

    def _parse_args(self, tokens, builder, /):
        if not tokens and self._config["help_on_empty"] and self._has_required_arguments():
            self.generate_help()
            builder.signal_help_shown()
            builder.request_exit()
            builder.add_error("", ErrorKind.EXIT_REQUESTED)
            return

        self._definition.reset()

        for token in tokens:
            if token == "--" or self._definition.find_command(token) is not None:
                break
            if token in self._help_names:
                self.generate_help()
                builder.signal_help_shown()
                builder.request_exit()
                builder.add_error("", ErrorKind.EXIT_REQUESTED)
                return

        env = Environment(builder, self._config["context"])
        matcher = Parser(self._definition, builder, env, lambda command, rest: self._dispatch(command, rest, builder))
        matcher.parse(tokens)

        if builder.exit_requested:
            # A dispatched command records its own exit entry.
            if matcher.command is None:
                builder.add_error("", ErrorKind.EXIT_REQUESTED)
            return

        self._assign_defaults()
        self._report_missing(matcher, builder)
        self._report_exclusive(builder)
        self._report_groups(builder)

    def _dispatch(self, command, tokens, builder, /):
        parser = type(self)()
        parser.config(
            program=f"{self.program} {command.name}",
            console=self._config["console"],
            stream=self._config["stream"],
            help_on_empty=self._config["help_on_empty"],
            context=self._config["context"],
            formatter=self._config["formatter"],
        )
        command.build(parser)
        parser._verify()
        parser._parse_args(list(tokens), builder)

    def _has_required_arguments(self):
        return any(argument.required for argument in (*self._definition.options, *self._definition.positionals))

    def _assign_defaults(self):
        for argument in (*self._definition.options, *self._definition.positionals):
            if argument.has_default() and argument.value.assign_count == 0:
                argument.assign_default()

    def _report_missing(self, matcher, builder, /):
        for option in self._definition.options:
            if option.required and option.value.assign_count == 0:
                builder.add_error(option.help_name, ErrorKind.MISSING_OPTION)
        if (option := matcher.pending()) is not None:
            builder.add_error(option.help_name, ErrorKind.MISSING_ARGUMENT)
        for positional in self._definition.positionals:
            if positional.needs_more_arguments():
                builder.add_error(positional.help_name, ErrorKind.MISSING_ARGUMENT)

    def _report_exclusive(self, builder, /):
        members = {}
        for option in self._definition.options:
            if option.group is not None and option.group.exclusive and option.was_assigned():
                members.setdefault(option.group.name, []).append(option)
        for assigned in members.values():
            if len(assigned) > 1:
                first = min(assigned, key=lambda option: option.order)
                builder.add_error(first.help_name, ErrorKind.EXCLUSIVE_OPTION)

    def _report_groups(self, builder, /):
        counts = {}
        for argument in (*self._definition.options, *self._definition.positionals):
            if argument.group is not None and argument.group.required:
                counts[argument.group.name] = counts.get(argument.group.name, 0) + argument.was_assigned()
        for name, count in counts.items():
            if count < 1:
                builder.add_error(name, ErrorKind.MISSING_OPTION_GROUP)

    # --- rendering ---

    def _console(self, stderr, /):
        if self._config["console"] is not None:
            return self._config["console"]
        if self._config["stream"] is not None:
            return Console(file=self._config["stream"])
        return Console(stderr=stderr)

    def _help_action(self, target, token, env, /):
        self.generate_help()
        env.help_shown()

    def generate_help(self):
        formatter = self._config["formatter"] or HelpFormatter()
        formatter.format(self, self._console(False))

    def describe_errors(self, result, /):
        """
        Render every error and the ignored arguments of `result` on the error console.
        """
        console = self._console(True)
        palette = styles()
        renders = []
        for error in result.errors:
            if error.kind == ErrorKind.EXIT_REQUESTED:
                continue
            renders.append(Group(
                Text.assemble(
                    "[ ",
                    (self.program, palette["prog-name"]),
                    " — ",
                    (error.kind.normalize(), palette["code"]),
                    " | ",
                    (error.kind.name.replace("_", " ").lower(), palette["error-title"]),
                    " ]",
                ),
                Text(error.describe(), palette["error-message"]),
            ))
        if result.ignored_arguments:
            renders.append(Group(
                Text.assemble(
                    "[ ",
                    (self.program, palette["prog-name"]),
                    " | ",
                    ("ignored arguments", palette["error-title"]),
                    " ]",
                ),
                Text(" ".join(map(repr, result.ignored_arguments)), palette["error-message"]),
                Text.assemble((" → ", palette["hint-arrow"]), (f"run '{self.program} --help' for usage", palette["hint"])),
            ))
        if renders:
            console.print(Group(*renders))


__all__ = (
    "ArgumentParser",
)
