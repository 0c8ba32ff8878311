"""
Argbind token matcher.

ParserDefinition
- The arena of registered definitions: options and positionals (in
  registration order), commands, and one value adapter per aliased variable.

Parser
- One pass over a token slice. Every token is classified, in priority order, as
  1. an option name (exact long/short match, --name=value, or a -abc cluster);
  2. an argument of the active option, while it accepts more arguments;
  3. a negative number ("-5", "-0.3"), treated as a value when the active option
     still accepts arguments or no short option is spelled like it;
  4. a command name, which hands the rest of the slice to the command, unless
     the current positional still needs values to reach its minimum;
  5. a value for the positional queue;
  6. an ignored token.
- After "--" every token is a value (never a command); a bare "-" is always a
  value.
- Positional distribution: positionals fill left to right; a positional that
  already holds its minimum stops accepting once the values left in the stream
  are needed for the minimums of the positionals after it. Values that options
  will take as arguments, and everything from a command name on, are not
  counted as left.
- An option that may go without arguments (nargs "?" or "*") and gets none
  still counts as given for required options and groups.
- Problems are recorded in the result builder and never stop the scan; only an
  exit request (help, env.exit_parser()) stops it.

State machine: Idle → OptionActive(option) on an option name; back to Idle on
another option name, an unknown option, "--", a full option, or the end of the
stream. The option still active at the end below its minimum is exposed
through pending() for the post-pass.
"""
import itertools
import re

from .faults import ActionError, ConversionFailure, DuplicateOption, DuplicateCommand, ErrorKind
from .values import Environment

_NEGATIVE = re.compile(r"-\.?\d")


class ParserDefinition:
    """
    Registered options, positionals, commands and value adapters of one parser.
    """

    def __init__(self):
        self.options = []
        self.positionals = []
        self.commands = []
        self._values = {}

    def share(self, value, /):
        """
        Return the adapter already registered for the same variable, or `value` itself.
        """
        return self._values.get(value.target_id, value)

    def values(self):
        return tuple(self._values.values())

    def find_option(self, name, /):
        for option in self.options:
            if option.has_name(name):
                return option
        return None

    def find_positional(self, name, /):
        for positional in self.positionals:
            if positional.has_name(name):
                return positional
        return None

    def find_command(self, name, /):
        for command in self.commands:
            if command.name == name:
                return command
        return None

    def add_option(self, option, /):
        for name in option.names:
            if (other := self.find_option(name)) is not None:
                raise DuplicateOption(other.group.name if other.group else "", name)
        self._values.setdefault(option.value.target_id, option.value)
        self.options.append(option)
        return option

    def add_positional(self, positional, /):
        if (other := self.find_positional(positional.name)) is not None:
            raise DuplicateOption(other.group.name if other.group else "", positional.name)
        self._values.setdefault(positional.value.target_id, positional.value)
        self.positionals.append(positional)
        return positional

    def add_command(self, command, /):
        if self.find_command(command.name) is not None:
            raise DuplicateCommand(command.name)
        self.commands.append(command)
        return command

    def reset(self):
        """
        Bring every definition, adapter and command back to its pre-parse state.

        Shared adapters are reset exactly once.
        """
        for value in self._values.values():
            value.reset()
        for argument in itertools.chain(self.options, self.positionals):
            argument.reset()
        for command in self.commands:
            command.reset()


class Parser:
    """
    Single-use matcher of one token slice against a ParserDefinition.

    Parameters
    - definition: ParserDefinition
    - builder: ParseResultBuilder receiving errors, ignored tokens and signals.
    - env: Environment handed to actions (a fresh one is made when omitted).
    - dispatch: callable(command, tokens) running a matched command over the
      rest of the slice; commands are not recognized when omitted.
    """

    def __init__(self, definition, builder, env=None, dispatch=None, /):
        self._definition = definition
        self._builder = builder
        self._env = env if env is not None else Environment(builder)
        self._dispatch = dispatch
        self._command = None
        self._active = None
        self._taken = 0
        self._slot = 0
        self._order = itertools.count()
        self._free_after = ()
        self._suffix = ()

    @property
    def active(self):
        return self._active

    @property
    def command(self):
        """
        The command the rest of the slice was handed to, or None.
        """
        return self._command

    def pending(self):
        """
        The option left active below its minimum arity, or None.
        """
        if self._active is not None and self._taken < self._active.min_args:
            return self._active
        return None

    def parse(self, tokens, /):
        tokens = list(tokens)
        self._prepare(tokens)

        literal = False
        for index, token in enumerate(tokens):
            if self._builder.exit_requested:
                return
            if literal:
                stop = self._value(index, token, tokens, False)
            elif token == "--":
                literal = True
                self._close()
                continue
            elif self._looks_like_option(token):
                self._option(token)
                continue
            else:
                stop = self._value(index, token, tokens)
            if stop:
                return

        if self._active is not None and self._taken == 0 < self._active.max_args:
            self._present(self._active)

    def _prepare(self, tokens):
        # Free tokens after each index, for the positional reservation. Values
        # the options will take as their arguments are not free.
        counts = []
        free = 0
        literal = False
        owed = 0
        flags = []
        for token in tokens:
            if literal:
                flags.append(True)
            elif token == "--":
                literal, owed = True, 0
                flags.append(False)
            elif self._is_option(token, owed > 0):
                owed = self._owed(token)
                flags.append(False)
            elif owed:
                owed -= 1
                flags.append(False)
            elif self._dispatch is not None and self._definition.find_command(token) is not None:
                # The command consumes the rest of the slice.
                break
            else:
                flags.append(True)
        flags.extend([False] * (len(tokens) - len(flags)))
        for flag in reversed(flags):
            counts.append(free)
            free += flag
        self._free_after = tuple(reversed(counts))

        minimums = [positional.min_args for positional in self._definition.positionals]
        suffix = [0] * (len(minimums) + 1)
        for index in range(len(minimums) - 1, -1, -1):
            suffix[index] = suffix[index + 1] + minimums[index]
        self._suffix = tuple(suffix)

    def _looks_like_option(self, token):
        return self._is_option(token, self._active is not None and self._taken < self._active.max_args)

    def _is_option(self, token, accepting):
        if not token.startswith("-") or token == "-":
            return False
        if _NEGATIVE.match(token):
            if accepting:
                return False
            return self._definition.find_option(token[:2]) is not None
        return True

    def _owed(self, token):
        """
        Number of following values the option token leaves its option accepting.
        """
        if token.startswith("--"):
            name, separator, _ = token.partition("=")
            if (option := self._definition.find_option(name)) is None or option.max_args == 0:
                return 0
            return option.max_args - bool(separator)
        if (option := self._definition.find_option(token)) is not None:
            return option.max_args
        for index, char in enumerate(token[1:], start=2):
            if (option := self._definition.find_option("-" + char)) is None:
                return 0
            if option.max_args > 0:
                return option.max_args - bool(token[index:].removeprefix("="))
        return 0

    def _close(self, next=None):
        """
        Deactivate the active option; a different option taking over records a missing argument.

        An option that may go without arguments and got none still counts as given.
        """
        if (option := self.pending()) is not None and option is not next:
            self._builder.add_error(option.help_name, ErrorKind.MISSING_ARGUMENT)
        elif self._active is not None and self._taken == 0 < self._active.max_args:
            self._present(self._active)
        self._active = None
        self._taken = 0

    def _present(self, option):
        if option.min_args == 0:
            option.assign_empty(next(self._order))

    def _activate(self, option):
        self._close(option)
        self._active = option
        self._taken = 0

    def _option(self, token):
        if token.startswith("--"):
            name, separator, inline = token.partition("=")
            if (option := self._definition.find_option(name)) is None:
                self._builder.add_error(name, ErrorKind.UNKNOWN_OPTION)
                self._close()
                return
            self._activate(option)
            if separator:
                if option.max_args == 0:
                    self._builder.add_error(option.help_name, ErrorKind.FLAG_PARAMETER)
                    self._close()
                else:
                    self._argument(inline)
            else:
                self._trigger()
            return

        if (option := self._definition.find_option(token)) is not None:
            self._activate(option)
            self._trigger()
            return

        # -abc: a cluster of short options; -n5 / -n=5: inline argument.
        for index, char in enumerate(token[1:], start=2):
            name = "-" + char
            if (option := self._definition.find_option(name)) is None:
                self._builder.add_error(token.partition("=")[0] if index == 2 else name, ErrorKind.UNKNOWN_OPTION)
                self._close()
                return
            self._activate(option)
            if option.max_args == 0:
                self._trigger()
                if self._builder.exit_requested:
                    return
                continue
            if rest := token[index:].removeprefix("="):
                self._argument(rest)
            return

    def _trigger(self):
        # Options without arguments are assigned on sight, with their name as token.
        if self._active.max_args == 0:
            option = self._active
            self._assign(option, option.help_name)
            self._close()

    def _argument(self, token):
        self._taken += 1
        self._assign(self._active, token)
        if self._active is not None and self._taken >= self._active.max_args:
            self._close()

    def _value(self, index, token, tokens, commands=True):
        """
        Route a value token; return True when scanning must stop.
        """
        if self._active is not None:
            if self._taken < self._active.max_args:
                self._argument(token)
                return False
            self._close()

        # A command name goes to the command unless the current positional still
        # needs values to reach its minimum.
        command = self._definition.find_command(token) if commands and self._dispatch is not None else None
        positionals = self._definition.positionals
        remaining = self._free_after[index]
        while self._slot < len(positionals):
            positional = positionals[self._slot]
            if positional.needs_more_arguments():
                self._assign(positional, token)
                return False
            if command is not None:
                break
            if positional.will_accept_argument() and remaining >= self._suffix[self._slot + 1]:
                self._assign(positional, token)
                return False
            self._slot += 1

        if command is not None:
            self._command = command
            self._dispatch(command, tokens[index + 1:])
            return True

        self._builder.add_ignored(token)
        return False

    def _assign(self, argument, token):
        if argument.choices and argument.max_args > 0 and token not in argument.choices:
            self._builder.add_error(argument.help_name, ErrorKind.INVALID_CHOICE)
            argument.value.mark_bad_argument()
            return
        try:
            argument.assign(token, self._env, next(self._order))
        except ConversionFailure:
            self._builder.add_error(argument.help_name, ErrorKind.CONVERSION_ERROR)
        except ActionError as exception:
            self._builder.add_error(argument.help_name, ErrorKind.ACTION_ERROR, exception.message)


__all__ = (
    "ParserDefinition",
    "Parser",
)
