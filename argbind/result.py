"""
Parse results.

- ParseError: one (option, kind, message) entry; option is the help name of
  the offending argument, the group name, the unknown option spelling, "args"
  for invalid input, or "" for EXIT_REQUESTED. message holds the text of an
  ActionError and is empty otherwise.
- ParseResult: immutable outcome of one parse. Truthy exactly when the parse
  recorded no errors and ignored no tokens.
- ParseResultBuilder: mutable accumulator used while matching and during the
  post-pass; get_result() freezes it.
"""
from collections import namedtuple

from .faults import ErrorKind


class ParseError(namedtuple("ParseError", ("option", "kind", "message"), defaults=("",))):
    """
    One recorded problem; message carries the text of an ActionError.
    """
    __slots__ = ()

    def describe(self):
        if self.message:
            return "%s (%s)" % (self.kind.describe(self.option), self.message)
        return self.kind.describe(self.option)


class ParseResult:
    """
    Outcome of ArgumentParser.parse_args().

    Attributes
    - errors: tuple[ParseError, ...] in the order they were found.
    - ignored_arguments: tuple[str, ...] of free tokens nobody accepted.
    - help_shown: the help option was recognized and help was rendered.
    - exit_requested: parsing stopped early (help or env.exit_parser()).
    - errors_shown: the parser rendered the problems on its console.
    """

    def __init__(self, errors=(), ignored_arguments=(), help_shown=False, exit_requested=False, errors_shown=False, /):
        self._errors = tuple(errors)
        self._ignored_arguments = tuple(ignored_arguments)
        self._help_shown = help_shown
        self._exit_requested = exit_requested
        self._errors_shown = errors_shown

    errors = property(lambda self: self._errors)
    ignored_arguments = property(lambda self: self._ignored_arguments)
    help_shown = property(lambda self: self._help_shown)
    exit_requested = property(lambda self: self._exit_requested)
    errors_shown = property(lambda self: self._errors_shown)

    def has_error(self, kind, option=None, /):
        """
        True when an entry of `kind` was recorded (for `option`, when given).
        """
        return any(error.kind == kind and (option is None or error.option == option) for error in self._errors)

    def __bool__(self):
        return not self._errors and not self._ignored_arguments

    def __repr__(self):
        return "parse-result(errors=%r, ignored_arguments=%r, help_shown=%r, exit_requested=%r)" % (
            list(self._errors), list(self._ignored_arguments), self._help_shown, self._exit_requested,
        )


class ParseResultBuilder:
    def __init__(self):
        self._errors = []
        self._ignored_arguments = []
        self._help_shown = False
        self._exit_requested = False
        self._errors_shown = False

    @property
    def exit_requested(self):
        return self._exit_requested

    @property
    def help_shown(self):
        return self._help_shown

    def add_error(self, option, kind, message="", /):
        self._errors.append(ParseError(option, ErrorKind(kind), message))

    def add_ignored(self, token, /):
        self._ignored_arguments.append(token)

    def signal_help_shown(self):
        self._help_shown = True

    def request_exit(self):
        self._exit_requested = True

    def signal_errors_shown(self):
        self._errors_shown = True

    def has_argument_problems(self):
        """
        True when the user input was faulty (control entries do not count).
        """
        return bool(self._ignored_arguments) or any(
            error.kind != ErrorKind.EXIT_REQUESTED for error in self._errors
        )

    def get_result(self):
        return ParseResult(
            self._errors,
            self._ignored_arguments,
            self._help_shown,
            self._exit_requested,
            self._errors_shown,
        )


__all__ = (
    "ParseError",
    "ParseResult",
    "ParseResultBuilder",
)
