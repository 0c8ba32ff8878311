"""
Argbind faults (error kinds, registration errors and warnings).

Scope
- ErrorKind: canonical, stable numeric identifiers for every problem a parse
  can report. They are stored in ParseResult.errors next to the offending
  argument name, and know how to describe themselves in one sentence.
- Registration errors: raised immediately by the registration API when the
  parser is configured incorrectly (duplicate names, mixed group kinds, ...).
  These are programmer errors, never user-input problems.
- ActionError: raised by user actions to report a problem with a value; the
  matcher records it as ErrorKind.ACTION_ERROR and keeps scanning.
- Warnings: non-fatal programmer diagnostics emitted through warnings.warn and
  rendered with rich when printed to a console.

Styling
- The host application may provide a __styles__ mapping in __main__ to override
  the default styles, and a __codes__ mapping to relabel the numeric codes.
"""
from collections import defaultdict
from enum import IntEnum

from rich.console import Group
from rich.text import Text

_MESSAGES = {}


class ErrorKind(IntEnum):
    """
    canonical error kinds reported by a parse (stable identifiers).

    grouping (by high-level domain)
    - input (1110x)
      • INVALID_INPUT
    - options (1111x)
      • UNKNOWN_OPTION, FLAG_PARAMETER
    - arguments (1112x)
      • MISSING_ARGUMENT, INVALID_CHOICE, MISSING_OPTION, MISSING_OPTION_GROUP,
        EXCLUSIVE_OPTION, CONVERSION_ERROR
    - delegated (1113x)
      • ACTION_ERROR
    - control (1115x)
      • EXIT_REQUESTED

    rationale
    - codes are searchable in logs and can be remapped by the host via normalize().
    """
    # --- input errors (11xxx) ---
    INVALID_INPUT        = 11101

    # --- option errors (11xxx) ---
    UNKNOWN_OPTION       = 11112
    FLAG_PARAMETER       = 11113

    # --- argument errors (11xxx) ---
    MISSING_ARGUMENT     = 11122
    INVALID_CHOICE       = 11124
    MISSING_OPTION       = 11125
    MISSING_OPTION_GROUP = 11126
    EXCLUSIVE_OPTION     = 11127
    CONVERSION_ERROR     = 11128

    # --- delegated errors (11xxx) ---
    ACTION_ERROR         = 11131

    # --- control signals (11xxx) ---
    EXIT_REQUESTED       = 11151

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))

    def describe(self, option, /):
        """
        one-sentence description of this error for the given argument name.

        EXIT_REQUESTED describes nothing (it is a control signal).
        """
        return _MESSAGES[self] % (option,) if "%" in _MESSAGES[self] else _MESSAGES[self]


_MESSAGES.update({
    ErrorKind.INVALID_INPUT: "the parser input is invalid",
    ErrorKind.UNKNOWN_OPTION: "unknown option: %r",
    ErrorKind.FLAG_PARAMETER: "flag options do not accept parameters: %r",
    ErrorKind.MISSING_ARGUMENT: "an argument is missing: %r",
    ErrorKind.INVALID_CHOICE: "the value is not in the list of valid values: %r",
    ErrorKind.MISSING_OPTION: "a required option is missing: %r",
    ErrorKind.MISSING_OPTION_GROUP: "a required option from a group is missing: %r",
    ErrorKind.EXCLUSIVE_OPTION: "only one option from an exclusive group can be set: %r",
    ErrorKind.CONVERSION_ERROR: "the argument could not be converted: %r",
    ErrorKind.ACTION_ERROR: "the argument was rejected: %r",
    ErrorKind.EXIT_REQUESTED: "",
})


def styles():
    """
    default rendering styles merged with the host's __styles__ mapping.
    """
    return defaultdict(str, {
        # faults
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "error-title": "bold #FF4DA6",  # friendly pinky title
        "error-message": "#C8C8D0",  # soft light gray message
        "warning-title": "bold #FFB400",  # amber title for warnings
        "warning-message": "#D6D6DE",  # slightly lighter gray body
        "hint-arrow": "#9CE19C dim",  # gentle green arrow
        "hint": "italic #9CE19C",  # gentle green hint text

        # help
        "usage": "bold #E6E6F0",
        "section": "bold #00E5FF",
        "name": "#FFC2E0",
        "metavar": "italic #9CE19C",
        "text": "",
    } | getattr(__import__("__main__"), "__styles__", {}))


class ArgumentConfigError(ValueError):
    """
    Base class of the structural registration errors.

    Raised when names, groups or commands are registered in a way that can
    never parse correctly. Wrong argument *types* raise TypeError instead.
    """


class ArgumentNameError(ArgumentConfigError):
    """
    Argument names are empty, contain whitespace, mix options and positionals,
    or are not valid option spellings.
    """


class DuplicateOption(ArgumentConfigError):
    def __init__(self, group, name, /):
        super().__init__(
            "option %r is already defined%s" % (name, " in group %r" % group if group else "")
        )
        self.group = group
        self.name = name


class DuplicateCommand(ArgumentConfigError):
    def __init__(self, name, /):
        super().__init__("command %r is already defined" % name)
        self.name = name


class MixingGroupTypes(ArgumentConfigError):
    def __init__(self, name, /):
        super().__init__("group %r cannot be both exclusive and non-exclusive" % name)
        self.name = name


class RequiredExclusiveOption(ArgumentConfigError):
    def __init__(self, option, group, /):
        super().__init__("required option %r cannot be a member of the exclusive group %r" % (option, group))
        self.option = option
        self.group = group


class ActionError(Exception):
    """
    Raised by an assign action to reject a value.

    The matcher records the message as an ACTION_ERROR entry and continues
    scanning; the exception never escapes parse_args().
    """

    def __init__(self, message, /):
        super().__init__(message)
        self.message = message


class ConversionFailure(Exception):
    """
    Internal: a token could not be converted into the target type.

    Raised at the value-adapter boundary and turned into a CONVERSION_ERROR
    entry by the matcher.
    """

    def __init__(self, token, type, /):
        super().__init__("cannot convert %r to %s" % (token, getattr(type, "__name__", type)))
        self.token = token
        self.type = type


class ArgumentWarning(Warning):
    """
    Base class of argbind warnings.

    Warnings are emitted with warnings.warn; when printed on a rich console
    they render as a titled message with a hint.
    """
    title = "warning"
    hint = ""

    def __init__(self, message, /):
        super().__init__(message)
        self.message = message

    def __rich__(self):
        palette = styles()
        header = Text.assemble(("[ ", ""), (self.title, palette["warning-title"]), (" ]", ""))
        message = Text(self.message, palette["warning-message"])
        if not self.hint:
            return Group(header, message)
        return Group(header, message, Text.assemble(" → ", (self.hint, palette["hint"])))


class AssignmentWarning(ArgumentWarning):
    title = "assignment not implemented"
    hint = "register a converter for the target type with argbind.converter()"


class HelpOptionsHiddenWarning(ArgumentWarning):
    title = "help options hidden"
    hint = "call add_help_option() with names that are not used by other options"


__all__ = (
    "ErrorKind",
    "ArgumentConfigError",
    "ArgumentNameError",
    "DuplicateOption",
    "DuplicateCommand",
    "MixingGroupTypes",
    "RequiredExclusiveOption",
    "ActionError",
    "ConversionFailure",
    "ArgumentWarning",
    "AssignmentWarning",
    "HelpOptionsHiddenWarning",
    "styles",
)
