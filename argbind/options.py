r"""
Argbind argument definitions.

Overview
- Argument: static description of one option or positional parameter plus the
  small amount of per-parse state the matcher needs (assignment count and the
  order of the first assignment). Options have a long (--name) and/or a short
  (-n) spelling; positionals have a single display name.
- Options: base class for option structures. A structure owns its targets and
  registers them in add_arguments(parser); commands build their nested parsers
  from such structures.

Arity
- (min_args, max_args); max_args may be math.inf (unbounded).
- nargs: int n → (n, n), "?" → (0, 1), "*" → (0, ∞), "+" → (1, ∞), or a (min, max) pair.
- minargs overrides the minimum.
- Defaults by target:
  • bool option → flag (no arguments, stores True);
  • count=True on an integer target → counter (no arguments, increments);
  • VoidValue option → switch (no arguments);
  • other options → exactly one argument (sequences append across repetitions);
  • sequence positional → (0, ∞); other positionals → exactly one argument.

Actions
- action(target, token) or action(target, token, env): performs one assignment.
  The target is the value adapter (get/set/store/convert). For options without
  arguments the token is the option name that matched.

Validation highlights
- Names must not be empty or contain whitespace; options and positionals cannot
  be mixed in one registration; a short name is one character after a dash.
- Scalar positionals take at most one argument; positionals cannot be required
  explicitly (their minimum decides).
- String defaults are converted at registration, so a bad default fails early.
"""
import builtins
import copy
import functools
import inspect
import math
import operator
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable

from .faults import ArgumentNameError, ConversionFailure, RequiredExclusiveOption
from .values import Value, VoidValue, ConvertedValue, SEQUENCE
from .utils import Unset, UnsetType, coalesce, mirror, rename


class ArgumentType(type):
    """
    Metaclass that exposes argument metadata as read-only properties.

    Responsibilities
    - Derive __typename__ from the class name for consistent messages.
    - Publish every name listed in __introspectable__ through mirror().
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ()) if name not in namespace
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_names(cls, metadata, /):
    """
    Internal: split the registered names into long/short (options) or a single name (positionals).

    Mutates metadata with 'positional', 'long_name' and 'short_name'.
    """
    names = []
    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not name:
            continue
        elif any(char.isspace() for char in name):
            raise ArgumentNameError(f"{cls.__typename__} names must not contain spaces")
        names.append(name)

    if not names:
        raise ArgumentNameError(f"{cls.__typename__} must have a name")

    dashed = [name.startswith("-") for name in names]
    if not all(dashed) and any(dashed):
        raise ArgumentNameError(f"{cls.__typename__} must be either positional or an option")

    metadata["positional"] = not any(dashed)
    metadata["long_name"] = Unset
    metadata["short_name"] = Unset

    if metadata["positional"]:
        if len(names) > 1:
            raise ArgumentNameError(f"positional {cls.__typename__} must have a single name")
        metadata["long_name"] = names[0]
        return

    for name in names:
        if name in ("-", "--"):
            raise ArgumentNameError(f"{cls.__typename__} name {name!r} is not a valid option name")
        elif name.startswith("--"):
            if metadata["long_name"] is not Unset:
                raise ArgumentNameError(f"{cls.__typename__} can have only one long name")
            metadata["long_name"] = name
        elif len(name) > 2:
            raise ArgumentNameError(f"short {cls.__typename__} name {name!r} has too many characters")
        else:
            if metadata["short_name"] is not Unset:
                raise ArgumentNameError(f"{cls.__typename__} can have only one short name")
            metadata["short_name"] = name


def _sanitize_arity(cls, metadata, value, /):
    """
    Internal: resolve (min_args, max_args) and the flag/counter semantics.

    Mutates metadata with 'min_args', 'max_args' and, for flags and counters,
    the implied 'action'.
    """
    nargs = metadata["nargs"]
    positional = metadata["positional"]

    if metadata["flag"] and metadata["count"]:
        raise TypeError(f"{cls.__typename__} cannot be both a flag and a counter")
    if (metadata["flag"] or metadata["count"]) and positional:
        raise TypeError(f"positional {cls.__typename__} cannot be a flag or a counter")
    if (metadata["flag"] or metadata["count"]) and nargs is not Unset:
        raise TypeError(f"{cls.__typename__} flags and counters cannot specify 'nargs'")

    if metadata["count"]:
        if not isinstance(value, ConvertedValue) or value.shape == SEQUENCE or value.type is not int:
            raise TypeError(f"{cls.__typename__} counters must be bound to an integer target")
        metadata["action"] = coalesce(metadata["action"], _count_action)
        nargs = 0
    elif metadata["flag"] or (
            not positional and nargs is Unset and
            isinstance(value, ConvertedValue) and value.shape != SEQUENCE and value.type is bool
    ):
        metadata["action"] = coalesce(metadata["action"], _flag_action)
        nargs = 0
    elif not positional and nargs is Unset and isinstance(value, VoidValue):
        nargs = 0

    match nargs:
        case UnsetType() if positional and value.shape == SEQUENCE:
            minimum, maximum = 0, math.inf
        case UnsetType():
            minimum, maximum = 1, 1
        case "?":
            minimum, maximum = 0, 1
        case "*":
            minimum, maximum = 0, math.inf
        case "+":
            minimum, maximum = 1, math.inf
        case builtins.bool():
            raise TypeError(f"{cls.__typename__} 'nargs' must be an integer, a string or a pair")
        case int() if nargs >= 0:
            minimum, maximum = nargs, nargs
        case int():
            raise ValueError(f"{cls.__typename__} 'nargs' cannot be negative")
        case str():
            raise ValueError(f"{cls.__typename__} 'nargs' must be one of '?', '*', or '+'")
        case (int() as minimum, int() | float() as maximum) if 0 <= minimum <= maximum:
            if isinstance(maximum, float) and maximum != math.inf:
                raise TypeError(f"{cls.__typename__} 'nargs' maximum must be an integer or math.inf")
        case (_, _):
            raise ValueError(f"{cls.__typename__} 'nargs' pair must satisfy 0 <= min <= max")
        case _:
            raise TypeError(f"{cls.__typename__} 'nargs' must be an integer, a string or a pair")

    if (minargs := metadata["minargs"]) is not Unset:
        if not isinstance(minargs, int) or isinstance(minargs, bool):
            raise TypeError(f"{cls.__typename__} 'minargs' must be an integer")
        elif not 0 <= minargs <= maximum:
            raise ValueError(f"{cls.__typename__} 'minargs' must be between 0 and the maximum")
        minimum = minargs

    if positional and value.shape != SEQUENCE and maximum > 1:
        raise TypeError(f"positional {cls.__typename__} {metadata['long_name']!r} takes a single argument unless bound to a list")

    metadata["min_args"] = minimum
    metadata["max_args"] = maximum


def _sanitize_metadata(cls, metadata, value, /):
    """
    Internal: validate the remaining metadata (required, help, metavar, choices, action, default).
    """
    if metadata["positional"]:
        if metadata["required"] is not Unset:
            raise TypeError(f"positional {cls.__typename__} cannot specify 'required'")
        metadata["required"] = metadata["min_args"] > 0
    else:
        metadata["required"] = bool(coalesce(metadata["required"], False))

    for name in ("help", "metavar"):
        if not isinstance(object := metadata[name], str | UnsetType):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and name == "metavar" and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
        metadata[name] = object

    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
    sanitized = []
    for choice in choices:
        if not isinstance(choice, str):
            raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
        elif choice in sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    metadata["choices"] = tuple(sanitized)

    if metadata["action"] is Unset:
        metadata["action"] = value.default_action()
    else:
        metadata["action"] = _resolve_action(cls, metadata["action"])

    # Textual defaults go through the target's conversion once, here.
    if isinstance(default := metadata["default"], str) and isinstance(value, ConvertedValue):
        try:
            object = value.convert(default)
        except ConversionFailure as exception:
            raise ValueError(f"{cls.__typename__} 'default' {default!r} cannot be converted to {exception.type!r}") from None
        if object is not Unset:
            metadata["default"] = [object] if value.shape == SEQUENCE else object


def _resolve_action(cls, action, /):
    """
    Internal: normalize an action to the (target, token, env) calling convention.
    """
    if not callable(action):
        raise TypeError(f"{cls.__typename__} 'action' must be callable")
    try:
        signature = inspect.signature(action)
    except (TypeError, ValueError):
        return action
    try:
        signature.bind(None, None, None)
        return action
    except TypeError:
        pass
    try:
        signature.bind(None, None)
    except TypeError:
        raise TypeError(f"{cls.__typename__} 'action' must accept (target, token) or (target, token, env)") from None
    return rename(lambda target, token, env, /: action(target, token), getattr(action, "__name__", "action"))


def _flag_action(target, token, env, /):
    target.store(True)


def _count_action(target, token, env, /):
    target.set((target.get() or 0) + 1)


class Argument(metaclass=ArgumentType):
    """
    One registered option or positional parameter.

    Identity
    - options: long_name ("--name") and/or short_name ("-n");
    - positionals: long_name holds the display name, short_name is None.

    Per-parse state (reset by reset())
    - assign_count: assignments made through this definition (aliases sharing the
      same value have their own definition counts and one shared value count);
    - order: sequence number of the first assignment, used to name the
      first-assigned member of a violated exclusive group.
    """

    __introspectable__ = (
        "long_name",
        "short_name",
        "min_args",
        "max_args",
        "required",
        "default",
        "help",
        "metavar",
        "choices",
    )

    def __init__(
            self,
            value,
            /,
            *names,
            nargs=Unset,
            minargs=Unset,
            required=Unset,
            default=Unset,
            help=Unset,
            metavar=Unset,
            choices=(),
            action=Unset,
            flag=False,
            count=False,
    ):
        """
        Construct a definition bound to a value adapter.

        Parameters
        - value: Value
          The adapter receiving assignments (the parser resolves targets first).
        - names: str
          "--long" and/or "-s" for options, a single name for positionals.
        - nargs, minargs: arity (see module docs).
        - required: bool (options only).
        - default: value assigned after matching when nothing was assigned;
          strings are converted through the target type at registration.
        - help, metavar: help metadata.
        - choices: Iterable[str] of accepted tokens.
        - action: custom assign action.
        - flag, count: no-argument options storing True / incrementing.
        """
        if not isinstance(value, Value):
            raise TypeError(f"{type(self).__typename__} value must be a Value")

        metadata = {
            "names": names,
            "nargs": nargs,
            "minargs": minargs,
            "required": required,
            "default": default,
            "help": help,
            "metavar": metavar,
            "choices": choices,
            "action": action,
            "flag": bool(flag),
            "count": bool(count),
        }
        _sanitize_names(type(self), metadata)
        _sanitize_arity(type(self), metadata, value)
        _sanitize_metadata(type(self), metadata, value)

        self._value = value
        self._positional = metadata["positional"]
        self._long_name = coalesce(metadata["long_name"])
        self._short_name = coalesce(metadata["short_name"])
        self._min_args = metadata["min_args"]
        self._max_args = metadata["max_args"]
        self._required = metadata["required"]
        self._default = metadata["default"]
        self._help = coalesce(metadata["help"], "")
        self._metavar = metadata["metavar"]
        self._choices = metadata["choices"]
        self._action = metadata["action"]
        self._group = None
        self._assign_count = 0
        self._order = None

    value = property(lambda self: self._value)
    group = property(lambda self: self._group)
    positional = property(lambda self: self._positional)
    assign_count = property(lambda self: self._assign_count)
    order = property(lambda self: self._order)

    @property
    def name(self):
        """
        The primary name: the long name when present, the short one otherwise.
        """
        return self._long_name or self._short_name

    @property
    def names(self):
        return tuple(name for name in (self._short_name, self._long_name) if name)

    @property
    def help_name(self):
        return self.name

    @property
    def metavar(self):
        """
        Placeholder shown in help; defaults to the upper-cased option name or the positional name.
        """
        if self._metavar is not Unset:
            return self._metavar
        if self._positional:
            return self._long_name
        return self.name.lstrip("-").upper().replace("-", "_")

    def has_name(self, name, /):
        return name in self.names

    def has_default(self):
        return self._default is not Unset

    def accepts_any_arguments(self):
        return self._max_args > 0

    def was_assigned(self):
        return self._assign_count > 0

    def needs_more_arguments(self):
        return self._assign_count < self._min_args

    def will_accept_argument(self):
        return self._assign_count < self._max_args

    def join(self, group, /):
        """
        Attach this definition to a group.

        Required options cannot join exclusive groups; positionals are never
        members of exclusive groups and silently stay outside them.
        """
        if group is None:
            return
        if group.exclusive:
            if self._positional:
                return
            if self._required:
                raise RequiredExclusiveOption(self.name, group.name)
        self._group = group

    def reset(self):
        self._assign_count = 0
        self._order = None

    def assign(self, token, env, order, /):
        """
        Assign one token through the bound action.

        The assignment counts even when conversion fails; failures propagate as
        ConversionFailure or ActionError for the matcher to record.
        """
        self._assign_count += 1
        if self._order is None:
            self._order = order
        self._value.set_value(token, self._action, env)

    def assign_empty(self, order, /):
        """
        Count an appearance that supplied no arguments (nargs "?" or "*").

        The target keeps its value; only the counters and the order move.
        """
        self._assign_count += 1
        if self._order is None:
            self._order = order
        self._value.mark_present()

    def assign_default(self):
        default = self._default
        self._value.set_default(lambda target: target.set(copy.copy(default)))


class Options(ABC):
    """
    Base class for option structures.

    A structure owns its targets (as attributes) and registers them in
    add_arguments(parser). ArgumentParser.add_arguments(structure) keeps a
    reference so the targets outlive the parser; commands build their nested
    parsers from the structure returned by their factory.

        class Build(Options):
            jobs: int = 1

            def add_arguments(self, parser):
                parser.add_argument(Target(self, "jobs"), "-j", "--jobs")
    """

    @abstractmethod
    def add_arguments(self, parser, /):
        raise NotImplementedError


__all__ = (
    "Argument",
    "Options",
)
