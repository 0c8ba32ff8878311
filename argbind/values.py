"""
Argbind value targets: the binding between a syntactic match and a caller-owned variable.

Overview
- Targets (what the caller owns)
  • Variable(type): a standalone typed box exposing .value.
  • Target(owner, attribute, type=Unset): binds an attribute of any object; the
    type defaults to the owner's class annotation for that attribute.
  Both advertise themselves through the __target__() hook, so any object that
  returns a Target from __target__() can be registered.

- Adapters (what the parser drives)
  • Value: type-erased base. Knows how to reset, count assignments and run an
    assign action; never raises conversion problems across the matcher boundary
    untagged (they surface as ConversionFailure / ActionError).
  • VoidValue: adapter without a target (help options, trigger-only switches).
  • ConvertedValue: adapter over a Target; resolves at construction
      - the target shape: scalar T, optional T | None, or sequence list[T];
      - the conversion strategy for T: a registered converter, else the
        single-argument constructor of T, else a non-fatal AssignmentWarning
        that drops the token.

- Environment
  • Opaque context handed to actions (env.context) plus exit_parser() to stop
    the current parse immediately.

Aliasing
- Adapters bound to the same variable (same owner, attribute, shape and type)
  have the same target_id. The parser keeps one adapter per target_id, so the
  assignment counter is shared by every option registered on that variable
  (e.g. -v and --verbose on one counter).
"""
import builtins
import inspect
import types
import typing
import warnings
from collections.abc import Mapping
from types import MappingProxyType

from .convert import from_string
from .faults import AssignmentWarning, ConversionFailure
from .utils import Unset, coalesce, mirror

SCALAR = "scalar"
OPTIONAL = "optional"
SEQUENCE = "sequence"

# Types whose no-argument construction is their natural empty state.
_ZEROABLE = frozenset({str, int, float, complex, bool, bytes})


class Environment:
    """
    Context handed to assign actions.

    - context: read-only mapping configured on the parser (e.g. {"locale": ...}).
    - exit_parser(): request an immediate stop; the result reports EXIT_REQUESTED
      and the post-pass checks are skipped.
    """

    def __init__(self, builder, context=Unset, /):
        if not isinstance(context := coalesce(context, {}), Mapping):
            raise TypeError("environment 'context' must be a mapping")
        self._builder = builder
        self._context = MappingProxyType(dict(context))

    @property
    def context(self):
        return self._context

    @property
    def exit_requested(self):
        return self._builder.exit_requested

    def exit_parser(self):
        self._builder.request_exit()

    def help_shown(self):
        """
        Signal that help was rendered; implies exit_parser().
        """
        self._builder.signal_help_shown()
        self._builder.request_exit()


class Target:
    """
    Binding to one attribute of a caller-owned object.

    The declared type drives conversion; when omitted it is read from the
    owner's class annotations (typing.get_type_hints), so dataclasses and
    annotated option structures bind without repeating types.
    """
    __slots__ = ("_owner", "_attribute", "_type")

    def __init__(self, owner, attribute, type=Unset, /):
        if not isinstance(attribute, str):
            raise TypeError("target 'attribute' must be a string")
        elif not attribute.isidentifier():
            raise ValueError("target 'attribute' must be an identifier")
        if type is Unset:
            try:
                type = typing.get_type_hints(builtins.type(owner))[attribute]
            except KeyError:
                raise TypeError("target %r has no annotation, pass its type explicitly" % attribute) from None
        self._owner = owner
        self._attribute = attribute
        self._type = type

    owner = property(lambda self: self._owner)
    attribute = property(lambda self: self._attribute)
    type = property(lambda self: self._type)

    def get(self):
        return getattr(self._owner, self._attribute)

    def set(self, object, /):
        setattr(self._owner, self._attribute, object)

    def __target__(self):
        return self

    def __repr__(self):
        return "target(owner=%s, attribute=%r, type=%r)" % (
            builtins.type(self._owner).__name__, self._attribute, self._type
        )


class Variable:
    """
    A standalone typed box that receives a parsed value.

        >>> count = Variable(int)
        >>> files = Variable(list[str])
        >>> level = Variable(int | None)

    The box starts with `value` (or Unset when not given); every parse resets
    it to the zero state of its type before matching.
    """
    __slots__ = ("_type", "value")

    def __init__(self, type, value=Unset, /):
        self._type = type
        self.value = value

    type = property(lambda self: self._type)

    def __target__(self):
        return Target(self, "value", self._type)

    def __repr__(self):
        return "variable(type=%r, value=%r)" % (self._type, self.value)


def resolve_target(object, /):
    """
    Return the Target advertised by `object` through its __target__() hook.
    """
    if not hasattr(object, "__target__") or not callable(object.__target__):
        raise TypeError("argument target must be a Value or provide a __target__() method")
    if not isinstance(target := object.__target__(), Target):
        raise TypeError("__target__() non-target returned")
    return target


class Value:
    """
    Type-erased adapter between the matcher and one target.

    Counters
    - assign_count: assignments through every option sharing this adapter in the
      current parse (reset once per parse).
    - has_errors: a conversion or action failed in the current parse.
    """

    def __init__(self):
        self._assign_count = 0
        self._has_errors = False

    assign_count = mirror("assign_count")
    has_errors = mirror("has_errors")

    @property
    def target_id(self):
        """
        Identity of the underlying variable; equal ids alias the same variable.
        """
        return type(self), id(self)

    @property
    def shape(self):
        return SCALAR

    def set_value(self, token, action, env, /):
        """
        Run `action(self, token, env)` and count the assignment.

        Conversion failures and ActionError mark the adapter and propagate to the
        matcher, which records them; they never abort the scan.
        """
        self._assign_count += 1
        try:
            action(self, token, env)
        except Exception:
            self._has_errors = True
            raise

    def set_default(self, action, /):
        action(self)

    def mark_bad_argument(self):
        self._has_errors = True

    def mark_present(self):
        self._assign_count += 1

    def reset(self):
        self._assign_count = 0
        self._has_errors = False
        self._reset()

    def default_action(self):
        """
        The action used when an option does not declare one.
        """
        return _void_action

    def _reset(self):
        pass


def _void_action(target, token, env, /):
    pass


class VoidValue(Value):
    """
    Adapter without a target; assignments only count.
    """

    def get(self):
        return None

    def set(self, object, /):
        pass

    def store(self, object, /):
        pass

    def convert(self, token, /):
        return token


def _resolve_shape(hint):
    """
    Split a declared type into (shape, element type).

    - list[T] / list → (SEQUENCE, T) with T defaulting to str
    - T | None / Optional[T] → (OPTIONAL, T)
    - anything else → (SCALAR, hint)
    """
    origin = typing.get_origin(hint)
    if hint is list or origin is list:
        arguments = typing.get_args(hint)
        return SEQUENCE, arguments[0] if arguments else str
    if origin is typing.Union or origin is types.UnionType:
        arguments = [argument for argument in typing.get_args(hint) if argument is not type(None)]
        if len(arguments) != 1 or len(arguments) == len(typing.get_args(hint)):
            raise TypeError("union targets must be of the form T | None, not %r" % hint)
        return OPTIONAL, arguments[0]
    return SCALAR, hint


def _accepts_text(type):
    """
    True when `type` is a concrete class constructible from a single argument.
    """
    if not isinstance(type, builtins.type) or inspect.isabstract(type):
        return False
    try:
        inspect.signature(type).bind("")
    except TypeError:
        return False
    except ValueError:
        # No introspectable signature (C types); trust the constructor.
        return True
    return True


def _resolve_strategy(type):
    """
    Pick the conversion of token text into `type`, once, at registration.
    """
    if (function := from_string(type)) is not Unset:
        return function
    if _accepts_text(type):
        return type
    return Unset


class ConvertedValue(Value):
    """
    Adapter over a Target whose declared type selects shape and conversion.

    Stores by shape
    - scalar: the converted value replaces the target (last assignment wins);
    - optional: the converted value replaces the target (None until assigned);
    - sequence: the converted value is appended, preserving input order.
    """

    def __init__(self, target, /):
        super().__init__()
        if not isinstance(target, Target):
            target = resolve_target(target)
        self._target = target
        self._shape, self._type = _resolve_shape(target.type)
        self._converter = _resolve_strategy(self._type)

    target = property(lambda self: self._target)
    type = property(lambda self: self._type)

    @property
    def shape(self):
        return self._shape

    @property
    def target_id(self):
        return self._shape, self._type, id(self._target.owner), self._target.attribute

    def get(self):
        return self._target.get()

    def set(self, object, /):
        """
        Replace the whole target with `object`.
        """
        self._target.set(object)

    def store(self, object, /):
        """
        Store an already-converted element according to the target shape.
        """
        if self._shape == SEQUENCE:
            current = self._target.get()
            if not isinstance(current, list):
                current = [] if current in (None, Unset) else list(current)
            current.append(object)
            self._target.set(current)
        else:
            self._target.set(object)

    def convert(self, token, /):
        """
        Convert `token` into the element type.

        Raises ConversionFailure when the converter rejects the text, and returns
        Unset (after an AssignmentWarning) when the type has no conversion.
        """
        if self._converter is Unset:
            warnings.warn(AssignmentWarning("assignment is not implemented. (%r)" % token), stacklevel=2)
            return Unset
        try:
            return self._converter(token)
        except (ValueError, TypeError, ArithmeticError):
            raise ConversionFailure(token, self._type) from None

    def default_action(self):
        return _convert_action

    def zero(self):
        """
        The empty state of the target for its shape and type.
        """
        if self._shape == SEQUENCE:
            return []
        if self._shape == SCALAR and self._type in _ZEROABLE:
            return self._type()
        return None

    def _reset(self):
        self._target.set(self.zero())


def _convert_action(target, token, env, /):
    if (object := target.convert(token)) is not Unset:
        target.store(object)


__all__ = (
    "SCALAR",
    "OPTIONAL",
    "SEQUENCE",
    "Environment",
    "Target",
    "Variable",
    "Value",
    "VoidValue",
    "ConvertedValue",
    "resolve_target",
)
