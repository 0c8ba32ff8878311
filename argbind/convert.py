"""
Text-to-type converters.

A converter is a callable taking the raw token text and returning the typed
value, raising ValueError (or TypeError/ArithmeticError) when the text is not
acceptable. Converters are looked up along the MRO of the requested type, so
a converter registered for a base class serves its subclasses too. Enums
without a dedicated converter are converted by member name first and by the
text of the member value second.

Registering
    >>> @converter(Duration)
    ... def parse_duration(text): ...

    register_converter(IPv4Address, IPv4Address)
"""
import builtins
import enum
import fractions
from decimal import Decimal
from pathlib import Path

from .utils import Unset

_converters = {}


def register_converter(type, function, /):
    """
    Register `function` as the text converter for `type`.

    Later registrations replace earlier ones for the same type. Returns the
    function so the call can be used as a decorator body.
    """
    if not isinstance(type, builtins.type):
        raise TypeError("register_converter() first argument must be a type")
    if not callable(function):
        raise TypeError("register_converter() second argument must be callable")
    _converters[type] = function
    return function


def converter(type, /):
    """
    Decorator form of register_converter().
    """
    if not isinstance(type, builtins.type):
        raise TypeError("@converter() argument must be a type")

    def wrapper(function):
        return register_converter(type, function)

    return wrapper


def from_string(type, /):
    """
    Return the converter for `type` (registered for it or its nearest base), or Unset.
    """
    if not isinstance(type, builtins.type):
        return Unset
    # IntEnum and StrEnum also derive from int/str; their members win over the mixin.
    members = issubclass(type, enum.Enum)
    for base in type.__mro__:
        if members and not issubclass(base, enum.Enum):
            break
        if base in _converters:
            return _converters[base]
    if members:
        return _enum_converter(type)
    return Unset


def _to_int(text):
    # Decimal first so that "010" stays ten; prefixed forms (0x, 0o, 0b) second.
    try:
        return int(text)
    except ValueError:
        return int(text, 0)


def _to_bool(text):
    match text.strip().lower():
        case "1" | "true" | "yes" | "on" | "y":
            return True
        case "0" | "false" | "no" | "off" | "n":
            return False
    raise ValueError("invalid truth value %r" % text)


def _enum_converter(type):
    def convert(text):
        try:
            return type[text]
        except KeyError:
            pass
        for member in type:
            if str(member.value) == text:
                return member
        raise ValueError("%r is not a valid %s" % (text, type.__name__))
    return convert


register_converter(str, str)
register_converter(int, _to_int)
register_converter(bool, _to_bool)
register_converter(float, float)
register_converter(complex, complex)
register_converter(bytes, str.encode)
register_converter(Decimal, Decimal)
register_converter(fractions.Fraction, fractions.Fraction)
register_converter(Path, Path)


__all__ = (
    "register_converter",
    "converter",
    "from_string",
)
