"""
Argbind internal helpers.

- Unset: the "not provided" sentinel for registration metadata, where None is a
  legitimate value (defaults, absent optionals).
- coalesce(value, default): Unset → default, everything else unchanged.
- rename(...): stable names for generated reprs and adapted actions.
- mirror(name): read-only property over self._<name>.
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset singleton; falsy, printed as "Unset", not subclassable.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    return default if object is Unset else object


def rename(*parameters):
    """
    rename(callable, name) renames in place; rename(name) returns a decorator.
    """
    match parameters:
        case (callable, str() as name):
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            callable.__name__ = callable.__qualname__ = name
            return callable
        case (str() as name,):
            return lambda callable: rename(callable, name)
        case _:
            raise TypeError("rename() expects (callable, name) or (name)")


def _frozen(object):
    # Metadata containers leave the definitions as immutable copies.
    if isinstance(object, Sequence) and not isinstance(object, str | bytes):
        return tuple(map(_frozen, object))
    elif isinstance(object, Mapping):
        return {key: _frozen(value) for key, value in object.items()}
    elif isinstance(object, Set):
        return frozenset(map(_frozen, object))
    return object


def mirror(name, /):
    """
    Read-only property returning self._<name>, containers as immutable copies.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _frozen(getattr(self, "_" + name))

    return property(getter)


Unset = UnsetType()


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "UnsetType",
    "Unset",
)
