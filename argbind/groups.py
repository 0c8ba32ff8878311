"""
Argument groups: named constraints over a set of options.

- OptionGroup: case-insensitive name, exclusive kind (fixed for its lifetime),
  required flag, help title and description. A group owns nothing; arguments
  hold a non-owning reference to at most one group.
- GroupConfig: fluent handle returned by ArgumentParser.add_group() and
  add_exclusive_group(). It is also a context manager: arguments registered
  inside the `with` block join the group, and the group ends on exit.

    with parser.add_exclusive_group("mode").required() as mode:
        parser.add_argument(fast, "--fast")
        parser.add_argument(safe, "--safe")
"""
from .utils import Unset, mirror


class OptionGroup:
    """
    Named exclusive/required constraint.

    Semantics (checked after matching)
    - exclusive: at most one member option may be assigned.
    - required (non-exclusive or exclusive): at least one member must be assigned.
    """
    __introspectable__ = ("name", "exclusive", "required", "title", "description")

    def __init__(self, name, exclusive=False, /):
        if not isinstance(name, str):
            raise TypeError("group 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError("group 'name' cannot be empty")
        self._name = name.lower()
        self._exclusive = bool(exclusive)
        self._required = False
        self._title = Unset
        self._description = Unset

    name = mirror("name")
    exclusive = mirror("exclusive")
    required = mirror("required")
    description = mirror("description")

    @property
    def title(self):
        """
        Help title; defaults to the group name.
        """
        return self._name if self._title is Unset else self._title

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return "option-group(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


class GroupConfig:
    """
    Fluent configuration of an OptionGroup bound to its parser.
    """

    def __init__(self, group, parser, /):
        self._group = group
        self._parser = parser

    @property
    def group(self):
        return self._group

    def required(self, required=True, /):
        self._group._required = bool(required)
        return self

    def title(self, title, /):
        if not isinstance(title, str):
            raise TypeError("group 'title' must be a string")
        self._group._title = title
        return self

    def description(self, description, /):
        if not isinstance(description, str):
            raise TypeError("group 'description' must be a string")
        self._group._description = description
        return self

    def __enter__(self):
        return self

    def __exit__(self, *exception):
        self._parser.end_group()
        return False


__all__ = (
    "OptionGroup",
    "GroupConfig",
)
