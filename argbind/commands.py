"""
Argbind sub-commands.

A Command is a named entry whose factory lazily produces an option structure
(anything with add_arguments(parser), usually an argbind.Options subclass).
The factory runs only when the command name is matched during a parse; the
structure then fills a nested parser that consumes the rest of the tokens.

    class Build(Options):
        jobs: int = 1

        def add_arguments(self, parser):
            parser.add_argument(Target(self, "jobs"), "-j", "--jobs")

    parser.add_command("build", Build).help("Build the project.")
    result = parser.parse_args(["build", "-j", "4"])
    parser.find_command("build").options.jobs  # 4
"""


class Command:
    """
    Named sub-parser entry.

    - name: the token selecting the command (non-empty, no leading dash).
    - factory: zero-argument callable returning the option structure.
    - options: the structure built for the last parse, or None when the command
      was not selected.
    """

    def __init__(self, name, factory, /):
        if not isinstance(name, str):
            raise TypeError("command 'name' must be a string")
        elif not name:
            raise ValueError("command must have a name")
        elif name.startswith("-"):
            raise ValueError("command name must not start with a dash")
        elif any(char.isspace() for char in name):
            raise ValueError("command name must not contain spaces")
        if not callable(factory):
            raise TypeError("command must have an options factory")
        self._name = name
        self._factory = factory
        self._help = ""
        self._options = None
        self._parser = None

    name = property(lambda self: self._name)
    help = property(lambda self: self._help)
    options = property(lambda self: self._options)
    parser = property(lambda self: self._parser)

    def reset(self):
        self._options = None
        self._parser = None

    def build(self, parser, /):
        """
        Run the factory and register the structure it returns on `parser`.
        """
        options = self._factory()
        if not callable(getattr(options, "add_arguments", None)):
            raise TypeError("command %r factory must return an object with add_arguments()" % self._name)
        parser.add_arguments(options)
        self._options = options
        self._parser = parser
        return parser

    def __repr__(self):
        return "command(name=%r, help=%r)" % (self._name, self._help)


class CommandConfig:
    def __init__(self, command, /):
        self._command = command

    @property
    def command(self):
        return self._command

    def help(self, help, /):
        if not isinstance(help, str):
            raise TypeError("command 'help' must be a string")
        self._command._help = help
        return self


__all__ = (
    "Command",
    "CommandConfig",
)
