"""
Argbind help collaborator.

Descriptors
- ArgumentHelpResult: per-definition record handed to formatters: names,
  metavar, the usage fragment derived from the arity, raw help, required flag,
  command flag and the group metadata (GroupHelp).
- describe_argument(argument) / describe_command(command) build them; the
  parser exposes them through describe_arguments() / describe_argument(name).

Rendering
- HelpFormatter.format(parser, console) renders usage, description,
  positionals, options (grouped), commands and epilog with rich.
- Palette keys: usage-label, program-name, usage-section, description-section,
  epilog-section, group-label, group-note, argument-description, option-name,
  positional-name, metavar, choice, commands-title, commands-table, command,
  command-description, panel-title.
- Define a mapping named __styles__ in __main__ to override any palette entry;
  colorful=False suppresses styling; fancy=True wraps the help in a panel.

Usage fragments (metavar M)
    (1, 1) → "M"        (0, 1) → "[M]"        (0, ∞) → "[M ...]"
    (2, 2) → "M M"      (1, ∞) → "M [M ...]"  (1, 3) → "M [M {0..2}]"
"""
import math
from collections import defaultdict, deque, namedtuple

from rich.box import ROUNDED
from rich.console import Group
from rich.containers import Lines
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

GroupHelp = namedtuple(
    "GroupHelp",
    ("name", "title", "description", "is_exclusive", "is_required"),
    defaults=("", "", "", False, False),
)

ArgumentHelpResult = namedtuple(
    "ArgumentHelpResult",
    (
        "help_name",
        "short_name",
        "long_name",
        "metavar",
        "arguments",
        "help",
        "choices",
        "is_required",
        "is_command",
        "is_positional",
        "group",
    ),
    defaults=("", "", "", "", "", "", (), False, False, False, GroupHelp()),
)


def usage_fragment(metavar, minimum, maximum, /):
    """
    Render an arity as a usage fragment, e.g. (1, ∞) → "M [M ...]".
    """
    parts = [metavar] * minimum
    if maximum == math.inf:
        parts.append(f"[{metavar} ...]")
    elif maximum - minimum == 1:
        parts.append(f"[{metavar}]")
    elif maximum > minimum:
        parts.append(f"[{metavar} {{0..{maximum - minimum}}}]")
    return " ".join(parts)


def describe_argument(argument, /):
    if group := argument.group:
        group = GroupHelp(
            group.name,
            group.title,
            group.description or "",
            group.exclusive,
            group.required,
        )
    return ArgumentHelpResult(
        help_name=argument.help_name,
        short_name=argument.short_name or "",
        long_name=argument.long_name or "",
        metavar=argument.metavar,
        arguments=usage_fragment(argument.metavar, argument.min_args, argument.max_args)
        if argument.accepts_any_arguments() else "",
        help=argument.help,
        choices=argument.choices,
        is_required=argument.required,
        is_positional=argument.positional,
        group=group or GroupHelp(),
    )


def describe_command(command, /):
    return ArgumentHelpResult(
        help_name=command.name,
        long_name=command.name,
        help=command.help,
        is_command=True,
    )


class HelpFormatter:
    """
    Rich renderer of a parser's help.

    Parameters
    - colorful: bool, default True. When False every style is dropped.
    - fancy: bool, default False. Wrap the help in a rounded panel titled with
      the program name.
    """

    def __init__(self, colorful=True, fancy=False):
        self.colorful = bool(colorful)
        self.fancy = bool(fancy)

    def format(self, parser, console, /):
        config = parser.get_config()
        descriptions = parser.describe_arguments()

        styles = defaultdict(str, {
            "usage-label": "bold #00E6FF",
            "program-name": "bold #FF4D94",
            "usage-section": "bold #36C5F0",
            "description-section": "italic #A3A3A3",
            "epilog-section": "#737373",

            "group-label": "bold #FFFFFF",
            "group-note": "italic #737373",
            "argument-description": "#9CA3AF",

            "option-name": "bold #00E6FF",
            "positional-name": "bold #22C55E",
            "metavar": "bold #FFD600",
            "choice": "bold #FF4D94",

            "commands-title": "bold #FFFFFF",
            "commands-table": "#4B5563",
            "command": "bold #36C5F0",
            "command-description": "#9CA3AF",

            "panel-title": "bold #FF4D94",
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if self.colorful else ""

        def text(fragment, style=""):
            if isinstance(fragment, Text):
                return fragment if self.colorful else Text(fragment.plain)
            return Text(str(fragment), styler(style))

        def names(description):
            return Text(", ").join(
                text(name, "option-name") for name in (description.short_name, description.long_name) if name
            )

        def signature(description):
            if description.is_positional:
                return text(description.arguments or description.help_name, "positional-name")
            if not description.arguments:
                return names(description)
            return Text.assemble(names(description), " ", text(description.arguments, "metavar"))

        width = console.width - 4 * self.fancy
        renders = []

        # Usage line: explicit or synthesized.
        usage = Text()
        usage.append("usage", styler("usage-label")).append(":").append(" ")
        if config["usage"]:
            usage.append(text(config["usage"], "usage-section"))
        else:
            usage.append(text(parser.program, "program-name")).append(" ")
            offset = len(usage)

            inputs = deque()
            for description in descriptions:
                if description.is_command or description.is_positional:
                    continue
                head = text(description.short_name or description.long_name, "option-name")
                if description.arguments:
                    head = Text.assemble(head, " ", text(description.arguments, "metavar"))
                inputs.append(head if description.is_required else Text.assemble("[", head, "]"))
            for description in descriptions:
                if description.is_positional:
                    inputs.append(text(description.arguments, "positional-name"))
            if commands := [description.help_name for description in descriptions if description.is_command]:
                inputs.append(Text.assemble("{", text(",".join(commands), "command"), "}", " ..."))

            try:
                lines = Lines([inputs.popleft()])
            except IndexError:
                lines = Lines()
            while inputs:
                if len(lines[-1]) + 1 + len(input := inputs.popleft()) > width - offset:
                    lines.append(input)
                else:
                    lines[-1].append(Text(" ") + input)
            try:
                usage.append(lines.pop(0))
            except IndexError:
                pass
            for line in lines:
                usage.append("\n").append(" " * offset).append(line)
        renders.append(usage.append("\n"))

        if config["description"]:
            renders.append(text(config["description"], "description-section").append("\n"))

        # Sections: positionals, ungrouped options, then one per group in registration order.
        sections = {}
        for description in descriptions:
            if description.is_command:
                continue
            elif description.group.name:
                key = description.group.name
            elif description.is_positional:
                key = "\0positional"
            else:
                key = "\0options"
            sections.setdefault(key, []).append(description)

        padding = 2
        indent = 24
        for key in sorted(sections, key=lambda x: (not x.startswith("\0"), x != "\0positional")):
            members = sections[key]
            section = Text()
            match key:
                case "\0positional":
                    section.append(text("positional arguments", "group-label")).append(":")
                case "\0options":
                    section.append(text("options", "group-label")).append(":")
                case _:
                    group = members[0].group
                    section.append(text(group.title, "group-label")).append(":")
                    notes = [note for note, flag in (
                        ("mutually exclusive", group.is_exclusive), ("required", group.is_required)
                    ) if flag]
                    if notes:
                        section.append(" ").append(text("(" + ", ".join(notes) + ")", "group-note"))
                    if group.description:
                        section.append("\n").append(" " * padding)
                        section.append(text(group.description, "argument-description"))
            section.append("\n")

            for description in members:
                head = Text(" " * padding).append(signature(description))

                body = text(description.help, "argument-description")
                if description.choices:
                    choices = Text(", ").join(text(choice, "choice") for choice in description.choices)
                    body = Text.assemble(body, " " if body else "", "(choices: ", choices, ")")

                if body:
                    if len(head) >= indent - 1:
                        head.append("\n").append(" " * indent)
                    else:
                        head.append(" " * (indent - len(head)))
                    wrapped = body.wrap(console, max(width - indent, 8))
                    try:
                        head.append(wrapped.pop(0))
                    except IndexError:
                        pass
                    for line in wrapped:
                        head.append("\n").append(" " * indent).append(line)
                section.append(head).append("\n")
            renders.append(section)

        if commands := [description for description in descriptions if description.is_command]:
            table = Table(
                "name", "help",
                title=text("commands", "commands-title"),
                width=int(width * (2 / 3)),
                box=ROUNDED,
                style=styler("commands-table"),
                header_style=styler("commands-title"),
            )
            for description in commands:
                table.add_row(
                    text(description.help_name, "command"),
                    text(description.help, "command-description"),
                )
            renders.append(table)

        if config["epilog"]:
            renders.append(text(config["epilog"], "epilog-section").append("\n"))

        if isinstance(renders[-1], Text):
            renders[-1].rstrip()

        renderable = Group(*renders)
        if self.fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[", " ", f"{parser.program} HELP".upper(), " ", "]", style=styler("panel-title")),
                title_align="left",
            )

        console.print(renderable)


__all__ = (
    "GroupHelp",
    "ArgumentHelpResult",
    "usage_fragment",
    "describe_argument",
    "describe_command",
    "HelpFormatter",
)
