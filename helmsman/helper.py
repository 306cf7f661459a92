"""
Helmsman help rendering.

Builds the help screen of a command as a rich renderable; rich owns column
widths and wrapping. Sections, in order: usage, description (with argument
descriptions when declared), options (the help flags last), commands (hidden
children omitted, the implicit help command last).
"""
import io
import json

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .utils import Unset


def usage(command, /):
    """
    usage line for a command, e.g. "Usage: git remote|rm [options] [command] <name>".
    """
    names = [step.name() for step in command.path[:-1]]
    names.append(command.name() + ("|" + command.alias() if command.alias() else ""))
    return "Usage: %s %s" % (" ".join(names), command.usage())


def _table():
    table = Table.grid(padding=(0, 2))
    table.add_column(no_wrap=True)
    table.add_column()
    return table


def _row(table, term, description):
    # cells are literal text, brackets in "[type]" are not markup
    table.add_row(Text(term), Text(description))


def _options(command):
    table = _table()
    for option in command.options:
        description = option.description
        if not option.negate and option.default is not Unset:
            description += " (default: %s)" % json.dumps(option.default, default=repr)
        _row(table, option.flags, description.strip())
    flags, description = command.help_flags()
    _row(table, flags, description)
    return table


def _commands(command):
    table = _table()
    for child in command.commands:
        if child.hidden:
            continue
        spelling = child.name()
        if child.alias():
            spelling += "|" + child.alias()
        if child.options:
            spelling += " [options]"
        if child.spec:
            spelling += " " + " ".join(argument.spelling for argument in child.spec)
        _row(table, spelling, child.description() or "")
    if command.has_implicit_help_command():
        _row(table, *command.help_command())
    return table


def render(command, /):
    """
    build the help renderable for a command.
    """
    sections = [Text(usage(command)), Text("")]

    if description := command.description():
        sections += [Text(description), Text("")]
        if (arguments := command.arguments_description()) and command.spec:
            table = _table()
            for argument in command.spec:
                _row(table, argument.name, arguments.get(argument.name, ""))
            sections += [Text("Arguments:"), Text(""), table, Text("")]

    sections += [Text("Options:"), _options(command), Text("")]

    if command.commands or command.has_implicit_help_command():
        sections += [Text("Commands:"), _commands(command), Text("")]

    return Group(*sections)


def plain(command, /):
    """
    render the help screen of a command to plain text.
    """
    console = Console(file=io.StringIO(), color_system=None, highlight=False)
    console.print(render(command))
    return console.file.getvalue()


__all__ = (
    "usage",
    "render",
    "plain",
)
