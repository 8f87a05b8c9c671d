"""
Help and version rendering.

Layout of render_help()
    <title> <version>

    Usage: <route> [command] [options] <arg> [arg] <args>...

    Arguments:
      <name>            <description><badge>
    Options:
      -o|--option <v>   <description><badge>
      --help            Show help information.
      --version         Show version information.
    Commands:
      <name>            <description>

    <epilog>

Hidden options and arguments are left out. Styling comes from the given
Presentation (see config.DEFAULT_STYLES for the palette keys).
"""
from rich.console import Group
from rich.table import Table
from rich.text import Text

from .arguments import Arity
from .config import presentation as _presentation
from .parser import HELP, VERSION


def _heading(command, styler, /):
    heading = Text(command.title or command.name, styler("title"))
    if command.version:
        heading.append(" ").append(command.version, styler("version"))
    return heading


def _usage(command, styler, /):
    usage = Text.assemble(Text("Usage:", styler("usage-label")), " ")
    usage.append(" ".join(command.route), styler("program-name"))
    if command.children:
        usage.append(" [command]")
    usage.append(" [options]")
    for argument in command.arguments:
        if argument.hidden:
            continue
        name = argument.name + ("..." if argument.multiple else "")
        usage.append(" ").append("<%s>" % name if argument.required else "[%s]" % name, styler("argument-name"))
    return usage


def _switch(option, /):
    if option.arity is Arity.NO_VALUE or option.valuename is not None:
        return option.template
    return "%s <value>" % option.template


def _section(label, rows, styler, /):
    table = Table.grid(padding=(0, 3))
    table.add_column(no_wrap=True)
    table.add_column()
    for name, description in rows:
        table.add_row(Text.assemble("  ", name), description)
    return Group(Text(label, styler("section-label")), table)


def render_help(console, command, /, *, presentation=None):
    """
    print the help of a command node on console.

    parameters
    - console: rich Console (stdout of the shell).
    - command: dispatcher Command node (title, version, route, options,
      arguments, children, epilog).
    - presentation: Presentation; None uses the process default.
    """
    settings = presentation or _presentation()
    styler = settings.style

    renders = [_heading(command, styler), Text(), _usage(command, styler)]

    if arguments := [argument for argument in command.arguments if not argument.hidden]:
        renders.append(Text())
        renders.append(_section("Arguments:", [
            (Text(argument.name, styler("argument-name")), argument.description)
            for argument in arguments
        ], styler))

    rows = [
        (Text(_switch(option), styler("option-name")), option.description)
        for option in command.options
        if not option.hidden
    ]
    rows.append((Text(HELP, styler("option-name")), Text("Show help information.", styler("description"))))
    if command.version:
        rows.append((Text(VERSION, styler("option-name")), Text("Show version information.", styler("description"))))
    renders.append(Text())
    renders.append(_section("Options:", rows, styler))

    if command.children:
        renders.append(Text())
        renders.append(_section("Commands:", [
            (Text(child.name, styler("command-name")), Text(child.descr or child.title or "", styler("description")))
            for child in command.children.values()
        ], styler))
        renders.append(Text())
        renders.append(Text(
            "Use \"%s [command] --help\" for more information about a command." % " ".join(command.route),
            styler("description"),
        ))

    if command.epilog:
        renders.append(Text())
        renders.append(Text(command.epilog, styler("epilog")))

    console.print(Group(*renders))


def render_version(console, command, /, *, presentation=None):
    """
    print "<title> <version>" on console.
    """
    settings = presentation or _presentation()
    console.print(_heading(command, settings.style))


__all__ = (
    "render_help",
    "render_version",
)
