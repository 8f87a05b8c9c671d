"""
ToolShell: turns a tool object into a runnable command-line program.

Tool interface (duck typed)
- top-level tool: execute(context) -> int | None, and optionally
  declare() -> (options, arguments).
- subcommand tool: register(registrar), calling registrar.command(...) once
  per command. A tool providing register() is a subcommand tool even when it
  also provides execute().
- optional attributes: name, title, version, epilog. Keyword arguments given
  to ToolShell(...) win over them.

Example:
    >>> class Greeter:
    ...     title = "Greeter"
    ...     def declare(self):
    ...         return [], [Argument("who", "Who to greet", required=True)]
    ...     def execute(self, context):
    ...         context.console.print("Hello, %s!" % context.argument("who").value_as(str))
    >>> ToolShell(Greeter()).run(["World"])
    Hello, World!
    0
"""
import asyncio
import logging
import re
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console

from .config import Presentation, presentation as _presentation
from .dispatcher import *
from .faults import CommandParsingError, MalformedTokenError, trigger
from .utils import *

logger = logging.getLogger(__name__)


def _console(stream, /):
    return Console(file=stream, soft_wrap=True, highlight=False)


def _tokenize(argv, /):
    if argv is Unset:
        return sys.argv[1:]
    if isinstance(argv, str):
        try:
            return shlex.split(argv)
        except ValueError as exception:
            raise MalformedTokenError(
                "Malformed command line: %s" % exception,
                hint="close every quotation and escape sequence",
            ) from None
    if isinstance(argv, Iterable):
        tokens = list(argv)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("run() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("run() argument must be a string or an iterable of strings")


def _attribute(tool, name, override, /):
    return override if override is not Unset else getattr(tool, name, Unset)


def _declared(tool, /):
    declare = getattr(tool, "declare", None)
    if declare is None:
        return (), ()
    if not callable(declare):
        raise TypeError("tool 'declare' must be callable")
    declared = declare()
    try:
        options, arguments = declared
    except (TypeError, ValueError):
        raise TypeError("tool declare() must return an (options, arguments) pair") from None
    return coalesce(options, ()), coalesce(arguments, ())


class ToolShell:
    """
    Owns a tool's command tree, its output consoles and its dispatcher.

    Construction builds and checks the whole tree once; run() may then be
    called any number of times (each call binds fresh copies of the
    declarations).
    """

    def __init__(
            self,
            tool,
            /,
            name=Unset,
            title=Unset,
            *,
            version=Unset,
            epilog=Unset,
            show_help_on_empty=True,
            presentation=Unset,
            stdout=Unset,
            stderr=Unset
    ):
        """
        Parameters
        - tool: object implementing execute() or register() (see module doc).
        - name: program name shown in usage lines; defaults to tool.name, then
          the tool class name in kebab case.
        - title: headline of the help; defaults to tool.title, then the name.
        - version: enables --version; defaults to tool.version.
        - epilog: text printed (dim) at the bottom of the help.
        - show_help_on_empty: an invocation without tokens prints the help
          and exits with 1.
        - presentation: Presentation for help and fault rendering.
        - stdout / stderr: text streams; default to sys.stdout / sys.stderr
          as they are when the shell is built.

        Raises
        - TypeError when the tool implements neither execute() nor register().
        - TypeError/ValueError for invalid metadata or declarations.
        """
        if not isinstance(presentation, Presentation | Unset):
            raise TypeError("tool shell 'presentation' must be a presentation")
        self._presentation = presentation if presentation is not Unset else _presentation()
        self._console = _console(sys.stdout if stdout is Unset else stdout)
        self._error = _console(sys.stderr if stderr is Unset else stderr)

        name = _attribute(tool, "name", name)
        if name is Unset:
            name = re.sub(r"(?<!^)(?=[A-Z])", r"-", type(tool).__name__).lower()

        register = getattr(tool, "register", None)
        execute = getattr(tool, "execute", None)
        metadata = {
            "title": _attribute(tool, "title", title),
            "epilog": _attribute(tool, "epilog", epilog),
            "version": _attribute(tool, "version", version),
        }

        if callable(register):
            registrar = Registrar((name,))
            register(registrar)
            if not registrar.commands:
                raise ValueError("tool register() must register at least one command")
            root = Command.build(name, (name,), None, children=registrar.commands, **metadata)
        elif callable(execute):
            options, arguments = _declared(tool)
            root = Command.build(name, (name,), execute, options=options, arguments=arguments, **metadata)
        else:
            raise TypeError("tool must implement an execute() or a register() method")

        self._dispatcher = Dispatcher(
            root,
            console=self._console,
            error=self._error,
            show_help_on_empty=show_help_on_empty,
            presentation=self._presentation,
        )
        logger.debug("built tool shell %r with %d command(s)", name, len(root.children) or 1)

    name = property(lambda self: self._dispatcher.root.name)
    title = property(lambda self: self._dispatcher.root.title)
    version = property(lambda self: self._dispatcher.root.version)
    epilog = property(lambda self: self._dispatcher.root.epilog)
    commands = property(lambda self: self._dispatcher.root.children)
    presentation = property(lambda self: self._presentation)
    console = property(lambda self: self._console)
    error = property(lambda self: self._error)

    def run(self, argv=Unset, /):
        """
        run one invocation and return its exit code.

        - argv Unset: tokens are read from sys.argv[1:].
        - argv str: split shell-style with shlex.split. An unbalanced
          quotation is reported as a syntax fault (exit code 1).
        - argv iterable of str: used verbatim (empty strings are kept).
        """
        try:
            tokens = _tokenize(argv)
        except CommandParsingError as fault:
            trigger(fault, console=self._error, presentation=self._presentation, prog=self.name)
            return 1
        logger.debug("running %r with %r", self.name, tokens)
        return self._dispatcher.dispatch(tokens)

    async def run_async(self, argv=Unset, /):
        """
        run() on a worker thread; cancelling the awaiting task does not stop
        the invocation.
        """
        return await asyncio.to_thread(self.run, argv)

    def __rich_repr__(self):
        yield "name", self.name
        yield "title", self.title
        yield "version", self.version
        yield "commands", tuple(self.commands)

    def __repr__(self):
        return "tool-shell(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def invoke(tool, argv=Unset, /, **options):
    """
    Convenience runner.

    Wraps tool in a ToolShell built with options (unless it already is one)
    and runs it with argv. Returns the exit code.
    """
    if isinstance(tool, ToolShell):
        if options:
            raise TypeError("invoke() options cannot be applied to an existing tool shell")
        return tool.run(argv)
    return ToolShell(tool, **options).run(argv)


__all__ = (
    "ToolShell",
    "invoke",
)
