"""
Command records, registration and the validate-then-execute dispatcher.

A tool is described by a tree of Command records: the root carries the tool
name, title, version and epilog; a top-level tool puts its action and
declarations on the root, a subcommand tool registers one child per command
through a Registrar. The tree is built once and never mutated; every
invocation works on cloned declarations (see parser.parse).

Dispatcher.dispatch() drives one invocation through

    IDLE -> VALIDATING -> EXECUTING -> DONE
                 |             |
                 +--> FAILED <-+

and returns the process exit code.
"""
import logging
import re
from collections.abc import Iterable
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, NamedTuple

from .arguments import *
from .config import presentation as _presentation
from .faults import *
from .helper import *
from .parser import *
from .utils import *

logger = logging.getLogger(__name__)


def _sanitize_text(owner, field, value, /):
    if value is Unset or value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{owner} {field!r} must be a string")
    if not (value := value.strip()):
        raise ValueError(f"{owner} {field!r} cannot be empty")
    return value


def _sanitize_declarations(owner, options, arguments, /, *, reserved):
    """
    Internal: validate the options and arguments of one command.

    - options must be Option instances with globally unique aliases that do
      not shadow the implicit switches (reserved).
    - arguments must be Argument instances with unique names; only the last
      one may be multiple.
    """
    if isinstance(options, str) or not isinstance(options, Iterable):
        raise TypeError(f"{owner} 'options' must be an iterable of options")
    if isinstance(arguments, str) or not isinstance(arguments, Iterable):
        raise TypeError(f"{owner} 'arguments' must be an iterable of arguments")
    options = tuple(options)
    arguments = tuple(arguments)

    seen = set()
    for option in options:
        if not isinstance(option, Option):
            raise TypeError(f"{owner} options must be options, not {type(option).__name__}")
        for name in option.names:
            if name in reserved:
                raise ValueError(f"{owner} option {name!r} is reserved")
            if name in seen:
                raise ValueError(f"{owner} option {name!r} is declared more than once")
            seen.add(name)

    seen = set()
    for index, argument in enumerate(arguments):
        if not isinstance(argument, Argument):
            raise TypeError(f"{owner} arguments must be arguments, not {type(argument).__name__}")
        if argument.name in seen:
            raise ValueError(f"{owner} argument {argument.name!r} is declared more than once")
        if argument.multiple and index != len(arguments) - 1:
            raise ValueError(f"{owner} multiple argument {argument.name!r} must be the last one")
        seen.add(argument.name)

    return options, arguments


class Command(NamedTuple):
    """
    immutable node of a tool's command tree.

    - callback: the action, callable(context) -> int | None; None for the
      root of a subcommand tool (routing only).
    - route: program name followed by the command names leading here.
    - children: registered subcommands by name (root of a subcommand tool).
    """
    name: str
    route: tuple[str, ...]
    callback: Callable[..., Any] | None
    title: str | None = None
    descr: str | None = None
    epilog: str | None = None
    version: str | None = None
    options: tuple = ()
    arguments: tuple = ()
    children: Mapping[str, "Command"] = MappingProxyType({})

    @classmethod
    def build(
            cls,
            name,
            route,
            callback,
            /,
            *,
            title=Unset,
            descr=Unset,
            epilog=Unset,
            version=Unset,
            options=(),
            arguments=(),
            children=MappingProxyType({})
    ):
        """
        validate every field and return a new record.

        raises TypeError/ValueError for a malformed name, a non-callable
        callback, blank texts or clashing declarations.
        """
        if not isinstance(name, str):
            raise TypeError("command 'name' must be a string")
        elif not re.fullmatch(r"[^\W\d][\w.-]*", name):
            raise ValueError(f"command name {name!r} must start with a letter and hold no whitespace")
        if callback is not None and not callable(callback):
            raise TypeError(f"command {name!r} callback must be callable")

        owner = "command %r" % name
        version = _sanitize_text(owner, "version", version)
        options, arguments = _sanitize_declarations(
            owner,
            options,
            arguments,
            reserved={HELP, VERSION} if version else {HELP},
        )
        return cls(
            name,
            tuple(route),
            callback,
            _sanitize_text(owner, "title", title),
            _sanitize_text(owner, "descr", descr),
            _sanitize_text(owner, "epilog", epilog),
            version,
            options,
            arguments,
            MappingProxyType(dict(children)),
        )


class Registrar:
    """
    collects the commands of a subcommand tool.

    Handed to tool.register(registrar). Both forms are supported:

        registrar.command("build", build, title="Build", options=[...])

        @registrar.command("clean", descr="Remove build outputs")
        def clean(context): ...
    """

    def __init__(self, route, /):
        self._route = tuple(route)
        self._commands = {}

    @property
    def commands(self):
        return MappingProxyType(self._commands)

    def command(
            self,
            name,
            callback=Unset,
            /,
            *,
            title=Unset,
            descr=Unset,
            epilog=Unset,
            options=(),
            arguments=()
    ):
        """
        register a named command; returns the callback (or a decorator).

        raises ValueError when the name is already registered.
        """
        @rename("command")
        def wrapper(callback, /):
            if name in self._commands:
                raise ValueError(f"command {name!r} is already registered")
            self._commands[name] = Command.build(
                name,
                self._route + (name,),
                callback,
                title=title,
                descr=descr,
                epilog=epilog,
                options=options,
                arguments=arguments,
            )
            logger.debug("registered command %r", name)
            return callback

        if callback is Unset:
            return wrapper
        if callback is None:
            raise TypeError(f"command {name!r} callback must be callable")
        return wrapper(callback)


class Context:
    """
    what an action receives: the selected command name, its bound
    declarations and the output streams of the shell.
    """

    def __init__(self, name, options, arguments, /, *, console, error):
        self._name = name
        self._options = tuple(options)
        self._arguments = tuple(arguments)
        self._console = console
        self._error = error

    name = property(lambda self: self._name)
    options = property(lambda self: self._options)
    arguments = property(lambda self: self._arguments)
    console = property(lambda self: self._console)
    error = property(lambda self: self._error)

    @property
    def out(self):
        return self._console.file

    @property
    def err(self):
        return self._error.file

    def option(self, alias, /):
        """
        bound option by any of its aliases; KeyError when undeclared.
        """
        for option in self._options:
            if alias in option.names:
                return option
        raise KeyError(alias)

    def argument(self, name, /):
        """
        bound argument by name; KeyError when undeclared.
        """
        for argument in self._arguments:
            if argument.name == name:
                return argument
        raise KeyError(name)

    def __repr__(self):
        return "context(name=%r, options=%r, arguments=%r)" % (self._name, self._options, self._arguments)


class State(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    EXECUTING = "executing"
    DONE = "done"
    FAILED = "failed"


class Dispatcher:
    """
    validates an invocation and runs the selected action.

    Exit codes
    - 0: help or version requested, or the action returned 0/None.
    - 1: help shown for an empty invocation or a missing command, syntax
      fault, validation failure, or an exception escaping the action.
    - anything else the action returns.
    """

    def __init__(self, root, /, *, console, error, show_help_on_empty=True, presentation=Unset):
        if not isinstance(root, Command):
            raise TypeError("dispatcher root must be a command")
        self._root = root
        self._console = console
        self._error = error
        self._show_help_on_empty = bool(show_help_on_empty)
        self._presentation = coalesce(presentation) or _presentation()

    root = property(lambda self: self._root)
    presentation = property(lambda self: self._presentation)

    def _transition(self, state, target, /):
        logger.debug("%s: %s -> %s", self._root.name, state.value, target.value)
        return target

    def _fault(self, fault, command, /):
        trigger(
            fault,
            console=self._error,
            presentation=self._presentation,
            prog=" ".join(command.route),
        )

    def _validate(self, binding, /):
        faults = []
        if not all(option.is_valid() for option in binding.options):
            faults.append(InvalidOptionsError())
        if not all(argument.is_valid() for argument in binding.arguments):
            faults.append(InvalidArgumentsError())
        return faults

    def dispatch(self, tokens, /):
        """
        run one invocation from a list of raw tokens and return its exit code.
        """
        tokens = list(tokens)
        state = State.IDLE

        if not tokens and self._show_help_on_empty:
            render_help(self._console, self._root, presentation=self._presentation)
            return 1

        state = self._transition(state, State.VALIDATING)
        try:
            binding = parse(self._root, tokens)
        except CommandParsingError as fault:
            self._transition(state, State.FAILED)
            self._fault(fault, self._root)
            return 1

        command = binding.command
        match binding.request:
            case "help":
                render_help(self._console, command, presentation=self._presentation)
                self._transition(state, State.DONE)
                return 0
            case "version":
                render_version(self._console, command, presentation=self._presentation)
                self._transition(state, State.DONE)
                return 0

        if command.callback is None:
            render_help(self._console, command, presentation=self._presentation)
            self._transition(state, State.FAILED)
            return 1

        if faults := self._validate(binding):
            self._transition(state, State.FAILED)
            self._fault(ValidationError(faults), command)
            return 1

        state = self._transition(state, State.EXECUTING)
        context = Context(
            command.name,
            binding.options,
            binding.arguments,
            console=self._console,
            error=self._error,
        )
        try:
            code = command.callback(context)
            if code is not None and not isinstance(code, int):
                raise TypeError(f"command {command.name!r} must return an int or None, not {type(code).__name__}")
        except Exception as exception:
            logger.debug("command %r raised", command.name, exc_info=True)
            self._transition(state, State.FAILED)
            self._fault(DelegatedCommandError(exception), command)
            return 1

        code = 0 if code is None else int(code)
        logger.debug("command %r exited with %d", command.name, code)
        self._transition(state, State.DONE)
        return code


__all__ = (
    "Command",
    "Registrar",
    "Context",
    "State",
    "Dispatcher",
)
