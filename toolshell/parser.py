r"""
Raw token extraction and binding.

parse() walks an argv-like token list against a command schema and binds the
raw strings to fresh (cloned) Option/Argument instances. It only checks
syntax; types, required arguments and empty values are the dispatcher's
business (is_valid()).

Token forms
- switches: "--name", "--name=value", "--name:value", "-n", "-n value",
  "-n=value". A switch name must match r"--?[^\W\d_](-?[^\W_]+)*".
- "--" ends switch parsing: every following token is positional.
- "-" and negative numbers ("-5", "-0.25") are positional values.
- positionals: a token naming a subcommand (while none is selected) routes to
  it; otherwise it binds to the next declared argument. A multiple argument
  collects every remaining positional.
- "--help" (always) and "--version" (when the command is versioned) stop
  parsing at once and are reported through Binding.request.

Faults (all CommandParsingError subclasses)
- MalformedTokenError: "Malformed option '<token>'"
- UnrecognizedOptionError: "Unrecognized option '<token>'"
- UnexpectedValueError: "Unexpected value '<value>' for option '<name>'"
- MissingValueError: "Missing value for option '<name>'"
- UnrecognizedArgumentError: "Unrecognized command or argument '<token>'"
"""
import logging
import re
from collections import deque
from typing import NamedTuple

from .arguments import Arity
from .faults import *

logger = logging.getLogger(__name__)

HELP = "--help"
VERSION = "--version"


class Binding(NamedTuple):
    """
    result of parse(): the selected command and its bound declarations.

    request is None for a regular invocation, "help" or "version" when the
    matching implicit switch was given.
    """
    command: object
    options: tuple
    arguments: tuple
    request: str | None = None


class _State:
    """
    Internal: per-parse working set for the currently selected command.
    """

    def __init__(self, command, /):
        self.command = command
        self.options = tuple(option.clone() for option in command.options)
        self.arguments = tuple(argument.clone() for argument in command.arguments)
        self.switches = {name: option for option in self.options for name in option.names}
        self.pending = deque(self.arguments)
        self.routed = False

    def binding(self, request=None, /):
        return Binding(self.command, self.options, self.arguments, request)


def _is_switch(token):
    if token == "-" or not token.startswith("-"):
        return False
    try:
        float(token)
    except ValueError:
        return True
    return False


def _resolve_token(state, token, /):
    """
    split a switch token into (option, input, inline value or None).
    """
    match = re.fullmatch(r"(?P<input>--?[^\W\d_](-?[^\W_]+)*)([=:](?P<value>[^\r\n]*))?", token)
    if not match:
        raise MalformedTokenError(
            "Malformed option '%s'" % token,
            hint="use --name, --name=value or -n value",
            token=token,
        )
    input = match["input"]
    try:
        option = state.switches[input]
    except KeyError:
        raise UnrecognizedOptionError(
            "Unrecognized option '%s'" % token,
            hint="use --help to see the available options",
            token=token,
        ) from None
    return option, input, match["value"]


def _parse_switch(state, token, tokens, /):
    option, input, value = _resolve_token(state, token)

    if option.arity is Arity.NO_VALUE:
        if value is not None:
            raise UnexpectedValueError(
                "Unexpected value '%s' for option '%s'" % (value, input),
                hint="%s is a flag and takes no value" % input,
            )
        option.bind()
        return

    if value is None:
        if not tokens:
            raise MissingValueError(
                "Missing value for option '%s'" % input,
                hint="pass a value after %s" % input,
            )
        value = tokens.popleft()

    if option.arity is Arity.SINGLE_VALUE and option.has_value():
        raise UnexpectedValueError(
            "Unexpected value '%s' for option '%s'" % (value, input),
            hint="%s accepts a single value" % input,
        )
    option.bind(value)


def parse(command, tokens, /):
    """
    bind tokens to the schema of command (or of the subcommand they route to).

    parameters
    - command: a schema node exposing options, arguments, children (mapping
      name -> node) and version.
    - tokens: iterable of raw strings; empty strings are kept as values.

    returns
    - Binding(command, options, arguments, request).

    raises
    - CommandParsingError subclasses for malformed or unexpected tokens.
    """
    state = _State(command)
    tokens = deque(tokens)
    switching = True

    while tokens:
        token = tokens.popleft()

        if switching and token == HELP:
            logger.debug("help requested for %r", state.command.name)
            return state.binding("help")
        if switching and token == VERSION and state.command.version:
            logger.debug("version requested for %r", state.command.name)
            return state.binding("version")
        if switching and token == "--":
            switching = False
            continue

        if switching and _is_switch(token):
            _parse_switch(state, token, tokens)
        elif state.command.children and not state.routed and token in state.command.children:
            logger.debug("routing %r to command %r", state.command.name, token)
            state = _State(state.command.children[token])
            state.routed = True
        elif state.pending:
            argument = state.pending[0]
            argument.bind(token)
            if not argument.multiple:
                state.pending.popleft()
        else:
            raise UnrecognizedArgumentError(
                "Unrecognized command or argument '%s'" % token,
                hint="remove the extra value or use --help to see the expected usage",
                token=token,
            )

    return state.binding()


__all__ = (
    "HELP",
    "VERSION",
    "Binding",
    "parse",
)
