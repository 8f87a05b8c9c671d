"""
Toolshell faults (invocation-time errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every invocation-time
  fault, grouped by domain (syntax, validation, execution).
- CommandException: base type carrying a message plus rendering options
  (code, title, hint, presentation, prog) and knowing how to render itself.
- ValidationError: exception group bundling the validation categories of one
  invocation ("Invalid option(s)." / "Missing or invalid argument(s).").
- DelegatedCommandError: wraps an exception raised by a user action.
- trigger(): central entry point that renders a fault on a rich console.

Rendering
- Plain (default): one line. Syntax faults show the parser message as-is,
  validation faults show the categories followed by the help hint, execution
  faults show "<ExceptionKind>: <message>".
- Fancy (Presentation(fancy=True)): a rich panel titled
  "[ prog — code | title ]" holding the message and the hint.
- A host program may remap codes with a __codes__ mapping and restyle with
  __styles__ in __main__.

Construction errors (bad declarations) are not faults: they are raised as
TypeError/ValueError at setup time and never rendered here.
"""
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .config import presentation as _presentation
from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - syntax (1111x/1112x): MALFORMED_TOKEN, UNRECOGNIZED_OPTION,
      UNEXPECTED_VALUE, MISSING_VALUE, UNRECOGNIZED_ARGUMENT
    - validation (1113x): INVALID_OPTIONS, INVALID_ARGUMENTS
    - execution (1114x): DELEGATED_ERROR
    """
    # --- syntax errors ---
    MALFORMED_TOKEN             = 11111
    UNRECOGNIZED_OPTION         = 11112
    UNEXPECTED_VALUE            = 11113
    MISSING_VALUE               = 11114
    UNRECOGNIZED_ARGUMENT       = 11121

    # --- validation errors ---
    INVALID_OPTIONS             = 11131
    INVALID_ARGUMENTS           = 11132

    # --- execution errors ---
    DELEGATED_ERROR             = 11141

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _fancy(fault, message, options, /):
    settings = options.get("presentation") or _presentation()
    main = __import__("__main__")
    prog = Text(str(getattr(main, "__prog__", options.get("prog", ""))), settings.style("program-name"))
    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        Text(code.normalize() if (code := options.get("code")) else "-", settings.style("code")),
        " | ",
        Text(options["title"].title(), settings.style("error-title")),
        " ]"
    )
    body = [Text(message, settings.style("error-message"))]
    if hint := options.get("hint"):
        body.append(Text.assemble(Text(" → ", settings.style("hint-arrow")), Text(hint, settings.style("hint"))))
    return Panel(Group(*body), title=header, title_align="left")


class CommandException(Exception):
    """
    base class of every invocation-time fault.

    options (all optional)
    - code: FaultCode; title: short label; hint: one actionable sentence.
    - presentation: Presentation used to render; prog: program name.
    """
    __faultcode__ = Unset
    __title__ = "command error"

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "code": self.__faultcode__,
            "title": self.__title__,
        } | options)

    @property
    def code(self):
        return self.options["code"]

    @property
    def hint(self):
        return self.options.get("hint")

    def __str__(self):
        return self.message

    def __rich__(self):
        settings = self.options.get("presentation") or _presentation()
        if settings.fancy:
            return _fancy(self, self.message, self.options)
        return Text(self.message, settings.style("error-message"))

    def __trigger__(self):
        self.options["console"].print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class CommandParsingError(CommandException):
    """
    raised by the tokenizer for malformed or unexpected tokens.
    """
    __title__ = "syntax error"


class MalformedTokenError(CommandParsingError):
    __faultcode__ = FaultCode.MALFORMED_TOKEN
    __title__ = "malformed option"


class UnrecognizedOptionError(CommandParsingError):
    __faultcode__ = FaultCode.UNRECOGNIZED_OPTION
    __title__ = "unrecognized option"


class UnexpectedValueError(CommandParsingError):
    __faultcode__ = FaultCode.UNEXPECTED_VALUE
    __title__ = "unexpected value"


class MissingValueError(CommandParsingError):
    __faultcode__ = FaultCode.MISSING_VALUE
    __title__ = "missing value"


class UnrecognizedArgumentError(CommandParsingError):
    __faultcode__ = FaultCode.UNRECOGNIZED_ARGUMENT
    __title__ = "unrecognized argument"


class InvalidOptionsError(CommandException):
    __faultcode__ = FaultCode.INVALID_OPTIONS
    __title__ = "invalid options"

    def __init__(self, message="Invalid option(s).", /, **options):
        super().__init__(message, **options)


class InvalidArgumentsError(CommandException):
    __faultcode__ = FaultCode.INVALID_ARGUMENTS
    __title__ = "invalid arguments"

    def __init__(self, message="Missing or invalid argument(s).", /, **options):
        super().__init__(message, **options)


class DelegatedCommandError(CommandException):
    """
    an exception escaped a user action; rendered as "<ExceptionKind>: <message>".
    """
    __faultcode__ = FaultCode.DELEGATED_ERROR
    __title__ = "command failed"

    def __init__(self, exception, /, **options):
        if not isinstance(exception, BaseException):
            raise TypeError("DelegatedCommandError() argument must be an exception")
        self.exception = exception
        super().__init__("%s: %s" % (type(exception).__name__, exception), **options)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.exception, **{**self.options, **overrides})


class ValidationError(ExceptionGroup):
    """
    every validation category that failed in one invocation.

    plain rendering joins the category messages and appends the hint on a
    single line, e.g. "Invalid option(s). Use --help for more information."
    """

    def __new__(cls, exceptions, /, **options):
        return super().__new__(cls, "validation failed", tuple(exceptions))

    def __init__(self, exceptions, /, **options):
        super().__init__("validation failed", tuple(exceptions))
        self.options = MappingProxyType({"hint": "Use --help for more information."} | options)

    @property
    def message(self):
        return " ".join(exception.message for exception in self.exceptions)

    @property
    def hint(self):
        return self.options["hint"]

    def __str__(self):
        return "%s %s" % (self.message, self.hint)

    def __rich__(self):
        settings = self.options.get("presentation") or _presentation()
        if settings.fancy:
            code = self.exceptions[0].code if len(self.exceptions) == 1 else FaultCode.INVALID_ARGUMENTS
            return _fancy(self, self.message, {
                "code": code,
                "title": "validation error",
            } | self.options)
        return Text.assemble(
            Text(self.message, settings.style("error-message")),
            " ",
            Text(self.hint, settings.style("hint")),
        )

    def __trigger__(self):
        self.options["console"].print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    render a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) and must
      include the rich console to print on.

    typical options
    - console, presentation, prog, and any context a renderer may want to show.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    if "console" not in options:
        raise TypeError("trigger() requires a 'console' option")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "CommandException",
    "CommandParsingError",
    "MalformedTokenError",
    "UnrecognizedOptionError",
    "UnexpectedValueError",
    "MissingValueError",
    "UnrecognizedArgumentError",
    "InvalidOptionsError",
    "InvalidArgumentsError",
    "DelegatedCommandError",
    "ValidationError",
    "trigger",
)
