r"""
Toolshell option and argument declarations.

Overview
- Option[_T]: named flag with one or more aliases (e.g., -o/--option) and an
  arity: Arity.NO_VALUE (presence only), Arity.SINGLE_VALUE or
  Arity.MULTIPLE_VALUE.
- Argument[_T]: positional parameter bound by declaration order, with required
  and empty-allowed rules; the last argument of a command may be multiple.
- Template: parsed option template ("-o|--option <value>").

Both declarations share one shape
- type: a coercion.ValueType every bound raw string must convert to.
- default / defaults: raw default string(s), used when nothing was bound.
  The two are mutually exclusive.
- bind(*values): record raw values (done by the tokenizer at invocation time).
- is_valid(), value_as(), values_as(): validate and read coerced values.
- clone(): an unbound copy of the same declaration (one per invocation).

Memoization
- The first call to is_valid()/value_as()/values_as() freezes the coerced
  results for the lifetime of the instance: values bound afterwards are kept
  in `values` but never change what the accessors return.

Presentation
- description: the descr with a badge appended when the Presentation given at
  construction (or the process default) enables badges:
  • options: "§" for single-value, "+" for multiple-value, none for no-value.
  • arguments: "*" when required.

Validation highlights (construction errors)
- Option names must match r"--?[^\W\d_](-?[^\W_]+)*" and be unique.
- NO_VALUE options accept no default(s) and no type other than STRING.
- default and defaults cannot be combined.
- descr, when provided, must be a non-empty string.

Quick example:
    >>> from toolshell import Option, Argument, Arity, ValueType
    >>> threads = Option("-t|--threads <count>", "Worker threads", Arity.SINGLE_VALUE,
    ...                  type=ValueType.INT32, default="4")
    >>> source = Argument("source", "Input file", required=True)
"""
import builtins
import copy
import functools
import operator
import re
from enum import Enum
from typing import NamedTuple

from rich.text import Text

from .coercion import *
from .config import *
from .utils import *


class Arity(Enum):
    """
    how many values an option takes.
    """
    NO_VALUE = "none"
    SINGLE_VALUE = "single"
    MULTIPLE_VALUE = "multiple"


class Template(NamedTuple):
    """
    parsed option template.

    grammar: aliases separated by '|' or whitespace, plus an optional value
    name in angle brackets, e.g. "-o|--option <value>".
    """
    names: tuple[str, ...]
    valuename: str | None

    @classmethod
    def parse(cls, template, /):
        """
        parse and validate an option template.

        raises
        - TypeError when template is not a string.
        - ValueError when it is empty, holds a malformed or duplicated alias,
          more than one value name, or no alias at all.
        """
        if not isinstance(template, str):
            raise TypeError("option 'template' must be a string")
        elif not (template := template.strip()):
            raise ValueError("option 'template' cannot be empty")

        names = []
        valuename = None
        for part in filter(None, re.split(r"[|\s]+", template)):
            if match := re.fullmatch(r"<(?P<name>[^<>\s]+)>", part):
                if valuename is not None:
                    raise ValueError("option 'template' cannot declare more than one value name")
                valuename = match["name"]
            elif not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", part):
                raise ValueError("option names must be valid shell-style option names (unicodes are allowed)")
            elif part in names:
                raise ValueError("option names cannot contain duplicates")
            else:
                names.append(part)

        if not names:
            raise TypeError("option must specify at least one name")
        return cls(tuple(names), valuename)

    def __str__(self):
        names = "|".join(self.names)
        return names if self.valuename is None else "%s <%s>" % (names, self.valuename)


class ArgumentType(type):
    """
    Metaclass giving declarations stable introspection.

    Responsibilities
    - __typename__ derived from the class name (camel-case split with hyphens),
      used in construction error messages.
    - Read-only properties (via mirror()) for every name in __introspectable__.
    - Stable __repr__/__rich_repr__ built from __introspectable__.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ()) if name not in namespace
            },
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize the fields every declaration carries.

    - descr: Unset | str; trimmed, must be non-empty when provided.
    - type: must be a ValueType.
    - default/defaults: mutually exclusive; each default must be a string.
      Both collapse into a 'defaults' tuple.
    - presentation: Unset | Presentation; Unset resolves to the process default.

    Mutates metadata in place.
    """
    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(metadata["type"], ValueType):
        raise TypeError(f"{cls.__typename__} 'type' must be a value type")

    default = metadata.pop("default")
    defaults = metadata["defaults"]
    if default is not Unset and defaults is not Unset:
        raise TypeError(f"{cls.__typename__} cannot specify both 'default' and 'defaults'")
    if default is not Unset:
        defaults = (default,)
    if isinstance(defaults, str):
        raise TypeError(f"{cls.__typename__} 'defaults' must be an iterable of strings, not a string")
    defaults = tuple(coalesce(defaults, ()))
    if not all(isinstance(default, str) for default in defaults):
        raise TypeError(f"{cls.__typename__} defaults must be strings")
    metadata["defaults"] = defaults

    if not isinstance(settings := metadata["presentation"], Presentation | Unset):
        raise TypeError(f"{cls.__typename__} 'presentation' must be a presentation")
    metadata["presentation"] = settings if settings is not Unset else presentation()


def _badge(descr, glyph, style, /):
    description = Text(coalesce(descr, "") or "")
    if glyph:
        description.append(glyph, style)
    return description


class _Declaration:
    """
    Internal: binding, coercion cache and accessors shared by Option and Argument.
    """

    @property
    def default(self):
        """
        first default value, or None.
        """
        return next(iter(self._defaults), None)

    @property
    def description(self):
        """
        help description with its badge (a fresh rich Text).
        """
        return self._description.copy()

    def _coerce(self):
        # first read wins: computed once from bound values, else defaults
        if self._coerced is Unset:
            self._coerced = tuple(coerce(value, self._type) for value in (self._values or self._defaults))
        return self._coerced

    def has_value(self):
        return bool(self._values)

    def values_as(self, kind=object, /):
        """
        return every coerced value as a tuple (bound values, else defaults).

        raises CoercionError if any value failed to convert, and TypeError if
        a converted value is not an instance of kind.
        """
        values = unwrap(self._coerce())
        for value in values:
            if value is not None and not isinstance(value, kind):
                raise TypeError(f"{type(self).__typename__} value {value!r} is not of type {kind.__name__!r}")
        return values

    def value_as(self, kind=object, /):
        """
        return the first coerced value, or None when there is none.
        """
        return next(iter(self.values_as(kind)), None)

    def clone(self):
        """
        return an unbound copy of this declaration.
        """
        clone = copy.copy(self)
        clone._values = []
        clone._coerced = Unset
        return clone


class Option[_T](_Declaration, metaclass=ArgumentType):
    """
    Named flag declaration.

    Option[_T] declares the aliases, arity, value type and defaults of a
    command-line flag. The tokenizer binds raw strings to it at invocation
    time; the dispatcher asks is_valid() before any action runs.

    Properties
    - The names listed in __introspectable__ are exposed as read-only
      attributes; containers are returned as copies.
    """

    __introspectable__ = (
        "template",
        "names",
        "valuename",
        "descr",
        "arity",
        "type",
        "defaults",
        "values",
        "hidden",
    )

    def __init__(
            self,
            template,
            descr=Unset,
            /,
            arity=Arity.NO_VALUE,
            type=ValueType.STRING,
            default=Unset,
            defaults=Unset,
            *,
            hidden=False,
            presentation=Unset
    ):
        """
        Construct an Option declaration.

        Parameters
        - template: str
          Aliases separated by '|' and an optional value name,
          e.g. "-o|--option <value>".
        - descr: Unset | str
          Short help description.
        - arity: Arity
          NO_VALUE (default), SINGLE_VALUE or MULTIPLE_VALUE.
        - type: ValueType
          Type every bound value must convert to (STRING by default).
        - default / defaults: str / Iterable[str]
          Raw default value(s) used when nothing is bound; mutually exclusive.
        - hidden: bool
          Suppress from help output.
        - presentation: Unset | Presentation
          Controls the arity badge; Unset uses the process default.

        Raises
        - TypeError/ValueError for malformed metadata, a NO_VALUE option with
          defaults or a non-string type, or both default and defaults.
        """
        # None stands for an absent default
        default = Unset if default is None else default
        defaults = Unset if defaults is None else defaults
        metadata = {
            "template": template,
            "descr": descr,
            "arity": arity,
            "type": type,
            "default": default,
            "defaults": defaults,
            "hidden": bool(hidden),
            "presentation": presentation,
        }
        if not isinstance(arity, Arity):
            raise TypeError(f"{builtins.type(self).__typename__} 'arity' must be an arity")
        if arity is Arity.NO_VALUE:
            if default is not Unset or defaults is not Unset:
                raise TypeError(f"{builtins.type(self).__typename__} cannot specify 'default' or 'defaults' for no-value options")
            if type is not ValueType.STRING:
                raise TypeError(f"{builtins.type(self).__typename__} cannot specify a 'type' other than string for no-value options")
        _sanitize_metadata(builtins.type(self), metadata)

        parsed = Template.parse(template)
        metadata["template"] = str(parsed)
        metadata["names"] = parsed.names
        metadata["valuename"] = parsed.valuename

        presentation = metadata.pop("presentation")
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        match arity:
            case Arity.SINGLE_VALUE:
                glyph, style = SINGLE_VALUE_BADGE, presentation.style("single-badge")
            case Arity.MULTIPLE_VALUE:
                glyph, style = MULTIPLE_VALUE_BADGE, presentation.style("multiple-badge")
            case _:
                glyph, style = None, ""
        self._description = _badge(self.descr, glyph if presentation.badges else None, style)
        self._values = []
        self._coerced = Unset

    @property
    def longname(self):
        """
        the first long alias ("--name"), else the first alias.
        """
        return next((name for name in self._names if name.startswith("--")), self._names[0])

    def bind(self, *values):
        """
        record raw values for this option.

        - NO_VALUE: takes no values; each call records one occurrence.
        - SINGLE_VALUE: accepts exactly one value over the instance lifetime.
        - MULTIPLE_VALUE: appends every value.
        """
        if self._arity is Arity.NO_VALUE:
            if values:
                raise ValueError(f"{type(self).__typename__} {self.longname!r} does not take a value")
            self._values.append(None)
            return self
        if not values:
            raise ValueError(f"{type(self).__typename__} {self.longname!r} requires a value")
        if self._arity is Arity.SINGLE_VALUE and len(self._values) + len(values) > 1:
            raise ValueError(f"{type(self).__typename__} {self.longname!r} accepts a single value")
        for value in values:
            if not isinstance(value, str | None):
                raise TypeError(f"{type(self).__typename__} values must be strings")
        self._values.extend(values)
        return self

    def _coerce(self):
        # presence markers of no-value options are never coerced
        if self._arity is Arity.NO_VALUE:
            self._coerced = ()
        return super()._coerce()

    def is_valid(self):
        """
        whether every bound value (or default) converts to the declared type.

        no-value options are always valid.
        """
        if self._arity is Arity.NO_VALUE:
            return True
        return all(result.ok for result in self._coerce())

    @property
    def values(self):
        """
        bound raw values (empty for no-value options).
        """
        if self._arity is Arity.NO_VALUE:
            return ()
        return tuple(self._values)

    @property
    def count(self):
        """
        number of times the option was given on the command line.
        """
        return len(self._values)


class Argument[_T](_Declaration, metaclass=ArgumentType):
    """
    Positional parameter declaration.

    Arguments are bound in declaration order. A required argument must be
    bound; unless empty-allowed, none of its values may be empty. Only the
    last argument of a command may be multiple (collect every remaining
    positional token); the dispatcher enforces that when commands register.
    """

    __introspectable__ = (
        "name",
        "descr",
        "required",
        "empty",
        "multiple",
        "type",
        "defaults",
        "values",
        "hidden",
    )

    def __init__(
            self,
            name,
            descr=Unset,
            /,
            required=False,
            empty=False,
            type=ValueType.STRING,
            default=Unset,
            defaults=Unset,
            *,
            multiple=False,
            hidden=False,
            presentation=Unset
    ):
        """
        Construct an Argument declaration.

        Parameters
        - name: str
          Identifier shown in help and used for lookups.
        - descr: Unset | str
          Short help description.
        - required: bool
          The argument must be bound.
        - empty: bool
          A required argument may be bound to an empty string.
        - type: ValueType
          Type every bound value must convert to (STRING by default).
        - default / defaults: str / Iterable[str]
          Raw default value(s) used when nothing is bound; mutually exclusive.
        - multiple: bool
          Collect every remaining positional token.
        - hidden: bool
          Suppress from help output.
        - presentation: Unset | Presentation
          Controls the required badge; Unset uses the process default.
        """
        # None stands for an absent default
        default = Unset if default is None else default
        defaults = Unset if defaults is None else defaults
        metadata = {
            "name": name,
            "descr": descr,
            "required": bool(required),
            "empty": bool(empty),
            "multiple": bool(multiple),
            "type": type,
            "default": default,
            "defaults": defaults,
            "hidden": bool(hidden),
            "presentation": presentation,
        }
        if not isinstance(name, str):
            raise TypeError(f"{builtins.type(self).__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{builtins.type(self).__typename__} 'name' cannot be empty")
        elif not re.fullmatch(r"[^\W\d][\w-]*", name):
            raise ValueError(f"{builtins.type(self).__typename__} 'name' must start with a letter or underscore")
        metadata["name"] = name
        _sanitize_metadata(builtins.type(self), metadata)

        presentation = metadata.pop("presentation")
        for key, object in metadata.items():
            setattr(self, "_" + key, object)

        glyph = REQUIRED_BADGE if self.required and presentation.badges else None
        self._description = _badge(self.descr, glyph, presentation.style("required-badge"))
        self._values = []
        self._coerced = Unset

    def bind(self, *values):
        """
        record raw positional values; more than one only for multiple arguments.
        """
        if not self._multiple and len(self._values) + len(values) > 1:
            raise ValueError(f"{type(self).__typename__} {self.name!r} accepts a single value")
        for value in values:
            if not isinstance(value, str | None):
                raise TypeError(f"{type(self).__typename__} values must be strings")
        self._values.extend(values)
        return self

    def is_valid(self):
        """
        whether the argument may be handed to an action.

        checked in order, stopping at the first failure
        1. required and nothing bound.
        2. required, not empty-allowed, and a bound value is None or "".
        3. a bound value (or default, when nothing is bound) fails to convert.
        """
        if self._required and not self._values:
            return False
        if self._required and not self._empty and any(value is None or value == "" for value in self._values):
            return False
        return all(result.ok for result in self._coerce())


__all__ = (
    "Arity",
    "Template",
    "Option",
    "Argument",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
