"""
Rendering configuration.

Presentation is the single, immutable bundle of presentation switches shared by
option/argument declarations (badges), help/version rendering and fault
rendering. It is passed explicitly at construction; programs that prefer a
global default call configure() once, before building any tool.

Palette
- DEFAULT_STYLES holds the rich style for every styled fragment.
- A host program may define a mapping named __styles__ in __main__ to override
  entries; explicit Presentation(styles=...) entries win over both.
- When colorful is False every style resolves to "" (plain text). Independently,
  rich drops styling when the stream is not a terminal or NO_COLOR is set.
"""
import threading
from collections.abc import Mapping
from types import MappingProxyType

from .utils import *

SINGLE_VALUE_BADGE = "§"
MULTIPLE_VALUE_BADGE = "+"
REQUIRED_BADGE = "*"

DEFAULT_STYLES = MappingProxyType({
    # badges
    "single-badge": "cyan",
    "multiple-badge": "cyan",
    "required-badge": "red",

    # help head/foot
    "title": "bold",
    "version": "bright_black",
    "epilog": "dim",
    "usage-label": "bold #00E6FF",
    "program-name": "bold #FF4D94",

    # help body
    "section-label": "bold #FFFFFF",
    "option-name": "bold #00E6FF",
    "argument-name": "bold #FFD600",
    "command-name": "bold #36C5F0",
    "description": "#9CA3AF",

    # faults
    "code": "bold #00E5FF",
    "error-title": "bold #FF4DA6",
    "error-message": "#C8C8D0",
    "hint-arrow": "#9CE19C dim",
    "hint": "italic #9CE19C",
})


class Presentation:
    """
    immutable presentation settings.

    fields
    - badges: append arity/required badges to option and argument descriptions.
    - colorful: apply the palette; when False all fragments render unstyled.
    - fancy: render faults inside a rich panel with code, title and hint
      instead of a single plain line.
    - styles: palette overrides (see module docstring).
    """

    __introspectable__ = ("badges", "colorful", "fancy", "styles")

    badges = mirror("badges")
    colorful = mirror("colorful")
    fancy = mirror("fancy")
    styles = mirror("styles")

    def __init__(self, *, badges=True, colorful=True, fancy=False, styles=MappingProxyType({})):
        if not isinstance(styles, Mapping):
            raise TypeError("presentation 'styles' must be a mapping")
        for key, value in styles.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise TypeError("presentation 'styles' must map strings to strings")
        self._badges = bool(badges)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._styles = MappingProxyType(dict(styles))

    def style(self, key, /):
        """
        resolve a palette key to a rich style string ("" when not colorful).
        """
        if not self.colorful:
            return ""
        main = __import__("__main__")
        return (dict(DEFAULT_STYLES) | getattr(main, "__styles__", {}) | dict(self._styles)).get(key, "")

    def __replace__(self, **overrides):
        fields = {name: getattr(self, "_" + name) for name in self.__introspectable__}
        return type(self)(**(fields | overrides))

    def __eq__(self, other):
        if not isinstance(other, Presentation):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__introspectable__)

    def __hash__(self):
        return hash((self.badges, self.colorful, self.fancy, tuple(sorted(self.styles.items()))))

    def __setattr__(self, name, value):
        if hasattr(self, "_styles"):
            raise AttributeError("presentation is immutable")
        super().__setattr__(name, value)

    def __rich_repr__(self):
        for name in self.__introspectable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return "presentation(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


_lock = threading.Lock()
_default = Unset


def configure(**fields):
    """
    set the process-wide default presentation, once.

    must run before any tool, option or argument is constructed; a second call
    (or a call after presentation() already materialized the default) raises
    RuntimeError so the default never changes under a live tool.
    """
    global _default
    with _lock:
        if _default is not Unset:
            raise RuntimeError("presentation is already configured")
        _default = Presentation(**fields)
        return _default


def presentation():
    """
    return the process-wide default presentation (materialized on first use).
    """
    global _default
    with _lock:
        if _default is Unset:
            _default = Presentation()
        return _default


__all__ = (
    "SINGLE_VALUE_BADGE",
    "MULTIPLE_VALUE_BADGE",
    "REQUIRED_BADGE",
    "DEFAULT_STYLES",
    "Presentation",
    "configure",
    "presentation",
)
