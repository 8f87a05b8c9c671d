"""
Value coercion shared by options and arguments.

Every raw command-line value is a string; declarations name the semantic type
it must convert to (ValueType). coerce() never raises for bad input: it returns
a Coerced or a CoercionFailure result, and callers decide what a failure means
(Option/Argument validity checks turn it into "invalid"). unwrap() is the
raising form used when a caller needs the values themselves.

Conversion rules
- STRING: identity (None passes through).
- BOOLEAN: "true"/"false", case-insensitive, surrounding whitespace ignored.
- CHAR: exactly one character.
- INT*/UINT*: int() parsing, range-checked against the declared width.
- FLOAT32/FLOAT64: float() parsing.
- Numeric types reject "_" digit separators.
- DECIMAL: decimal.Decimal, finite values only.
- DATETIME: datetime.fromisoformat.
"""
import datetime
import decimal
from enum import Enum
from typing import Any, NamedTuple


class ValueType(Enum):
    """
    semantic value types an option or argument can declare.
    """
    STRING = "string"
    BOOLEAN = "boolean"
    CHAR = "char"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    DATETIME = "datetime"

    @property
    def bounds(self):
        """
        inclusive (minimum, maximum) for integer types, None for the others.
        """
        try:
            signed, bits = _INTEGERS[self]
        except KeyError:
            return None
        if signed:
            return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        return 0, (1 << bits) - 1


_INTEGERS = {
    ValueType.INT8: (True, 8),
    ValueType.INT16: (True, 16),
    ValueType.INT32: (True, 32),
    ValueType.INT64: (True, 64),
    ValueType.UINT8: (False, 8),
    ValueType.UINT16: (False, 16),
    ValueType.UINT32: (False, 32),
    ValueType.UINT64: (False, 64),
}


class Coerced(NamedTuple):
    """
    successful conversion of a raw value.
    """
    value: Any

    @property
    def ok(self):
        return True


class CoercionFailure(NamedTuple):
    """
    failed conversion of a raw value, with a short reason for diagnostics.
    """
    raw: str | None
    type: ValueType
    reason: str

    @property
    def ok(self):
        return False

    def __str__(self):
        return "cannot convert %r to %s: %s" % (self.raw, self.type.value, self.reason)


class CoercionError(ValueError):
    """
    raised by unwrap() when at least one value failed to convert.
    """

    def __init__(self, failures, /):
        self.failures = tuple(failures)
        super().__init__("; ".join(map(str, self.failures)))


def _boolean(raw):
    match raw.strip().lower():
        case "true":
            return True
        case "false":
            return False
    raise ValueError("expected 'true' or 'false'")


def _char(raw):
    if len(raw) != 1:
        raise ValueError("expected exactly one character")
    return raw


def _numeric(raw):
    if "_" in raw:
        raise ValueError("digit separators are not allowed")
    return raw


def _integer(raw, type):
    value = int(_numeric(raw))
    minimum, maximum = type.bounds
    if not minimum <= value <= maximum:
        raise ValueError("value out of range [%d, %d]" % (minimum, maximum))
    return value


def _decimal(raw):
    try:
        value = decimal.Decimal(_numeric(raw).strip())
    except decimal.InvalidOperation:
        raise ValueError("invalid decimal literal") from None
    if not value.is_finite():
        raise ValueError("decimal must be finite")
    return value


def coerce(raw, type, /):
    """
    convert a raw string into the declared type.

    returns Coerced(value) on success and CoercionFailure(raw, type, reason)
    otherwise; bad input never raises.
    """
    if not isinstance(type, ValueType):
        raise TypeError("coerce() second argument must be a value type")
    if type is ValueType.STRING:
        return Coerced(raw)
    if raw is None:
        return CoercionFailure(raw, type, "missing value")
    if not isinstance(raw, str):
        raise TypeError("coerce() first argument must be a string or None")

    try:
        match type:
            case ValueType.BOOLEAN:
                value = _boolean(raw)
            case ValueType.CHAR:
                value = _char(raw)
            case ValueType.FLOAT32 | ValueType.FLOAT64:
                value = float(_numeric(raw))
            case ValueType.DECIMAL:
                value = _decimal(raw)
            case ValueType.DATETIME:
                value = datetime.datetime.fromisoformat(raw.strip())
            case _:
                value = _integer(raw, type)
    except (ValueError, OverflowError) as exception:
        return CoercionFailure(raw, type, str(exception))
    return Coerced(value)


def unwrap(results, /):
    """
    return the converted values of a results sequence as a tuple.

    raises CoercionError listing every failure when any result failed.
    """
    results = tuple(results)
    if failures := [result for result in results if not result.ok]:
        raise CoercionError(failures)
    return tuple(result.value for result in results)


__all__ = (
    "ValueType",
    "Coerced",
    "CoercionFailure",
    "CoercionError",
    "coerce",
    "unwrap",
)
