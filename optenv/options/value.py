"""
Typed option values.

This module defines the closed set of option types, the immutable Value
container that holds one of them, and the shared string-to-value coercion
used by every configuration source so that malformed input and overflow are
reported identically no matter where a value came from.
"""

import re
from enum import Enum
from typing import Any, List, Sequence, Union

from .errors import BadValue, InternalError, TypeMismatch


class OptionType(Enum):
    """Declared type of an option."""
    BOOL = "Bool"
    SWITCH = "Switch"
    STRING = "String"
    INT = "Int"
    LONG = "Long"
    DOUBLE = "Double"
    UNSIGNED = "Unsigned"
    UNSIGNED_LONG_LONG = "UnsignedLongLong"
    STRING_VECTOR = "StringVector"

    @classmethod
    def from_name(cls, name: str) -> "OptionType":
        """Look up a type by its display name, e.g. ``"StringVector"``."""
        for option_type in cls:
            if option_type.value == name:
                return option_type
        raise BadValue(f"Unrecognized option type: {name}")


# Inclusive bounds for the integer types
INTEGER_BOUNDS = {
    OptionType.INT: (-(2 ** 31), 2 ** 31 - 1),
    OptionType.LONG: (-(2 ** 63), 2 ** 63 - 1),
    OptionType.UNSIGNED: (0, 2 ** 32 - 1),
    OptionType.UNSIGNED_LONG_LONG: (0, 2 ** 64 - 1),
}

BOOLEAN_TYPES = (OptionType.BOOL, OptionType.SWITCH)

_INTEGER_PATTERN = re.compile(r"^([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)$")
_DOUBLE_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

_TRUE_STRINGS = ("true", "yes", "on", "1")
_FALSE_STRINGS = ("false", "no", "off", "0")


class Value:
    """
    Immutable tagged value of one OptionType.

    The tag is fixed at construction. Reading the value back through an
    accessor for a different type raises TypeMismatch instead of converting.

    Example:
        >>> port = Value(OptionType.INT, 27017)
        >>> port.as_int()
        27017
        >>> port.as_string()
        Traceback (most recent call last):
        ...
        optenv.options.errors.TypeMismatch: ...
    """

    __slots__ = ("_type", "_value")

    def __init__(self, option_type: OptionType, value: Any):
        if not isinstance(option_type, OptionType):
            raise InternalError(f"Unrecognized option type: {option_type!r}")
        object.__setattr__(self, "_type", option_type)
        object.__setattr__(self, "_value", _check_payload(option_type, value))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Value is immutable")

    @property
    def type(self) -> OptionType:
        return self._type

    def get(self, option_type: OptionType) -> Any:
        """
        Return the payload if this value holds ``option_type``.

        BOOL and SWITCH are both booleans and are readable through either tag.

        Raises:
            TypeMismatch: If the value holds a different type
        """
        if option_type is self._type:
            return self.to_python()
        if option_type in BOOLEAN_TYPES and self._type in BOOLEAN_TYPES:
            return self._value
        raise TypeMismatch(
            f"Attempting to get {option_type.value} from a Value of type {self._type.value}"
        )

    def as_bool(self) -> bool:
        return self.get(OptionType.BOOL)

    def as_string(self) -> str:
        return self.get(OptionType.STRING)

    def as_int(self) -> int:
        return self.get(OptionType.INT)

    def as_long(self) -> int:
        return self.get(OptionType.LONG)

    def as_double(self) -> float:
        return self.get(OptionType.DOUBLE)

    def as_unsigned(self) -> int:
        return self.get(OptionType.UNSIGNED)

    def as_unsigned_long_long(self) -> int:
        return self.get(OptionType.UNSIGNED_LONG_LONG)

    def as_string_vector(self) -> List[str]:
        return self.get(OptionType.STRING_VECTOR)

    def to_python(self) -> Any:
        """Plain Python payload; string vectors come back as a new list."""
        if self._type is OptionType.STRING_VECTOR:
            return list(self._value)
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self._type is other._type and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._type, self._value))

    def __repr__(self) -> str:
        return f"Value({self._type.value}, {self._value!r})"

    def __str__(self) -> str:
        if self._type in BOOLEAN_TYPES:
            return "true" if self._value else "false"
        if self._type is OptionType.STRING_VECTOR:
            return ",".join(self._value)
        return str(self._value)


def _check_payload(option_type: OptionType, value: Any) -> Any:
    """Validate a Python payload against its tag and normalize it for storage."""
    if option_type in BOOLEAN_TYPES:
        if isinstance(value, bool):
            return value
    elif option_type is OptionType.STRING:
        if isinstance(value, str):
            return value
    elif option_type in INTEGER_BOUNDS:
        if isinstance(value, int) and not isinstance(value, bool):
            low, high = INTEGER_BOUNDS[option_type]
            if low <= value <= high:
                return value
            raise InternalError(f"Value {value} out of range for type {option_type.value}")
    elif option_type is OptionType.DOUBLE:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif option_type is OptionType.STRING_VECTOR:
        if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
            return tuple(value)
    raise InternalError(
        f"Cannot store {type(value).__name__} in a Value of type {option_type.value}"
    )


def parse_number(text: str, option_type: OptionType) -> Union[int, float]:
    """
    Parse a number from a string for one of the numeric option types.

    This is the only string-to-number routine in the package. The whole
    string must be a number: no surrounding whitespace, no digit separators.
    Integers accept a sign, a ``0x`` hex prefix or a leading ``0`` for octal.

    Args:
        text: Raw text to parse
        option_type: One of INT, LONG, UNSIGNED, UNSIGNED_LONG_LONG, DOUBLE

    Returns:
        Parsed int or float

    Raises:
        BadValue: If the text is not a number or does not fit the type
        InternalError: If option_type is not numeric

    Example:
        >>> parse_number("0x10", OptionType.INT)
        16
    """
    if option_type is OptionType.DOUBLE:
        if not _DOUBLE_PATTERN.match(text):
            raise BadValue(f"Failed to parse number '{text}': not a valid double")
        result = float(text)
        if result in (float("inf"), float("-inf")):
            raise BadValue(f"Failed to parse number '{text}': overflow")
        return result

    if option_type not in INTEGER_BOUNDS:
        raise InternalError(f"Type {option_type.value} is not numeric")

    match = _INTEGER_PATTERN.match(text)
    if not match:
        raise BadValue(f"Failed to parse number '{text}': bad digit")
    sign, digits = match.groups()
    if sign == "-" and option_type in (OptionType.UNSIGNED, OptionType.UNSIGNED_LONG_LONG):
        raise BadValue(f"Failed to parse number '{text}': negative value for unsigned type")

    if digits[:2].lower() == "0x":
        result = int(digits[2:], 16)
    elif len(digits) > 1 and digits.startswith("0"):
        result = int(digits[1:], 8)
    else:
        result = int(digits, 10)
    if sign == "-":
        result = -result

    low, high = INTEGER_BOUNDS[option_type]
    if not low <= result <= high:
        raise BadValue(f"Failed to parse number '{text}': overflow for type {option_type.value}")
    return result


def parse_bool(text: str) -> bool:
    """Parse the boolean spellings accepted on the command line and in INI files."""
    lowered = text.lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise BadValue(f"Expected boolean but found string: {text}")


def coerce_raw_value(raw: Union[str, bool, Sequence[str]], option_type: OptionType, key: str) -> Value:
    """
    Convert a raw source value into a Value of exactly ``option_type``.

    Args:
        raw: Source text, a bool from a flag parser, or a list of strings
            for STRING_VECTOR options
        option_type: Declared type of the option
        key: Dotted option name, used in error messages

    Returns:
        Value tagged with option_type

    Raises:
        BadValue: If the raw value cannot represent the declared type
    """
    if option_type is OptionType.STRING_VECTOR:
        if isinstance(raw, str):
            raw = [raw]
        if not isinstance(raw, (list, tuple)) or not all(isinstance(item, str) for item in raw):
            raise BadValue(f"Option: {key} is of type StringVector, but value is not a list of strings")
        return Value(option_type, list(raw))

    if isinstance(raw, (list, tuple)):
        raise BadValue(f"Option: {key} is of type {option_type.value}, but value is a list")

    if option_type in BOOLEAN_TYPES:
        if isinstance(raw, bool):
            return Value(option_type, raw)
        try:
            return Value(option_type, parse_bool(raw))
        except BadValue:
            raise BadValue(f"Expected boolean but found string: {raw} for option: {key}") from None

    if not isinstance(raw, str):
        raise BadValue(f"Option: {key} expected a string value, found {type(raw).__name__}")

    if option_type is OptionType.STRING:
        return Value(option_type, raw)

    try:
        return Value(option_type, parse_number(raw, option_type))
    except BadValue as e:
        raise BadValue(f"Bad value for option: {key} of type {option_type.value}: {e}") from None
