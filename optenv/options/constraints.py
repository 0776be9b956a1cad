"""
Deferred validation rules for a resolved Environment.

Constraints are attached to an Environment after merging and only run when
the caller validates it. Each rule raises BadValue with a readable message
when the environment violates it.
"""

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Union

from .errors import BadValue, NoSuchKey
from .value import INTEGER_BOUNDS, OptionType, Value

if TYPE_CHECKING:
    from .environment import Environment


class Constraint(ABC):
    """A rule checked against a whole Environment."""

    @abstractmethod
    def check(self, environment: "Environment") -> None:
        """
        Check the rule.

        Raises:
            BadValue: If the environment violates the rule
        """


class KeyConstraint(Constraint):
    """Constraint on a single key, skipped when the key is absent."""

    def __init__(self, key: str):
        self.key = key

    def check(self, environment: "Environment") -> None:
        try:
            value = environment.get(self.key)
        except NoSuchKey:
            return
        self.check_value(environment, value)

    @abstractmethod
    def check_value(self, environment: "Environment", value: Value) -> None:
        """Check the value held by ``self.key``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key!r})"


class NumericKeyConstraint(KeyConstraint):
    """Numeric value must lie within ``[minimum, maximum]``."""

    _NUMERIC_TYPES = tuple(INTEGER_BOUNDS) + (OptionType.DOUBLE,)

    def __init__(self, key: str, minimum: Union[int, float], maximum: Union[int, float]):
        super().__init__(key)
        self.minimum = minimum
        self.maximum = maximum

    def check_value(self, environment: "Environment", value: Value) -> None:
        if value.type not in self._NUMERIC_TYPES:
            raise BadValue(f"{self.key} has a non-numeric value: {value}")
        number = value.to_python()
        if number < self.minimum or number > self.maximum:
            raise BadValue(
                f"{self.key} must be between {self.minimum} and {self.maximum}, but was {number}"
            )


class ImmutableKeyConstraint(KeyConstraint):
    """Value may not change once the environment holding it has validated."""

    def check_value(self, environment: "Environment", value: Value) -> None:
        previous = environment.validated_value(self.key)
        if previous is not None and previous != value:
            raise BadValue(f"{self.key} cannot be modified from {previous} to {value}")


class MutuallyExclusiveKeyConstraint(KeyConstraint):
    """``key`` and ``other_key`` cannot both be set."""

    def __init__(self, key: str, other_key: str):
        super().__init__(key)
        self.other_key = other_key

    def check_value(self, environment: "Environment", value: Value) -> None:
        if environment.count(self.other_key):
            raise BadValue(f"{self.key} is not allowed when {self.other_key} is specified")


class RequiresOtherKeyConstraint(KeyConstraint):
    """``key`` may only be set together with ``other_key``."""

    def __init__(self, key: str, other_key: str):
        super().__init__(key)
        self.other_key = other_key

    def check_value(self, environment: "Environment", value: Value) -> None:
        if not environment.count(self.other_key):
            raise BadValue(f"{self.key} requires {self.other_key} to be specified")


class StringFormatKeyConstraint(KeyConstraint):
    """String value must fully match ``regex``; ``display_format`` is shown on failure."""

    def __init__(self, key: str, regex: str, display_format: str):
        super().__init__(key)
        self.regex = regex
        self.display_format = display_format
        try:
            self._pattern = re.compile(regex)
        except re.error as e:
            raise BadValue(f"Invalid format regex for {key}: {e}") from e

    def check_value(self, environment: "Environment", value: Value) -> None:
        if value.type is not OptionType.STRING:
            raise BadValue(f"{self.key} has a non-string value: {value}")
        if not self._pattern.fullmatch(value.as_string()):
            raise BadValue(
                f"{self.key} must be a string of the format: {self.display_format} "
                f"but was: {value.as_string()}"
            )
