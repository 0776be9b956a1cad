"""
Ordered, typed key/value store for resolved options.

An Environment is both the per-source staging area filled by the adapters and
the final resolved configuration produced by the merge engine. It tracks
which keys hold defaults so that explicit values can override them, rejects
duplicate explicit writes within one layer, and carries the constraints that
are checked when the caller validates it.
"""

from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from .constraints import Constraint
from .errors import BadValue, InternalError, NoSuchKey
from .value import Value


class Environment:
    """
    Ordered mapping of dotted keys to Values.

    Writes come in three flavours:

    * ``set`` is an explicit write within one layer; writing the same key
      twice is a duplicate-key error, overriding a default is not.
    * ``set_default`` records a default; it never replaces an explicit value.
    * ``set_all`` layers another Environment on top, so its explicit values
      overwrite whatever this one holds.

    Once ``validate`` has succeeded, every later write, defaults included,
    re-runs the constraints and is rolled back if they fail. The values seen
    by the last successful check are kept for constraints that compare
    against them.

    Example:
        >>> env = Environment()
        >>> env.set_default("net.port", Value(OptionType.INT, 27017))
        >>> env.set("net.port", Value(OptionType.INT, 27018))
        >>> env.get("net.port").as_int()
        27018
    """

    def __init__(self):
        self._values: Dict[str, Value] = {}
        self._default_values: Dict[str, Value] = {}
        self._default_keys: Set[str] = set()
        self._constraints: List[Constraint] = []
        self._valid = False
        self._validated_values: Dict[str, Value] = {}

    def set(self, key: str, value: Value) -> None:
        """
        Explicitly set ``key``.

        Raises:
            BadValue: If the key already holds an explicit value, a constraint
                fails on a validated environment, or the key is malformed
        """
        self._check_entry(key, value)
        if key in self._values and key not in self._default_keys:
            raise BadValue(f"duplicate key: {key}")
        self._write({key: value})

    def set_default(self, key: str, value: Value) -> None:
        """Record a default for ``key``; an explicit value for the key is kept."""
        self._check_entry(key, value)
        self._write({key: value}, as_default=True)

    def set_all(self, other: "Environment") -> None:
        """
        Layer ``other`` on top of this environment.

        Defaults of ``other`` are applied as defaults; its explicit values
        overwrite existing values, including explicit ones.
        """
        for key, value in other._default_values.items():
            self.set_default(key, value)
        explicit = {key: value for key, value in other._values.items()
                    if key not in other._default_keys}
        self._write(explicit)

    def get(self, key: str) -> Value:
        """
        Return the value for ``key``.

        Raises:
            NoSuchKey: If the key is not set
        """
        try:
            return self._values[key]
        except KeyError:
            raise NoSuchKey(f"no such key: {key}") from None

    def count(self, key: str) -> int:
        return 1 if key in self._values else 0

    def is_default(self, key: str) -> bool:
        """True if ``key`` currently holds a default rather than an explicit value."""
        return key in self._default_keys

    def keys(self) -> List[str]:
        return list(self._values)

    def items(self) -> List[Tuple[str, Value]]:
        return list(self._values.items())

    def to_dict(self) -> Dict[str, Any]:
        """Flat dotted-key dictionary of plain Python values."""
        return {key: value.to_python() for key, value in self._values.items()}

    def add_constraint(self, constraint: Constraint) -> None:
        """Attach a constraint; it is not run until ``validate``."""
        if not isinstance(constraint, Constraint):
            raise InternalError(f"Expected a Constraint, got {type(constraint).__name__}")
        self._constraints.append(constraint)

    @property
    def constraints(self) -> Tuple[Constraint, ...]:
        return tuple(self._constraints)

    @property
    def is_valid(self) -> bool:
        return self._valid

    def validated_value(self, key: str) -> Optional[Value]:
        """Value ``key`` held at the last successful validation, or None."""
        return self._validated_values.get(key)

    def validate(self) -> None:
        """
        Run every attached constraint.

        Raises:
            BadValue: From the first constraint that fails
        """
        self._run_constraints()
        self._valid = True
        self._validated_values = dict(self._values)

    def _run_constraints(self) -> None:
        for constraint in self._constraints:
            constraint.check(self)

    def _write(self, updates: Dict[str, Value], as_default: bool = False) -> None:
        if not updates:
            return
        snapshot = (dict(self._values), set(self._default_keys), dict(self._default_values))
        for key, value in updates.items():
            if as_default:
                self._default_values[key] = value
                if key in self._values and key not in self._default_keys:
                    continue
                self._default_keys.add(key)
            else:
                self._default_keys.discard(key)
            self._values[key] = value
        if self._valid:
            try:
                self._run_constraints()
            except BadValue:
                self._values, self._default_keys, self._default_values = snapshot
                raise
            self._validated_values = dict(self._values)

    @staticmethod
    def _check_entry(key: str, value: Value) -> None:
        if not isinstance(key, str) or not key:
            raise BadValue(f"Invalid option key: {key!r}")
        if not isinstance(value, Value):
            raise InternalError(f"Expected a Value for key {key}, got {type(value).__name__}")

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Environment):
            return NotImplemented
        return (list(self._values.items()) == list(other._values.items())
                and self._default_keys == other._default_keys)

    def __repr__(self) -> str:
        return f"Environment({self.to_dict()!r})"
