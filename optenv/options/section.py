"""
Option schema: descriptions of the options a process accepts.

An OptionSection is built once by the owning application before any parsing
happens. It declares every option's dotted key, its command-line name, its
type, which sources may supply it, whether it composes across sources, its
default and its constraints. The adapters and the merge engine only read it.
"""

from dataclasses import dataclass, field
from enum import Flag
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .constraints import (
    Constraint, ImmutableKeyConstraint, MutuallyExclusiveKeyConstraint,
    NumericKeyConstraint, RequiresOtherKeyConstraint, StringFormatKeyConstraint
)
from .errors import BadValue, InternalError
from .value import OptionType, Value


class OptionSource(Flag):
    """Sources allowed to supply an option."""
    COMMAND_LINE = 1
    INI_CONFIG = 2
    YAML_CONFIG = 4
    CONFIG_FILE = 6
    ALL = 7

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "OptionSource":
        """Combine source names such as ``["command_line", "yaml"]``."""
        lookup = {
            "command_line": cls.COMMAND_LINE,
            "ini": cls.INI_CONFIG,
            "yaml": cls.YAML_CONFIG,
            "config_file": cls.CONFIG_FILE,
            "all": cls.ALL,
        }
        result = cls(0)
        for name in names:
            if name not in lookup:
                raise BadValue(f"Unrecognized option source: {name}")
            result |= lookup[name]
        return result


@dataclass(frozen=True)
class OptionDescription:
    """One registered option."""
    dotted_name: str
    single_name: str
    option_type: OptionType
    description: str = ""
    sources: OptionSource = OptionSource.ALL
    is_composing: bool = False
    default: Optional[Value] = None
    positional: Optional[Tuple[int, int]] = None
    constraints: Tuple[Constraint, ...] = field(default_factory=tuple)

    def long_name(self) -> str:
        """
        Name used on the command line and in INI files, without the short alias.

        Raises:
            BadValue: If ``single_name`` has a comma anywhere other than
                before a one-character alias
        """
        comma_offset = self.single_name.find(",")
        if comma_offset == -1:
            return self.single_name
        if comma_offset != len(self.single_name) - 2:
            raise BadValue(
                f'Unexpected comma in option name: "{self.single_name}": option name must be '
                f'in the format "option,o" or "option", where "option" is the long name and '
                f'"o" is the optional one character short alias'
            )
        return self.single_name[:comma_offset]

    def short_name(self) -> Optional[str]:
        if "," not in self.single_name:
            return None
        self.long_name()
        return self.single_name[-1]

    def is_sourced_from(self, source: OptionSource) -> bool:
        return bool(self.sources & source)


class OptionSection:
    """
    Ordered collection of option descriptions, nested sections and constraints.

    Example:
        >>> general = OptionSection("General options")
        >>> general.add_option("config", "config,f", OptionType.STRING,
        ...                    sources=OptionSource.COMMAND_LINE)
        >>> general.add_option("net.port", "port", OptionType.INT, default=27017,
        ...                    valid_range=(0, 65535))
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._options: List[OptionDescription] = []
        self._sections: List["OptionSection"] = []
        self._constraints: List[Constraint] = []

    def add_option(
        self,
        dotted_name: str,
        single_name: str,
        option_type: OptionType,
        description: str = "",
        *,
        sources: OptionSource = OptionSource.ALL,
        composing: bool = False,
        default: Any = None,
        positional: Optional[Tuple[int, int]] = None,
        valid_range: Optional[Tuple[Union[int, float], Union[int, float]]] = None,
        requires: Sequence[str] = (),
        incompatible_with: Sequence[str] = (),
        format: Optional[Tuple[str, str]] = None,
        immutable: bool = False,
    ) -> OptionDescription:
        """
        Register an option.

        Args:
            dotted_name: Key in the Environment, e.g. ``"storage.dbPath"``
            single_name: Command-line/INI name, optionally ``"name,n"``
            option_type: Declared type
            description: Human readable description
            sources: Sources allowed to supply the option
            composing: Accumulate values across sources (StringVector only)
            default: Default as a Value or a plain Python value
            positional: ``(start, end)`` positional slots, end -1 is unbounded
            valid_range: Inclusive numeric range
            requires: Keys that must be set whenever this one is
            incompatible_with: Keys that may not be set together with this one
            format: ``(regex, display_format)`` the string value must match
            immutable: Value may not change once validated

        Returns:
            The registered OptionDescription

        Raises:
            BadValue: If the registration is inconsistent or a duplicate
        """
        if not dotted_name:
            raise BadValue("Option dotted name cannot be empty")
        if not isinstance(option_type, OptionType):
            raise BadValue(f"Unrecognized option type for {dotted_name}: {option_type!r}")
        if composing and option_type is not OptionType.STRING_VECTOR:
            raise BadValue(
                f"Option {dotted_name} is composing, but composing options must be of type StringVector"
            )

        constraints: List[Constraint] = []
        if valid_range is not None:
            constraints.append(NumericKeyConstraint(dotted_name, valid_range[0], valid_range[1]))
        for other_key in requires:
            constraints.append(RequiresOtherKeyConstraint(dotted_name, other_key))
        for other_key in incompatible_with:
            constraints.append(MutuallyExclusiveKeyConstraint(dotted_name, other_key))
        if format is not None:
            constraints.append(StringFormatKeyConstraint(dotted_name, format[0], format[1]))
        if immutable:
            constraints.append(ImmutableKeyConstraint(dotted_name))

        option = OptionDescription(
            dotted_name=dotted_name,
            single_name=single_name,
            option_type=option_type,
            description=description,
            sources=sources,
            is_composing=composing,
            default=self._make_default(dotted_name, option_type, default),
            positional=self._check_positional(dotted_name, option_type, sources, positional),
            constraints=tuple(constraints),
        )
        self._check_not_registered(option, self.get_all_options())
        self._options.append(option)
        return option

    def add_section(self, section: "OptionSection") -> None:
        """Nest another section; its options must not clash with ours."""
        registered = self.get_all_options()
        for option in section.get_all_options():
            self._check_not_registered(option, registered)
            registered.append(option)
        self._sections.append(section)

    def add_constraint(self, constraint: Constraint) -> None:
        """Attach a section-wide constraint."""
        self._constraints.append(constraint)

    def get_all_options(self) -> List[OptionDescription]:
        """All options in registration order, sub-sections depth first."""
        options = list(self._options)
        for section in self._sections:
            options.extend(section.get_all_options())
        return options

    def get_options_for_source(self, source: OptionSource) -> List[OptionDescription]:
        return [option for option in self.get_all_options() if option.is_sourced_from(source)]

    def get_positional_options(self) -> List[OptionDescription]:
        """
        Options bound to positional arguments, ordered by first slot.

        Raises:
            BadValue: If the slots are not contiguous from 1 or an unbounded
                range is not the last one
        """
        positionals = sorted(
            (option for option in self.get_all_options() if option.positional is not None),
            key=lambda option: option.positional[0],
        )
        expected = 1
        for option in positionals:
            start, end = option.positional
            if expected == -1:
                raise BadValue(
                    f"Positional option {option.dotted_name} follows an option with unbounded positional range"
                )
            if start != expected:
                raise BadValue(
                    f"Positional options are not contiguous: {option.dotted_name} starts at "
                    f"{start}, expected {expected}"
                )
            expected = -1 if end == -1 else end + 1
        return positionals

    def get_defaults(self) -> Dict[str, Value]:
        return {option.dotted_name: option.default
                for option in self.get_all_options() if option.default is not None}

    def get_constraints(self) -> List[Constraint]:
        """Option constraints followed by section constraints, depth first."""
        constraints: List[Constraint] = []
        for option in self.get_all_options():
            constraints.extend(option.constraints)
        constraints.extend(self._section_constraints())
        return constraints

    def _section_constraints(self) -> List[Constraint]:
        constraints = list(self._constraints)
        for section in self._sections:
            constraints.extend(section._section_constraints())
        return constraints

    @staticmethod
    def _make_default(dotted_name: str, option_type: OptionType, default: Any) -> Optional[Value]:
        if default is None:
            return None
        if isinstance(default, Value):
            if default.type is not option_type:
                raise BadValue(
                    f"Default for {dotted_name} is of type {default.type.value}, "
                    f"but the option is of type {option_type.value}"
                )
            return default
        try:
            return Value(option_type, default)
        except InternalError as e:
            raise BadValue(f"Invalid default for {dotted_name}: {e}") from e

    @staticmethod
    def _check_positional(dotted_name: str, option_type: OptionType, sources: OptionSource,
                          positional: Optional[Tuple[int, int]]) -> Optional[Tuple[int, int]]:
        if positional is None:
            return None
        start, end = positional
        if start < 1 or (end != -1 and end < start):
            raise BadValue(f"Invalid positional range for {dotted_name}: {positional}")
        if not sources & OptionSource.COMMAND_LINE:
            raise BadValue(f"Positional option {dotted_name} must be allowed on the command line")
        if option_type is not OptionType.STRING_VECTOR and start != end:
            raise BadValue(
                f"Positional option {dotted_name} is not a StringVector and can only take one slot"
            )
        return (start, end)

    @staticmethod
    def _check_not_registered(option: OptionDescription, registered: List[OptionDescription]) -> None:
        long_name = option.long_name()
        for existing in registered:
            if existing.dotted_name == option.dotted_name:
                raise BadValue(
                    f"Attempted to register option with duplicate dotted name: {option.dotted_name}"
                )
            if existing.long_name() == long_name:
                raise BadValue(f"Attempted to register option with duplicate name: {long_name}")
            short_name = option.short_name()
            if short_name is not None and short_name == existing.short_name():
                raise BadValue(f"Attempted to register option with duplicate short name: {short_name}")
