"""
Option resolution module.

Provides the typed value model, the option schema, the Environment store,
the command-line/INI/YAML source adapters and the OptionsParser merge engine.
"""

from .constraints import (
    Constraint, ImmutableKeyConstraint, KeyConstraint, MutuallyExclusiveKeyConstraint,
    NumericKeyConstraint, RequiresOtherKeyConstraint, StringFormatKeyConstraint
)
from .command_line import parse_command_line
from .environment import Environment
from .errors import BadValue, InternalError, NoSuchKey, OptionsError, TypeMismatch
from .ini_config import parse_ini_config
from .parser import OptionsParser
from .registry import RegistryLoader
from .section import OptionDescription, OptionSection, OptionSource
from .value import OptionType, Value, coerce_raw_value, parse_number
from .yaml_config import environment_to_yaml, is_yaml_config, parse_yaml_config

__all__ = [
    "BadValue",
    "Constraint",
    "Environment",
    "ImmutableKeyConstraint",
    "InternalError",
    "KeyConstraint",
    "MutuallyExclusiveKeyConstraint",
    "NoSuchKey",
    "NumericKeyConstraint",
    "OptionDescription",
    "OptionSection",
    "OptionSource",
    "OptionType",
    "OptionsError",
    "OptionsParser",
    "RegistryLoader",
    "RequiresOtherKeyConstraint",
    "StringFormatKeyConstraint",
    "TypeMismatch",
    "Value",
    "coerce_raw_value",
    "environment_to_yaml",
    "is_yaml_config",
    "parse_command_line",
    "parse_ini_config",
    "parse_number",
    "parse_yaml_config",
]
