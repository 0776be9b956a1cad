"""
optenv: resolve process options from the command line, INI and YAML config
files into one typed Environment.
"""

from .options import (
    BadValue, Environment, InternalError, OptionSection, OptionSource, OptionType,
    OptionsError, OptionsParser, Value
)

__version__ = "1.0.0"

__all__ = [
    "BadValue",
    "Environment",
    "InternalError",
    "OptionSection",
    "OptionSource",
    "OptionType",
    "OptionsError",
    "OptionsParser",
    "Value",
]
