"""
INI config file source adapter.

The text is read with configparser. Keys before the first ``[section]``
header are top level; keys inside a section are named ``section.key``. Names
are matched against the long names of INI-eligible options, and the values go
through the same coercion as command-line values. A StringVector option may be
repeated, each occurrence adding its elements in file order; indented
continuation lines add further elements to the occurrence they follow.
"""

import configparser
import re
from typing import Dict, Set, Tuple

from .command_line import RawTable, add_raw_values_to_environment
from .environment import Environment
from .errors import BadValue
from .section import OptionSection, OptionSource
from .value import OptionType
from ..utils.logger import get_logger

logger = get_logger(__name__)

ROOT_SECTION = "__optenv_root__"
DEFAULT_SECTION = "__optenv_defaults__"

# Separates a repeated vector key from its occurrence number
OCCURRENCE_SEPARATOR = "\0"
SECTION_HEADER = re.compile(r"\[(?P<header>.+)\]$")


def parse_ini_config(options: OptionSection, config_text: str) -> Environment:
    """
    Parse INI config text into a fresh Environment.

    Args:
        options: Option schema
        config_text: Full contents of the config file

    Returns:
        Environment holding every option set in the file

    Raises:
        BadValue: On syntax errors, unknown or repeated non-vector keys and
            bad values

    Example:
        >>> env = parse_ini_config(section, "port = 27018\\nfork = true\\n")
        >>> env.get("net.port").as_int()
        27018
    """
    ini_options = options.get_options_for_source(OptionSource.INI_CONFIG)
    vector_names = {option.long_name() for option in ini_options
                    if option.option_type is OptionType.STRING_VECTOR}
    environment = Environment()
    parser = _make_parser()

    try:
        numbered_text = _number_repeated_vector_keys(config_text, vector_names)
        parser.read_string(f"[{ROOT_SECTION}]\n{numbered_text}", source="<config>")
        raw_values = _collect_raw_values(parser, vector_names)
        add_raw_values_to_environment(raw_values, ini_options, environment)
    except configparser.DuplicateOptionError as e:
        raise BadValue(
            f'Error parsing INI config file: Multiple occurrences of option '
            f'"{_full_name(e.section, e.option)}"'
        ) from e
    except configparser.Error as e:
        raise BadValue(f"Error parsing INI config file: {e.message}") from e
    except BadValue as e:
        raise BadValue(f"Error parsing INI config file: {e}") from e

    logger.debug(f"Parsed {len(environment)} options from INI config")
    return environment


def _make_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        delimiters=("=",),
        comment_prefixes=("#", ";"),
        inline_comment_prefixes=None,
        strict=True,
        empty_lines_in_values=False,
        default_section=DEFAULT_SECTION,
        interpolation=None,
    )
    # Option names are case sensitive
    parser.optionxform = str
    return parser


def _full_name(section: str, key: str) -> str:
    return key if section == ROOT_SECTION else f"{section}.{key}"


def _number_repeated_vector_keys(config_text: str, vector_names: Set[str]) -> str:
    """
    Rename the second and later occurrences of each vector key.

    configparser only keeps one value per key, so ``key = b`` after
    ``key = a`` becomes ``key<separator>1 = b``. Other lines, including
    repeated non-vector keys, are left for configparser to judge.
    """
    section = ROOT_SECTION
    seen: Dict[Tuple[str, str], int] = {}
    lines = []
    for line in config_text.splitlines():
        stripped = line.strip()
        if not stripped or stripped[0] in "#;" or line[0].isspace():
            lines.append(line)
            continue
        header = SECTION_HEADER.match(stripped)
        if header:
            section = header.group("header")
            lines.append(line)
            continue
        key, delimiter, value = stripped.partition("=")
        key = key.strip()
        if not delimiter or _full_name(section, key) not in vector_names:
            lines.append(line)
            continue
        occurrence = seen.get((section, key), 0)
        seen[(section, key)] = occurrence + 1
        if occurrence:
            line = f"{key}{OCCURRENCE_SEPARATOR}{occurrence} = {value.strip()}"
        lines.append(line)
    return "\n".join(lines) + "\n"


def _collect_raw_values(parser: configparser.ConfigParser, vector_names: Set[str]) -> RawTable:
    raw_values: RawTable = {}
    for section in parser.sections():
        for key in parser.options(section):
            name = _full_name(section, key.partition(OCCURRENCE_SEPARATOR)[0])
            text = parser.get(section, key, raw=True)
            if name in vector_names:
                elements = [line.strip() for line in text.splitlines() if line.strip()]
                raw_values.setdefault(name, []).extend(elements)
            else:
                raw_values[name] = [text]
    return raw_values
