"""
Command-line source adapter.

Tokenizing is delegated to click: a throw-away ``click.Command`` is built from
the command-line options of an OptionSection and its parsed parameters become
a flat table of raw occurrences per option. That table is then coerced into
typed Values exactly like the INI adapter does with its own table.

Parsing is strict: option names are never guessed from prefixes, short flags
cannot be bundled (``-hf`` is not ``-h -f``), and long options may also be
written with a single dash (``-dbpath``).
"""

from typing import Dict, List, Sequence, Set, Tuple, Union

import click

from .environment import Environment
from .errors import BadValue
from .section import OptionDescription, OptionSection, OptionSource
from .value import OptionType, coerce_raw_value
from ..utils.logger import get_logger

logger = get_logger(__name__)

RawTable = Dict[str, List[Union[str, bool]]]


def add_raw_values_to_environment(
    raw_values: RawTable,
    options: Sequence[OptionDescription],
    environment: Environment,
    name_prefix: str = "",
) -> None:
    """
    Coerce a table of raw occurrences and store the results by dotted key.

    Shared by the command-line and INI adapters. Switches that resolve to
    false are not recorded at all, so absence keeps meaning false.

    Args:
        raw_values: Long option name -> occurrences in source order
        options: Options eligible for the source
        environment: Environment receiving the values
        name_prefix: Prefix shown before option names in messages

    Raises:
        BadValue: On unknown names, repeated non-vector options or bad values
    """
    known = {option.long_name() for option in options}
    for name in raw_values:
        if name not in known:
            raise BadValue(f"unrecognised option '{name_prefix}{name}'")

    for option in options:
        occurrences = raw_values.get(option.long_name())
        if not occurrences:
            continue
        if option.option_type is OptionType.STRING_VECTOR:
            raw = list(occurrences)
        elif len(occurrences) > 1:
            raise BadValue(f'Multiple occurrences of option "{name_prefix}{option.long_name()}"')
        else:
            raw = occurrences[0]

        value = coerce_raw_value(raw, option.option_type, option.dotted_name)
        if option.option_type is OptionType.SWITCH and not value.as_bool():
            continue
        environment.set(option.dotted_name, value)


def parse_command_line(options: OptionSection, argv: Sequence[str]) -> Environment:
    """
    Parse an argument vector into a fresh Environment.

    Args:
        options: Option schema
        argv: Program name followed by its arguments

    Returns:
        Environment holding every option given on the command line

    Raises:
        BadValue: On malformed syntax, unknown options, repeated options
            or values that do not fit the declared type

    Example:
        >>> env = parse_command_line(section, ["mongod", "--port", "27018"])
        >>> env.get("net.port").as_int()
        27018
    """
    cli_options = options.get_options_for_source(OptionSource.COMMAND_LINE)
    positionals = options.get_positional_options()
    prog_name, args = split_prog_name(argv)
    environment = Environment()

    try:
        _reject_sticky_tokens(args, cli_options)
        command = _build_command(cli_options, positionals)
        try:
            context = command.make_context(prog_name, args)
        except click.ClickException as e:
            raise BadValue(e.format_message()) from e
        raw_values = _collect_raw_values(context.params, cli_options, positionals)
        add_raw_values_to_environment(raw_values, cli_options, environment, "--")
    except BadValue as e:
        raise BadValue(f"Error parsing command line: {e}") from e

    logger.debug(f"Parsed {len(environment)} options from the command line")
    return environment


def _option_strings(option: OptionDescription) -> List[str]:
    long_name = option.long_name()
    strings = [f"--{long_name}"]
    if len(long_name) > 1:
        strings.append(f"-{long_name}")
    short_name = option.short_name()
    if short_name is not None:
        strings.append(f"-{short_name}")
    return strings


def _build_command(options: Sequence[OptionDescription],
                   positionals: Sequence[OptionDescription]) -> click.Command:
    params: List[click.Parameter] = []
    for index, option in enumerate(options):
        declarations = [f"option_{index}"] + _option_strings(option)
        if option.option_type is OptionType.SWITCH:
            params.append(click.Option(declarations, count=True))
        else:
            params.append(click.Option(declarations, multiple=True, type=click.STRING))

    for index, option in enumerate(positionals):
        start, end = option.positional
        nargs = -1 if end == -1 else end - start + 1
        params.append(click.Argument([f"positional_{index}"], nargs=nargs, required=False))

    return click.Command(
        name=None,
        params=params,
        add_help_option=False,
        context_settings={"help_option_names": [], "allow_interspersed_args": True},
    )


def _reject_sticky_tokens(args: Sequence[str], options: Sequence[OptionDescription]) -> None:
    """
    Reject single-dash tokens that click would split into bundled short flags.

    A single-dash token is accepted only as ``-x`` or as a registered long
    name written with one dash (optionally ``-name=value``).
    """
    long_disguises: Set[str] = set()
    takes_value: Set[str] = set()
    for option in options:
        strings = _option_strings(option)
        long_disguises.update(s for s in strings if not s.startswith("--") and len(s) > 2)
        if option.option_type is not OptionType.SWITCH:
            takes_value.update(strings)

    expecting_value = False
    for token in args:
        if expecting_value:
            expecting_value = False
            continue
        if token == "--":
            break
        if not token.startswith("-") or token == "-":
            continue
        name, has_value = token.split("=", 1)[0], "=" in token
        if not token.startswith("--") and name not in long_disguises and (len(name) > 2 or has_value):
            raise BadValue(f"unrecognised option '{token}'")
        if name in takes_value and not has_value:
            expecting_value = True


def _collect_raw_values(params: Dict[str, object],
                        options: Sequence[OptionDescription],
                        positionals: Sequence[OptionDescription]) -> RawTable:
    raw_values: RawTable = {}
    for index, option in enumerate(options):
        parsed = params.get(f"option_{index}")
        if option.option_type is OptionType.SWITCH:
            occurrences: List[Union[str, bool]] = [True] * int(parsed or 0)
        else:
            occurrences = list(parsed or ())
        if occurrences:
            raw_values[option.long_name()] = occurrences

    for index, option in enumerate(positionals):
        parsed = params.get(f"positional_{index}")
        if parsed is None or parsed == ():
            continue
        values = [parsed] if isinstance(parsed, str) else list(parsed)
        raw_values.setdefault(option.long_name(), []).extend(values)
    return raw_values


def split_prog_name(argv: Sequence[str]) -> Tuple[str, List[str]]:
    """Split an argument vector into program name and arguments."""
    if not argv:
        return "", []
    return argv[0], list(argv[1:])
