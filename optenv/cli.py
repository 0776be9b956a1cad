#!/usr/bin/env python3
"""
Command-line tool for inspecting option registries and resolving options.

The registry file declares the options of an application; the remaining
arguments are treated as that application's own command line, so
``optenv resolve mongod-options.yaml --config mongod.conf --port 27018``
shows exactly what the application would resolve.
"""

import sys
from pathlib import Path
from typing import Sequence

import click
import jsonschema
import yaml
from rich.console import Console
from rich.table import Table

from .options import Environment, OptionsError, OptionsParser, OptionSection, RegistryLoader
from .options.section import OptionSource
from .options.yaml_config import environment_to_yaml
from .utils.helpers import ensure_directory_exists
from .utils.logger import get_logger, setup_logging

console = Console()

REGISTRY_ERRORS = (FileNotFoundError, ValueError, yaml.YAMLError, jsonschema.ValidationError)


class ExitCode:
    """Exit codes for shell and pipeline integration."""
    SUCCESS = 0
    VALIDATION_FAILED = 1
    CONFIGURATION_ERROR = 4
    UNKNOWN_ERROR = 99


def _source_names(sources: OptionSource) -> str:
    names = []
    if sources & OptionSource.COMMAND_LINE:
        names.append("cli")
    if sources & OptionSource.INI_CONFIG:
        names.append("ini")
    if sources & OptionSource.YAML_CONFIG:
        names.append("yaml")
    return ",".join(names)


def load_registry(registry: Path) -> OptionSection:
    """Load a registry file, exiting with CONFIGURATION_ERROR on failure."""
    try:
        return RegistryLoader().load_option_section(registry)
    except REGISTRY_ERRORS + (OptionsError,) as e:
        console.print(f"[red]❌ Invalid option registry {registry}:[/red] {e}")
        sys.exit(ExitCode.CONFIGURATION_ERROR)


def resolve_environment(section: OptionSection, registry: Path, args: Sequence[str]) -> Environment:
    """Run the parser over ``args`` as if they were the application's own."""
    try:
        return OptionsParser().run(section, [registry.stem] + list(args))
    except OptionsError as e:
        console.print(f"[red]❌ Configuration could not be resolved:[/red] {e}")
        sys.exit(ExitCode.CONFIGURATION_ERROR)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, verbose):
    """Resolve process options from the command line and config files."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    log_level = "DEBUG" if verbose else "WARNING"
    setup_logging(log_level)


@cli.command("options")
@click.argument('registry', type=click.Path(exists=True, dir_okay=False, path_type=Path))
def list_options(registry):
    """List the options declared in REGISTRY."""
    section = load_registry(registry)

    table = Table(title=f"Options in {registry.name}", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Sources")
    table.add_column("Default")
    table.add_column("Composing")

    for option in section.get_all_options():
        short_name = option.short_name()
        table.add_row(
            option.dotted_name,
            f"--{option.long_name()}" + (f", -{short_name}" if short_name else ""),
            option.option_type.value,
            _source_names(option.sources),
            "" if option.default is None else str(option.default),
            "yes" if option.is_composing else "",
        )

    console.print(table)


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option('--no-validate', is_flag=True, help='Do not run option constraints')
@click.argument('registry', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
def resolve(registry, args, no_validate):
    """Resolve ARGS against the options declared in REGISTRY."""
    logger = get_logger(__name__)
    section = load_registry(registry)
    environment = resolve_environment(section, registry, args)

    table = Table(title="Resolved options", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Type")
    table.add_column("Value", style="green")
    table.add_column("Origin")

    for key, value in environment.items():
        origin = "default" if environment.is_default(key) else "explicit"
        table.add_row(key, value.type.value, str(value), origin)

    console.print(table)

    if no_validate:
        return

    try:
        environment.validate()
    except OptionsError as e:
        logger.debug(f"Constraint check failed: {e}")
        console.print(f"[red]❌ Validation failed:[/red] {e}")
        sys.exit(ExitCode.VALIDATION_FAILED)

    console.print(f"[green]✅ {len(environment.constraints)} constraint(s) passed[/green]")


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Write the YAML document to a file instead of stdout')
@click.argument('registry', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
def dump(registry, args, output):
    """Print the options resolved from ARGS as a YAML config document."""
    section = load_registry(registry)
    environment = resolve_environment(section, registry, args)
    document = environment_to_yaml(environment)

    if output is None:
        click.echo(document, nl=False)
        return

    ensure_directory_exists(output.parent)
    output.write_text(document, encoding="utf-8")
    click.echo(f"📄 Wrote {len(environment)} option(s) to {output}")


def main():
    try:
        cli(obj={})
    except Exception as e:
        console.print(f"[red]❌ Unexpected error:[/red] {e}")
        sys.exit(ExitCode.UNKNOWN_ERROR)


if __name__ == "__main__":
    main()
