"""
Options parser: resolves one Environment from the command line, a config file
and the schema defaults.

This module provides the OptionsParser class, which runs the source adapters
and layers their results in precedence order.
"""

from typing import Callable, Optional, Sequence

from .command_line import parse_command_line
from .environment import Environment
from .errors import InternalError, OptionsError, TypeMismatch
from .ini_config import parse_ini_config
from .section import OptionSection
from .value import OptionType, Value
from .yaml_config import compose_yaml_config, is_yaml_config, parse_yaml_config
from ..utils.helpers import read_text_file
from ..utils.logger import get_logger, log_config_operation, log_config_error, log_resolved_options

CONFIG_KEY = "config"


class OptionsParser:
    """
    Resolves runtime options from every source into one Environment.

    Precedence, lowest to highest:
    1. Schema defaults
    2. Config file (YAML or INI, named by the ``config`` option)
    3. Command line
    4. Composed values: composing options accumulate the config file
       elements followed by the command-line elements instead of overriding

    Schema constraints are attached to the result but not evaluated; call
    ``Environment.validate`` for that.
    """

    def __init__(self, read_file: Optional[Callable[[str], str]] = None):
        """
        Initialize the parser.

        Args:
            read_file: Collaborator returning a config file's text; it should
                raise OSError when the file cannot be read. Defaults to
                reading from the local filesystem.

        Example:
            >>> parser = OptionsParser()
            >>> env = parser.run(section, ["mongod", "--config", "mongod.conf"])
        """
        self.read_file = read_file or read_text_file
        self.logger = get_logger(__name__)

    def parse_command_line(self, options: OptionSection, argv: Sequence[str]) -> Environment:
        return parse_command_line(options, argv)

    def parse_ini_config(self, options: OptionSection, config_text: str) -> Environment:
        return parse_ini_config(options, config_text)

    def parse_yaml_config(self, options: OptionSection, config_text: str) -> Environment:
        return parse_yaml_config(options, config_text)

    def read_config_file(self, filename: str) -> str:
        """
        Read the config file through the reader collaborator.

        Raises:
            InternalError: With the operating system's error text
        """
        try:
            return self.read_file(filename)
        except OSError as e:
            raise InternalError(f"Error reading config file: {e.strerror or e}") from e
        except UnicodeDecodeError as e:
            raise InternalError(f"Error reading config file: {e}") from e

    def parse_config_file(self, options: OptionSection, filename: str) -> Environment:
        """
        Read a config file, detect its format and parse it.

        A document whose root is a bare scalar is treated as INI; everything
        else, including an empty document, is parsed as YAML.
        """
        contents = self.read_config_file(filename)

        if is_yaml_config(compose_yaml_config(contents)):
            config_format = "YAML"
            environment = self.parse_yaml_config(options, contents)
        else:
            config_format = "INI"
            environment = self.parse_ini_config(options, contents)

        log_config_operation(
            self.logger, "PARSE_CONFIG_FILE",
            f"file='{filename}', format={config_format}, options={len(environment)}"
        )
        return environment

    @staticmethod
    def add_compositions(options: OptionSection, config_environment: Environment,
                         command_line_environment: Environment) -> Environment:
        """
        Concatenate composing options across sources.

        Config file elements come first, command-line elements after, each in
        its source order. Options absent from both sources are skipped.

        Raises:
            InternalError: If a composing option holds a non-vector value
        """
        composed = Environment()
        for option in options.get_all_options():
            if not option.is_composing:
                continue
            elements = []
            present = False
            for source in (config_environment, command_line_environment):
                if option.dotted_name not in source:
                    continue
                try:
                    elements.extend(source.get(option.dotted_name).as_string_vector())
                except TypeMismatch as e:
                    raise InternalError(f"Error getting composable vector value: {e}") from e
                present = True
            if present:
                composed.set(option.dotted_name, Value(OptionType.STRING_VECTOR, elements))
        return composed

    @staticmethod
    def add_default_values(options: OptionSection, environment: Environment) -> None:
        for key, value in options.get_defaults().items():
            environment.set_default(key, value)

    @staticmethod
    def add_constraints(options: OptionSection, environment: Environment) -> None:
        for constraint in options.get_constraints():
            environment.add_constraint(constraint)

    def run(self, options: OptionSection, argv: Sequence[str],
            environment: Optional[Environment] = None) -> Environment:
        """
        Resolve every source into one Environment.

        Args:
            options: Option schema
            argv: Program name followed by its arguments
            environment: Optional caller-owned Environment that receives the
                result; it is only touched once resolution has succeeded

        Returns:
            The resolved Environment (``environment`` when one was given)

        Raises:
            OptionsError: If any stage fails; nothing is returned or written
                to ``environment`` in that case
        """
        try:
            command_line_environment = self.parse_command_line(options, argv)
            log_config_operation(
                self.logger, "PARSE_COMMAND_LINE", f"options={len(command_line_environment)}"
            )

            if CONFIG_KEY in command_line_environment:
                filename = command_line_environment.get(CONFIG_KEY).as_string()
                config_environment = self.parse_config_file(options, filename)
            else:
                config_environment = Environment()

            composed_environment = self.add_compositions(
                options, config_environment, command_line_environment
            )

            result = Environment()
            self.add_default_values(options, result)
            result.set_all(config_environment)
            result.set_all(command_line_environment)
            result.set_all(composed_environment)
            self.add_constraints(options, result)

        except OptionsError as e:
            log_config_error(self.logger, "RUN", e)
            raise

        log_config_operation(
            self.logger, "RESOLVE",
            f"options={len(result)}, composed={len(composed_environment)}, "
            f"constraints={len(result.constraints)}"
        )
        log_resolved_options(
            self.logger, ((key, str(value), result.is_default(key)) for key, value in result.items())
        )

        if environment is None:
            return result
        environment.set_all(result)
        for constraint in result.constraints:
            environment.add_constraint(constraint)
        return environment
