"""
Option registry files.

An application can declare its options in a YAML registry file instead of
calling ``OptionSection.add_option`` by hand. This module loads JSON schemas,
validates registry data against them, and builds the OptionSection.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from .section import OptionSection, OptionSource
from .value import OptionType
from ..utils.helpers import read_text_file, safe_load_yaml, validate_file_exists
from ..utils.logger import get_logger, log_config_operation, log_config_error

DEFAULT_SCHEMAS_DIR = Path(__file__).resolve().parent.parent / "schemas"
REGISTRY_SCHEMA = "option-registry"


class RegistryLoader:
    """
    Loads option registries validated against JSON schemas.

    Schemas are read from ``<schemas_dir>/<name>.schema.json`` and cached.
    """

    def __init__(self, schemas_dir: Path = DEFAULT_SCHEMAS_DIR):
        """
        Initialize registry loader with schemas directory.

        Args:
            schemas_dir: Path to directory containing JSON schema files

        Raises:
            FileNotFoundError: If schemas directory doesn't exist
        """
        self.schemas_dir = Path(schemas_dir)
        self.logger = get_logger(__name__)

        if not self.schemas_dir.is_dir():
            raise FileNotFoundError(f"Schemas directory not found: {self.schemas_dir}")

        self._schema_cache: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Load a JSON schema from file with caching.

        Args:
            schema_name: Name of schema file (without .schema.json extension)

        Returns:
            Loaded JSON schema as dictionary

        Raises:
            FileNotFoundError: If schema file doesn't exist
            json.JSONDecodeError: If schema file contains invalid JSON
            jsonschema.SchemaError: If the file is not a valid JSON schema
        """
        if schema_name in self._schema_cache:
            return self._schema_cache[schema_name]

        schema_path = self.schemas_dir / f"{schema_name}.schema.json"
        validate_file_exists(schema_path, f"Schema file '{schema_name}'")

        try:
            schema = json.loads(read_text_file(schema_path))
            Draft7Validator.check_schema(schema)
        except json.JSONDecodeError as e:
            raise json.JSONDecodeError(
                f"Invalid JSON in schema file {schema_path}: {str(e)}",
                e.doc, e.pos
            )
        except jsonschema.SchemaError as e:
            raise jsonschema.SchemaError(f"Invalid JSON schema in {schema_path}: {e.message}")

        self._schema_cache[schema_name] = schema
        self.logger.debug(f"Loaded schema: {schema_name}")
        return schema

    def validate_against_schema(self, data: Dict[str, Any], schema: Dict[str, Any]) -> None:
        """
        Validate data against a JSON schema.

        Only the most relevant error is reported, phrased for registry
        authors, e.g. ``Value at 'options -> 3 -> type' must be one of: [...]``.

        Raises:
            jsonschema.ValidationError: With a message naming the failing path
        """
        error = best_match(Draft7Validator(schema).iter_errors(data))
        if error is None:
            return

        path = " -> ".join(str(p) for p in error.absolute_path) or "root"
        messages = {
            "required": f"Missing required properties at '{path}': {error.message}",
            "enum": f"Value at '{path}' must be one of: {error.validator_value}",
            "pattern": f"Value at '{path}' is not a dotted option name: {error.instance!r}",
            "additionalProperties": f"Unexpected property at '{path}': {error.message}",
        }
        raise jsonschema.ValidationError(
            messages.get(error.validator, f"Validation failed at '{path}': {error.message}")
        )

    def build_section(self, data: Dict[str, Any]) -> OptionSection:
        """
        Validate registry data and build an OptionSection from it.

        Raises:
            jsonschema.ValidationError: If the data does not match the schema
            BadValue: If the options are inconsistent (duplicates, bad defaults)
        """
        self.validate_against_schema(data, self.load_schema(REGISTRY_SCHEMA))
        return _build_section(data)

    def load_option_section(self, registry_path: Path) -> OptionSection:
        """
        Load a YAML registry file into an OptionSection.

        Example:
            >>> loader = RegistryLoader()
            >>> section = loader.load_option_section(Path("configs/mongod-options.yaml"))
        """
        try:
            section = self.build_section(safe_load_yaml(Path(registry_path), "Option registry"))
        except Exception as e:
            log_config_error(self.logger, "LOAD_REGISTRY", e, f"file='{registry_path}'")
            raise

        log_config_operation(
            self.logger, "LOAD_REGISTRY",
            f"file='{registry_path}', options={len(section.get_all_options())}"
        )
        return section


def _build_section(data: Dict[str, Any]) -> OptionSection:
    section = OptionSection(data.get("name", ""))
    for entry in data.get("options", []):
        _add_option(section, entry)
    for child in data.get("sections", []):
        section.add_section(_build_section(child))
    return section


def _add_option(section: OptionSection, entry: Dict[str, Any]) -> None:
    dotted_name = entry["name"]
    format_entry: Optional[Dict[str, str]] = entry.get("format")
    positional = entry.get("positional")
    valid_range = entry.get("valid_range")

    section.add_option(
        dotted_name,
        entry.get("single_name", dotted_name.split(".")[-1]),
        OptionType.from_name(entry["type"]),
        entry.get("description", ""),
        sources=OptionSource.from_names(entry.get("sources", ["all"])),
        composing=entry.get("composing", False),
        default=entry.get("default"),
        positional=tuple(positional) if positional else None,
        valid_range=tuple(valid_range) if valid_range else None,
        requires=entry.get("requires", ()),
        incompatible_with=entry.get("incompatible_with", ()),
        format=(format_entry["regex"], format_entry["display"]) if format_entry else None,
        immutable=entry.get("immutable", False),
    )
