"""
Helper utility functions for option resolution.

This module provides the small file and dictionary helpers shared by the
config file reader, the option registry loader and the YAML exporter.
"""

from pathlib import Path
from typing import Any, Dict, Union

import yaml


def read_text_file(file_path: Union[str, Path]) -> str:
    """
    Read a whole text file.

    The handle is closed on every exit path.

    Args:
        file_path: Path to the file

    Returns:
        File contents

    Raises:
        OSError: If the file cannot be opened or read
    """
    with open(file_path, "r", encoding="utf-8") as file:
        return file.read()


def safe_load_yaml(file_path: Path, description: str = "YAML file") -> Dict[str, Any]:
    """
    Load a YAML file whose top level must be a mapping.

    Used for option registries, whose content is ordinary data. Config files
    go through the node-level YAML adapter instead.

    Raises:
        FileNotFoundError: If the file is missing or is a directory
        yaml.YAMLError: If the text is not valid YAML
        ValueError: If the document is empty or not a mapping
    """
    validate_file_exists(file_path, description)

    try:
        content = yaml.safe_load(read_text_file(file_path))
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in {description} {file_path}: {e}") from e

    if content is None:
        raise ValueError(f"{description} is empty: {file_path}")
    if not isinstance(content, dict):
        raise ValueError(
            f"{description} must contain a mapping at the top level, "
            f"got {type(content).__name__}: {file_path}"
        )
    return content


def validate_file_exists(file_path: Union[str, Path], description: str) -> None:
    """
    Raise FileNotFoundError unless ``file_path`` is an existing regular file.

    ``description`` names the file in the message, e.g. ``"Schema file 'x'"``.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"{description} not found at '{file_path}'")
    if not file_path.is_file():
        raise FileNotFoundError(f"{description} at '{file_path}' is a directory, expected a file")


def nest_dotted_keys(flat: Dict[str, Any], value_field: str = "value") -> Dict[str, Any]:
    """
    Turn a flat dotted-key dictionary into nested dictionaries.

    When a key is both a leaf and the parent of other keys, its own value is
    stored under ``value_field``.

    Example:
        >>> nest_dotted_keys({"net.port": 1, "net": "x", "fork": True})
        {'net': {'port': 1, 'value': 'x'}, 'fork': True}
    """
    result: Dict[str, Any] = {}
    for key, value in flat.items():
        parts = key.split(".")
        node = result
        for part in parts[:-1]:
            if part not in node:
                node[part] = {}
            elif not isinstance(node[part], dict):
                node[part] = {value_field: node[part]}
            node = node[part]

        leaf = parts[-1]
        if isinstance(node.get(leaf), dict):
            node[leaf][value_field] = value
        else:
            node[leaf] = value
    return result


def ensure_directory_exists(directory: Path) -> None:
    """Create ``directory`` and its parents if they are missing."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OSError(f"Failed to create output directory {directory}: {e}") from e
