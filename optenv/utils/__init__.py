"""
Utility functions module.

Provides file helpers, dotted-key nesting and logging utilities.
"""

from .helpers import (
    ensure_directory_exists, nest_dotted_keys, read_text_file, safe_load_yaml, validate_file_exists
)
from .logger import get_logger, setup_logging, log_config_operation, log_config_error, log_resolved_options

__all__ = [
    "ensure_directory_exists",
    "nest_dotted_keys",
    "read_text_file",
    "safe_load_yaml",
    "validate_file_exists",
    "get_logger",
    "setup_logging",
    "log_config_operation",
    "log_config_error",
    "log_resolved_options"
]
