"""
Logging utility for the option resolution system.

Every module logs through ``get_logger(__name__)``. The merge engine and the
registry loader report each stage with ``log_config_operation`` and every
failure with ``log_config_error`` before re-raising, so a single DEBUG run
shows where a configuration value came from.
"""

import logging
import sys
from typing import IO, Iterable, Optional, Tuple, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries whose own logging is only interesting when something goes wrong
QUIET_LOGGERS = ("yaml", "jsonschema", "click")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with consistent formatting.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("Parsed 3 options from INI config")
    """
    return logging.getLogger(name)


def setup_logging(level: Union[str, int] = "INFO", format_string: Optional[str] = None,
                  stream: Optional[IO[str]] = None) -> None:
    """
    Configure the root logger for the application.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR) or logging constant
        format_string: Custom format string for log messages
        stream: Output stream; defaults to stderr so that documents written
            to stdout stay machine readable

    Raises:
        ValueError: If the level name is unknown
    """
    if isinstance(level, str):
        numeric_level = logging.getLevelName(level.upper())
        if not isinstance(numeric_level, int):
            raise ValueError(f"Invalid log level: {level}")
    else:
        numeric_level = level

    logging.basicConfig(
        level=numeric_level,
        format=format_string or DEFAULT_FORMAT,
        handlers=[logging.StreamHandler(stream or sys.stderr)],
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_config_operation(logger: logging.Logger, operation: str, details: str) -> None:
    """
    Log an option resolution stage as ``[OPERATION] details``.

    Example:
        >>> log_config_operation(logger, "PARSE_COMMAND_LINE", "options=3")
    """
    logger.info(f"[{operation}] {details}")


def log_config_error(logger: logging.Logger, operation: str, error: Exception, context: str = "") -> None:
    """
    Log a failed stage; the caller re-raises the error afterwards.

    Args:
        logger: Logger instance
        operation: Stage that failed
        error: Exception that occurred
        context: Additional context, e.g. the file being read
    """
    context_str = f" ({context})" if context else ""
    logger.error(f"[{operation}] FAILED{context_str}: {error}")


def log_resolved_options(logger: logging.Logger, entries: Iterable[Tuple[str, str, bool]]) -> None:
    """
    Log every resolved option at DEBUG as ``key = value (origin)``.

    Args:
        logger: Logger instance
        entries: ``(key, rendered value, is_default)`` triples
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return
    for key, rendered, is_default in entries:
        origin = "default" if is_default else "explicit"
        logger.debug(f"  {key} = {rendered} ({origin})")
