"""Custom Pydantic validators for configuration.

This module provides validators shared by the settings model and the
bootstrap helpers that run before settings exist.
"""

from pathlib import Path


def validate_log_level(value: str) -> str:
    """Validate log level is one of the standard levels.

    Args:
        value: Log level string.

    Returns:
        Validated log level.

    Raises:
        ValueError: If log level is not valid.
    """
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if value.upper() not in valid_levels:
        raise ValueError(f"log_level must be one of {valid_levels}, got {value}")
    return value.upper()


def validate_log_format(value: str) -> str:
    """Validate log format is 'json' or 'console'.

    Args:
        value: Log format string.

    Returns:
        Validated log format.

    Raises:
        ValueError: If log format is not valid.
    """
    valid_formats = {"json", "console"}
    if value.lower() not in valid_formats:
        raise ValueError(f"log_format must be one of {valid_formats}, got {value}")
    return value.lower()


def validate_context_scope(value: str) -> str:
    """Validate the ambient slot scope is 'thread' or 'context'.

    Args:
        value: Scope name.

    Returns:
        Lowercased scope name.

    Raises:
        ValueError: If the scope is not recognised.
    """
    valid_scopes = {"thread", "context"}
    if value.lower() not in valid_scopes:
        raise ValueError(f"context_scope must be one of {valid_scopes}, got {value}")
    return value.lower()


def resolve_path(value: Path | str | None) -> Path | None:
    """Resolve relative paths against the current working directory.

    Args:
        value: Path value (string, Path or None).

    Returns:
        Absolute Path, or None when no path was configured.
    """
    if value is None or value == "":
        return None

    path = Path(value) if isinstance(value, str) else value
    return path.expanduser().resolve()
