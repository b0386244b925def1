"""Tracer configuration settings.

This module provides the TraceSettings class and settings singleton.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

from log_trace.config.env_loader import Environment, get_environment, load_env_files
from log_trace.config.validators import (
    resolve_path,
    validate_context_scope,
    validate_log_format,
    validate_log_level,
)

log = structlog.get_logger(__name__)


class TraceSettings(BaseSettings):
    """Unified tracer configuration.

    Loads configuration from environment variables (and .env files loaded by
    env_loader) with defaults. Validates all values using Pydantic.
    """

    model_config = SettingsConfigDict(
        # .env files are loaded manually via env_loader to support
        # environment-specific files with priority order.
        env_prefix="LOG_TRACE_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Environment = Field(
        default_factory=get_environment, description="Current environment"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="APP_LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="console", alias="APP_LOG_FORMAT", description="Log format (json or console)"
    )
    log_dir: Path | None = Field(
        default=None, description="Directory for rotating JSON trace logs (disabled when unset)"
    )

    # Tracer
    id_length: int = Field(
        default=8, ge=4, le=32, description="Number of uuid4 characters used as trace identity"
    )
    strict_pairing: bool = Field(
        default=False,
        description="Raise TraceMisuseError when end/exception does not match the innermost span",
    )
    context_scope: str = Field(
        default="thread",
        description="Ambient slot scope: 'thread' (threading.local) or 'context' (contextvars)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        return validate_log_level(v)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        return validate_log_format(v)

    @field_validator("context_scope")
    @classmethod
    def validate_context_scope(cls, v: str) -> str:
        """Validate ambient slot scope."""
        return validate_context_scope(v)

    @field_validator("log_dir", mode="before")
    @classmethod
    def resolve_log_dir(cls, v: Path | str | None) -> Path | None:
        """Resolve relative paths to absolute."""
        return resolve_path(v)


_settings: TraceSettings | None = None


def load_trace_settings(project_root: Path | None = None) -> TraceSettings:
    """Load and validate tracer configuration.

    This function:
    1. Loads .env files in priority order (via env_loader)
    2. Creates TraceSettings instance (reads from environment variables)
    3. Validates all values using Pydantic
    4. Logs configuration loading using structlog

    Args:
        project_root: Directory holding the .env files (defaults to cwd).

    Returns:
        Validated TraceSettings instance.

    Raises:
        ValidationError: If configuration validation fails.
    """
    log.info("loading_trace_settings", environment=get_environment().value)

    load_env_files(project_root)

    try:
        settings = TraceSettings()
        log.info(
            "trace_settings_loaded",
            environment=settings.environment.value,
            log_level=settings.log_level,
            log_format=settings.log_format,
            strict_pairing=settings.strict_pairing,
            context_scope=settings.context_scope,
        )
        return settings
    except Exception as e:
        log.error("trace_settings_load_failed", error=str(e), error_type=type(e).__name__)
        raise


def get_settings() -> TraceSettings:
    """Get the tracer settings singleton.

    Returns:
        TraceSettings instance (singleton pattern).
    """
    global _settings
    if _settings is None:
        _settings = load_trace_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
