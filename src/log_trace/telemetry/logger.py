"""Structured logging configuration using structlog.

This module configures structlog on top of stdlib logging with:
- Pretty-printed console output (or JSON lines when APP_LOG_FORMAT=json)
- Optional rotating JSON file output when a log directory is configured
- UTC timestamps
- Component tracking derived from the logger name

log-trace is a library: nothing here runs on import or on get_logger().
configure_logging() replaces the root handlers, so only an application (the
log-trace CLI, or a host that wants this setup) should call it.
"""

import logging
import logging.handlers
import pathlib
import sys
from datetime import datetime, timezone
from typing import Any

import structlog


def _get_log_level() -> str:
    """Get log level from configuration.

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    # Bootstrap from environment to avoid circular imports during startup.
    from log_trace.config.bootstrap import get_bootstrap_log_level  # noqa: PLC0415

    return get_bootstrap_log_level()


def _get_log_format() -> str:
    from log_trace.config.bootstrap import get_bootstrap_log_format  # noqa: PLC0415

    return get_bootstrap_log_format()


def _get_log_dir() -> pathlib.Path | None:
    """Get log directory path, or None when file logging is disabled."""
    from log_trace.config.bootstrap import get_bootstrap_log_dir  # noqa: PLC0415

    log_dir = get_bootstrap_log_dir()
    return pathlib.Path(log_dir) if log_dir else None


def _add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add an ISO-8601 UTC timestamp to a foreign (stdlib) log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_component(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add the last dotted part of the stdlib logger name as `component`."""
    # Guard against None logger (can happen with third-party libraries during shutdown)
    if logger is None or not hasattr(logger, "name"):
        event_dict["component"] = "unknown"
        return event_dict

    event_dict["component"] = logger.name.split(".")[-1]
    return event_dict


def _add_component_from_event_dict(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog counterpart of _add_component; runs after add_logger_name."""
    logger_name = event_dict.get("logger", "")
    event_dict["component"] = logger_name.split(".")[-1] if logger_name else "unknown"
    return event_dict


_FOREIGN_PRE_CHAIN: list[Any] = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    _add_timestamp,
    _add_component,
]


def _configure_file_handler(log_dir: pathlib.Path) -> logging.handlers.RotatingFileHandler:
    """Configure rotating file handler for JSON logs.

    Args:
        log_dir: Directory for log files.

    Returns:
        Configured RotatingFileHandler.
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=str(log_dir / "trace.jsonl"),
        maxBytes=50 * 1024 * 1024,  # 50 MB
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_FOREIGN_PRE_CHAIN,
        )
    )
    return handler


def _configure_console_handler(log_format: str) -> logging.StreamHandler[Any]:
    """Configure console handler.

    Args:
        log_format: 'console' for pretty output, 'json' for JSON lines.

    Returns:
        Configured StreamHandler.
    """
    handler = logging.StreamHandler(sys.stderr)

    if log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=_FOREIGN_PRE_CHAIN,
        )
    )
    return handler


def configure_logging(
    log_level: str | None = None,
    log_format: str | None = None,
    log_dir: pathlib.Path | None = None,
) -> None:
    """Configure structlog for structured logging.

    Call once at application startup; existing root handlers are removed. Arguments left as None fall back to
    the bootstrap environment variables (APP_LOG_LEVEL, APP_LOG_FORMAT,
    LOG_TRACE_LOG_DIR).

    Args:
        log_level: Console log level name.
        log_format: 'console' or 'json'.
        log_dir: Directory for the rotating JSON file handler.
    """
    log_level = log_level or _get_log_level()
    log_format = log_format or _get_log_format()
    log_dir = log_dir or _get_log_dir()

    # Root logger accepts all levels; individual handlers gate output.
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    configured_level = getattr(logging, log_level, logging.INFO)

    console_handler = _configure_console_handler(log_format)
    console_handler.setLevel(configured_level)
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        # File handler captures INFO+ (trace lines) regardless of console level
        file_handler = _configure_file_handler(log_dir)
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            _add_component_from_event_dict,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:  # structlog lazy proxy
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module).

    Returns:
        structlog logger. It follows whatever structlog configuration the
        application has set up when it first logs.

    Example:
        >>> from log_trace.telemetry import get_logger
        >>> log = get_logger(__name__)
        >>> log.info("trace_settings_loaded", strict_pairing=False)
    """
    return structlog.get_logger(name)
