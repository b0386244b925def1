"""Configuration management for the tracer.

Settings come from environment variables (prefix ``LOG_TRACE_``), optional
.env files and defaults.
"""

from log_trace.config.env_loader import Environment, get_environment, load_env_files
from log_trace.config.settings import (
    TraceSettings,
    get_settings,
    load_trace_settings,
    reset_settings,
)

__all__ = [
    "TraceSettings",
    "get_settings",
    "load_trace_settings",
    "reset_settings",
    "Environment",
    "get_environment",
    "load_env_files",
]
