"""Telemetry module for structured logging.

This module provides:
- Structured logging via structlog
- Semantic event constants
"""

from log_trace.telemetry.events import (
    TRACE_BEGIN,
    TRACE_END,
    TRACE_EXCEPTION,
    TRACE_STATUS_MISMATCH,
    TRACER_BUILT,
)
from log_trace.telemetry.logger import configure_logging, get_logger

__all__ = [
    "get_logger",
    "configure_logging",
    # Event constants
    "TRACE_BEGIN",
    "TRACE_END",
    "TRACE_EXCEPTION",
    "TRACE_STATUS_MISMATCH",
    "TRACER_BUILT",
]
