"""log-trace: call-depth-aware execution tracing over structlog."""

from log_trace.trace import (
    AbstractTraceTemplate,
    ExplicitLogTrace,
    LogTrace,
    ThreadLocalLogTrace,
    TraceId,
    TraceMisuseError,
    TraceStatus,
    TraceTemplate,
    build_log_trace,
    span,
    traced,
)

__version__ = "0.1.0"

__all__ = [
    "TraceId",
    "TraceStatus",
    "LogTrace",
    "ExplicitLogTrace",
    "ThreadLocalLogTrace",
    "TraceTemplate",
    "AbstractTraceTemplate",
    "span",
    "traced",
    "build_log_trace",
    "TraceMisuseError",
]
