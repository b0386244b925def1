"""Call-depth-aware execution tracing."""

from log_trace.trace.errors import TraceError, TraceMisuseError
from log_trace.trace.factory import build_holder, build_log_trace
from log_trace.trace.holder import (
    ContextVarSpanHolder,
    ThreadLocalSpanHolder,
    SpanHolder,
)
from log_trace.trace.log_trace import (
    COMPLETE_PREFIX,
    EX_PREFIX,
    START_PREFIX,
    ExplicitLogTrace,
    LogTrace,
    ThreadLocalLogTrace,
    add_space,
)
from log_trace.trace.outcome import Failure, Outcome, Success, capture, capture_async
from log_trace.trace.status import TraceStatus
from log_trace.trace.template import AbstractTraceTemplate, TraceTemplate, span, traced
from log_trace.trace.trace_id import TraceId

__all__ = [
    # Values
    "TraceId",
    "TraceStatus",
    # Ambient slot
    "SpanHolder",
    "ThreadLocalSpanHolder",
    "ContextVarSpanHolder",
    # Engines
    "LogTrace",
    "ExplicitLogTrace",
    "ThreadLocalLogTrace",
    "add_space",
    "START_PREFIX",
    "COMPLETE_PREFIX",
    "EX_PREFIX",
    # Wrapping
    "TraceTemplate",
    "AbstractTraceTemplate",
    "span",
    "traced",
    "Outcome",
    "Success",
    "Failure",
    "capture",
    "capture_async",
    # Wiring
    "build_log_trace",
    "build_holder",
    # Errors
    "TraceError",
    "TraceMisuseError",
]
