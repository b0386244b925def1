"""Build a tracer from TraceSettings."""

from typing import Any

from log_trace.config import TraceSettings, get_settings
from log_trace.telemetry import TRACER_BUILT, get_logger
from log_trace.trace.holder import (
    ContextVarSpanHolder,
    ThreadLocalSpanHolder,
    SpanHolder,
)
from log_trace.trace.log_trace import ThreadLocalLogTrace

log = get_logger(__name__)


def build_holder(context_scope: str) -> SpanHolder:
    """Ambient slot implementation for a scope name ('thread' or 'context')."""
    if context_scope == "context":
        return ContextVarSpanHolder()
    if context_scope == "thread":
        return ThreadLocalSpanHolder()
    raise ValueError(f"Unknown context scope: {context_scope}")


def build_log_trace(settings: TraceSettings | None = None, logger: Any = None) -> ThreadLocalLogTrace:
    """Create the ambient tracer described by settings.

    Args:
        settings: Tracer settings. Defaults to the settings singleton.
        logger: structlog logger for trace lines. Defaults to the tracer's own.

    Returns:
        Configured ThreadLocalLogTrace.
    """
    if settings is None:
        settings = get_settings()

    trace = ThreadLocalLogTrace(
        holder=build_holder(settings.context_scope),
        strict_pairing=settings.strict_pairing,
        logger=logger,
        id_length=settings.id_length,
    )
    log.debug(
        TRACER_BUILT,
        context_scope=settings.context_scope,
        strict_pairing=settings.strict_pairing,
        id_length=settings.id_length,
    )
    return trace
