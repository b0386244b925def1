"""Status of an open trace span."""

from dataclasses import dataclass, field

from log_trace.trace.trace_id import TraceId


@dataclass(frozen=True)
class TraceStatus:
    """Record of a span that has begun but not yet ended.

    Returned by ``begin`` and handed back, exactly once, to ``end`` or
    ``exception``. Each call to ``begin`` creates a distinct object, so two
    sibling spans with equal TraceIds are still told apart by identity.

    Attributes:
        trace_id: TraceId the span was started with.
        start_time_ms: Clock reading in milliseconds when the span began.
        message: Operation name logged for the span.
        parent: Enclosing open span on the ambient tracer; None for roots and
            for spans of the explicit tracer.
    """

    trace_id: TraceId
    start_time_ms: int
    message: str
    parent: "TraceStatus | None" = field(default=None, repr=False, compare=False)
