"""Call-depth-aware log tracer.

Emits one line when a span begins and one when it ends, normally or with an
exception. Every line carries the transaction identity and an indentation
that grows with call depth:

    [3f2a9c1b] OrderController.request()
    [3f2a9c1b] |-->OrderService.order_item()
    [3f2a9c1b] |   |-->OrderRepository.save()
    [3f2a9c1b] |   |<X-OrderRepository.save() time = 0ms ex = ValueError('bad item')
    [3f2a9c1b] |<X-OrderService.order_item() time = 1ms ex = ValueError('bad item')
    [3f2a9c1b] OrderController.request() time = 2ms ex = ValueError('bad item')

Two engines share the formatting:

- ExplicitLogTrace: the caller passes the parent TraceId to begin_child().
- ThreadLocalLogTrace: the current TraceId lives in an ambient slot
  (SpanHolder), so begin() nests automatically.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from log_trace.telemetry import (
    TRACE_BEGIN,
    TRACE_END,
    TRACE_EXCEPTION,
    TRACE_STATUS_MISMATCH,
    get_logger,
)
from log_trace.trace.errors import TraceMisuseError
from log_trace.trace.holder import SpanHolder, ThreadLocalSpanHolder
from log_trace.trace.outcome import Failure, Outcome
from log_trace.trace.status import TraceStatus
from log_trace.trace.trace_id import DEFAULT_ID_LENGTH, TraceId

START_PREFIX = "-->"
COMPLETE_PREFIX = "<--"
EX_PREFIX = "<X-"


def monotonic_ms() -> int:
    """Milliseconds from the monotonic clock."""
    return time.monotonic_ns() // 1_000_000


def add_space(prefix: str, depth: int) -> str:
    """Indentation for a line at the given depth.

    - depth 0: ""
    - depth 1: "|-->"
    - depth 2: "|   |-->"

    Args:
        prefix: Marker for the line kind (START_PREFIX, COMPLETE_PREFIX, EX_PREFIX).
        depth: Call depth of the span.
    """
    if depth <= 0:
        return ""
    return "|   " * (depth - 1) + "|" + prefix


def format_begin_line(trace_id: TraceId, message: str) -> str:
    return f"[{trace_id.identity}] {add_space(START_PREFIX, trace_id.depth)}{message}"


def format_end_line(status: TraceStatus, elapsed_ms: int, error: BaseException | None = None) -> str:
    """Format a completion line, exceptional when error is given."""
    trace_id = status.trace_id
    if error is None:
        return (
            f"[{trace_id.identity}] {add_space(COMPLETE_PREFIX, trace_id.depth)}"
            f"{status.message} time = {elapsed_ms}ms"
        )
    return (
        f"[{trace_id.identity}] {add_space(EX_PREFIX, trace_id.depth)}"
        f"{status.message} time = {elapsed_ms}ms ex = {error!r}"
    )


class LogTrace(ABC):
    """Base tracer: line formatting, timing and emission.

    Subclasses decide which TraceId a new span gets (begin) and what happens
    to ambient state when a span completes.

    Args:
        logger: structlog logger receiving the trace lines. Defaults to
            ``get_logger("log_trace.trace")``.
        clock: Zero-argument callable returning milliseconds. Defaults to the
            monotonic clock.
        id_length: Length of identities generated for new transactions.
    """

    def __init__(
        self,
        logger: Any = None,
        clock: Callable[[], int] | None = None,
        id_length: int = DEFAULT_ID_LENGTH,
    ) -> None:  # noqa: D107
        self._log = logger if logger is not None else get_logger("log_trace.trace")
        self._clock = clock or monotonic_ms
        self._id_length = id_length

    @abstractmethod
    def begin(self, message: str) -> TraceStatus:
        """Open a span and log its start line.

        Args:
            message: Operation name, e.g. "OrderService.order_item()".

        Returns:
            Status to pass to end() or exception().
        """

    def end(self, status: TraceStatus) -> None:
        """Close a span that returned normally."""
        self._complete(status, None)

    def exception(self, status: TraceStatus, error: BaseException) -> None:
        """Close a span that raised. The error is logged, never swallowed or re-raised here."""
        self._complete(status, error)

    def complete(self, status: TraceStatus, outcome: Outcome[Any]) -> None:
        """Close a span according to how its unit of work finished.

        Args:
            status: Status returned by begin().
            outcome: Success or Failure of the unit of work.
        """
        if isinstance(outcome, Failure):
            self.exception(status, outcome.error)
        else:
            self.end(status)

    def _new_trace_id(self) -> TraceId:
        return TraceId.new(self._id_length)

    def _start(
        self, trace_id: TraceId, message: str, parent: TraceStatus | None = None
    ) -> TraceStatus:
        start_time_ms = self._clock()
        self._log.info(
            format_begin_line(trace_id, message),
            phase=TRACE_BEGIN,
            trace_id=trace_id.identity,
            depth=trace_id.depth,
        )
        return TraceStatus(
            trace_id=trace_id, start_time_ms=start_time_ms, message=message, parent=parent
        )

    def _complete(self, status: TraceStatus, error: BaseException | None) -> None:
        self._check_pairing(status)

        elapsed_ms = self._clock() - status.start_time_ms
        self._log.info(
            format_end_line(status, elapsed_ms, error),
            phase=TRACE_END if error is None else TRACE_EXCEPTION,
            trace_id=status.trace_id.identity,
            depth=status.trace_id.depth,
            elapsed_ms=elapsed_ms,
        )

        self._release(status)

    def _check_pairing(self, status: TraceStatus) -> None:
        """Hook run before a completion line is emitted."""

    def _release(self, status: TraceStatus) -> None:
        """Hook run after a completion line is emitted."""


class ExplicitLogTrace(LogTrace):
    """Tracer without ambient state.

    Nested calls must be started with begin_child(), passing the TraceId of
    the enclosing span (``status.trace_id``). Useful where ambient propagation
    does not apply, e.g. when the parent TraceId was handed to another thread.
    """

    def begin(self, message: str) -> TraceStatus:
        """Open a root span for a new transaction."""
        return self._start(self._new_trace_id(), message)

    def begin_child(self, parent_id: TraceId, message: str) -> TraceStatus:
        """Open a span nested one level below parent_id.

        Args:
            parent_id: TraceId of the enclosing span.
            message: Operation name.
        """
        return self._start(parent_id.next_depth(), message)

    begin_sync = begin_child


class ThreadLocalLogTrace(LogTrace):
    """Tracer propagating the current span through an ambient slot.

    begin() starts a new transaction when the slot is empty and nests one
    level deeper otherwise. end() and exception() step the slot back to the
    enclosing span and clear it when the root span closes, so a thread reused
    for an unrelated request starts from scratch.

    Spans must close innermost first. A span that never closes leaves the
    slot elevated for the rest of the thread's life; prefer TraceTemplate or
    the traced decorator, which always close what they open.

    Pairing is checked on every completion by comparing the status with the
    innermost open span by identity, so a sibling that already closed is
    never mistaken for the open one:

    - strict_pairing=False (default): log a ``trace_status_mismatch``
      warning, emit the completion line anyway and repair the slot where the
      status allows it (closing an outer span abandons the inner ones; stale,
      already-closed or foreign statuses leave the slot untouched).
    - strict_pairing=True: raise TraceMisuseError before anything is logged.

    Args:
        holder: Ambient slot. Defaults to a ThreadLocalSpanHolder.
        strict_pairing: Misuse policy, see above.
        logger: structlog logger receiving the trace lines.
        clock: Millisecond clock.
        id_length: Length of generated identities.
    """

    def __init__(
        self,
        holder: SpanHolder | None = None,
        strict_pairing: bool = False,
        logger: Any = None,
        clock: Callable[[], int] | None = None,
        id_length: int = DEFAULT_ID_LENGTH,
    ) -> None:  # noqa: D107
        super().__init__(logger=logger, clock=clock, id_length=id_length)
        self._holder = holder if holder is not None else ThreadLocalSpanHolder()
        self._strict_pairing = strict_pairing

    @property
    def strict_pairing(self) -> bool:
        return self._strict_pairing

    def current_trace_id(self) -> TraceId | None:
        """TraceId of the innermost open span in this context, if any."""
        current = self._holder.get()
        return current.trace_id if current is not None else None

    def begin(self, message: str) -> TraceStatus:
        current = self._holder.get()
        trace_id = self._new_trace_id() if current is None else current.trace_id.next_depth()
        status = self._start(trace_id, message, parent=current)
        self._holder.set(status)
        return status

    def _check_pairing(self, status: TraceStatus) -> None:
        current = self._holder.get()
        if current is status:
            return

        current_id = current.trace_id if current is not None else None
        current_message = current.message if current is not None else None
        if self._strict_pairing:
            raise TraceMisuseError(
                f"Closing span {status.message!r} at {status.trace_id} but the innermost "
                f"open span is {current_message!r} at {current_id}"
            )

        self._log.warning(
            TRACE_STATUS_MISMATCH,
            span=status.message,
            trace_id=status.trace_id.identity,
            depth=status.trace_id.depth,
            current_span=current_message,
            current_trace_id=current_id.identity if current_id else None,
            current_depth=current_id.depth if current_id else None,
        )

    def _release(self, status: TraceStatus) -> None:
        open_span = self._holder.get()
        while open_span is not None and open_span is not status:
            open_span = open_span.parent
        if open_span is None:
            # Not an open span: already closed, stale or foreign.
            return

        if status.parent is None:
            self._holder.clear()
        else:
            self._holder.set(status.parent)
