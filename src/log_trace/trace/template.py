"""Wrap units of work with begin/end/exception bookkeeping.

Business code writes the work once and gets tracing around it:

    template = TraceTemplate(trace)
    item = template.execute("OrderController.request()", lambda: service.order(item_id))

    class SaveOrder(AbstractTraceTemplate[None]):
        def call(self) -> None:
            repository.save(item_id)

    SaveOrder(trace).execute("OrderRepository.save()")

    @traced(trace)
    def order_item(item_id: str) -> None:
        ...

    with span(trace, "OrderRepository.save()"):
        ...

All shapes log the same lines and re-raise the same exception object. When a
strict tracer rejects the close of a failed span, the TraceMisuseError is
attached to the business exception as a note and the business exception is
still the one raised.
"""

import functools
import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, ParamSpec, TypeVar

from log_trace.trace.errors import TraceMisuseError
from log_trace.trace.log_trace import LogTrace
from log_trace.trace.outcome import Failure, Outcome, Success, capture, capture_async
from log_trace.trace.status import TraceStatus

P = ParamSpec("P")
T = TypeVar("T")


def _close(trace: LogTrace, status: TraceStatus, outcome: Outcome[T]) -> None:
    """Complete the span; a failed unit of work keeps priority over misuse."""
    try:
        trace.complete(status, outcome)
    except TraceMisuseError as e:
        if isinstance(outcome, Success):
            raise
        outcome.error.add_note(f"{type(e).__name__}: {e}")


class TraceTemplate:
    """Runs callbacks inside a traced span.

    Args:
        trace: Tracer the spans are logged with.
    """

    def __init__(self, trace: LogTrace) -> None:  # noqa: D107
        self._trace = trace

    @property
    def trace(self) -> LogTrace:
        return self._trace

    def execute(self, message: str, callback: Callable[[], T]) -> T:
        """Run callback inside a span named message.

        Args:
            message: Operation name.
            callback: Zero-argument unit of work.

        Returns:
            Whatever callback returned.

        Raises:
            Any exception raised by callback, unchanged, after it was logged.
        """
        status = self._trace.begin(message)
        outcome = capture(callback)
        _close(self._trace, status, outcome)
        return outcome.unwrap()


class AbstractTraceTemplate(ABC, Generic[T]):
    """Template method flavour of TraceTemplate: override call()."""

    def __init__(self, trace: LogTrace) -> None:  # noqa: D107
        self._trace = trace

    def execute(self, message: str) -> T:
        """Run call() inside a span named message and return its result."""
        return TraceTemplate(self._trace).execute(message, self.call)

    @abstractmethod
    def call(self) -> T:
        """Business logic."""


@contextmanager
def span(trace: LogTrace, message: str) -> Iterator[TraceStatus]:
    """Trace the enclosed block as one span.

    Yields:
        The open span's TraceStatus.
    """
    status = trace.begin(message)
    try:
        yield status
    except BaseException as e:
        _close(trace, status, Failure(e))
        raise
    trace.end(status)


def traced(
    trace: LogTrace, message: str | None = None
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator tracing every call of the decorated function.

    Works for plain and ``async def`` functions.

    Args:
        trace: Tracer the spans are logged with.
        message: Operation name. Defaults to the function's qualified name
            followed by "()", e.g. "OrderService.order_item()".

    Returns:
        Decorator.
    """

    def decorator(fn: Callable[P, T]) -> Callable[P, T]:
        name = message or f"{fn.__qualname__}()"

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                status = trace.begin(name)
                outcome = await capture_async(lambda: fn(*args, **kwargs))
                _close(trace, status, outcome)
                return outcome.unwrap()

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return TraceTemplate(trace).execute(name, lambda: fn(*args, **kwargs))

        return sync_wrapper

    return decorator
