"""Tests for TraceTemplate, AbstractTraceTemplate, span and traced."""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from log_trace.trace import (
    AbstractTraceTemplate,
    ContextVarSpanHolder,
    Failure,
    Success,
    ThreadLocalLogTrace,
    TraceMisuseError,
    TraceTemplate,
    capture,
    span,
    traced,
)


@pytest.fixture
def trace(trace_logger: Any, fake_clock: Any) -> ThreadLocalLogTrace:
    return ThreadLocalLogTrace(logger=trace_logger, clock=fake_clock)


class OrderRepository:
    def __init__(self, template: TraceTemplate) -> None:
        self.template = template
        self.saved: list[str] = []

    def save(self, item_id: str) -> None:
        def work() -> None:
            if item_id == "ex":
                raise ValueError("bad item")
            self.saved.append(item_id)

        self.template.execute("OrderRepository.save()", work)


class OrderService:
    def __init__(self, template: TraceTemplate, repository: OrderRepository) -> None:
        self.template = template
        self.repository = repository

    def order_item(self, item_id: str) -> str:
        def work() -> str:
            self.repository.save(item_id)
            return item_id

        return self.template.execute("OrderService.order_item()", work)


class TestOutcome:
    """Test the value/exception result type."""

    def test_capture_success(self) -> None:
        outcome = capture(lambda: 42)
        assert outcome == Success(42)
        assert outcome.unwrap() == 42

    def test_capture_failure_reraises_same_object(self) -> None:
        error = KeyError("missing")

        def work() -> None:
            raise error

        outcome = capture(work)
        assert isinstance(outcome, Failure)
        with pytest.raises(KeyError) as excinfo:
            outcome.unwrap()
        assert excinfo.value is error


class TestTraceTemplate:
    """Test the callback shape."""

    def test_execute_returns_result(
        self, trace: ThreadLocalLogTrace, trace_lines: Callable[[], list[str]]
    ) -> None:
        result = TraceTemplate(trace).execute("answer", lambda: 42)

        assert result == 42
        assert [line.split("] ", 1)[1] for line in trace_lines()] == [
            "answer",
            "answer time = 0ms",
        ]

    def test_nested_success(
        self, trace: ThreadLocalLogTrace, trace_lines: Callable[[], list[str]]
    ) -> None:
        template = TraceTemplate(trace)
        service = OrderService(template, OrderRepository(template))

        result = template.execute("OrderController.request()", lambda: service.order_item("hello"))

        assert result == "hello"
        assert service.repository.saved == ["hello"]
        assert [line.split("] ", 1)[1] for line in trace_lines()] == [
            "OrderController.request()",
            "|-->OrderService.order_item()",
            "|   |-->OrderRepository.save()",
            "|   |<--OrderRepository.save() time = 0ms",
            "|<--OrderService.order_item() time = 0ms",
            "OrderController.request() time = 0ms",
        ]
        assert len({line.split("]", 1)[0] for line in trace_lines()}) == 1
        assert trace.current_trace_id() is None

    def test_nested_failure_is_reraised_unchanged(
        self, trace: ThreadLocalLogTrace, trace_lines: Callable[[], list[str]]
    ) -> None:
        template = TraceTemplate(trace)
        service = OrderService(template, OrderRepository(template))

        with pytest.raises(ValueError, match="bad item") as excinfo:
            template.execute("OrderController.request()", lambda: service.order_item("ex"))

        ex = repr(excinfo.value)
        assert [line.split("] ", 1)[1] for line in trace_lines()] == [
            "OrderController.request()",
            "|-->OrderService.order_item()",
            "|   |-->OrderRepository.save()",
            f"|   |<X-OrderRepository.save() time = 0ms ex = {ex}",
            f"|<X-OrderService.order_item() time = 0ms ex = {ex}",
            f"OrderController.request() time = 0ms ex = {ex}",
        ]
        assert trace.current_trace_id() is None

    def test_failure_keeps_original_traceback(self, trace: ThreadLocalLogTrace) -> None:
        def work() -> None:
            raise RuntimeError("deep")

        with pytest.raises(RuntimeError) as excinfo:
            TraceTemplate(trace).execute("work", work)

        frames = [entry.name for entry in excinfo.traceback]
        assert "work" in frames

    def test_base_exception_releases_slot(self, trace: ThreadLocalLogTrace) -> None:
        def interrupted() -> None:
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            TraceTemplate(trace).execute("interrupted", interrupted)

        assert trace.current_trace_id() is None


class TestAbstractTraceTemplate:
    """Test the template method shape produces the same output."""

    def test_same_lines_as_callback(
        self, trace: ThreadLocalLogTrace, trace_lines: Callable[[], list[str]]
    ) -> None:
        class Answer(AbstractTraceTemplate[int]):
            def call(self) -> int:
                return 42

        assert Answer(trace).execute("answer") == 42
        callback_result = TraceTemplate(trace).execute("answer", lambda: 42)
        assert callback_result == 42

        lines = [line.split("] ", 1)[1] for line in trace_lines()]
        assert lines[:2] == lines[2:]

    def test_failure_forwarded(
        self, trace: ThreadLocalLogTrace, trace_lines: Callable[[], list[str]]
    ) -> None:
        class Broken(AbstractTraceTemplate[None]):
            def call(self) -> None:
                raise LookupError("nope")

        with pytest.raises(LookupError, match="nope"):
            Broken(trace).execute("broken")

        assert trace_lines()[-1].endswith("broken time = 0ms ex = LookupError('nope')")


class TestSpan:
    """Test the context manager shape."""

    def test_span_success(
        self, trace: ThreadLocalLogTrace, trace_lines: Callable[[], list[str]]
    ) -> None:
        with span(trace, "outer") as outer:
            with span(trace, "inner") as inner:
                assert inner.trace_id == outer.trace_id.next_depth()

        assert [line.split("] ", 1)[1] for line in trace_lines()] == [
            "outer",
            "|-->inner",
            "|<--inner time = 0ms",
            "outer time = 0ms",
        ]

    def test_span_failure(
        self, trace: ThreadLocalLogTrace, trace_lines: Callable[[], list[str]]
    ) -> None:
        with pytest.raises(ValueError):
            with span(trace, "outer"):
                raise ValueError("boom")

        assert trace_lines()[-1].endswith("outer time = 0ms ex = ValueError('boom')")
        assert trace.current_trace_id() is None


class TestTraced:
    """Test the decorator shape."""

    def test_default_message_is_qualified_name(
        self, trace: ThreadLocalLogTrace, trace_lines: Callable[[], list[str]]
    ) -> None:
        class Service:
            @traced(trace)
            def order_item(self, item_id: str) -> str:
                return item_id.upper()

        assert Service().order_item("abc") == "ABC"
        assert trace_lines()[0].endswith(
            "TestTraced.test_default_message_is_qualified_name.<locals>.Service.order_item()"
        )

    def test_explicit_message_and_nesting(
        self, trace: ThreadLocalLogTrace, trace_lines: Callable[[], list[str]]
    ) -> None:
        @traced(trace, "repository.save()")
        def save() -> None:
            pass

        @traced(trace, "service.order()")
        def order() -> None:
            save()

        order()

        assert [line.split("] ", 1)[1] for line in trace_lines()] == [
            "service.order()",
            "|-->repository.save()",
            "|<--repository.save() time = 0ms",
            "service.order() time = 0ms",
        ]

    def test_wraps_metadata(self, trace: ThreadLocalLogTrace) -> None:
        @traced(trace)
        def documented() -> None:
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."

    def test_failure_forwarded(self, trace: ThreadLocalLogTrace) -> None:
        @traced(trace)
        def broken() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            broken()
        assert trace.current_trace_id() is None

    @pytest.mark.asyncio
    async def test_async_function(
        self, trace_logger: Any, trace_lines: Callable[[], list[str]]
    ) -> None:
        trace = ThreadLocalLogTrace(holder=ContextVarSpanHolder(), logger=trace_logger)

        @traced(trace, "inner")
        async def inner() -> int:
            await asyncio.sleep(0)
            return 1

        @traced(trace, "outer")
        async def outer() -> int:
            return await inner() + 1

        assert await outer() == 2
        lines = [line.split("] ", 1)[1] for line in trace_lines()]
        assert lines[0] == "outer"
        assert lines[1] == "|-->inner"
        assert lines[2].startswith("|<--inner time = ")
        assert lines[3].startswith("outer time = ")

    @pytest.mark.asyncio
    async def test_async_tasks_are_isolated(
        self, trace_logger: Any, trace_entries: Callable[[], list[dict[str, Any]]]
    ) -> None:
        trace = ThreadLocalLogTrace(holder=ContextVarSpanHolder(), logger=trace_logger)

        @traced(trace)
        async def leaf(name: str) -> None:
            await asyncio.sleep(0.01)

        @traced(trace)
        async def request(name: str) -> str:
            await leaf(name)
            return trace.current_trace_id().identity  # type: ignore[union-attr]

        identities = await asyncio.gather(request("a"), request("b"))

        assert identities[0] != identities[1]
        for identity in identities:
            own = [e for e in trace_entries() if e["trace_id"] == identity]
            assert [e["depth"] for e in own] == [0, 1, 1, 0]

    @pytest.mark.asyncio
    async def test_async_failure_forwarded(self, trace_logger: Any) -> None:
        trace = ThreadLocalLogTrace(holder=ContextVarSpanHolder(), logger=trace_logger)

        @traced(trace)
        async def broken() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await broken()
        assert trace.current_trace_id() is None


class TestStrictPairingInWrappers:
    """A span left open inside the unit of work must not hide its exception."""

    @pytest.fixture
    def strict_trace(self, trace_logger: Any, fake_clock: Any) -> ThreadLocalLogTrace:
        return ThreadLocalLogTrace(logger=trace_logger, clock=fake_clock, strict_pairing=True)

    def test_execute_reraises_business_error_with_note(
        self, strict_trace: ThreadLocalLogTrace
    ) -> None:
        error = ValueError("bad item")

        def work() -> None:
            strict_trace.begin("left open")
            raise error

        with pytest.raises(ValueError) as excinfo:
            TraceTemplate(strict_trace).execute("work", work)

        assert excinfo.value is error
        assert len(error.__notes__) == 1
        assert error.__notes__[0].startswith("TraceMisuseError: Closing span 'work'")

    def test_execute_success_raises_misuse(self, strict_trace: ThreadLocalLogTrace) -> None:
        def work() -> int:
            strict_trace.begin("left open")
            return 1

        with pytest.raises(TraceMisuseError, match="'left open'"):
            TraceTemplate(strict_trace).execute("work", work)

    def test_span_reraises_business_error_with_note(
        self, strict_trace: ThreadLocalLogTrace
    ) -> None:
        with pytest.raises(KeyError) as excinfo:
            with span(strict_trace, "block"):
                strict_trace.begin("left open")
                raise KeyError("missing")

        assert "TraceMisuseError" in excinfo.value.__notes__[0]

    @pytest.mark.asyncio
    async def test_async_reraises_business_error_with_note(self, trace_logger: Any) -> None:
        trace = ThreadLocalLogTrace(
            holder=ContextVarSpanHolder(), logger=trace_logger, strict_pairing=True
        )

        @traced(trace)
        async def broken() -> None:
            trace.begin("left open")
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom") as excinfo:
            await broken()
        assert "TraceMisuseError" in excinfo.value.__notes__[0]
