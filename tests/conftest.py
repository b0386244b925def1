"""Shared fixtures for tracer tests."""

from collections.abc import Callable
from typing import Any

import pytest
import structlog
from structlog.testing import CapturingLogger, LogCapture


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start_ms: int = 1_000) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def log_capture() -> LogCapture:
    return LogCapture()


@pytest.fixture
def trace_logger(log_capture: LogCapture) -> Any:
    """structlog logger whose events end up in log_capture."""
    return structlog.wrap_logger(
        CapturingLogger(),
        processors=[log_capture],
        wrapper_class=structlog.BoundLogger,
    )


@pytest.fixture
def trace_entries(log_capture: LogCapture) -> Callable[[], list[dict[str, Any]]]:
    """Return a reader for the trace line events captured so far."""

    def read() -> list[dict[str, Any]]:
        return [entry for entry in log_capture.entries if "phase" in entry]

    return read


@pytest.fixture
def trace_lines(
    trace_entries: Callable[[], list[dict[str, Any]]],
) -> Callable[[], list[str]]:
    """Return a reader for the formatted trace lines captured so far."""

    def read() -> list[str]:
        return [entry["event"] for entry in trace_entries()]

    return read


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
