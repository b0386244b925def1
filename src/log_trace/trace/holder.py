"""Ambient storage for the innermost open span.

The ambient tracer keeps the TraceStatus of the innermost open span of the
running call stack in a slot owned by the current execution context; its
``trace_id`` is the current TraceId. Access goes through the narrow
get/set/clear interface below; nothing else touches the underlying storage.

- ThreadLocalSpanHolder: one slot per OS thread (threading.local).
- ContextVarSpanHolder: one slot per contextvars context, so each asyncio
  task sees its own value.
"""

import threading
from abc import ABC, abstractmethod
from contextvars import ContextVar, Token
from typing import Any

from log_trace.trace.status import TraceStatus


class SpanHolder(ABC):
    """Slot holding the innermost open span, or nothing."""

    @abstractmethod
    def get(self) -> TraceStatus | None:
        """Return the innermost open span, or None when no span is open."""

    @abstractmethod
    def set(self, status: TraceStatus) -> None:
        """Replace the innermost open span."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the slot's value entirely."""


class ThreadLocalSpanHolder(SpanHolder):
    """Slot scoped to the calling thread.

    Threads never see each other's value, so no locking is needed. clear()
    deletes the attribute rather than storing a sentinel, which keeps pooled
    threads from carrying state into their next unit of work.
    """

    def __init__(self) -> None:  # noqa: D107
        self._local = threading.local()

    def get(self) -> TraceStatus | None:
        return getattr(self._local, "span", None)

    def set(self, status: TraceStatus) -> None:
        self._local.span = status

    def clear(self) -> None:
        self._local.__dict__.pop("span", None)


class ContextVarSpanHolder(SpanHolder):
    """Slot scoped to the current contextvars context.

    asyncio runs each task in a copy of its parent's context, so a value set
    inside a task stays inside that task. Holders are meant to be long lived
    (one per tracer); ContextVar objects are never garbage collected.

    The first set() in a context keeps the Token of that set alongside the
    span; clear() resets through it, which removes the variable from the
    context instead of storing None.
    """

    def __init__(self, name: str = "log_trace_span") -> None:  # noqa: D107
        self._var: ContextVar[tuple[TraceStatus, Token[Any]] | None] = ContextVar(
            name, default=None
        )

    @property
    def name(self) -> str:
        return self._var.name

    def get(self) -> TraceStatus | None:
        entry = self._var.get()
        return entry[0] if entry is not None else None

    def set(self, status: TraceStatus) -> None:
        entry = self._var.get()
        if entry is not None:
            self._var.set((status, entry[1]))
            return
        root_token = self._var.set(None)
        self._var.set((status, root_token))

    def clear(self) -> None:
        entry = self._var.get()
        if entry is None:
            return
        try:
            self._var.reset(entry[1])
        except ValueError:
            # Root span was opened in another context (e.g. a parent task).
            self._var.set(None)
