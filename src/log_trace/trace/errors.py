"""Exceptions raised by the tracer itself.

Business errors raised by traced code are never wrapped in these; they pass
through the tracer unchanged.
"""


class TraceError(Exception):
    """Base exception for tracer errors."""

    pass


class TraceMisuseError(TraceError):
    """Raised when begin/end pairing is violated.

    Raised by ``TraceId.previous_depth()`` at root depth, and by the ambient
    tracer in strict pairing mode when ``end``/``exception`` receives a status
    that is not the innermost open span of the current thread.
    """

    pass
