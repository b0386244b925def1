"""Semantic event constants for structured logging.

Diagnostic log events use these constants rather than magic strings. Trace
lines themselves use the formatted line as their event text; the phase
constants below are attached to them as the ``phase`` field.
"""

# Trace line phases
TRACE_BEGIN = "begin"
TRACE_END = "end"
TRACE_EXCEPTION = "exception"

# Trace bookkeeping events
TRACE_STATUS_MISMATCH = "trace_status_mismatch"

# Configuration events
TRACER_BUILT = "tracer_built"
