"""Trace identity and call depth.

A TraceId ties together every log line of one logical transaction. The
identity never changes; nested calls derive copies with a different depth.
"""

import uuid
from dataclasses import dataclass

from log_trace.trace.errors import TraceMisuseError

DEFAULT_ID_LENGTH = 8


@dataclass(frozen=True)
class TraceId:
    """Immutable transaction identity plus nesting depth.

    This is a frozen dataclass and should never be modified after creation.
    Use next_depth() / previous_depth() to derive the TraceId for a nested or
    returning call.

    Attributes:
        identity: Short random identifier shared by all spans of a transaction.
        depth: Nesting depth, 0 for the outermost call.
    """

    identity: str
    depth: int = 0

    @classmethod
    def new(cls, length: int = DEFAULT_ID_LENGTH) -> "TraceId":
        """Start a new transaction at root depth.

        Args:
            length: Number of hex characters of a uuid4 to keep.

        Returns:
            A TraceId with a fresh identity and depth 0.
        """
        return cls(identity=uuid.uuid4().hex[:length])

    def next_depth(self) -> "TraceId":
        """Return the TraceId for a call nested one level deeper."""
        return TraceId(identity=self.identity, depth=self.depth + 1)

    def previous_depth(self) -> "TraceId":
        """Return the TraceId one level shallower.

        Raises:
            TraceMisuseError: If this TraceId is already at root depth.
        """
        if self.is_root_depth():
            raise TraceMisuseError(f"TraceId {self.identity} is already at root depth")
        return TraceId(identity=self.identity, depth=self.depth - 1)

    def is_root_depth(self) -> bool:
        """Whether this is the outermost call of the transaction."""
        return self.depth == 0
