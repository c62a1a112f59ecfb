"""
Lifecycle Event Contracts

Immutable records of what happened to an owned or shared value.
The observability layer collects these; nothing reads them back to make
decisions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple
from enum import Enum


class LifecycleEventType(Enum):
    """Explicit lifecycle event types."""
    CREATED = "created"
    CLONED = "cloned"
    RELEASED = "released"
    DESTROYED = "destroyed"
    HOOK_FIRED = "hook_fired"
    MOVED_OUT = "moved_out"
    BORROWED = "borrowed"
    BORROWED_MUT = "borrowed_mut"
    BORROW_RELEASED = "borrow_released"
    FAULT = "fault"


@dataclass(frozen=True)
class LifecycleEvent:
    """
    Immutable trace entry.

    Ordered by `sequence`, never by wall-clock time, so the same program
    always produces the same trace.
    """
    sequence: int
    event_type: LifecycleEventType
    subject: str
    detail: str = ""
    strong_count: Optional[int] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def render(self) -> str:
        """Human-readable trace line. Not a stable format."""
        line = f"[{self.sequence:04d}] {self.subject} {self.event_type.value}"
        if self.strong_count is not None:
            line += f" strong_count={self.strong_count}"
        if self.detail:
            line += f" ({self.detail})"
        return line
