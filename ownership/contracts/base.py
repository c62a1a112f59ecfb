"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.
No behavior, no side effects, no dependencies.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- All types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for ownership faults.
    Every way an operation can be refused is enumerated here.
    """
    # Borrow protocol errors
    ALREADY_BORROWED = auto()
    ALREADY_MUTABLY_BORROWED = auto()
    BORROWED_ON_RELEASE = auto()
    GUARD_RELEASED = auto()

    # Ownership errors
    USE_AFTER_RELEASE = auto()
    DOUBLE_DISPOSE = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR an error, never both.
    """
    value: Optional[object] = None
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: object) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: Error) -> Result:
        return Result(value=None, error=error)


# =============================================================================
# BORROW STATES (Explicit, no implicit transitions)
# =============================================================================

class BorrowState(Enum):
    """
    Borrow state of an interior-mutable cell.

    Transitions:
        UNBORROWED -> SHARED      (borrow)
        SHARED     -> SHARED      (borrow, count + 1)
        SHARED     -> UNBORROWED  (last shared guard released)
        UNBORROWED -> EXCLUSIVE   (borrow_mut)
        EXCLUSIVE  -> UNBORROWED  (exclusive guard released)
    Everything else is a fault.
    """
    UNBORROWED = "unborrowed"
    SHARED = "shared"
    EXCLUSIVE = "exclusive"


@dataclass(frozen=True)
class BorrowSnapshot:
    """Immutable view of a cell's borrow state at one moment."""
    state: BorrowState
    shared_count: int = 0

    def __post_init__(self):
        if self.shared_count < 0:
            raise ValueError("shared_count must be non-negative")
        if self.state is BorrowState.SHARED and self.shared_count == 0:
            raise ValueError("SHARED state requires at least one shared borrow")
        if self.state is not BorrowState.SHARED and self.shared_count != 0:
            raise ValueError("shared_count is only meaningful in SHARED state")

    @property
    def is_borrowed(self) -> bool:
        return self.state is not BorrowState.UNBORROWED

    def describe(self) -> str:
        if self.state is BorrowState.SHARED:
            return f"shared({self.shared_count})"
        return self.state.value
