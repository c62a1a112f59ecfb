"""
Fatal ownership faults.

These derive from BaseException, not Exception: a broken borrow or a use of
a released owner is a logic error in the caller, and a generic
``except Exception`` must not absorb it.
"""

from __future__ import annotations

from ..contracts.base import Error, ErrorCode
from ..contracts.events import LifecycleEventType
from ..observability import get_engine


class OwnershipPanic(BaseException):
    """Base class for unrecoverable ownership faults. Carries the Error."""

    def __init__(self, error: Error):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> ErrorCode:
        return self.error.code


class BorrowViolation(OwnershipPanic):
    """Raised when a borrow request breaks exclusive-xor-shared."""


class UseAfterRelease(OwnershipPanic):
    """Raised when a released owner or guard is used or released again."""


def fault(cls: type, code: ErrorCode, subject: str, message: str) -> OwnershipPanic:
    """Record a FAULT event and build the exception for the caller to raise."""
    error = Error(code=code, message=message).with_context("subject", subject)
    get_engine().record(
        LifecycleEventType.FAULT,
        subject,
        detail=code.name,
        metadata=(("message", message),)
    )
    return cls(error)
