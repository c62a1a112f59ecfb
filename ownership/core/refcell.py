"""
Interior-Mutable Cell
=====================

Mutation through an otherwise shared handle, with the borrow rule checked
at run time.

RULE: at any moment a cell has either one exclusive borrow or any number of
shared borrows, never both.

STATE MACHINE:
    UNBORROWED --borrow-->     SHARED(1)
    SHARED(n)  --borrow-->     SHARED(n+1)
    SHARED(n)  --release-->    SHARED(n-1) | UNBORROWED
    UNBORROWED --borrow_mut--> EXCLUSIVE
    EXCLUSIVE  --release-->    UNBORROWED

A request that breaks the rule raises BorrowViolation before anything
changes. Guards are context managers; leaving the block releases them.
"""

from __future__ import annotations
from typing import Generic, Iterator, TypeVar
import reprlib

from ..contracts.base import BorrowSnapshot, BorrowState, Error, ErrorCode, Result
from ..contracts.events import LifecycleEventType
from ..observability import get_engine
from .drop import Owner, dispose
from .panic import BorrowViolation, UseAfterRelease, fault


T = TypeVar("T")


class RefCell(Owner, Generic[T]):
    """
    Single owner of a value that can be mutated through shared references.

    Usage:
        cell = RefCell(5)
        with cell.borrow_mut() as guard:
            guard.value += 10
        with cell.borrow() as guard:
            assert guard.value == 15
    """

    _kind = "refcell"

    def __init__(self, value: T):
        super().__init__()
        self._value = value
        self._state = BorrowState.UNBORROWED
        self._shared = 0
        get_engine().record(LifecycleEventType.CREATED, self._subject, detail=type(value).__name__)

    @property
    def borrow_state(self) -> BorrowSnapshot:
        return BorrowSnapshot(state=self._state, shared_count=self._shared)

    # -------------------------------------------------------------------------
    # Borrow requests
    # -------------------------------------------------------------------------

    def _shared_refusal(self):
        if self._state is BorrowState.EXCLUSIVE:
            return Error(
                code=ErrorCode.ALREADY_MUTABLY_BORROWED,
                message=f"{self._subject} already mutably borrowed"
            )
        return None

    def _exclusive_refusal(self):
        if self._state is BorrowState.EXCLUSIVE:
            return Error(
                code=ErrorCode.ALREADY_MUTABLY_BORROWED,
                message=f"{self._subject} already mutably borrowed"
            )
        if self._state is BorrowState.SHARED:
            return Error(
                code=ErrorCode.ALREADY_BORROWED,
                message=f"{self._subject} already borrowed ({self._shared} shared)"
            )
        return None

    def borrow(self) -> "Ref[T]":
        """Shared borrow. Faults while an exclusive borrow is outstanding."""
        return Ref(self)

    def borrow_mut(self) -> "RefMut[T]":
        """Exclusive borrow. Faults while any other borrow is outstanding."""
        return RefMut(self)

    def try_borrow(self) -> Result:
        """Like `borrow`, but a refusal comes back as a failed Result."""
        self._ensure_live()
        refusal = self._shared_refusal()
        if refusal:
            return Result.failure(refusal.with_context("subject", self._subject))
        return Result.success(Ref(self))

    def try_borrow_mut(self) -> Result:
        """Like `borrow_mut`, but a refusal comes back as a failed Result."""
        self._ensure_live()
        refusal = self._exclusive_refusal()
        if refusal:
            return Result.failure(refusal.with_context("subject", self._subject))
        return Result.success(RefMut(self))

    def replace(self, value: T) -> T:
        """Swap in `value` under an exclusive borrow. Returns the old value undisposed."""
        with self.borrow_mut() as guard:
            return guard._swap(value)

    # -------------------------------------------------------------------------
    # State transitions (guards only)
    # -------------------------------------------------------------------------

    def _acquire_shared(self):
        # every guard enters through here; the borrow rule is checked before any state changes
        self._ensure_live()
        refusal = self._shared_refusal()
        if refusal:
            raise fault(BorrowViolation, refusal.code, self._subject, refusal.message)
        self._shared += 1
        self._state = BorrowState.SHARED

    def _release_shared(self):
        self._shared -= 1
        if self._shared == 0:
            self._state = BorrowState.UNBORROWED

    def _acquire_exclusive(self):
        self._ensure_live()
        refusal = self._exclusive_refusal()
        if refusal:
            raise fault(BorrowViolation, refusal.code, self._subject, refusal.message)
        self._state = BorrowState.EXCLUSIVE

    def _release_exclusive(self):
        self._state = BorrowState.UNBORROWED

    # -------------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------------

    def release(self) -> None:
        if not self._released and self._state is not BorrowState.UNBORROWED:
            raise fault(
                BorrowViolation,
                ErrorCode.BORROWED_ON_RELEASE,
                self._subject,
                f"{self._subject} released while {self.borrow_state.describe()}"
            )
        super().release()

    def _owned_parts(self) -> Iterator[object]:
        if not self._released:
            yield self._value

    def _on_release(self) -> None:
        value, self._value = self._value, None
        try:
            dispose(value)
        finally:
            get_engine().record(LifecycleEventType.DESTROYED, self._subject)

    @reprlib.recursive_repr("RefCell(...)")
    def __repr__(self) -> str:
        if self._released:
            return "RefCell(<released>)"
        if self._state is BorrowState.EXCLUSIVE:
            return "RefCell(<borrowed>)"
        return f"RefCell({self._value!r})"


class _Guard(Owner, Generic[T]):
    """Borrow guard. Releasing it hands the borrow back to the cell."""

    def __init__(self, cell: RefCell[T]):
        super().__init__(subject=cell.subject)
        self._cell = cell

    def _ensure_live(self):
        if self._released:
            raise fault(
                UseAfterRelease,
                ErrorCode.GUARD_RELEASED,
                self._subject,
                f"borrow guard on {self._subject} used after release"
            )

    def release(self) -> None:
        self._ensure_live()
        super().release()

    def deref(self) -> T:
        self._ensure_live()
        return self._cell._value


class Ref(_Guard[T]):
    """Shared borrow guard: read-only access."""

    def __init__(self, cell: RefCell[T]):
        super().__init__(cell)
        cell._acquire_shared()
        get_engine().record(
            LifecycleEventType.BORROWED,
            self._subject,
            detail=cell.borrow_state.describe()
        )

    @property
    def value(self) -> T:
        return self.deref()

    def _on_release(self) -> None:
        self._cell._release_shared()
        get_engine().record(
            LifecycleEventType.BORROW_RELEASED,
            self._subject,
            detail=self._cell.borrow_state.describe()
        )

    def __repr__(self) -> str:
        return f"Ref({self._cell._value!r})"


class RefMut(_Guard[T]):
    """Exclusive borrow guard: read and write access."""

    def __init__(self, cell: RefCell[T]):
        super().__init__(cell)
        cell._acquire_exclusive()
        get_engine().record(LifecycleEventType.BORROWED_MUT, self._subject)

    @property
    def value(self) -> T:
        return self.deref()

    @value.setter
    def value(self, new_value: T):
        # assignment destroys the value it overwrites
        old = self._swap(new_value)
        if old is not new_value:
            dispose(old)

    def _swap(self, new_value: T) -> T:
        self._ensure_live()
        old, self._cell._value = self._cell._value, new_value
        return old

    def set(self, new_value: T) -> None:
        self.value = new_value

    def _on_release(self) -> None:
        self._cell._release_exclusive()
        get_engine().record(
            LifecycleEventType.BORROW_RELEASED,
            self._subject,
            detail=self._cell.borrow_state.describe()
        )

    def __repr__(self) -> str:
        return f"RefMut({self._cell._value!r})"
