"""
Shared Immutable Handle
=======================

Reference-counted shared ownership of one value.

INVARIANTS:
- `strong_count` equals the number of live handles on the cell
- The payload is destroyed exactly once, on the 1 -> 0 transition
- A live handle never observes a destroyed payload
- Handles in a reference cycle never reach zero. That is a leak, and it is
  left alone: there is no cycle collector.

Single-threaded only. Counts are plain integers, not atomics.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, TypeVar
import reprlib

from ..contracts.events import LifecycleEventType
from ..observability import get_engine
from .drop import Owner, dispose


T = TypeVar("T")


@dataclass(eq=False)
class SharedCell(Generic[T]):
    """Storage shared by every handle: payload plus live-handle count."""
    cell_id: str
    value: T
    strong_count: int = 1
    destroyed: bool = False


class Rc(Owner, Generic[T]):
    """
    Shared, read-only handle.

    Usage:
        a = Rc(5)
        b = a.clone()          # strong_count == 2
        b.release()            # strong_count == 1
        a.release()            # payload destroyed
    """

    _kind = "rc"

    def __init__(self, value: T):
        engine = get_engine()
        cell_id = engine.next_id(self._kind)
        super().__init__(subject=cell_id)
        self._cell = SharedCell(cell_id=cell_id, value=value)
        engine.track_cell(cell_id, self._cell)
        engine.record(
            LifecycleEventType.CREATED,
            cell_id,
            detail=type(value).__name__,
            strong_count=1
        )

    @classmethod
    def new(cls, value: T) -> "Rc[T]":
        return cls(value)

    @classmethod
    def _attach(cls, cell: SharedCell) -> "Rc":
        handle = cls.__new__(cls)
        Owner.__init__(handle, subject=cell.cell_id)
        handle._cell = cell
        return handle

    def clone(self) -> "Rc[T]":
        """New handle on the same cell. O(1), the payload is not copied."""
        self._ensure_live()
        self._cell.strong_count += 1
        handle = self._attach(self._cell)
        get_engine().record(
            LifecycleEventType.CLONED,
            self._cell.cell_id,
            strong_count=self._cell.strong_count
        )
        return handle

    @staticmethod
    def strong_count(handle: "Rc") -> int:
        """Live handles on the cell `handle` points at. Introspection only."""
        handle._ensure_live()
        return handle._cell.strong_count

    @staticmethod
    def ptr_eq(a: "Rc", b: "Rc") -> bool:
        """Whether two handles share one cell."""
        return a._cell is b._cell

    def deref(self) -> T:
        self._ensure_live()
        return self._cell.value

    @property
    def value(self) -> T:
        return self.deref()

    @property
    def cell(self) -> SharedCell[T]:
        return self._cell

    def _on_release(self) -> None:
        cell = self._cell
        engine = get_engine()

        cell.strong_count -= 1
        engine.record(
            LifecycleEventType.RELEASED,
            cell.cell_id,
            strong_count=cell.strong_count
        )

        if cell.strong_count == 0:
            engine.untrack_cell(cell.cell_id)
            value, cell.value = cell.value, None
            cell.destroyed = True
            # the cell is gone even if the payload hook raises
            try:
                dispose(value)
            finally:
                engine.record(LifecycleEventType.DESTROYED, cell.cell_id)

    @reprlib.recursive_repr("Rc(...)")
    def __repr__(self) -> str:
        if self._released:
            return "Rc(<released>)"
        return f"Rc({self._cell.value!r})"
