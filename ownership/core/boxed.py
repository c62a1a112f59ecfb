"""
Indirection Box

Single owner of exactly one value. Access is transparent: `deref()` hands
back the inner object itself, never a copy.
"""

from __future__ import annotations
from typing import Generic, Iterator, TypeVar

from ..contracts.events import LifecycleEventType
from ..observability import get_engine
from .drop import Owner, dispose


T = TypeVar("T")


class Box(Owner, Generic[T]):
    """Exclusive owner of one value. Releasing the box destroys the value."""

    _kind = "box"

    def __init__(self, value: T):
        super().__init__()
        self._value = value
        get_engine().record(LifecycleEventType.CREATED, self._subject, detail=repr(value))

    @classmethod
    def new(cls, value: T) -> "Box[T]":
        return cls(value)

    def deref(self) -> T:
        self._ensure_live()
        return self._value

    @property
    def value(self) -> T:
        return self.deref()

    def into_inner(self) -> T:
        """Move the value out. The box is consumed; the value is not destroyed."""
        self._ensure_live()
        value = self._value
        self._released = True
        self._value = None
        get_engine().record(LifecycleEventType.MOVED_OUT, self._subject)
        return value

    def _owned_parts(self) -> Iterator[object]:
        if not self._released:
            yield self._value

    def _on_release(self) -> None:
        value, self._value = self._value, None
        try:
            dispose(value)
        finally:
            get_engine().record(LifecycleEventType.DESTROYED, self._subject)

    def __repr__(self) -> str:
        if self._released:
            return "Box(<released>)"
        return f"Box({self._value!r})"
