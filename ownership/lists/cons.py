"""
Immutable Cons List
===================

A recursive list whose tails are shared through Rc handles.

Building two lists on one tail clones the tail's handle; the tail itself is
never copied. Nodes are frozen once built.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from ..core.rc import Rc


@dataclass(frozen=True)
class Nil:
    """Terminal node. Carries no data."""

    def tail(self) -> None:
        return None

    def __repr__(self) -> str:
        return "Nil"


@dataclass(frozen=True)
class Cons:
    """A value and a shared handle to the rest of the list."""
    value: int
    next: Rc

    def __repr__(self) -> str:
        return f"Cons({self.value}, {self.next.deref()!r})"


ConsList = Union[Cons, Nil]


def cons_list(*values: int) -> Rc:
    """Build ``Cons(v0, Cons(v1, ... Nil))`` and return a handle to the head."""
    node = Rc(Nil())
    for value in reversed(values):
        node = Rc(Cons(value, node))
    return node


def prepend(value: int, tail: Rc) -> Cons:
    """New head node sharing `tail`. The caller's handle on `tail` stays valid."""
    return Cons(value, tail.clone())


def iter_values(head: Union[Rc, ConsList], limit: Optional[int] = None) -> Iterator[int]:
    """Yield the list's values, at most `limit` of them when given."""
    node = head.deref() if isinstance(head, Rc) else head
    seen = 0
    while isinstance(node, Cons):
        if limit is not None and seen >= limit:
            return
        yield node.value
        seen += 1
        node = node.next.deref()
