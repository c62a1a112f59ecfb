"""
Cyclic List
===========

A list whose successor link sits in a RefCell, so it can be rewritten after
the node is built. Rewriting a link to point at an ancestor forms a
strong-reference cycle.

LEAK SIGNATURE:
    a = CycCons(5, Nil)            strong_count(a) == 1
    b = CycCons(10, a)             strong_count(a) == 2
    a.next := b                    strong_count(b) == 2
Dropping the outside handles leaves each count at 1. Nothing ever frees
them; no collector runs.

Walking a cycle to its end never terminates. `walk` is therefore always
bounded.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union
import reprlib

from ..core.rc import Rc
from ..core.refcell import RefCell
from .cons import Nil


@dataclass(frozen=True)
class CycCons:
    """Node with a plain value and a rewritable successor link."""
    value: int
    next: RefCell

    def tail(self) -> Optional[RefCell]:
        return self.next

    @reprlib.recursive_repr("CycCons(...)")
    def __repr__(self) -> str:
        return f"CycCons({self.value}, {self.next!r})"


CycList = Union[CycCons, Nil]


def cyc_cons(value: int, next: Rc) -> Rc:
    """Build a node linking to `next` (the handle is moved in) and return its handle."""
    return Rc(CycCons(value, RefCell(next)))


def link(node: Rc, target: Rc) -> bool:
    """
    Point `node`'s successor at `target`.

    The old successor handle is released; `target` gains one handle.
    Returns False when `node` is Nil and has no link to rewrite.
    """
    slot = node.deref().tail()
    if slot is None:
        return False
    with slot.borrow_mut() as guard:
        guard.value = target.clone()
    return True


def walk(head: Rc, max_depth: int) -> List[int]:
    """Values of at most `max_depth` nodes starting at `head`."""
    if max_depth < 0:
        raise ValueError("max_depth must be non-negative")

    values: List[int] = []
    node = head.deref()
    while isinstance(node, CycCons) and len(values) < max_depth:
        values.append(node.value)
        with node.tail().borrow() as guard:
            node = guard.value.deref()
    return values


def build_cycle() -> Tuple[Rc, Rc]:
    """
    Build the two-node cycle and return the outside handles (a, b).

    Each node's strong count is 2 afterwards: one outside handle, one link.
    """
    a = cyc_cons(5, Rc(Nil()))
    b = cyc_cons(10, a.clone())
    link(a, b)
    return a, b
