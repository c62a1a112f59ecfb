"""
Mutable Cons List

Shared ownership of mutable data: every node's value lives in an
Rc[RefCell[int]], so any list holding the node sees a mutation made
through `borrow_mut`.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Union

from ..core.rc import Rc
from ..core.refcell import RefCell
from .cons import Nil


@dataclass(frozen=True)
class MutCons:
    """Node with a shared mutable value and a shared successor."""
    value: Rc
    next: Rc

    def __repr__(self) -> str:
        return f"MutCons({self.value.deref()!r}, {self.next.deref()!r})"


MutList = Union[MutCons, Nil]


def shared_value(value: int) -> Rc:
    """Wrap an int as Rc[RefCell[int]]."""
    return Rc(RefCell(value))


def mut_cons(value: Union[int, Rc], next: Rc) -> MutCons:
    """Build a node. Plain ints are wrapped; an existing Rc is used as given."""
    if not isinstance(value, Rc):
        value = shared_value(value)
    return MutCons(value, next)


def mut_values(head: Union[Rc, MutList], limit: Optional[int] = None) -> List[int]:
    """Current values along the list, read under shared borrows."""
    node = head.deref() if isinstance(head, Rc) else head
    values: List[int] = []
    while isinstance(node, MutCons):
        if limit is not None and len(values) >= limit:
            break
        with node.value.deref().borrow() as guard:
            values.append(guard.value)
        node = node.next.deref()
    return values
