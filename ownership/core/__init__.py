"""
Core Containers

Box (single owner), Rc (shared owner), RefCell (interior mutability) and the
destruction machinery they share.
"""

from .panic import OwnershipPanic, BorrowViolation, UseAfterRelease
from .drop import Drop, Owner, Scope, dispose, drop, is_disposed, iter_owned, current_scope
from .boxed import Box
from .rc import Rc, SharedCell
from .refcell import RefCell, Ref, RefMut

__all__ = [
    'OwnershipPanic', 'BorrowViolation', 'UseAfterRelease',
    'Drop', 'Owner', 'Scope', 'dispose', 'drop', 'is_disposed', 'iter_owned', 'current_scope',
    'Box', 'Rc', 'SharedCell', 'RefCell', 'Ref', 'RefMut',
]
