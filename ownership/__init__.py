"""
Ownership: single-owner, shared and interior-mutable containers

This package implements a small layered library with hard boundaries
between responsibilities. Layers communicate through explicit contracts.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Responsibility: Error codes, Result, borrow states, lifecycle events
   - Outputs: Immutable data only
   - MUST NOT: Import any other layer

2. CORE CONTAINERS (core/)
   - Responsibility: Box, Rc, RefCell, destruction hooks and scopes
   - Invariants: strong count == live handles; payload destroyed exactly
     once; exclusive-xor-shared borrows; reverse-order scope disposal
   - MUST NOT: Collect cycles, share across threads

3. LIST VARIANTS (lists/)
   - Responsibility: Immutable, mutable and cyclic cons lists
   - MUST NOT: Traverse a structure without a bound

4. OBSERVABILITY & AUDIT LAYER (observability/)
   - Responsibility: Lifecycle trace, metrics, heap registry, leak reports
   - MUST NOT: Modify ownership behavior or break cycles

CONSTRAINTS ENFORCED:
=====================
- Single-threaded: no atomics, no locks
- Explicit faults: broken borrows and use-after-release raise
  OwnershipPanic subclasses, which `except Exception` does not catch
- Cycles leak: reproduced on demand, never repaired
"""

from .contracts import (
    ErrorCode, Error, Result, BorrowState, BorrowSnapshot,
    LifecycleEventType, LifecycleEvent,
)
from .core import (
    OwnershipPanic, BorrowViolation, UseAfterRelease,
    Drop, Owner, Scope, dispose, drop,
    Box, Rc, SharedCell, RefCell, Ref, RefMut,
)
from .config import OwnershipConfig, TraceConfig
from .observability import ObservabilityEngine, get_engine, use_engine

__version__ = "0.1.0"

__all__ = [
    # Contracts
    'ErrorCode', 'Error', 'Result', 'BorrowState', 'BorrowSnapshot',
    'LifecycleEventType', 'LifecycleEvent',
    # Core
    'OwnershipPanic', 'BorrowViolation', 'UseAfterRelease',
    'Drop', 'Owner', 'Scope', 'dispose', 'drop',
    'Box', 'Rc', 'SharedCell', 'RefCell', 'Ref', 'RefMut',
    # Config & observability
    'OwnershipConfig', 'TraceConfig',
    'ObservabilityEngine', 'get_engine', 'use_engine',
]
