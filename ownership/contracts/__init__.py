"""
Contracts

Pure data shared by every layer: error states, borrow states and lifecycle
events. No layer implementation is imported from here.
"""

from .base import (
    ErrorCode, Error, Result, BorrowState, BorrowSnapshot
)
from .events import LifecycleEventType, LifecycleEvent

__all__ = [
    'ErrorCode', 'Error', 'Result', 'BorrowState', 'BorrowSnapshot',
    'LifecycleEventType', 'LifecycleEvent',
]
