"""
Shared fixtures.

Every test runs against its own ObservabilityEngine, so subject ids, trace
sequences and the heap registry start fresh.
"""

from dataclasses import dataclass, field
from typing import List

import pytest

from ownership.core import Drop
from ownership.observability import ObservabilityEngine, use_engine


@dataclass
class Tracked(Drop):
    """Drop value that appends its name to a shared log when destroyed."""
    name: str
    log: List[str] = field(default_factory=list, repr=False, compare=False)

    def drop(self) -> None:
        self.log.append(self.name)


@pytest.fixture(autouse=True)
def engine():
    with use_engine(ObservabilityEngine()) as active:
        yield active


@pytest.fixture
def drop_log() -> List[str]:
    return []


@pytest.fixture
def tracked(drop_log):
    """Factory: tracked("a") builds a Tracked value logging into drop_log."""
    def make(name: str) -> Tracked:
        return Tracked(name, drop_log)
    return make
