"""
Observability & Audit Layer

RESPONSIBILITY: Lifecycle trace, metrics, live-cell registry, leak inspection
ALLOWED INPUTS: Lifecycle events from the core containers
OUTPUTS: LifecycleEvent trace, counters, LeakReport

WHAT THIS LAYER MUST NOT DO:
============================
- Modify ownership behavior
- Release, clone or borrow anything it observes
- Break reference cycles (leaks are reported, never repaired)
- Make decisions based on logged data

BOUNDARY ENFORCEMENT:
=====================
- Core containers push events in; nothing flows back out to them
- Provides read-only access to trace and metrics
- The active engine is process-global and swappable for tests
"""

from __future__ import annotations
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Iterator, List, Optional, Tuple
from enum import Enum

from ..config import OwnershipConfig, TraceConfig
from ..contracts.events import LifecycleEvent, LifecycleEventType


# =============================================================================
# TRACE COLLECTOR
# =============================================================================

class TraceCollector:
    """
    Append-only collector of lifecycle events.

    Each event gets the next sequence number. When echo is on, the rendered
    line goes to the sink as it is collected.
    """

    def __init__(
        self,
        config: Optional[TraceConfig] = None,
        sink: Optional[Callable[[str], None]] = None
    ):
        self._config = config or TraceConfig()
        self._entries: Deque[LifecycleEvent] = deque(maxlen=self._config.max_events)
        self._sequence: int = 0
        self._sink = sink or print

    def collect(
        self,
        event_type: LifecycleEventType,
        subject: str,
        detail: str = "",
        strong_count: Optional[int] = None,
        metadata: Tuple[Tuple[str, str], ...] = ()
    ) -> Optional[LifecycleEvent]:
        """Record one event (append-only). Returns None when tracing is off."""
        if not self._config.enabled:
            return None

        self._sequence += 1
        event = LifecycleEvent(
            sequence=self._sequence,
            event_type=event_type,
            subject=subject,
            detail=detail,
            strong_count=strong_count,
            metadata=metadata
        )
        self._entries.append(event)

        if self._config.echo:
            self._sink(event.render())

        return event

    def get_entries(
        self,
        event_type: Optional[LifecycleEventType] = None,
        subject: Optional[str] = None
    ) -> List[LifecycleEvent]:
        """Get entries, optionally filtered."""
        entries = list(self._entries)

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]

        if subject:
            entries = [e for e in entries if e.subject == subject]

        return entries

    def lines(self) -> List[str]:
        return [e.render() for e in self._entries]

    @property
    def entry_count(self) -> int:
        return len(self._entries)


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

class MetricType(Enum):
    """Types of metrics collected."""
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


# Which counter each lifecycle event feeds, keyed by (event type, subject kind).
# A kind of None matches every subject.
_EVENT_COUNTERS: Dict[Tuple[LifecycleEventType, Optional[str]], str] = {
    (LifecycleEventType.CREATED, "rc"): "cells_allocated",
    (LifecycleEventType.DESTROYED, "rc"): "cells_destroyed",
    (LifecycleEventType.CLONED, "rc"): "clones",
    (LifecycleEventType.HOOK_FIRED, None): "hooks_fired",
    (LifecycleEventType.FAULT, None): "faults",
}


class LifecycleMetrics:
    """
    Counters over the lifecycle event stream.

    Counters only grow. `live_cells` is a gauge derived from them.
    """

    def __init__(self):
        self._definitions: Dict[str, MetricDefinition] = {}
        self._values: Dict[str, float] = {}
        self._labelled: Dict[str, Dict[str, float]] = {}
        self._register_default_metrics()

    def _register_default_metrics(self):
        defaults = [
            MetricDefinition(
                name="cells_allocated",
                metric_type=MetricType.COUNTER,
                description="Shared cells created"
            ),
            MetricDefinition(
                name="cells_destroyed",
                metric_type=MetricType.COUNTER,
                description="Shared cells whose payload was destroyed"
            ),
            MetricDefinition(
                name="clones",
                metric_type=MetricType.COUNTER,
                description="Handle clones"
            ),
            MetricDefinition(
                name="hooks_fired",
                metric_type=MetricType.COUNTER,
                description="Destruction hooks run"
            ),
            MetricDefinition(
                name="faults",
                metric_type=MetricType.COUNTER,
                description="Borrow and ownership faults raised",
                labels=("code",)
            ),
        ]

        for definition in defaults:
            self.register_metric(definition)

    def register_metric(self, definition: MetricDefinition):
        """Register a new metric definition."""
        self._definitions[definition.name] = definition
        self._values.setdefault(definition.name, 0)

    def increment(self, metric_name: str, amount: float = 1, label: Optional[str] = None):
        if metric_name not in self._definitions:
            raise KeyError(f"Unknown metric: {metric_name}")
        self._values[metric_name] += amount
        if label and self._definitions[metric_name].labels:
            per_label = self._labelled.setdefault(metric_name, {})
            per_label[label] = per_label.get(label, 0) + amount

    def observe(self, event_type: LifecycleEventType, kind: str, detail: str = ""):
        """Feed one lifecycle event into the counters. Labelled counters key on the detail."""
        name = _EVENT_COUNTERS.get((event_type, kind)) or _EVENT_COUNTERS.get((event_type, None))
        if name:
            self.increment(name, label=detail)

    def get(self, metric_name: str, label: Optional[str] = None) -> float:
        if label is None:
            return self._values.get(metric_name, 0)
        return self._labelled.get(metric_name, {}).get(label, 0)

    @property
    def live_cells(self) -> int:
        return int(self.get("cells_allocated") - self.get("cells_destroyed"))

    def snapshot(self) -> Dict[str, float]:
        """
        All metric values (copy), plus the live_cells gauge.

        Labelled counts appear as ``name{label=value}``, e.g.
        ``faults{code=ALREADY_BORROWED}``.
        """
        values = dict(self._values)
        for name, per_label in self._labelled.items():
            label_name = self._definitions[name].labels[0]
            for label, amount in sorted(per_label.items()):
                values[f"{name}{{{label_name}={label}}}"] = amount
        values["live_cells"] = self.live_cells
        return values


# =============================================================================
# HEAP REGISTRY
# =============================================================================

class HeapRegistry:
    """
    Registry of shared cells that have not been destroyed.

    Insertion-ordered so inspection output is deterministic.
    """

    def __init__(self):
        self._cells: Dict[str, object] = {}

    def register(self, cell_id: str, cell: object):
        self._cells[cell_id] = cell

    def forget(self, cell_id: str):
        self._cells.pop(cell_id, None)

    def live(self) -> List[Tuple[str, object]]:
        return list(self._cells.items())

    def __contains__(self, cell_id: str) -> bool:
        return cell_id in self._cells

    def __len__(self) -> int:
        return len(self._cells)


# =============================================================================
# OBSERVABILITY ENGINE
# =============================================================================

class ObservabilityEngine:
    """
    Central Observability Engine.

    BOUNDARY ENFORCEMENT:
    - ONLY observes, never modifies
    - Hands out subject identifiers so trace lines can be correlated
    - Provides read-only access to collected data
    """

    def __init__(
        self,
        config: Optional[OwnershipConfig] = None,
        sink: Optional[Callable[[str], None]] = None
    ):
        self._config = config or OwnershipConfig()
        self._trace = TraceCollector(self._config.trace, sink=sink)
        self._metrics = LifecycleMetrics()
        self._heap = HeapRegistry() if self._config.track_heap else None
        self._id_counters: Dict[str, int] = {}

    def next_id(self, kind: str) -> str:
        """Allocate a subject identifier such as ``rc#3``."""
        self._id_counters[kind] = self._id_counters.get(kind, 0) + 1
        return f"{kind}#{self._id_counters[kind]}"

    def record(
        self,
        event_type: LifecycleEventType,
        subject: str,
        detail: str = "",
        strong_count: Optional[int] = None,
        metadata: Tuple[Tuple[str, str], ...] = ()
    ) -> Optional[LifecycleEvent]:
        """Record a lifecycle event in the trace and the counters."""
        kind = subject.split("#", 1)[0]
        self._metrics.observe(event_type, kind, detail)
        return self._trace.collect(
            event_type,
            subject,
            detail=detail,
            strong_count=strong_count,
            metadata=metadata
        )

    def track_cell(self, cell_id: str, cell: object):
        if self._heap is not None:
            self._heap.register(cell_id, cell)

    def untrack_cell(self, cell_id: str):
        if self._heap is not None:
            self._heap.forget(cell_id)

    @property
    def config(self) -> OwnershipConfig:
        return self._config

    @property
    def trace(self) -> TraceCollector:
        return self._trace

    @property
    def metrics(self) -> LifecycleMetrics:
        return self._metrics

    @property
    def heap(self) -> Optional[HeapRegistry]:
        return self._heap


_active_engine: Optional[ObservabilityEngine] = None


def get_engine() -> ObservabilityEngine:
    """Get the active engine, creating one from the environment on first use."""
    global _active_engine
    if _active_engine is None:
        _active_engine = ObservabilityEngine(OwnershipConfig.from_env())
    return _active_engine


def set_engine(engine: ObservabilityEngine) -> ObservabilityEngine:
    """Install `engine` as the active engine. Returns the previous one."""
    global _active_engine
    previous = get_engine()
    _active_engine = engine
    return previous


@contextmanager
def use_engine(engine: Optional[ObservabilityEngine] = None) -> Iterator[ObservabilityEngine]:
    """Run a block against a dedicated engine, restoring the previous one after."""
    engine = engine or ObservabilityEngine()
    previous = set_engine(engine)
    try:
        yield engine
    finally:
        set_engine(previous)


__all__ = [
    'TraceCollector', 'MetricType', 'MetricDefinition', 'LifecycleMetrics',
    'HeapRegistry', 'ObservabilityEngine',
    'get_engine', 'set_engine', 'use_engine',
]
