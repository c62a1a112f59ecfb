"""
Shared Immutable Handle Tests
=============================

INVARIANTS TESTED:
1. new -> strong_count == 1
2. clone increments by exactly 1, release decrements by exactly 1
3. Payload destroyed iff the count reaches 0, exactly once
4. A released handle never reaches the payload
"""

from dataclasses import dataclass

import pytest

from ownership.contracts.base import ErrorCode
from ownership.contracts.events import LifecycleEventType
from ownership.core import Drop, Rc, UseAfterRelease


@dataclass(frozen=True)
class Node:
    label: str
    child: object


class TestStrongCount:

    def test_new_handle_counts_one(self):
        assert Rc.strong_count(Rc.new(5)) == 1

    def test_clone_and_release_move_by_one(self):
        a = Rc("payload")
        b = a.clone()
        assert Rc.strong_count(a) == 2

        c = Rc.clone(b)
        assert Rc.strong_count(a) == 3

        c.release()
        assert Rc.strong_count(a) == 2
        b.release()
        assert Rc.strong_count(a) == 1

    @pytest.mark.parametrize("clones", [0, 1, 5, 20])
    def test_count_tracks_live_handles(self, clones, tracked, drop_log):
        origin = Rc(tracked("payload"))
        handles = [origin.clone() for _ in range(clones)]
        assert Rc.strong_count(origin) == clones + 1

        for handle in handles:
            handle.release()
        assert Rc.strong_count(origin) == 1
        assert drop_log == []

        origin.release()
        assert drop_log == ["payload"]

    def test_context_manager_releases_clone(self):
        a = Rc(1)
        with a.clone():
            assert Rc.strong_count(a) == 2
        assert Rc.strong_count(a) == 1


class TestPayload:

    def test_clone_does_not_copy(self):
        payload = {"k": "v"}
        a = Rc(payload)
        b = a.clone()
        assert a.deref() is payload
        assert b.value is payload
        assert Rc.ptr_eq(a, b)

    def test_distinct_cells_are_not_ptr_eq(self):
        assert not Rc.ptr_eq(Rc(1), Rc(1))

    def test_destroyed_exactly_once_at_zero(self, tracked, drop_log):
        a = Rc(tracked("shared"))
        b = a.clone()

        a.release()
        assert drop_log == []
        assert not b.cell.destroyed

        b.release()
        assert drop_log == ["shared"]
        assert b.cell.destroyed
        assert b.cell.strong_count == 0

    def test_destruction_cascades_into_owned_handles(self, tracked, drop_log):
        leaf = Rc(tracked("leaf"))
        parent = Rc(Node("parent", leaf.clone()))
        assert Rc.strong_count(leaf) == 2

        parent.release()
        assert Rc.strong_count(leaf) == 1

        leaf.release()
        assert drop_log == ["leaf"]


class TestReleasedHandles:

    def test_deref_after_release_faults(self):
        a = Rc(7)
        b = a.clone()
        a.release()

        with pytest.raises(UseAfterRelease) as exc_info:
            a.deref()
        assert exc_info.value.code == ErrorCode.USE_AFTER_RELEASE
        assert b.deref() == 7

    def test_strong_count_of_released_handle_faults(self):
        a = Rc(7)
        a.release()
        with pytest.raises(UseAfterRelease):
            Rc.strong_count(a)

    def test_clone_of_released_handle_faults(self):
        a = Rc(7)
        a.release()
        with pytest.raises(UseAfterRelease):
            a.clone()

    def test_double_release_faults_and_keeps_count(self):
        a = Rc(7)
        b = a.clone()
        b.release()

        with pytest.raises(UseAfterRelease) as exc_info:
            b.release()

        assert exc_info.value.code == ErrorCode.DOUBLE_DISPOSE
        assert Rc.strong_count(a) == 1


class TestTraceAndMetrics:

    def test_count_changes_are_traced(self, engine):
        a = Rc(1)
        b = a.clone()
        b.release()
        a.release()

        events = engine.trace.get_entries(subject=a.subject)
        assert [(e.event_type, e.strong_count) for e in events] == [
            (LifecycleEventType.CREATED, 1),
            (LifecycleEventType.CLONED, 2),
            (LifecycleEventType.RELEASED, 1),
            (LifecycleEventType.RELEASED, 0),
            (LifecycleEventType.DESTROYED, None),
        ]

    def test_metrics_and_heap_registry(self, engine):
        a = Rc("x")
        a.clone().release()
        assert engine.metrics.get("clones") == 1
        assert engine.metrics.live_cells == 1
        assert a.subject in engine.heap

        a.release()
        assert engine.metrics.live_cells == 0
        assert a.subject not in engine.heap

    def test_repr(self):
        a = Rc(5)
        assert repr(a) == "Rc(5)"
        a.release()
        assert repr(a) == "Rc(<released>)"


class FailingHook(Drop):

    def drop(self) -> None:
        raise RuntimeError("hook failed")


class TestFailingHook:

    def test_cell_accounted_destroyed_when_hook_raises(self, engine):
        a = Rc(FailingHook())

        with pytest.raises(RuntimeError):
            a.release()

        assert a.cell.destroyed
        assert len(engine.heap) == 0
        assert engine.metrics.live_cells == 0
        destroyed = engine.trace.get_entries(event_type=LifecycleEventType.DESTROYED)
        assert [e.subject for e in destroyed] == [a.subject]
