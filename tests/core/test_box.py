"""
Indirection Box Tests
=====================

INVARIANTS TESTED:
1. Access is transparent: deref hands back the inner object itself
2. Releasing the box destroys the inner value exactly once
3. A released box cannot be used or released again
"""

import pytest

from ownership.contracts.base import ErrorCode
from ownership.contracts.events import LifecycleEventType
from ownership.core import Box, Drop, UseAfterRelease


class TestTransparentAccess:

    def test_deref_matches_plain_value(self):
        """*Box(x) == x."""
        x = 5
        y = Box.new(x)
        assert y.deref() == x
        assert y.value == 5

    def test_deref_returns_same_object(self):
        """No copy is made on access."""
        payload = ["a", "b"]
        boxed = Box(payload)
        assert boxed.deref() is payload


class TestDestruction:

    def test_release_fires_inner_hook(self, tracked, drop_log):
        boxed = Box(tracked("inner"))
        assert drop_log == []

        boxed.release()

        assert drop_log == ["inner"]
        assert boxed.is_released

    def test_context_manager_releases_on_exit(self, tracked, drop_log):
        with Box(tracked("scoped")):
            assert drop_log == []
        assert drop_log == ["scoped"]

    def test_nested_boxes_cascade(self, tracked, drop_log):
        outer = Box(Box(tracked("deep")))
        outer.release()
        assert drop_log == ["deep"]

    def test_into_inner_moves_without_destroying(self, tracked, drop_log):
        value = tracked("moved")
        boxed = Box(value)

        assert boxed.into_inner() is value
        assert drop_log == []
        assert boxed.is_released


class TestUseAfterRelease:

    def test_deref_after_release_faults(self):
        boxed = Box(1)
        boxed.release()

        with pytest.raises(UseAfterRelease) as exc_info:
            boxed.deref()
        assert exc_info.value.code == ErrorCode.USE_AFTER_RELEASE

    def test_double_release_faults(self, tracked, drop_log):
        boxed = Box(tracked("once"))
        boxed.release()

        with pytest.raises(UseAfterRelease) as exc_info:
            boxed.release()

        assert exc_info.value.code == ErrorCode.DOUBLE_DISPOSE
        assert drop_log == ["once"]

    def test_repr_after_release(self):
        boxed = Box(3)
        assert repr(boxed) == "Box(3)"
        boxed.release()
        assert repr(boxed) == "Box(<released>)"


class TestTrace:

    def test_created_and_destroyed_recorded(self, engine):
        boxed = Box("data")
        boxed.release()

        events = engine.trace.get_entries(subject=boxed.subject)
        assert [e.event_type for e in events] == [
            LifecycleEventType.CREATED,
            LifecycleEventType.DESTROYED,
        ]

    def test_destroyed_recorded_when_hook_raises(self, engine):
        class Failing(Drop):
            def drop(self) -> None:
                raise RuntimeError("hook failed")

        boxed = Box(Failing())
        with pytest.raises(RuntimeError):
            boxed.release()

        assert boxed.is_released
        events = engine.trace.get_entries(subject=boxed.subject)
        assert events[-1].event_type == LifecycleEventType.DESTROYED
