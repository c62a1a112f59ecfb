"""
Configuration Tests
"""

import pytest

from ownership.config import OwnershipConfig, TraceConfig


class TestDefaults:

    def test_nested_defaults_filled(self):
        config = OwnershipConfig()
        assert config.trace == TraceConfig()
        assert config.trace.enabled is True
        assert config.trace.echo is False
        assert config.track_heap is True

    def test_max_events_must_be_positive(self):
        with pytest.raises(ValueError):
            TraceConfig(max_events=0)


class TestFromEnv:

    def test_empty_environment(self):
        config = OwnershipConfig.from_env({})
        assert config == OwnershipConfig()

    def test_overrides(self):
        config = OwnershipConfig.from_env({
            "OWNERSHIP_TRACE": "off",
            "OWNERSHIP_TRACE_ECHO": "1",
            "OWNERSHIP_TRACE_MAX_EVENTS": "50",
            "OWNERSHIP_TRACK_HEAP": "false",
        })
        assert config.trace.enabled is False
        assert config.trace.echo is True
        assert config.trace.max_events == 50
        assert config.track_heap is False

    def test_blank_values_use_defaults(self):
        config = OwnershipConfig.from_env({"OWNERSHIP_TRACE": "  "})
        assert config.trace.enabled is True

    def test_invalid_flag_rejected(self):
        with pytest.raises(ValueError, match="OWNERSHIP_TRACE_ECHO"):
            OwnershipConfig.from_env({"OWNERSHIP_TRACE_ECHO": "maybe"})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("OWNERSHIP_TRACK_HEAP", "0")
        assert OwnershipConfig.from_env().track_heap is False
