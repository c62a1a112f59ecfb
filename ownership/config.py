"""
Configuration
=============

Unified configuration for the ownership runtime's observability.

Environment overrides (all optional):
    OWNERSHIP_TRACE              "0" disables trace collection
    OWNERSHIP_TRACE_ECHO         "1" prints every trace line as it happens
    OWNERSHIP_TRACE_MAX_EVENTS   keep only the most recent N trace events
    OWNERSHIP_TRACK_HEAP         "0" disables the live-cell registry
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional
import os


_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _env_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass
class TraceConfig:
    """Configuration for the lifecycle trace."""
    enabled: bool = True
    echo: bool = False
    max_events: Optional[int] = None

    def __post_init__(self):
        if self.max_events is not None and self.max_events <= 0:
            raise ValueError("max_events must be positive when set")


@dataclass
class OwnershipConfig:
    """Configuration for the observability engine."""
    trace: TraceConfig = None
    track_heap: bool = True

    def __post_init__(self):
        self.trace = self.trace or TraceConfig()

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'OwnershipConfig':
        """Build configuration from environment variables."""
        env = os.environ if env is None else env

        max_events_raw = env.get("OWNERSHIP_TRACE_MAX_EVENTS")
        max_events = int(max_events_raw) if max_events_raw else None

        return cls(
            trace=TraceConfig(
                enabled=_env_flag(env, "OWNERSHIP_TRACE", True),
                echo=_env_flag(env, "OWNERSHIP_TRACE_ECHO", False),
                max_events=max_events,
            ),
            track_heap=_env_flag(env, "OWNERSHIP_TRACK_HEAP", True),
        )
