"""Shared test fixtures for Haberdasher."""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from typing import Any

import pytest

from haberdasher.config import HaberdasherConfig
from haberdasher.models.record import RecordDefaults
from haberdasher.routing.registry import SinkRegistry


@pytest.fixture(autouse=True)
def _clean_haberdasher_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's HABERDASHER_* variables out of every test."""
    for name in list(os.environ):
        if name.startswith("HABERDASHER_"):
            monkeypatch.delenv(name)


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class RecordingSink:
    """A sink that keeps every record it is handed."""

    def __init__(self, name: str = "recording") -> None:
        self._name = name
        self._lock = threading.Lock()
        self.records: list[bytes] = []
        self.setup_calls = 0
        self.cleanup_calls = 0

    @property
    def sink_name(self) -> str:
        return self._name

    def setup(self) -> None:
        self.setup_calls += 1

    def handle_log_message(self, record: bytes) -> None:
        with self._lock:
            self.records.append(record)

    def cleanup(self) -> None:
        self.cleanup_calls += 1


class FailingSink(RecordingSink):
    """A sink whose deliveries and teardown always raise."""

    def __init__(self) -> None:
        super().__init__("failing")

    def handle_log_message(self, record: bytes) -> None:
        raise RuntimeError("Sink failure for testing")

    def cleanup(self) -> None:
        super().cleanup()
        raise RuntimeError("Cleanup failure for testing")


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink()


@pytest.fixture
def registry_for() -> Callable[[Any], SinkRegistry]:
    """Factory fixture: a registry whose only sink is the given instance."""

    def _factory(sink: Any, name: str = "recording") -> SinkRegistry:
        registry = SinkRegistry()
        registry.register(name, lambda config: sink)
        return registry

    return _factory


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config() -> Callable[..., HaberdasherConfig]:
    """Factory fixture: a test config that does not reap or wait long."""

    def _factory(**overrides: Any) -> HaberdasherConfig:
        defaults: dict[str, Any] = {
            "emitter": "recording",
            "reap_zombies": False,
            "drain_timeout": 5.0,
            "signal_grace_period": 0.1,
        }
        defaults.update(overrides)
        return HaberdasherConfig(_env_file=None, **defaults)

    return _factory


@pytest.fixture
def defaults() -> RecordDefaults:
    return RecordDefaults(tags=("web", "blue"), labels={"app": "inventory"})
