"""Shared pytest fixtures."""

from __future__ import annotations

from typing import Any, List

import pytest

from nvim_bridge.runtime import telemetry

from helpers import FakeSession


class RecordedEvents(list):
    def names(self) -> List[str]:
        return [name for name, _level, _data in self]

    def at_level(self, level: str) -> List[str]:
        return [name for name, lvl, _data in self if lvl == level]


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def recorded_events(monkeypatch: pytest.MonkeyPatch) -> RecordedEvents:
    events = RecordedEvents()

    def record(name: str, *, level: Any = "info", data=None, logger_name=None) -> None:
        events.append((name, str(level), dict(data or {})))

    monkeypatch.setattr(telemetry, "record_event", record)
    return events
