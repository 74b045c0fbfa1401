from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, List, Tuple

import pytest

from nvim_bridge.runtime import telemetry


class FakeLogger:
    def __init__(self) -> None:
        self.lines: List[Tuple[str, str, Any]] = []
        self.components: List[str] = []
        self.profiled: List[str] = []

    def info_with(self, message: str, pairs: Any) -> None:
        self.lines.append(("info", message, dict(pairs)))

    def error_with(self, message: str, pairs: Any) -> None:
        self.lines.append(("error", message, dict(pairs)))

    def debug(self, message: str) -> None:
        self.lines.append(("debug", message, None))

    @contextmanager
    def track_component(self, name: str) -> Iterator[None]:
        self.components.append(name)
        yield

    @contextmanager
    def profile(self, name: str) -> Iterator[None]:
        self.profiled.append(name)
        yield


@pytest.fixture
def fake_logger(monkeypatch: pytest.MonkeyPatch) -> FakeLogger:
    logger = FakeLogger()
    monkeypatch.setitem(telemetry._LOGGERS, "nvim_bridge.test", logger)
    return logger


def test_record_event_uses_structured_pairs(fake_logger: FakeLogger) -> None:
    telemetry.record_event(
        "session.error", level="error", data={"code": 3}, logger_name="nvim_bridge.test"
    )

    assert fake_logger.lines == [
        ("error", "event::session.error", {"event": "session.error", "code": "3"})
    ]


def test_record_event_falls_back_to_plain_message(fake_logger: FakeLogger) -> None:
    telemetry.record_event("grid.tick", level="debug", logger_name="nvim_bridge.test")

    [(level, message, _)] = fake_logger.lines
    assert level == "debug"
    assert message.startswith("event::grid.tick ")


def test_record_event_rejects_unknown_level(fake_logger: FakeLogger) -> None:
    with pytest.raises(ValueError):
        telemetry.record_event("x", level="loud", logger_name="nvim_bridge.test")


def test_span_profiles_and_reports_metadata(fake_logger: FakeLogger) -> None:
    with telemetry.span(
        "redraw::interpret", logger_name="nvim_bridge.test", component="redraw"
    ) as handle:
        handle.add_metadata("entries", 2)

    assert fake_logger.components == ["redraw"]
    assert fake_logger.profiled == ["redraw::interpret"]
    [(level, message, _)] = fake_logger.lines
    assert level == "debug"
    assert message.startswith("span::end ")
    assert "'entries': 2" in message


def test_span_failure_is_logged_and_reraised(fake_logger: FakeLogger) -> None:
    with pytest.raises(KeyError):
        with telemetry.span("redraw::interpret", logger_name="nvim_bridge.test") as handle:
            handle.add_metadata("entries", 1)
            raise KeyError("grid")

    assert fake_logger.components == []
    assert fake_logger.lines == [
        (
            "error",
            "span::fail",
            {"span": "redraw::interpret", "entries": "1", "error": "'grid'"},
        )
    ]


def test_env_flag_reads_prefixed_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NVIM_BRIDGE_LOG_JSON", "yes")
    monkeypatch.delenv("NVIM_BRIDGE_NO_COLOR", raising=False)

    assert telemetry.env_flag("LOG_JSON", False) is True
    assert telemetry.env_flag("NO_COLOR", True) is True
    assert telemetry.env("LOG_JSON") == "yes"
