from __future__ import annotations

import asyncio
import os
from typing import Any, List

import pytest

from nvim_bridge.errors import TransportError, UnexpectedDisconnect, UnsupportedVersion
from nvim_bridge.instance import DISCONNECT_MESSAGE, NeovimInstance
from nvim_bridge.redraw import actions
from nvim_bridge.runtime import Settings
from nvim_bridge.screen import FixedFontMeasurer

from helpers import FakeSession, api_info

CONTEXT = {"bufferNumber": 1, "line": 10, "column": 1}


class FakeResponder:
    def __init__(self) -> None:
        self.sent: List[Any] = []

    def send(self, result: Any, *, is_error: bool = False) -> None:
        self.sent.append((result, is_error))


def make_instance(**kwargs: Any) -> NeovimInstance:
    kwargs.setdefault("measurer", FixedFontMeasurer(10, 20))
    return NeovimInstance(800, 480, **kwargs)


def context_responses(**extra: Any) -> dict:
    def call_function(name: str, args: Any) -> Any:
        return dict(CONTEXT) if name == "OniGetContext" else None

    return {"nvim_call_function": call_function, **extra}


@pytest.mark.asyncio
async def test_start_attaches_then_runs_handshake() -> None:
    session = FakeSession()
    instance = make_instance()

    caps = await instance.start(session)

    assert caps.ext_tabline is True
    assert instance.capabilities == caps
    assert [name for name, _ in session.requests] == [
        "nvim_get_api_info",
        "nvim_ui_attach",
        "nvim_command",
        "nvim_call_function",
    ]
    assert session.calls("nvim_ui_attach")[0][:2] == [80, 24]
    assert session.calls("nvim_command") == [["set title"]]
    assert session.calls("nvim_call_function") == [["OniConnect", []]]


@pytest.mark.asyncio
async def test_start_without_connect_function() -> None:
    session = FakeSession()
    instance = make_instance(settings=Settings(connect_function=None))

    await instance.start(session)

    assert session.calls("nvim_call_function") == []


@pytest.mark.asyncio
async def test_start_twice_is_rejected() -> None:
    instance = make_instance()
    await instance.start(FakeSession())

    with pytest.raises(RuntimeError):
        await instance.start(FakeSession())


@pytest.mark.asyncio
async def test_unsupported_version_fails_start(recorded_events) -> None:
    session = FakeSession({"nvim_get_api_info": api_info(0, 1, 7)})
    instance = make_instance()

    with pytest.raises(UnsupportedVersion):
        await instance.start(session)

    assert session.calls("nvim_ui_attach") == []
    assert "session.attach_failed" in recorded_events.at_level("error")


@pytest.mark.asyncio
async def test_handshake_failure_is_reported_not_raised() -> None:
    failure = TransportError("E117: Unknown function: OniConnect")
    session = FakeSession({"nvim_call_function": failure})
    instance = make_instance()
    errors: List[Any] = []
    instance.on_error.subscribe(errors.append)

    await instance.start(session)

    assert errors == [failure]


@pytest.mark.asyncio
async def test_request_before_start_raises() -> None:
    instance = make_instance()

    with pytest.raises(TransportError):
        await instance.eval("1 + 1")


@pytest.mark.asyncio
async def test_redraw_emits_actions_then_complete() -> None:
    session = FakeSession()
    instance = make_instance()
    order: List[str] = []
    instance.on_action.subscribe(lambda action: order.append(type(action).__name__))
    instance.on_redraw_complete.subscribe(lambda _: order.append("complete"))
    await instance.start(session)

    session.notify("redraw", [["clear", []], ["cursor_goto", [0, 0]]])

    assert order == ["Clear", "CursorGoto", "complete"]


@pytest.mark.asyncio
async def test_redraw_complete_follows_malformed_batch() -> None:
    session = FakeSession()
    instance = make_instance()
    completions: List[None] = []
    instance.on_redraw_complete.subscribe(completions.append)
    await instance.start(session)

    session.notify("redraw", 17)

    assert completions == [None]


@pytest.mark.asyncio
async def test_scroll_notifications_are_coalesced() -> None:
    session = FakeSession(context_responses())
    instance = make_instance()
    scrolls: List[Any] = []
    instance.on_scroll.subscribe(scrolls.append)
    await instance.start(session)

    session.notify("redraw", [["scroll", [1]], ["scroll", [1]]])
    session.notify("redraw", [["scroll", [-2]]])
    await instance.drain()

    assert scrolls == [CONTEXT]
    assert session.calls("nvim_call_function").count(["OniGetContext", []]) == 1


@pytest.mark.asyncio
async def test_scroll_after_settle_schedules_again() -> None:
    session = FakeSession(context_responses())
    instance = make_instance()
    scrolls: List[Any] = []
    instance.on_scroll.subscribe(scrolls.append)
    await instance.start(session)

    session.notify("redraw", [["scroll", [1]]])
    await instance.drain()
    session.notify("redraw", [["scroll", [1]]])
    await instance.drain()

    assert len(scrolls) == 2


@pytest.mark.asyncio
async def test_buffer_update_notification_publishes_lines() -> None:
    session = FakeSession({"nvim_buf_get_lines": lambda *args: ["first", "second"]})
    instance = make_instance()
    updates: List[Any] = []
    instance.on_buffer_update.subscribe(updates.append)
    await instance.start(session)

    session.notify("oni_plugin_notify", [["buffer_update", CONTEXT, 1, 2]])
    await instance.drain()

    assert session.calls("nvim_buf_get_lines") == [[1, 0, 2, False]]
    assert updates[0].lines == ("first", "second")


@pytest.mark.asyncio
async def test_directory_change_reads_cwd() -> None:
    session = FakeSession({"nvim_eval": "/tmp/project/"})
    instance = make_instance()
    directories: List[str] = []
    instance.on_directory_changed.subscribe(directories.append)
    await instance.start(session)

    session.notify("oni_plugin_notify", [["event", "DirChanged", CONTEXT]])
    await instance.drain()

    assert session.calls("nvim_eval") == [["getcwd()"]]
    assert directories == [os.path.normpath("/tmp/project/")]


@pytest.mark.asyncio
async def test_disconnect_after_vim_leave_is_not_an_error() -> None:
    session = FakeSession()
    instance = make_instance()
    errors: List[Any] = []
    leaves: List[None] = []
    instance.on_error.subscribe(errors.append)
    instance.on_leave.subscribe(leaves.append)
    await instance.start(session)

    session.notify("oni_plugin_notify", [["event", "VimLeave", CONTEXT]])
    session.disconnect()

    assert leaves == [None]
    assert errors == []
    assert instance.is_leaving is True


@pytest.mark.asyncio
async def test_unexpected_disconnect_reports_one_error() -> None:
    session = FakeSession()
    instance = make_instance()
    errors: List[Any] = []
    leaves: List[None] = []
    instance.on_error.subscribe(errors.append)
    instance.on_leave.subscribe(leaves.append)
    await instance.start(session)

    session.disconnect()

    assert len(errors) == 1
    assert isinstance(errors[0], UnexpectedDisconnect)
    assert str(errors[0]) == DISCONNECT_MESSAGE
    assert leaves == []


@pytest.mark.asyncio
async def test_close_marks_leaving_and_closes_session() -> None:
    session = FakeSession()
    instance = make_instance()
    errors: List[Any] = []
    instance.on_error.subscribe(errors.append)
    await instance.start(session)

    await instance.close()
    session.disconnect()

    assert session.closed is True
    assert errors == []


@pytest.mark.asyncio
async def test_unknown_notification_is_logged(recorded_events) -> None:
    session = FakeSession()
    instance = make_instance()
    await instance.start(session)

    session.notify("nvim_buf_lines_event", [1, 2])

    assert ("session.unknown_notification", "warning", {"method": "nvim_buf_lines_event"}) in recorded_events


@pytest.mark.asyncio
async def test_inbound_request_gets_error_response() -> None:
    session = FakeSession()
    instance = make_instance()
    await instance.start(session)
    responder = FakeResponder()

    session.events.emit("request", "vimenter", [], responder)

    assert responder.sent == [("Unhandled request: vimenter", True)]


@pytest.mark.asyncio
async def test_bell_plays_configured_sound() -> None:
    played: List[str] = []

    async def player(url: str) -> None:
        played.append(url)

    session = FakeSession()
    instance = make_instance(
        settings=Settings(bell_url="file:///sounds/bell.wav"), sound_player=player
    )
    await instance.start(session)

    session.notify("redraw", [["bell", []]])
    await instance.drain()

    assert played == ["file:///sounds/bell.wav"]


@pytest.mark.asyncio
async def test_bell_failure_is_only_logged(recorded_events) -> None:
    async def player(url: str) -> None:
        raise FileNotFoundError(url)

    session = FakeSession()
    instance = make_instance(settings=Settings(bell_url="bell.wav"), sound_player=player)
    errors: List[Any] = []
    instance.on_error.subscribe(errors.append)
    await instance.start(session)

    session.notify("redraw", [["bell", []]])
    await instance.drain()

    assert errors == []
    assert "bell.failed" in recorded_events.names()


@pytest.mark.asyncio
async def test_bell_without_url_is_silent() -> None:
    played: List[str] = []

    async def player(url: str) -> None:
        played.append(url)

    session = FakeSession()
    instance = make_instance(sound_player=player)
    await instance.start(session)

    session.notify("redraw", [["bell", []]])
    await instance.drain()

    assert played == []


@pytest.mark.asyncio
async def test_rpc_helpers_send_expected_commands() -> None:
    session = FakeSession({"nvim_input": 3})
    instance = make_instance()
    await instance.start(session)

    await instance.chdir("/work")
    await instance.open("notes.md")
    assert await instance.input("<Esc>") == 3

    assert session.calls("nvim_command")[-2:] == [["cd! /work"], ["e! notes.md"]]
    assert session.calls("nvim_input") == [["<Esc>"]]


@pytest.mark.asyncio
async def test_open_init_vim_uses_override_path() -> None:
    session = FakeSession()
    instance = make_instance(settings=Settings(load_init_vim="/etc/nvim/custom.vim"))
    await instance.start(session)

    await instance.open_init_vim()

    assert session.calls("nvim_command")[-1] == ["e! /etc/nvim/custom.vim"]


@pytest.mark.asyncio
async def test_open_init_vim_creates_config_directory(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr("nvim_bridge.runtime.paths.is_windows", lambda: False)
    monkeypatch.setenv("HOME", str(tmp_path))
    session = FakeSession()
    instance = make_instance()
    await instance.start(session)

    await instance.open_init_vim()

    config_dir = tmp_path / ".config" / "nvim"
    assert config_dir.is_dir()
    assert session.calls("nvim_command")[-1] == [f"e! {config_dir / 'init.vim'}"]


@pytest.mark.asyncio
async def test_get_buffer_ids_unwraps_handles() -> None:
    from nvim_bridge.session import RemoteRef

    session = FakeSession({"nvim_list_bufs": [RemoteRef("Buffer", 1), 4]})
    instance = make_instance()
    await instance.start(session)

    assert await instance.get_buffer_ids() == [1, 4]


@pytest.mark.asyncio
async def test_resize_after_start_issues_try_resize() -> None:
    session = FakeSession()
    instance = make_instance()
    await instance.start(session)

    task = instance.resize(1000, 500)
    assert task is not None
    await task

    assert session.calls("nvim_ui_try_resize") == [[100, 25]]
    assert instance.resize(1005, 505) is None


@pytest.mark.asyncio
async def test_set_font_emits_action_and_resizes() -> None:
    session = FakeSession()
    instance = make_instance()
    emitted: List[Any] = []
    instance.on_action.subscribe(emitted.append)
    await instance.start(session)

    task = instance.set_font("Hack", "14px")
    assert task is None

    assert emitted == [
        actions.SetFont(family="Hack", size="14px", width=10, height=20, line_padding=0)
    ]
    assert session.calls("nvim_ui_try_resize") == []


@pytest.mark.asyncio
async def test_get_api_version_uses_session() -> None:
    session = FakeSession({"nvim_get_api_info": api_info(0, 2, 2)})
    instance = make_instance()
    await instance.start(session)

    version = await instance.get_api_version()

    assert str(version) == "0.2.2"


@pytest.mark.asyncio
async def test_buffer_update_without_buffer_number_is_not_fetched(recorded_events) -> None:
    session = FakeSession()
    instance = make_instance()
    errors: List[Any] = []
    instance.on_error.subscribe(errors.append)
    await instance.start(session)

    session.notify("oni_plugin_notify", [["buffer_update", {"bufferFullPath": "x"}, 1, 2]])
    await instance.drain()

    assert session.calls("nvim_buf_get_lines") == []
    assert "plugin.malformed_payload" in recorded_events.at_level("warning")
    assert recorded_events.at_level("error") == []
    assert errors == []


@pytest.mark.asyncio
async def test_directory_change_failure_reaches_error_feed(recorded_events) -> None:
    session = FakeSession({"nvim_eval": None})
    instance = make_instance()
    errors: List[Any] = []
    directories: List[str] = []
    instance.on_error.subscribe(errors.append)
    instance.on_directory_changed.subscribe(directories.append)
    await instance.start(session)

    session.notify("oni_plugin_notify", [["event", "DirChanged", CONTEXT]])
    await instance.drain()

    assert directories == []
    assert [type(error) for error in errors] == [TypeError]
    assert recorded_events.at_level("error") == ["tasks.failed", "session.error"]


@pytest.mark.asyncio
async def test_close_cancels_pending_background_work() -> None:
    session = FakeSession({"nvim_eval": "/tmp/project"})
    instance = make_instance()
    errors: List[Any] = []
    directories: List[str] = []
    instance.on_error.subscribe(errors.append)
    instance.on_directory_changed.subscribe(directories.append)
    await instance.start(session)

    session.notify("oni_plugin_notify", [["event", "DirChanged", CONTEXT]])
    await instance.close()
    await instance.drain()

    assert session.calls("nvim_eval") == []
    assert directories == []
    assert errors == []
