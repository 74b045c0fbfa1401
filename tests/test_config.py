from __future__ import annotations

import os

import pytest

from nvim_bridge.runtime import FixedSize, Settings
from nvim_bridge.runtime.audio import player_command
from nvim_bridge.runtime.config import MAX_LINES_FOR_BUFFER_UPDATE
from nvim_bridge.runtime.paths import config_root, ensure_init_vim


def test_defaults() -> None:
    settings = Settings()

    assert settings.font_family == "monospace"
    assert settings.font_size == "12px"
    assert settings.fixed_size is None
    assert settings.connect_function == "OniConnect"
    assert settings.context_function == "OniGetContext"
    assert settings.max_lines_for_buffer_update == MAX_LINES_FOR_BUFFER_UPDATE == 5000


def test_from_mapping_reads_editor_keys() -> None:
    settings = Settings.from_mapping(
        {
            "editor.fontFamily": "Fira Code",
            "editor.fontSize": "14px",
            "debug.fixedSize": {"rows": 40, "columns": 120},
            "oni.audio.bellUrl": "file:///bell.wav",
            "oni.loadInitVim": "/home/me/init.vim",
        }
    )

    assert settings.font_family == "Fira Code"
    assert settings.font_size == "14px"
    assert settings.fixed_size == FixedSize(rows=40, columns=120)
    assert settings.bell_url == "file:///bell.wav"
    assert settings.load_init_vim == "/home/me/init.vim"


def test_from_mapping_boolean_load_init_vim_is_not_a_path() -> None:
    settings = Settings.from_mapping({"oni.loadInitVim": True, "oni.audio.bellUrl": ""})

    assert settings.load_init_vim is None
    assert settings.bell_url is None


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NVIM_BRIDGE_FONT_SIZE", "16px")
    monkeypatch.setenv("NVIM_BRIDGE_FIXED_SIZE", "30x100")
    monkeypatch.setenv("NVIM_BRIDGE_NO_CONNECT", "1")
    monkeypatch.setenv("NVIM_BRIDGE_MAX_LINES_FOR_BUFFER_UPDATE", "200")

    settings = Settings.from_env()

    assert settings.font_size == "16px"
    assert settings.fixed_size == FixedSize(rows=30, columns=100)
    assert settings.connect_function is None
    assert settings.max_lines_for_buffer_update == 200


def test_fixed_size_parse_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        FixedSize.parse("forty")


def test_config_root_per_platform() -> None:
    assert config_root(windows=False, environ={"HOME": "/home/me"}) == os.path.join(
        "/home/me", ".config", "nvim"
    )
    assert config_root(
        windows=True, environ={"LOCALAPPDATA": "C:\\Users\\me\\AppData\\Local"}
    ) == os.path.join("C:\\Users\\me\\AppData\\Local", "nvim")


def test_ensure_init_vim_creates_directory(tmp_path) -> None:
    root = tmp_path / "nvim"

    path = ensure_init_vim(str(root))

    assert root.is_dir()
    assert path == str(root / "init.vim")


def test_player_command_strips_file_scheme() -> None:
    assert player_command("file:///sounds/bell.wav", player="aplay -q") == [
        "aplay",
        "-q",
        "/sounds/bell.wav",
    ]
