"""Platform-specific locations of the Neovim init file."""

from __future__ import annotations

import os
import sys
from typing import Mapping, Optional

INIT_VIM_NAME = "init.vim"


def is_windows() -> bool:
    return sys.platform.startswith("win")


def config_root(
    *, windows: Optional[bool] = None, environ: Optional[Mapping[str, str]] = None
) -> str:
    """Return Neovim's user configuration directory for this platform."""

    environ = os.environ if environ is None else environ
    windows = is_windows() if windows is None else windows
    if windows:
        return os.path.join(environ.get("LOCALAPPDATA", ""), "nvim")
    home = environ.get("HOME") or os.path.expanduser("~")
    return os.path.join(home, ".config", "nvim")


def ensure_init_vim(root: Optional[str] = None) -> str:
    """Create the configuration directory if needed and return the init path."""

    folder = root or config_root()
    os.makedirs(folder, exist_ok=True)
    return os.path.join(folder, INIT_VIM_NAME)


__all__ = ["INIT_VIM_NAME", "config_root", "ensure_init_vim", "is_windows"]
