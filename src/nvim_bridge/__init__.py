"""Client-side driver for Neovim's external UI protocol."""

__all__ = [
    "adapters",
    "attach",
    "autocommands",
    "buffer",
    "errors",
    "instance",
    "plugin",
    "redraw",
    "runtime",
    "screen",
    "session",
    "signals",
]

__version__ = "0.1.0"
