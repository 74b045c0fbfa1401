"""Textual front-end for the Neovim bridge."""

from .controller import TextualNeovimAdapter, TextualUIHooks, to_nvim_keys

__all__ = ["TextualNeovimAdapter", "TextualUIHooks", "to_nvim_keys"]
