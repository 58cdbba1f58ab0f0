"""Claude / Codex usage meter for status bars."""

__version__ = "0.3.0"
