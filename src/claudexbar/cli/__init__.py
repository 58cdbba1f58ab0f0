"""CLI commands for claudexbar."""

from .commands import apply_toggle_then_provider, cmd_doctor, cmd_select_provider

__all__ = ["apply_toggle_then_provider", "cmd_select_provider", "cmd_doctor"]
