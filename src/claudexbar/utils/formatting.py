"""Formatting utilities for percentages, countdowns and bar text."""

import math

from datetime import datetime, timezone
from typing import Iterable, Optional, Union

PACE_ARROW_GLYPHS = ("↑", "↗", "→", "↘", "↓")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def clamp_percent(value: float) -> int:
    """Round a percentage and clamp it into [0, 100].

    Args:
        value: Raw percentage from an upstream API (may be out of range)

    Returns:
        Integer percentage between 0 and 100
    """
    return max(0, min(100, round_half_up(value)))


def format_countdown(reset_at: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Format time remaining until a window resets.

    Args:
        reset_at: Reset timestamp, or None when unknown
        now: Current time (defaults to the wall clock)

    Returns:
        "n/a", "now", "{d}d{h}h" for a day or more, else "{h}h{mm}m"
    """
    if reset_at is None:
        return "n/a"

    now = now or datetime.now(timezone.utc)
    seconds = (reset_at - now).total_seconds()
    if seconds <= 0:
        return "now"

    total_minutes = int(seconds // 60)
    days, remainder = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(remainder, 60)

    if days > 0:
        return f"{days}d{hours}h"
    return f"{hours}h{minutes:02d}m"


def add_provider_badge(text: str, badge: str) -> str:
    """Prefix text with a provider badge, keeping a leading arrow next to it.

    Args:
        text: Bar text, usually starting with a pacing arrow
        badge: One-letter provider badge

    Returns:
        Text such as "A ↑ ◉40% ⧖20% 3d2h"
    """
    trimmed = text.strip()
    if not trimmed:
        return badge

    if trimmed[0] in PACE_ARROW_GLYPHS:
        rest = trimmed[1:].lstrip()
        return f"{badge} {trimmed[0]} {rest}".strip()

    return f"{badge} {trimmed}"


def merge_classes(
    *values: Union[str, Iterable[str], None],
) -> Optional[list[str]]:
    """Merge CSS classes preserving first-seen order without duplicates.

    Strings are split on whitespace; empty entries are dropped.

    Returns:
        List of class names, or None when nothing remains
    """
    merged: list[str] = []

    for value in values:
        if not value:
            continue
        entries = value.split() if isinstance(value, str) else value
        for entry in entries:
            name = entry.strip()
            if name and name not in merged:
                merged.append(name)

    return merged or None
