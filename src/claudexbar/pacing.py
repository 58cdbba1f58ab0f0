"""Pacing model: compare quota consumption against elapsed window time."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from .types import PaceDirection, PacingResult
from .utils.formatting import round_half_up

STRONGLY_AHEAD_RATIO = 1.10
AHEAD_RATIO = 1.05
BEHIND_RATIO = 0.95
STRONGLY_BEHIND_RATIO = 0.90


def elapsed_percent(
    reset_at: datetime, window_length: timedelta, now: Optional[datetime] = None
) -> int:
    """Percentage of the window that has already passed, clamped to [0, 100]."""
    now = now or datetime.now(timezone.utc)
    start = reset_at - window_length
    fraction = (now - start) / window_length
    return max(0, min(100, round_half_up(fraction * 100)))


def pace_ratio(usage_percent: float, elapsed: int) -> float:
    """Ratio of usage to elapsed time; 0 when no time has elapsed."""
    if elapsed <= 0:
        return 0.0
    return usage_percent / elapsed


def classify_ratio(ratio: float) -> PaceDirection:
    """Map a pace ratio to a direction, most extreme thresholds first."""
    if ratio > STRONGLY_AHEAD_RATIO:
        return PaceDirection.STRONGLY_AHEAD
    if ratio > AHEAD_RATIO:
        return PaceDirection.AHEAD
    if ratio < STRONGLY_BEHIND_RATIO:
        return PaceDirection.STRONGLY_BEHIND
    if ratio < BEHIND_RATIO:
        return PaceDirection.BEHIND
    return PaceDirection.ON_TRACK


def calculate_pacing(
    usage_percent: float,
    reset_at: Optional[datetime],
    window_length: Optional[timedelta],
    now: Optional[datetime] = None,
) -> PacingResult:
    """Classify how fast a window is being consumed.

    Args:
        usage_percent: Utilization of the window (0-100)
        reset_at: When the window resets, or None if unknown
        window_length: Length of the window, or None if unknown
        now: Current time, injectable for tests

    Returns:
        PacingResult; direction is UNKNOWN when the window is not fully known
    """
    if reset_at is None or window_length is None or window_length <= timedelta(0):
        return PacingResult(direction=PaceDirection.UNKNOWN, status="unknown pace")

    elapsed = elapsed_percent(reset_at, window_length, now)
    ratio = pace_ratio(usage_percent, elapsed)
    direction = classify_ratio(ratio)

    if direction in (PaceDirection.STRONGLY_AHEAD, PaceDirection.AHEAD):
        delta = round_half_up((ratio - 1) * 100)
        return PacingResult(direction, f"{delta}% ahead", elapsed, ratio, delta)

    if direction in (PaceDirection.STRONGLY_BEHIND, PaceDirection.BEHIND):
        delta = round_half_up((1 - ratio) * 100)
        return PacingResult(direction, f"{delta}% under", elapsed, ratio, -delta)

    return PacingResult(direction, "on track", elapsed, ratio, 0)
