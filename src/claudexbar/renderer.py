"""Rendering pipeline: usage snapshot + pacing -> status-bar payload."""

from datetime import datetime, timezone
from typing import Optional

from .pacing import (
    AHEAD_RATIO,
    BEHIND_RATIO,
    STRONGLY_AHEAD_RATIO,
    STRONGLY_BEHIND_RATIO,
    calculate_pacing,
)
from .providers import builtin  # noqa: F401
from .providers.registry import get_provider
from .types import PacingResult, Payload, UsageSnapshot, UsageWindow
from .utils.formatting import add_provider_badge, format_countdown, merge_classes

TOOLTIP_HEADER = ["ClaudexBar", "-----------"]
WEEKLY_GLYPH = "◉"
ELAPSED_GLYPH = "⧖"
ERROR_TEXT = "⚠ cdx"


def severity_class(weekly_percent: int, weekly_pacing: PacingResult) -> str:
    """Severity CSS class for the weekly window.

    Args:
        weekly_percent: Weekly utilization (0-100)
        weekly_pacing: Pacing result for the weekly window

    Returns:
        "critical", "warning", "easy" or "" for nothing notable
    """
    elapsed = weekly_pacing.elapsed_percent if weekly_pacing.elapsed_percent > 0 else 1
    ratio = weekly_percent / elapsed

    if ratio > STRONGLY_AHEAD_RATIO or weekly_percent >= 90:
        return "critical"
    if ratio > AHEAD_RATIO or weekly_percent >= 75:
        return "warning"
    if STRONGLY_BEHIND_RATIO <= ratio < BEHIND_RATIO:
        return "easy"
    return ""


def _window_block(
    label: str, window: UsageWindow, pacing: PacingResult, now: datetime
) -> list[str]:
    return [
        f"{label}: {window.utilization_percent}% ({pacing.status})",
        f"  Resets in {format_countdown(window.reset_at, now)}",
    ]


def _format_credits(credits: float) -> str:
    return f"{credits:g}" if credits == int(credits) else f"{credits:.2f}"


def render_payload(
    snapshot: UsageSnapshot,
    session_pacing: PacingResult,
    weekly_pacing: PacingResult,
    now: Optional[datetime] = None,
) -> Payload:
    """Build the status-bar payload for a snapshot.

    Args:
        snapshot: Normalized usage
        session_pacing: Pacing for the session window
        weekly_pacing: Pacing for the weekly window
        now: Current time for countdowns

    Returns:
        Payload with text, tooltip, class list and session percentage
    """
    now = now or datetime.now(timezone.utc)
    provider = get_provider(snapshot.provider)
    display_name = provider.display_name if provider else snapshot.provider.title()
    badge = provider.badge if provider else snapshot.provider[:1].upper()

    weekly = snapshot.weekly
    weekly_countdown = format_countdown(weekly.reset_at, now)
    text = (
        f"{weekly_pacing.arrow} {WEEKLY_GLYPH}{weekly.utilization_percent}% "
        f"{ELAPSED_GLYPH}{weekly_pacing.elapsed_percent}% {weekly_countdown}"
    )

    tooltip_lines = TOOLTIP_HEADER + [f"Provider: {display_name} ({snapshot.source})"]
    if snapshot.plan_type:
        tooltip_lines.append(f"Plan: {snapshot.plan_type}")
    if snapshot.credits is not None:
        tooltip_lines.append(f"Credits: {_format_credits(snapshot.credits)}")
    tooltip_lines.append("")
    tooltip_lines.extend(_window_block("Session", snapshot.session, session_pacing, now))
    tooltip_lines.append("")
    tooltip_lines.extend(_window_block("Weekly", weekly, weekly_pacing, now))

    return Payload(
        text=add_provider_badge(text, badge),
        tooltip="\n".join(tooltip_lines),
        css_class=merge_classes(
            severity_class(weekly.utilization_percent, weekly_pacing),
            f"provider-{snapshot.provider}",
        ),
        percentage=snapshot.session.utilization_percent,
    )


def render_usage(snapshot: UsageSnapshot, now: Optional[datetime] = None) -> Payload:
    """Compute pacing for both windows and render the payload."""
    now = now or datetime.now(timezone.utc)
    session = snapshot.session
    weekly = snapshot.weekly

    session_pacing = calculate_pacing(
        session.utilization_percent, session.reset_at, session.window_length, now
    )
    weekly_pacing = calculate_pacing(
        weekly.utilization_percent, weekly.reset_at, weekly.window_length, now
    )
    return render_payload(snapshot, session_pacing, weekly_pacing, now)


def render_error(message: str) -> Payload:
    """Payload shown when no usage could be obtained."""
    return Payload(
        text=ERROR_TEXT,
        tooltip="\n".join(TOOLTIP_HEADER + [message]),
        css_class="error",
    )
