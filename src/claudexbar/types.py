"""Data types for ClaudexBar."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

CLAUDE_PROVIDER = "claude"
CODEX_PROVIDER = "codex"
PROVIDERS = (CLAUDE_PROVIDER, CODEX_PROVIDER)


class PaceDirection(str, Enum):
    """How fast a window is being consumed relative to elapsed time."""

    STRONGLY_AHEAD = "strongly-ahead"
    AHEAD = "ahead"
    ON_TRACK = "on-track"
    BEHIND = "behind"
    STRONGLY_BEHIND = "strongly-behind"
    UNKNOWN = "unknown"


@dataclass
class Credential:
    """OAuth-style credential record read from a vendor CLI's file.

    ``raw`` holds the whole parsed document so that write-back can
    preserve fields this tool does not know about.
    """

    raw: dict[str, Any]
    access_token: str
    path: Path
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    account_id: Optional[str] = None
    last_refresh: Optional[datetime] = None
    mode: str = "oauth"


@dataclass
class UsageWindow:
    """A single rolling quota window."""

    utilization_percent: int = 0
    reset_at: Optional[datetime] = None
    window_length: Optional[timedelta] = None


@dataclass
class UsageSnapshot:
    """Normalized usage for one provider, built fresh per invocation."""

    session: UsageWindow
    weekly: UsageWindow
    provider: str
    source: str
    plan_type: Optional[str] = None
    credits: Optional[float] = None


@dataclass
class PacingResult:
    """Pacing classification for one window."""

    direction: PaceDirection
    status: str
    elapsed_percent: int = 0
    ratio: float = 0.0
    deviation_percent: int = 0

    @property
    def arrow(self) -> str:
        return PACE_ARROWS[self.direction]


PACE_ARROWS: dict[PaceDirection, str] = {
    PaceDirection.STRONGLY_AHEAD: "↑",
    PaceDirection.AHEAD: "↗",
    PaceDirection.ON_TRACK: "→",
    PaceDirection.BEHIND: "↘",
    PaceDirection.STRONGLY_BEHIND: "↓",
    PaceDirection.UNKNOWN: "→",
}


@dataclass
class Payload:
    """Status-bar JSON contract: text, tooltip, class, percentage."""

    text: str
    tooltip: str
    css_class: Union[str, list[str], None] = None
    percentage: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"text": self.text, "tooltip": self.tooltip}
        if self.css_class:
            data["class"] = self.css_class
        if self.percentage is not None:
            data["percentage"] = self.percentage
        return data
