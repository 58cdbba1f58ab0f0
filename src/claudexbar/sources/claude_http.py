"""Claude OAuth usage endpoint."""

from datetime import timedelta
from typing import Any, Optional

import httpx

from ..config import load_config
from ..errors import UpstreamError
from ..types import CLAUDE_PROVIDER, Credential, UsageSnapshot, UsageWindow
from ..utils.formatting import clamp_percent
from ..utils.http import get_json
from ..utils.json_access import as_record, get_record, parse_iso_datetime, to_number, to_str
from .base import UsageSource

CLAUDE_USAGE_URL = "https://api.anthropic.com/api/oauth/usage"
CLAUDE_BETA_HEADER = "oauth-2025-04-20"
SESSION_WINDOW = timedelta(hours=5)
WEEKLY_WINDOW = timedelta(days=7)


def parse_claude_usage(body: Any) -> UsageSnapshot:
    """Map the ``five_hour`` / ``seven_day`` response onto a snapshot.

    Raises:
        UpstreamError: If a window or its utilization is missing
    """
    if as_record(body) is None:
        raise UpstreamError("Invalid Claude usage payload")

    session = get_record(body, "five_hour")
    weekly = get_record(body, "seven_day")
    if session is None or weekly is None:
        raise UpstreamError("Claude usage windows missing")

    session_pct = to_number(session.get("utilization"))
    weekly_pct = to_number(weekly.get("utilization"))
    if session_pct is None or weekly_pct is None:
        raise UpstreamError("Claude usage percentages missing")

    return UsageSnapshot(
        session=UsageWindow(
            utilization_percent=clamp_percent(session_pct),
            reset_at=parse_iso_datetime(to_str(session.get("resets_at"))),
            window_length=SESSION_WINDOW,
        ),
        weekly=UsageWindow(
            utilization_percent=clamp_percent(weekly_pct),
            reset_at=parse_iso_datetime(to_str(weekly.get("resets_at"))),
            window_length=WEEKLY_WINDOW,
        ),
        provider=CLAUDE_PROVIDER,
        source="oauth",
    )


class ClaudeHttpSource(UsageSource):
    label = "OAuth"
    source = "oauth"

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout

    def fetch(self, credential: Optional[Credential]) -> UsageSnapshot:
        if credential is None:
            raise UpstreamError("Claude usage API requires a credential")

        timeout = self._timeout or load_config().http_timeout_seconds
        try:
            response = get_json(
                CLAUDE_USAGE_URL,
                headers={
                    "Authorization": f"Bearer {credential.access_token}",
                    "anthropic-beta": CLAUDE_BETA_HEADER,
                },
                timeout=timeout,
            )
        except httpx.RequestError as e:
            raise UpstreamError(f"Claude usage API unreachable: {e}") from e

        if not response.ok:
            raise UpstreamError(f"Claude usage API {response.status}", response.status)

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError("Invalid Claude usage payload") from e

        return parse_claude_usage(body)
