"""Codex (ChatGPT backend) OAuth usage endpoint."""

import tomllib

from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

import httpx

from ..config import load_config
from ..credentials.codex import get_codex_home
from ..errors import UpstreamError
from ..types import CODEX_PROVIDER, Credential, UsageSnapshot, UsageWindow
from ..utils.debug import debug_log
from ..utils.formatting import clamp_percent
from ..utils.http import get_json
from ..utils.json_access import (
    as_record,
    from_epoch_seconds,
    get_record,
    to_number,
    to_str,
)
from .base import UsageSource

DEFAULT_CODEX_BASE_URL = "https://chatgpt.com/backend-api"
CHATGPT_HOSTS = ("https://chatgpt.com", "https://chat.openai.com")


def get_codex_config_path() -> Path:
    return get_codex_home() / "config.toml"


def normalize_base_url(value: str) -> str:
    """Strip trailing slashes and add /backend-api for ChatGPT hosts."""
    normalized = value.strip().rstrip("/")
    if normalized.startswith(CHATGPT_HOSTS) and "/backend-api" not in normalized:
        normalized += "/backend-api"
    return normalized


def resolve_codex_base_url(config_path: Optional[Path] = None) -> str:
    """Read ``chatgpt_base_url`` from the Codex config, if set.

    Returns:
        Base URL without trailing slash; the ChatGPT backend by default
    """
    config_path = config_path or get_codex_config_path()
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return DEFAULT_CODEX_BASE_URL
    except (OSError, tomllib.TOMLDecodeError) as e:
        debug_log(f"Ignoring unreadable {config_path}: {e}", CODEX_PROVIDER)
        return DEFAULT_CODEX_BASE_URL

    value = to_str(data.get("chatgpt_base_url"))
    if not value:
        return DEFAULT_CODEX_BASE_URL
    return normalize_base_url(value) or DEFAULT_CODEX_BASE_URL


def usage_url(base_url: str) -> str:
    path = "/wham/usage" if "/backend-api" in base_url else "/api/codex/usage"
    return f"{base_url}{path}"


def _window_length(seconds: Optional[float]) -> Optional[timedelta]:
    if seconds is None or seconds <= 0:
        return None
    return timedelta(seconds=seconds)


def parse_codex_oauth_usage(body: Any) -> UsageSnapshot:
    """Map ``rate_limit.primary_window`` / ``secondary_window`` onto a snapshot.

    Raises:
        UpstreamError: If either window percentage is missing
    """
    if as_record(body) is None:
        raise UpstreamError("Codex OAuth response is not an object")

    primary = get_record(body, "rate_limit", "primary_window") or {}
    secondary = get_record(body, "rate_limit", "secondary_window") or {}

    session_pct = to_number(primary.get("used_percent"))
    weekly_pct = to_number(secondary.get("used_percent"))
    if session_pct is None or weekly_pct is None:
        raise UpstreamError("OAuth payload missing rate-limit windows")

    credits = get_record(body, "credits") or {}

    return UsageSnapshot(
        session=UsageWindow(
            utilization_percent=clamp_percent(session_pct),
            reset_at=from_epoch_seconds(to_number(primary.get("reset_at"))),
            window_length=_window_length(to_number(primary.get("limit_window_seconds"))),
        ),
        weekly=UsageWindow(
            utilization_percent=clamp_percent(weekly_pct),
            reset_at=from_epoch_seconds(to_number(secondary.get("reset_at"))),
            window_length=_window_length(to_number(secondary.get("limit_window_seconds"))),
        ),
        provider=CODEX_PROVIDER,
        source="oauth",
        plan_type=to_str(body.get("plan_type")),
        credits=to_number(credits.get("balance")),
    )


class CodexHttpSource(UsageSource):
    label = "OAuth"
    source = "oauth"

    def __init__(self, timeout: Optional[float] = None, config_path: Optional[Path] = None) -> None:
        self._timeout = timeout
        self._config_path = config_path

    def fetch(self, credential: Optional[Credential]) -> UsageSnapshot:
        if credential is None:
            raise UpstreamError("Codex usage API requires a credential")

        url = usage_url(resolve_codex_base_url(self._config_path))
        headers = {"Authorization": f"Bearer {credential.access_token}"}
        if credential.account_id:
            headers["ChatGPT-Account-Id"] = credential.account_id

        timeout = self._timeout or load_config().http_timeout_seconds
        debug_log(f"GET {url}", CODEX_PROVIDER)
        try:
            response = get_json(url, headers=headers, timeout=timeout)
        except httpx.RequestError as e:
            raise UpstreamError(f"OAuth API unreachable: {e}") from e

        if not response.ok:
            raise UpstreamError(f"OAuth API {response.status}", response.status)

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError("OAuth API returned invalid JSON") from e

        return parse_codex_oauth_usage(body)
