"""Claude CLI credentials (~/.claude/.credentials.json)."""

import dataclasses

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from ..errors import MissingCredential, RefreshFailure
from ..types import CLAUDE_PROVIDER, Credential
from ..utils.http import HttpResponse, post_form
from ..utils.json_access import from_epoch_millis, get_record, to_number, to_str
from .base import CredentialStore, copy_raw

CLAUDE_TOKEN_URL = "https://console.anthropic.com/v1/oauth/token"
CLAUDE_CLIENT_ID = "9d1c250a-e61b-44d9-88ed-5944d1962f5e"
CLAUDE_REFRESH_BUFFER = timedelta(minutes=5)
OAUTH_KEY = "claudeAiOauth"


def get_credentials_path() -> Path:
    """Get path to Claude credentials file."""
    return Path.home() / ".claude" / ".credentials.json"


class ClaudeCredentialStore(CredentialStore):
    """Expiry-driven refresh: renew when the token expires within 5 minutes."""

    provider = CLAUDE_PROVIDER
    login_hint = "Run: claude"

    def default_path(self) -> Path:
        return get_credentials_path()

    def parse(self, raw: dict[str, Any], path: Path) -> Credential:
        oauth = get_record(raw, OAUTH_KEY)
        if oauth is None:
            raise MissingCredential(f"Missing {OAUTH_KEY} in credentials. {self.login_hint}")

        access_token = to_str(oauth.get("accessToken"))
        if not access_token:
            raise MissingCredential(f"Missing Claude access token. {self.login_hint}")

        return Credential(
            raw=raw,
            access_token=access_token,
            path=path,
            refresh_token=to_str(oauth.get("refreshToken")),
            expires_at=from_epoch_millis(to_number(oauth.get("expiresAt"))),
        )

    def needs_refresh(self, credential: Credential, now: datetime) -> bool:
        if credential.expires_at is None:
            return False
        return credential.expires_at < now + CLAUDE_REFRESH_BUFFER

    def request_refresh(self, credential: Credential) -> HttpResponse:
        return post_form(
            CLAUDE_TOKEN_URL,
            {
                "grant_type": "refresh_token",
                "client_id": CLAUDE_CLIENT_ID,
                "refresh_token": credential.refresh_token or "",
            },
            timeout=self.timeout,
        )

    def apply_refresh(
        self, credential: Credential, payload: dict[str, Any], now: datetime
    ) -> Credential:
        access_token = to_str(payload.get("access_token"))
        expires_in = to_number(payload.get("expires_in"))
        if not access_token or expires_in is None:
            raise RefreshFailure("Incomplete Claude refresh response")

        refresh_token = to_str(payload.get("refresh_token")) or credential.refresh_token
        expires_at = now + timedelta(seconds=expires_in)

        raw = copy_raw(credential)
        oauth = raw[OAUTH_KEY]
        oauth["accessToken"] = access_token
        oauth["refreshToken"] = refresh_token
        oauth["expiresAt"] = int(expires_at.timestamp() * 1000)

        return dataclasses.replace(
            credential,
            raw=raw,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )
