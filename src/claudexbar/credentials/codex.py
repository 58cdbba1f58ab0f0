"""Codex CLI credentials ($CODEX_HOME/auth.json)."""

import dataclasses
import os

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from ..errors import MissingCredential, RefreshFailure
from ..types import CODEX_PROVIDER, Credential
from ..utils.http import HttpResponse, post_json
from ..utils.json_access import get_record, parse_iso_datetime, to_str
from .base import CredentialStore, copy_raw

CODEX_TOKEN_URL = "https://auth.openai.com/oauth/token"
CODEX_CLIENT_ID = "app_EMoamEEZ73f0CkXaXp7hrann"
CODEX_REFRESH_INTERVAL = timedelta(days=8)


def get_codex_home() -> Path:
    """Codex home directory, honouring $CODEX_HOME."""
    codex_home = os.getenv("CODEX_HOME")
    if codex_home:
        return Path(codex_home).expanduser()
    return Path.home() / ".codex"


def get_auth_path() -> Path:
    return get_codex_home() / "auth.json"


def format_refresh_timestamp(now: datetime) -> str:
    """ISO timestamp in the Z-suffixed form the Codex CLI writes."""
    text = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


class CodexCredentialStore(CredentialStore):
    """Age-driven refresh: the access token carries no reliable expiry, so
    tokens are renewed once ``last_refresh`` is older than 8 days.
    """

    provider = CODEX_PROVIDER
    login_hint = "Run: codex login"

    def default_path(self) -> Path:
        return get_auth_path()

    def parse(self, raw: dict[str, Any], path: Path) -> Credential:
        api_key = to_str(raw.get("OPENAI_API_KEY"))
        if api_key:
            return Credential(raw=raw, access_token=api_key, path=path, mode="apikey")

        tokens = get_record(raw, "tokens")
        if tokens is None:
            raise MissingCredential(f"No tokens found in {self.display_path()}. {self.login_hint}")

        access_token = to_str(tokens.get("access_token"))
        if not access_token:
            raise MissingCredential(f"Missing Codex access token. {self.login_hint}")

        return Credential(
            raw=raw,
            access_token=access_token,
            path=path,
            refresh_token=to_str(tokens.get("refresh_token")),
            account_id=to_str(tokens.get("account_id")),
            last_refresh=parse_iso_datetime(to_str(raw.get("last_refresh"))),
        )

    def needs_refresh(self, credential: Credential, now: datetime) -> bool:
        if credential.mode != "oauth":
            return False
        if credential.last_refresh is None:
            return True
        return now - credential.last_refresh > CODEX_REFRESH_INTERVAL

    def request_refresh(self, credential: Credential) -> HttpResponse:
        return post_json(
            CODEX_TOKEN_URL,
            {
                "client_id": CODEX_CLIENT_ID,
                "grant_type": "refresh_token",
                "refresh_token": credential.refresh_token or "",
                "scope": "openid profile email",
            },
            timeout=self.timeout,
        )

    def apply_refresh(
        self, credential: Credential, payload: dict[str, Any], now: datetime
    ) -> Credential:
        access_token = to_str(payload.get("access_token")) or credential.access_token
        refresh_token = to_str(payload.get("refresh_token")) or credential.refresh_token

        raw = copy_raw(credential)
        tokens = get_record(raw, "tokens")
        if tokens is None:
            raise RefreshFailure("auth.json lost its tokens section")

        tokens["access_token"] = access_token
        tokens["refresh_token"] = refresh_token
        id_token = to_str(payload.get("id_token"))
        if id_token:
            tokens["id_token"] = id_token
        raw["last_refresh"] = format_refresh_timestamp(now)

        return dataclasses.replace(
            credential,
            raw=raw,
            access_token=access_token,
            refresh_token=refresh_token,
            last_refresh=now,
        )
