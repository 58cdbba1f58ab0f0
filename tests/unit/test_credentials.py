"""Unit tests for credential stores."""

import json
import os
import stat

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from claudexbar.credentials.claude import (
    CLAUDE_TOKEN_URL,
    ClaudeCredentialStore,
    get_credentials_path,
)
from claudexbar.credentials.codex import (
    CODEX_TOKEN_URL,
    CodexCredentialStore,
    get_auth_path,
)
from claudexbar.errors import MalformedCredential, MissingCredential


def epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@pytest.fixture
def claude_creds(write_json, isolated_home, fixed_now):
    """Factory for ~/.claude/.credentials.json with unknown fields."""

    def _write(expires_at=None, refresh_token="rt-old"):
        expires_at = expires_at or fixed_now + timedelta(hours=6)
        return write_json(
            isolated_home / ".claude" / ".credentials.json",
            {
                "claudeAiOauth": {
                    "accessToken": "at-old",
                    "refreshToken": refresh_token,
                    "expiresAt": epoch_ms(expires_at),
                    "scopes": ["user:inference", "user:profile"],
                    "subscriptionType": "max",
                },
                "mcpOAuth": {"server": {"token": "keep-me"}},
            },
        )

    return _write


@pytest.fixture
def codex_auth(write_json, isolated_home, fixed_now):
    """Factory for ~/.codex/auth.json with unknown fields."""

    def _write(last_refresh="2026-03-08T09:00:00.000Z", **extra):
        data = {
            "OPENAI_API_KEY": None,
            "tokens": {
                "id_token": "id-old",
                "access_token": "at-old",
                "refresh_token": "rt-old",
                "account_id": "acct-123",
            },
            "last_refresh": last_refresh,
            "future_field": {"nested": [1, 2, 3]},
        }
        data.update(extra)
        return write_json(isolated_home / ".codex" / "auth.json", data)

    return _write


@pytest.mark.unit
class TestClaudeCredentialStore:
    """Tests for the Claude credential store."""

    def test_default_path(self, isolated_home):
        assert get_credentials_path() == isolated_home / ".claude" / ".credentials.json"

    def test_loads_tokens(self, claude_creds, fixed_now):
        claude_creds()
        credential = ClaudeCredentialStore().load()

        assert credential.access_token == "at-old"
        assert credential.refresh_token == "rt-old"
        assert credential.expires_at == fixed_now + timedelta(hours=6)

    def test_missing_file_has_login_hint(self):
        with pytest.raises(MissingCredential, match="Run: claude"):
            ClaudeCredentialStore().load()

    def test_missing_oauth_section(self, write_json, isolated_home):
        write_json(isolated_home / ".claude" / ".credentials.json", {"other": 1})
        with pytest.raises(MissingCredential, match="claudeAiOauth"):
            ClaudeCredentialStore().load()

    def test_missing_access_token(self, write_json, isolated_home):
        write_json(
            isolated_home / ".claude" / ".credentials.json",
            {"claudeAiOauth": {"refreshToken": "rt"}},
        )
        with pytest.raises(MissingCredential, match="access token"):
            ClaudeCredentialStore().load()

    def test_malformed_json(self, isolated_home):
        path = isolated_home / ".claude" / ".credentials.json"
        path.parent.mkdir(parents=True)
        path.write_text("not valid json")
        with pytest.raises(MalformedCredential):
            ClaudeCredentialStore().load()

    def test_non_object_document(self, write_json, isolated_home):
        write_json(isolated_home / ".claude" / ".credentials.json", ["list"])
        with pytest.raises(MalformedCredential, match="shape"):
            ClaudeCredentialStore().load()

    def test_no_refresh_when_far_from_expiry(self, claude_creds, fake_http, fixed_now):
        path = claude_creds()
        original = json.loads(path.read_text())
        store = ClaudeCredentialStore()

        credential = store.load()
        result = store.maybe_refresh(credential, now=fixed_now)

        assert result is credential
        assert fake_http.calls == []
        assert json.loads(path.read_text()) == original

    def test_refreshes_within_buffer_and_preserves_unknown_fields(
        self, claude_creds, fake_http, fixed_now
    ):
        path = claude_creds(expires_at=fixed_now + timedelta(minutes=2))
        fake_http.add(
            CLAUDE_TOKEN_URL,
            body={"access_token": "at-new", "refresh_token": "rt-new", "expires_in": 28800},
        )
        store = ClaudeCredentialStore()

        result = store.maybe_refresh(store.load(), now=fixed_now)

        assert result.access_token == "at-new"
        assert result.expires_at == fixed_now + timedelta(hours=8)

        call = fake_http.calls[0]
        assert call["method"] == "POST"
        assert b"grant_type=refresh_token" in call["data"]
        assert b"refresh_token=rt-old" in call["data"]

        written = json.loads(path.read_text())
        oauth = written["claudeAiOauth"]
        assert oauth["accessToken"] == "at-new"
        assert oauth["refreshToken"] == "rt-new"
        assert oauth["expiresAt"] == epoch_ms(fixed_now + timedelta(hours=8))
        assert oauth["scopes"] == ["user:inference", "user:profile"]
        assert oauth["subscriptionType"] == "max"
        assert written["mcpOAuth"] == {"server": {"token": "keep-me"}}

    def test_failed_refresh_keeps_stale_token(self, claude_creds, fake_http, fixed_now):
        path = claude_creds(expires_at=fixed_now - timedelta(minutes=1))
        before = path.read_text()
        fake_http.add(CLAUDE_TOKEN_URL, status=400, body={"error": "invalid_grant"})
        store = ClaudeCredentialStore()

        credential = store.load()
        result = store.maybe_refresh(credential, now=fixed_now)

        assert result is credential
        assert result.access_token == "at-old"
        assert path.read_text() == before

    def test_incomplete_refresh_response_is_not_fatal(self, claude_creds, fake_http, fixed_now):
        claude_creds(expires_at=fixed_now)
        fake_http.add(CLAUDE_TOKEN_URL, body={"access_token": "at-new"})
        store = ClaudeCredentialStore()

        result = store.maybe_refresh(store.load(), now=fixed_now)

        assert result.access_token == "at-old"

    def test_network_error_is_not_fatal(self, claude_creds, fake_http, fixed_now):
        claude_creds(expires_at=fixed_now)
        fake_http.add(CLAUDE_TOKEN_URL, error=httpx.ReadTimeout("timed out"))
        store = ClaudeCredentialStore()

        result = store.maybe_refresh(store.load(), now=fixed_now)

        assert result.access_token == "at-old"

    def test_no_refresh_token_skips_refresh(self, claude_creds, fake_http, fixed_now):
        claude_creds(expires_at=fixed_now, refresh_token=None)
        store = ClaudeCredentialStore()

        result = store.maybe_refresh(store.load(), now=fixed_now)

        assert result.access_token == "at-old"
        assert fake_http.calls == []


@pytest.mark.unit
class TestCodexCredentialStore:
    """Tests for the Codex credential store."""

    def test_honours_codex_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CODEX_HOME", str(tmp_path / "alt"))
        assert get_auth_path() == tmp_path / "alt" / "auth.json"

    def test_loads_oauth_tokens(self, codex_auth):
        codex_auth()
        credential = CodexCredentialStore().load()

        assert credential.mode == "oauth"
        assert credential.access_token == "at-old"
        assert credential.account_id == "acct-123"
        assert credential.last_refresh == datetime(2026, 3, 8, 9, 0, tzinfo=timezone.utc)

    def test_api_key_mode_never_refreshes(self, codex_auth, fake_http, fixed_now):
        codex_auth(OPENAI_API_KEY="sk-test", last_refresh=None)
        store = CodexCredentialStore()

        credential = store.load()
        result = store.maybe_refresh(credential, now=fixed_now)

        assert credential.mode == "apikey"
        assert credential.access_token == "sk-test"
        assert result is credential
        assert fake_http.calls == []

    def test_missing_file_has_login_hint(self):
        with pytest.raises(MissingCredential, match="codex login"):
            CodexCredentialStore().load()

    def test_missing_tokens(self, write_json, isolated_home):
        write_json(isolated_home / ".codex" / "auth.json", {"last_refresh": None})
        with pytest.raises(MissingCredential, match="No tokens"):
            CodexCredentialStore().load()

    def test_recent_refresh_is_left_alone(self, codex_auth, fake_http, fixed_now):
        codex_auth()
        store = CodexCredentialStore()

        credential = store.load()
        assert store.maybe_refresh(credential, now=fixed_now) is credential
        assert fake_http.calls == []

    def test_refreshes_after_eight_days(self, codex_auth, fake_http, fixed_now):
        path = codex_auth(last_refresh="2026-02-28T12:00:00Z")
        fake_http.add(
            CODEX_TOKEN_URL,
            body={"access_token": "at-new", "refresh_token": "rt-new", "id_token": "id-new"},
        )
        store = CodexCredentialStore()

        result = store.maybe_refresh(store.load(), now=fixed_now)

        assert result.access_token == "at-new"
        assert result.last_refresh == fixed_now

        body = json.loads(fake_http.calls[0]["data"])
        assert body["grant_type"] == "refresh_token"
        assert body["refresh_token"] == "rt-old"
        assert body["client_id"]

        written = json.loads(path.read_text())
        assert written["tokens"]["access_token"] == "at-new"
        assert written["tokens"]["refresh_token"] == "rt-new"
        assert written["tokens"]["id_token"] == "id-new"
        assert written["tokens"]["account_id"] == "acct-123"
        assert written["last_refresh"] == "2026-03-10T12:00:00.000Z"
        assert written["future_field"] == {"nested": [1, 2, 3]}
        assert written["OPENAI_API_KEY"] is None

    def test_missing_last_refresh_triggers_refresh(self, codex_auth, fake_http, fixed_now):
        codex_auth(last_refresh=None)
        fake_http.add(CODEX_TOKEN_URL, status=500, body={})
        store = CodexCredentialStore()

        result = store.maybe_refresh(store.load(), now=fixed_now)

        assert len(fake_http.calls) == 1
        assert result.access_token == "at-old"


@pytest.mark.unit
class TestWriteBack:
    """Write-back preserves the document and file permissions."""

    def test_save_round_trip_is_lossless(self, codex_auth):
        path = codex_auth()
        original = json.loads(path.read_text())
        store = CodexCredentialStore()

        store.save(store.load())

        assert json.loads(path.read_text()) == original
        assert path.read_text().startswith('{\n  "OPENAI_API_KEY"')

    def test_save_keeps_file_mode(self, codex_auth):
        path = codex_auth()
        os.chmod(path, 0o600)
        store = CodexCredentialStore()

        store.save(store.load())

        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert not path.with_name("auth.json.tmp").exists()
