"""Base credential store: load, conditionally refresh and write back."""

import copy
import json
import os
import stat

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import httpx

from ..config import load_config
from ..errors import MalformedCredential, MissingCredential, RefreshFailure
from ..types import Credential
from ..utils.debug import debug_log
from ..utils.http import HttpResponse


class CredentialStore(ABC):
    """Credential file owned by a vendor CLI.

    Subclasses describe where the file lives, how tokens are laid out in it
    and when/how they are refreshed. Only token and expiry fields are ever
    modified; the rest of the document is written back untouched.
    """

    provider: str = ""
    login_hint: str = ""

    def __init__(self, path: Optional[Path] = None, timeout: Optional[float] = None) -> None:
        self._path = path
        self._timeout = timeout

    @property
    def path(self) -> Path:
        return self._path or self.default_path()

    @property
    def timeout(self) -> float:
        return self._timeout or load_config().http_timeout_seconds

    @abstractmethod
    def default_path(self) -> Path:
        """Vendor-defined location of the credential file."""

    @abstractmethod
    def parse(self, raw: dict[str, Any], path: Path) -> Credential:
        """Extract tokens from a parsed document.

        Raises:
            MissingCredential: If no access token is present
        """

    @abstractmethod
    def needs_refresh(self, credential: Credential, now: datetime) -> bool:
        """Whether the refresh policy says the token should be renewed."""

    @abstractmethod
    def request_refresh(self, credential: Credential) -> HttpResponse:
        """Call the token endpoint with the refresh token."""

    @abstractmethod
    def apply_refresh(
        self, credential: Credential, payload: dict[str, Any], now: datetime
    ) -> Credential:
        """Merge a token response into a copy of the credential.

        Raises:
            RefreshFailure: If the response lacks required fields
        """

    def display_path(self) -> str:
        """Path with the home directory shortened to ~ for messages."""
        path = str(self.path)
        home = str(Path.home())
        if path.startswith(home + os.sep):
            return "~" + path[len(home):]
        return path

    def load(self) -> Credential:
        """Read and validate the credential file.

        Raises:
            MissingCredential: If the file or its access token is missing
            MalformedCredential: If the file is not a JSON object
        """
        path = self.path
        try:
            raw_text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise MissingCredential(
                f"Missing {self.display_path()}. {self.login_hint}"
            ) from None
        except (OSError, UnicodeDecodeError) as e:
            raise MalformedCredential(f"Cannot read {self.display_path()}: {e}") from e

        try:
            parsed = json.loads(raw_text)
        except json.JSONDecodeError as e:
            raise MalformedCredential(f"Invalid {self.display_path()} JSON") from e

        if not isinstance(parsed, dict):
            raise MalformedCredential(f"Unexpected {self.display_path()} shape")

        return self.parse(parsed, path)

    def maybe_refresh(self, credential: Credential, now: Optional[datetime] = None) -> Credential:
        """Refresh the token if the policy requires it.

        A failed refresh is not fatal: the original credential is returned
        and the usage call decides whether the stale token still works.

        Returns:
            The refreshed credential, or the input unchanged
        """
        now = now or datetime.now(timezone.utc)

        if not credential.refresh_token or not self.needs_refresh(credential, now):
            return credential

        debug_log(f"Refreshing token from {self.display_path()}", self.provider)

        try:
            response = self.request_refresh(credential)
            if not response.ok:
                raise RefreshFailure(f"token refresh failed: HTTP {response.status}")
            try:
                payload = response.json()
            except ValueError as e:
                raise RefreshFailure("token refresh returned invalid JSON") from e
            if not isinstance(payload, dict):
                raise RefreshFailure("token refresh returned unexpected payload")
            refreshed = self.apply_refresh(credential, payload, now)
        except RefreshFailure as e:
            debug_log(f"Refresh failed, using stale token: {e}", self.provider)
            return credential
        except httpx.RequestError as e:
            debug_log(f"Refresh request error, using stale token: {e}", self.provider)
            return credential

        try:
            self.save(refreshed)
        except OSError as e:
            debug_log(f"Could not write refreshed token: {e}", self.provider)

        return refreshed

    def save(self, credential: Credential) -> None:
        """Write the whole document back with 2-space indentation.

        The file is replaced atomically and keeps its original permissions
        (0600 when it did not exist).
        """
        path = credential.path
        try:
            mode = stat.S_IMODE(path.stat().st_mode)
        except OSError:
            mode = 0o600

        tmp_path = path.with_name(path.name + ".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(credential.raw, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

        debug_log(f"Wrote refreshed credentials to {self.display_path()}", self.provider)


def copy_raw(credential: Credential) -> dict[str, Any]:
    """Deep copy of the document so a failed refresh leaves the input intact."""
    return copy.deepcopy(credential.raw)
