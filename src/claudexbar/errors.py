"""Error types raised by credential stores and usage sources."""

from typing import Optional


class ClaudexBarError(Exception):
    """Base class for all expected failures."""


class MissingCredential(ClaudexBarError):
    """No usable credential on disk (the vendor CLI was never logged in)."""


class MalformedCredential(ClaudexBarError):
    """Credential file exists but cannot be parsed."""


class UpstreamError(ClaudexBarError):
    """Usage endpoint returned an error status or an unusable body."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class RpcProtocolError(ClaudexBarError):
    """The app-server subprocess exited early, timed out or sent a bad result."""


class RefreshFailure(ClaudexBarError):
    """Token refresh failed. Callers continue with the stale token."""


class AllSourcesFailed(ClaudexBarError):
    """Every usage source of a provider failed.

    ``failures`` holds (source label, message) pairs in the order tried.
    """

    def __init__(self, display_name: str, failures: list[tuple[str, str]]) -> None:
        self.display_name = display_name
        self.failures = failures
        super().__init__(self.describe())

    def describe(self) -> str:
        if len(self.failures) == 1:
            return f"{self.display_name} failed: {self.failures[0][1]}"
        lines = [f"{self.display_name} failed"]
        lines.extend(f"{label}: {message}" for label, message in self.failures)
        return "\n".join(lines)
