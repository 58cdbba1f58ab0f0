"""Persisted provider selector."""

from pathlib import Path
from typing import Callable, Optional

from ..config import load_config
from ..types import CLAUDE_PROVIDER, CODEX_PROVIDER, PROVIDERS

__all__ = [
    "get_state_dir",
    "get_provider_state_path",
    "next_provider",
    "ProviderStateStore",
    "MemoryStateStore",
]


def get_state_dir() -> Path:
    """Get the state directory (~/.codex/claudexbar unless configured)."""
    configured = load_config().state_dir
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".codex" / "claudexbar"


def get_provider_state_path() -> Path:
    return get_state_dir() / "provider"


def next_provider(provider: str) -> str:
    """Return the other provider."""
    return CLAUDE_PROVIDER if provider == CODEX_PROVIDER else CODEX_PROVIDER


class ProviderStateStore:
    """File-backed provider selector.

    Every write calls ``on_change`` (by default nothing); the CLI wires this
    to the host signal so the bar refreshes immediately.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        default: Optional[str] = None,
        on_change: Optional[Callable[[str], object]] = None,
    ) -> None:
        self._path = path
        self._default = default
        self._on_change = on_change

    @property
    def path(self) -> Path:
        return self._path or get_provider_state_path()

    @property
    def default(self) -> str:
        return self._default or load_config().default_provider

    def read(self) -> str:
        """Read the selected provider, falling back to the default.

        Returns:
            Provider name; the default if the file is missing or corrupt
        """
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError):
            return self.default

        return value if value in PROVIDERS else self.default

    def write(self, provider: str) -> None:
        """Persist the selected provider.

        Raises:
            ValueError: If provider is not a known provider name
            OSError: If the state file cannot be written
        """
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown provider: {provider}")

        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(provider + "\n", encoding="utf-8")

        if self._on_change is not None:
            self._on_change(provider)

    def toggle(self) -> str:
        """Switch to the other provider and return it."""
        provider = next_provider(self.read())
        self.write(provider)
        return provider


class MemoryStateStore(ProviderStateStore):
    """In-memory selector with the same read/write/toggle behaviour."""

    def __init__(self, value: Optional[str] = None, default: str = CODEX_PROVIDER) -> None:
        super().__init__(default=default)
        self.value = value
        self.writes: list[str] = []

    def read(self) -> str:
        return self.value if self.value in PROVIDERS else self.default

    def write(self, provider: str) -> None:
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown provider: {provider}")
        self.value = provider
        self.writes.append(provider)
