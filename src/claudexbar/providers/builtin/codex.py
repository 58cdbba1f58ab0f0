"""Codex provider: OAuth usage endpoint, then the app-server RPC fallback."""

from ...credentials.base import CredentialStore
from ...credentials.codex import CodexCredentialStore
from ...sources.base import UsageSource
from ...sources.codex_http import CodexHttpSource
from ...sources.codex_rpc import CodexRpcSource
from ...types import CODEX_PROVIDER
from ..base import UsageProvider
from ..registry import register_provider


@register_provider(CODEX_PROVIDER, display_name="Codex", badge="O")
class CodexProvider(UsageProvider):
    def credential_store(self) -> CredentialStore:
        return CodexCredentialStore()

    def sources(self) -> list[UsageSource]:
        return [CodexHttpSource(), CodexRpcSource()]
