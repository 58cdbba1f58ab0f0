"""Claude provider: OAuth usage endpoint only."""

from ...credentials.base import CredentialStore
from ...credentials.claude import ClaudeCredentialStore
from ...sources.base import UsageSource
from ...sources.claude_http import ClaudeHttpSource
from ...types import CLAUDE_PROVIDER
from ..base import UsageProvider
from ..registry import register_provider


@register_provider(CLAUDE_PROVIDER, display_name="Claude", badge="A")
class ClaudeProvider(UsageProvider):
    def credential_store(self) -> CredentialStore:
        return ClaudeCredentialStore()

    def sources(self) -> list[UsageSource]:
        return [ClaudeHttpSource()]
