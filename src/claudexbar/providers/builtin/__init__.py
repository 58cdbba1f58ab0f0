"""Built-in providers.

Importing this module registers all built-in providers with the registry.
"""

from .claude import ClaudeProvider
from .codex import CodexProvider

__all__ = ["ClaudeProvider", "CodexProvider"]
