"""Usage sources: HTTP endpoints and the app-server RPC fallback."""

from .base import UsageSource
from .claude_http import ClaudeHttpSource
from .codex_http import CodexHttpSource
from .codex_rpc import CodexRpcSource

__all__ = ["UsageSource", "ClaudeHttpSource", "CodexHttpSource", "CodexRpcSource"]
