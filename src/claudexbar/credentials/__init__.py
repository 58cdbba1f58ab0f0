"""Credential stores for the vendor CLIs."""

from .base import CredentialStore
from .claude import ClaudeCredentialStore
from .codex import CodexCredentialStore

__all__ = ["CredentialStore", "ClaudeCredentialStore", "CodexCredentialStore"]
