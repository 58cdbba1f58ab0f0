"""Usage providers.

Importing ``claudexbar.providers.builtin`` registers the built-in providers.
"""

from .base import UsageProvider
from .registry import get_all_providers, get_provider, register_provider

__all__ = ["UsageProvider", "get_all_providers", "get_provider", "register_provider"]
