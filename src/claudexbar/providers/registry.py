"""Provider registry."""

from typing import Callable, Optional

from .base import UsageProvider

# Global registry of provider name -> provider instance
_PROVIDER_REGISTRY: dict[str, UsageProvider] = {}


def register_provider(
    name: str, display_name: str = "", badge: str = ""
) -> Callable[[type[UsageProvider]], type[UsageProvider]]:
    """Decorator to register provider classes with metadata.

    Usage:
        @register_provider("claude", display_name="Claude", badge="A")
        class ClaudeProvider(UsageProvider):
            ...

    Args:
        name: Provider name as stored in the state file
        display_name: Human-readable name for the tooltip
        badge: One-letter badge prefixed to the bar text
    """

    def decorator(cls: type[UsageProvider]) -> type[UsageProvider]:
        cls.name = name
        cls.display_name = display_name or name.title()
        cls.badge = badge or name[:1].upper()

        _PROVIDER_REGISTRY[name] = cls()
        return cls

    return decorator


def get_provider(name: str) -> Optional[UsageProvider]:
    """Get provider instance by name."""
    return _PROVIDER_REGISTRY.get(name)


def get_all_providers() -> dict[str, UsageProvider]:
    """Get all registered providers as instances."""
    return dict(_PROVIDER_REGISTRY)
