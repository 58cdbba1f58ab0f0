"""Base interface for usage providers."""

from abc import ABC, abstractmethod

from ..credentials.base import CredentialStore
from ..sources.base import UsageSource


class UsageProvider(ABC):
    """A quota-accounting system the bar can report on.

    Each provider supplies its credential store and an ordered list of
    usage sources; later sources are only tried after earlier ones fail.

    Metadata (name, display_name, badge) is set by @register_provider.
    """

    name: str = ""
    display_name: str = ""
    badge: str = ""

    @abstractmethod
    def credential_store(self) -> CredentialStore:
        """Credential store for sources that need a token."""

    @abstractmethod
    def sources(self) -> list[UsageSource]:
        """Usage sources in the order they should be tried."""
