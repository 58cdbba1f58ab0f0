"""Base interface for usage sources."""

from abc import ABC, abstractmethod
from typing import Optional

from ..types import Credential, UsageSnapshot


class UsageSource(ABC):
    """One way of obtaining a usage snapshot for a provider.

    ``label`` names the strategy in error messages ("OAuth", "RPC") and
    ``source`` is the short tag shown in the tooltip ("oauth", "rpc").
    """

    label: str = ""
    source: str = ""
    needs_credential: bool = True

    @abstractmethod
    def fetch(self, credential: Optional[Credential]) -> UsageSnapshot:
        """Fetch and normalize usage.

        Args:
            credential: Refreshed credential, or None for sources that
                authenticate on their own

        Returns:
            Normalized UsageSnapshot

        Raises:
            UpstreamError: On HTTP failures or unusable response bodies
            RpcProtocolError: On subprocess protocol failures
        """
        pass
