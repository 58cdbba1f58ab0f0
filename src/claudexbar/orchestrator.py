"""Orchestrator: provider selection, fetch with fallback, render.

States run in order ``SelectProvider -> FetchPrimary -> FetchFallback ->
Render -> Emit``; any failure lands in ``EmitError``. ``run()`` never
raises, so the bar always receives exactly one payload.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from .errors import AllSourcesFailed, ClaudexBarError
from .providers import builtin  # noqa: F401
from .providers.base import UsageProvider
from .providers.registry import get_provider
from .renderer import render_error, render_usage
from .types import Credential, Payload, UsageSnapshot
from .utils.debug import debug_log
from .utils.state import ProviderStateStore

ProviderLookup = Callable[[str], Optional[UsageProvider]]


class Orchestrator:
    """Wires state store, provider sources and renderer together.

    Args:
        state_store: Provider selector (file-backed by default)
        provider_lookup: Maps provider names to providers (the registry)
        clock: Returns the current time, injectable for tests
    """

    def __init__(
        self,
        state_store: Optional[ProviderStateStore] = None,
        provider_lookup: ProviderLookup = get_provider,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.state_store = state_store or ProviderStateStore()
        self.provider_lookup = provider_lookup
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def select_provider(self) -> UsageProvider:
        name = self.state_store.read()
        provider = self.provider_lookup(name)
        if provider is None:
            raise ClaudexBarError(f"Unknown provider: {name}")
        debug_log("Selected provider", name)
        return provider

    def resolve_credential(self, provider: UsageProvider) -> Credential:
        """Load the provider's credential and refresh it if due.

        Raises:
            MissingCredential: If the vendor CLI was never logged in
            MalformedCredential: If the credential file is unreadable
        """
        store = provider.credential_store()
        credential = store.load()
        return store.maybe_refresh(credential, now=self.clock())

    def fetch(self, provider: UsageProvider) -> UsageSnapshot:
        """Try each source in order until one returns a snapshot.

        The credential is resolved once, lazily, for the first source that
        needs it; a credential failure counts as that source's failure.

        Raises:
            AllSourcesFailed: If no source succeeded
        """
        failures: list[tuple[str, str]] = []
        credential: Optional[Credential] = None
        credential_error: Optional[ClaudexBarError] = None

        for source in provider.sources():
            try:
                if source.needs_credential:
                    if credential is None and credential_error is None:
                        try:
                            credential = self.resolve_credential(provider)
                        except ClaudexBarError as e:
                            credential_error = e
                    if credential_error is not None:
                        raise credential_error
                snapshot = source.fetch(credential)
            except ClaudexBarError as e:
                debug_log(f"{source.label} failed: {e}", provider.name)
                failures.append((source.label, str(e)))
                continue
            except Exception as e:
                debug_log(f"{source.label} crashed: {e!r}", provider.name)
                failures.append((source.label, f"{type(e).__name__}: {e}"))
                continue

            debug_log(f"{source.label} succeeded", provider.name)
            return snapshot

        raise AllSourcesFailed(provider.display_name, failures)

    def run(self) -> Payload:
        """Produce the payload for the current provider. Never raises."""
        try:
            provider = self.select_provider()
            snapshot = self.fetch(provider)
            return render_usage(snapshot, now=self.clock())
        except ClaudexBarError as e:
            return render_error(str(e))
        except Exception as e:
            debug_log(f"Unexpected error: {e!r}")
            return render_error(f"Unexpected error: {e}")
