"""CLI commands for switching providers and checking the installation."""

import shutil
import sys

from typing import Optional

from ..config.loader import get_config_path, load_config, load_config_file
from ..errors import ClaudexBarError
from ..providers import builtin  # noqa: F401
from ..providers.registry import get_all_providers
from ..utils.debug import debug_log
from ..utils.host import signal_host
from ..utils.state import ProviderStateStore


def create_state_store() -> ProviderStateStore:
    """File-backed selector that signals the host on every write."""
    return ProviderStateStore(on_change=lambda _provider: signal_host())


def cmd_select_provider(
    provider: Optional[str] = None,
    store: Optional[ProviderStateStore] = None,
) -> int:
    """Set the persisted provider (or toggle it) and print the result.

    The host is signalled once, by the store's write.

    Args:
        provider: Provider to select (already validated); None toggles
        store: Selector to update (file-backed, host-signalling by default)

    Returns:
        Exit code (0 for success, 1 if the state file cannot be written)
    """
    store = store or create_state_store()

    try:
        if provider is None:
            selected = store.toggle()
        else:
            store.write(provider)
            selected = provider
    except OSError as e:
        print(f"Failed to write provider state: {e}", file=sys.stderr)
        return 1

    print(selected)
    return 0


def apply_toggle_then_provider(
    provider: str, store: Optional[ProviderStateStore] = None
) -> None:
    """Persist ``--toggle --provider X`` quietly before the normal render.

    Nothing is printed and the host is not signalled; the caller emits the
    payload for the resulting provider. A write failure is only logged.
    """
    store = store or ProviderStateStore()

    try:
        store.toggle()
        store.write(provider)
    except OSError as e:
        debug_log(f"Failed to write provider state: {e}")


def cmd_doctor(store: Optional[ProviderStateStore] = None) -> int:
    """Verify that the current provider can produce usage.

    Returns:
        Exit code (0 if healthy, 1 if issues found)
    """
    from .. import __version__

    store = store or ProviderStateStore()

    print(f"claudexbar v{__version__}")
    print("\nChecking installation...\n")

    issues = 0

    config_path = get_config_path()
    print(f"[1/4] Checking config file at {config_path}")

    if not config_path.exists():
        print("      ⓘ Config file not found (will use defaults)")
    else:
        try:
            load_config_file(config_path)
            print("      ✓ Config file is valid")
        except Exception as e:
            print(f"      ✗ Config file has errors: {e}")
            issues += 1

    current = store.read()
    print(f"\n[2/4] Checking provider selection at {store.path}")
    print(f"      ✓ Current provider: {current}")

    print("\n[3/4] Checking credentials")
    usable: dict[str, bool] = {}
    for name, provider in get_all_providers().items():
        credential_store = provider.credential_store()
        try:
            credential_store.load()
            print(f"      ✓ {provider.display_name}: {credential_store.display_path()}")
            usable[name] = True
        except ClaudexBarError as e:
            print(f"      ⚠ {provider.display_name}: {e}")
            usable[name] = False

    print("\n[4/4] Checking codex app-server fallback")
    codex_command = load_config().codex_command
    codex_path = shutil.which(codex_command)
    if codex_path:
        print(f"      ✓ {codex_command} found at {codex_path}")
        usable["codex"] = True
    else:
        print(f"      ⚠ {codex_command} not found on PATH (RPC fallback unavailable)")

    if not usable.get(current, False):
        print(f"\n      ✗ No working usage source for current provider '{current}'")
        issues += 1

    print("\n" + "=" * 50)

    if issues == 0:
        print("✓ All checks passed!")
        return 0

    print(f"⚠ Found {issues} issue(s)")
    return 1
