"""Signalling the status-bar host to re-poll immediately."""

import subprocess

from typing import Optional

from ..config import load_config
from .debug import debug_log


def _run_pkill(args: list[str]) -> Optional[int]:
    """Run pkill and return its exit code, or None if it could not run.

    Args:
        args: pkill arguments

    Returns:
        pkill exit code (1 means no process matched) or None on error
    """
    try:
        result = subprocess.run(
            ["pkill"] + args,
            capture_output=True,
            text=True,
            timeout=2,
        )
        return result.returncode
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
        return None


def signal_host(process_name: Optional[str] = None, signal_offset: Optional[int] = None) -> bool:
    """Send SIGRTMIN+N to the host process so it refreshes the module.

    Failures are ignored; the host's own polling interval still applies.

    Args:
        process_name: Host process name (defaults to config, "waybar")
        signal_offset: Real-time signal offset N (defaults to config, 11)

    Returns:
        True if at least one process was signalled
    """
    config = load_config()
    name = process_name or config.host_process
    offset = config.host_signal if signal_offset is None else signal_offset

    code = _run_pkill([f"-RTMIN+{offset}", name])
    debug_log(f"Signalled {name} with RTMIN+{offset}: exit={code}")
    return code == 0
