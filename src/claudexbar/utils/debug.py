"""Debug logging utilities."""

import os
import sys
import time

DEBUG_ENV_VAR = "CLAUDEXBAR_DEBUG"


def debug_log(message: str, provider: str = "") -> None:
    """Append a debug line to the log file if debug mode is enabled.

    stdout carries the status-bar payload, so nothing is ever printed there.

    Args:
        message: Debug message to log
        provider: Optional provider name used as a line prefix
    """
    if not os.getenv(DEBUG_ENV_VAR):
        return

    from .state import get_state_dir

    logs_dir = get_state_dir() / "logs"
    log_file = logs_dir / "claudexbar_debug.log"
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")

    provider_prefix = f"[{provider}] " if provider else ""
    log_message = f"[{timestamp}] [{os.getpid()}] {provider_prefix}{message}\n"

    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(log_message)
    except OSError:
        print(
            f"DEBUG (couldn't write to {log_file}): {provider_prefix}{message}",
            file=sys.stderr,
        )
