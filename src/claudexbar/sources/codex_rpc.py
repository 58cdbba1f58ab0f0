"""Codex rate limits via the ``codex app-server`` JSON-RPC fallback."""

from datetime import timedelta
from typing import Any, Optional

from ..config import load_config
from ..errors import RpcProtocolError
from ..types import CODEX_PROVIDER, Credential, UsageSnapshot, UsageWindow
from ..utils.formatting import clamp_percent
from ..utils.json_access import from_epoch_seconds, get_record, to_number, to_str
from .base import UsageSource
from .rpc import run_rpc_exchange

APP_SERVER_ARGS = ["-s", "read-only", "-a", "untrusted", "app-server"]


def _window_length(minutes: Optional[float]) -> Optional[timedelta]:
    if minutes is None or minutes <= 0:
        return None
    return timedelta(minutes=minutes)


def parse_codex_rpc_result(result: Any) -> UsageSnapshot:
    """Map an ``account/rateLimits/read`` result onto a snapshot.

    The ``codex`` entry of ``rateLimitsByLimitId`` is preferred over the
    legacy top-level ``rateLimits``.

    Raises:
        RpcProtocolError: If rate limits or window percentages are missing
    """
    rate_limits = get_record(result, "rateLimitsByLimitId", "codex") or get_record(
        result, "rateLimits"
    )
    if rate_limits is None:
        raise RpcProtocolError("RPC response missing rate limits")

    primary = get_record(rate_limits, "primary") or {}
    secondary = get_record(rate_limits, "secondary") or {}

    session_pct = to_number(primary.get("usedPercent"))
    weekly_pct = to_number(secondary.get("usedPercent"))
    if session_pct is None or weekly_pct is None:
        raise RpcProtocolError("RPC missing usage windows")

    credits = get_record(rate_limits, "credits") or {}

    return UsageSnapshot(
        session=UsageWindow(
            utilization_percent=clamp_percent(session_pct),
            reset_at=from_epoch_seconds(to_number(primary.get("resetsAt"))),
            window_length=_window_length(to_number(primary.get("windowDurationMins"))),
        ),
        weekly=UsageWindow(
            utilization_percent=clamp_percent(weekly_pct),
            reset_at=from_epoch_seconds(to_number(secondary.get("resetsAt"))),
            window_length=_window_length(to_number(secondary.get("windowDurationMins"))),
        ),
        provider=CODEX_PROVIDER,
        source="rpc",
        plan_type=to_str(rate_limits.get("planType")),
        credits=to_number(credits.get("balance")),
    )


class CodexRpcSource(UsageSource):
    """Runs the sandboxed app-server; it authenticates with its own files."""

    label = "RPC"
    source = "rpc"
    needs_credential = False

    def __init__(self, command: Optional[list[str]] = None, timeout: Optional[float] = None) -> None:
        self._command = command
        self._timeout = timeout

    def build_command(self) -> list[str]:
        if self._command is not None:
            return list(self._command)
        return [load_config().codex_command] + APP_SERVER_ARGS

    def fetch(self, credential: Optional[Credential]) -> UsageSnapshot:
        timeout = self._timeout or load_config().rpc_timeout_seconds
        result = run_rpc_exchange(self.build_command(), timeout)
        return parse_codex_rpc_result(result)
