"""Line-delimited JSON-RPC exchange with ``codex app-server``.

The exchange is a small state machine fed with raw stdout chunks:

    AWAITING_INIT --(response id=1)--> AWAITING_RATE_LIMITS
    AWAITING_RATE_LIMITS --(response id=3)--> DONE | FAILED

``run_rpc_exchange`` drives it from a subprocess under a hard deadline and
always kills the child before returning.
"""

import json
import os
import selectors
import subprocess
import time

from enum import Enum
from typing import Any, Optional

from .. import __version__
from ..errors import RpcProtocolError
from ..utils.debug import debug_log
from ..utils.json_access import as_record, get_record, to_number

INITIALIZE_ID = 1
ACCOUNT_READ_ID = 2
RATE_LIMITS_READ_ID = 3
READ_CHUNK_SIZE = 65536


class LineBuffer:
    """Assemble newline-terminated lines from arbitrary byte chunks."""

    def __init__(self) -> None:
        self._pending = b""

    def feed(self, data: bytes) -> list[str]:
        """Add a chunk and return every complete, non-blank line."""
        self._pending += data
        *complete, self._pending = self._pending.split(b"\n")
        lines = []
        for raw in complete:
            line = raw.decode("utf-8", errors="replace").strip()
            if line:
                lines.append(line)
        return lines

    @property
    def pending(self) -> bytes:
        return self._pending


class RpcState(str, Enum):
    AWAITING_INIT = "awaiting-init"
    AWAITING_RATE_LIMITS = "awaiting-rate-limits"
    DONE = "done"
    FAILED = "failed"


class RpcSession:
    """Protocol state for one app-server conversation.

    ``start()`` and ``feed()`` return the messages that must be written to
    the server's stdin, in order.
    """

    def __init__(self, client_name: str = "claudexbar", client_version: str = __version__) -> None:
        self.client_name = client_name
        self.client_version = client_version
        self.state = RpcState.AWAITING_INIT
        self.result: Optional[dict[str, Any]] = None
        self.error: Optional[str] = None
        self._lines = LineBuffer()

    @property
    def finished(self) -> bool:
        return self.state in (RpcState.DONE, RpcState.FAILED)

    def start(self) -> list[dict[str, Any]]:
        return [
            {
                "id": INITIALIZE_ID,
                "method": "initialize",
                "params": {
                    "clientInfo": {"name": self.client_name, "version": self.client_version}
                },
            }
        ]

    def feed(self, data: bytes) -> list[dict[str, Any]]:
        """Consume a stdout chunk and return follow-up requests."""
        outgoing: list[dict[str, Any]] = []
        for line in self._lines.feed(data):
            if self.finished:
                break
            outgoing.extend(self.handle_line(line))
        return outgoing

    def handle_line(self, line: str) -> list[dict[str, Any]]:
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            return []
        if as_record(message) is None:
            return []

        message_id = to_number(message.get("id"))

        if message_id == INITIALIZE_ID and self.state == RpcState.AWAITING_INIT:
            self.state = RpcState.AWAITING_RATE_LIMITS
            return [
                {"method": "initialized", "params": {}},
                {"id": ACCOUNT_READ_ID, "method": "account/read", "params": {"includeApiKey": False}},
                {"id": RATE_LIMITS_READ_ID, "method": "account/rateLimits/read", "params": None},
            ]

        if message_id == RATE_LIMITS_READ_ID and self.state == RpcState.AWAITING_RATE_LIMITS:
            result = get_record(message, "result")
            if result is not None:
                self.result = result
                self.state = RpcState.DONE
            else:
                error = get_record(message, "error") or {}
                detail = error.get("message")
                self.error = f"RPC error: {detail}" if detail else "RPC missing result field"
                self.state = RpcState.FAILED

        return []


def _encode(messages: list[dict[str, Any]]) -> bytes:
    return b"".join(json.dumps(m).encode("utf-8") + b"\n" for m in messages)


def _send(proc: subprocess.Popen, messages: list[dict[str, Any]]) -> None:
    if not messages or proc.stdin is None:
        return
    try:
        proc.stdin.write(_encode(messages))
        proc.stdin.flush()
    except (BrokenPipeError, ValueError):
        # Server already gone; the exit path reports its stderr.
        pass


def _terminate(proc: subprocess.Popen) -> None:
    if proc.poll() is None:
        proc.kill()
    try:
        proc.wait(timeout=2)
    except subprocess.TimeoutExpired:
        debug_log(f"app-server pid {proc.pid} did not exit after kill", "codex")
    for stream in (proc.stdin, proc.stdout, proc.stderr):
        if stream is not None:
            try:
                stream.close()
            except OSError:
                pass


def run_rpc_exchange(
    command: list[str], timeout: float, session: Optional[RpcSession] = None
) -> dict[str, Any]:
    """Spawn the app-server, run the exchange and return the rate-limit result.

    Args:
        command: Full argv of the app-server process
        timeout: Hard deadline in seconds for the whole exchange
        session: Protocol state machine (a fresh one by default)

    Returns:
        The ``result`` object of the ``account/rateLimits/read`` response

    Raises:
        RpcProtocolError: On spawn failure, timeout, early exit or bad result
    """
    session = session or RpcSession()

    try:
        proc = subprocess.Popen(
            command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as e:
        raise RpcProtocolError(f"Cannot start {command[0]}: {e}") from e

    debug_log(f"Started {' '.join(command)} (pid {proc.pid})", "codex")
    deadline = time.monotonic() + timeout
    stderr_chunks: list[bytes] = []
    selector = selectors.DefaultSelector()

    try:
        selector.register(proc.stdout, selectors.EVENT_READ, "stdout")
        selector.register(proc.stderr, selectors.EVENT_READ, "stderr")
        _send(proc, session.start())

        while not session.finished and selector.get_map():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise RpcProtocolError("RPC timeout")

            for key, _ in selector.select(remaining):
                data = os.read(key.fd, READ_CHUNK_SIZE)
                if not data:
                    selector.unregister(key.fileobj)
                    continue
                if key.data == "stdout":
                    _send(proc, session.feed(data))
                else:
                    stderr_chunks.append(data)

        if session.result is not None:
            return session.result
        if session.error is not None:
            raise RpcProtocolError(session.error)

        try:
            code = proc.wait(timeout=max(0.1, deadline - time.monotonic()))
        except subprocess.TimeoutExpired:
            raise RpcProtocolError("RPC timeout") from None

        stderr_text = b"".join(stderr_chunks).decode("utf-8", errors="replace").strip()
        raise RpcProtocolError(stderr_text or f"RPC exited ({code})")
    finally:
        selector.close()
        _terminate(proc)
