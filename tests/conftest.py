import json
import sys
import textwrap

from datetime import datetime, timezone
from pathlib import Path

import pytest

from claudexbar.utils.http import HttpResponse


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line("markers", "unit: Unit tests that do not perform real I/O")
    config.addinivalue_line("markers", "integration: Integration tests with mocked I/O")
    config.addinivalue_line("markers", "performance: Benchmarks using pytest-benchmark")


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME and XDG_CONFIG_HOME at a temp dir so no real files are touched."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.delenv("CODEX_HOME", raising=False)
    monkeypatch.delenv("CLAUDEXBAR_DEBUG", raising=False)
    return home


@pytest.fixture(autouse=True)
def pkill_calls(monkeypatch):
    """Record host signals instead of running pkill."""
    calls = []

    def _fake_pkill(args):
        calls.append(args)
        return 0

    monkeypatch.setattr("claudexbar.utils.host._run_pkill", _fake_pkill)
    return calls


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeHttp:
    """Routes requests by URL prefix to canned responses."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, url, status=200, body=None, raw=None, error=None):
        if error is not None:
            self.routes[url] = error
        else:
            data = raw if raw is not None else json.dumps(body).encode("utf-8")
            self.routes[url] = HttpResponse(status=status, body=data)

    def __call__(self, method, url, headers=None, data=None, timeout=10.0):
        self.calls.append(
            {"method": method, "url": url, "headers": headers or {}, "data": data}
        )
        for prefix, response in self.routes.items():
            if url.startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"Unexpected request: {method} {url}")

    def urls(self):
        return [call["url"] for call in self.calls]


@pytest.fixture
def fake_http(monkeypatch):
    """Replace the httpx-backed request helper with a FakeHttp router."""
    fake = FakeHttp()
    monkeypatch.setattr("claudexbar.utils.http.request", fake)
    return fake


FAKE_APP_SERVER = textwrap.dedent(
    """
    import json
    import sys
    import time

    mode = sys.argv[1]
    log_path = sys.argv[2]

    def send(obj, chunked=False):
        line = json.dumps(obj) + "\\n"
        if chunked:
            half = len(line) // 2
            sys.stdout.write(line[:half])
            sys.stdout.flush()
            time.sleep(0.05)
            sys.stdout.write(line[half:])
        else:
            sys.stdout.write(line)
        sys.stdout.flush()

    if mode == "crash":
        sys.stderr.write("not logged in\\n")
        sys.stderr.flush()
        sys.exit(3)

    if mode == "hang":
        time.sleep(30)
        sys.exit(0)

    with open(log_path, "a") as log:
        for line in sys.stdin:
            log.write(line)
            log.flush()
            message = json.loads(line)
            if message.get("id") == 1:
                sys.stdout.write("not json at all\\n")
                send({"id": 1, "result": {"userAgent": "fake"}})
            elif message.get("id") == 2:
                send({"id": 2, "result": {"account": {"type": "chatgpt"}}})
            elif message.get("id") == 3:
                if mode == "no-result":
                    send({"id": 3, "error": {"code": -1, "message": "rate limits unavailable"}})
                else:
                    send(
                        {
                            "id": 3,
                            "result": {
                                "rateLimits": {
                                    "primary": {"usedPercent": 7, "windowDurationMins": 300, "resetsAt": 4102444800},
                                    "secondary": {"usedPercent": 55, "windowDurationMins": 10080, "resetsAt": 4102444800},
                                    "planType": "plus",
                                }
                            },
                        },
                        chunked=True,
                    )
                # Keep running: the client must kill us.
                time.sleep(30)
    """
)


@pytest.fixture
def fake_app_server(tmp_path):
    """Factory returning the argv of a fake ``codex app-server`` in a given mode."""
    script = tmp_path / "fake_app_server.py"
    script.write_text(FAKE_APP_SERVER)
    log_path = tmp_path / "app_server_stdin.log"

    def _command(mode="ok"):
        return [sys.executable, str(script), mode, str(log_path)]

    _command.log_path = log_path
    return _command


@pytest.fixture
def write_json():
    """Factory writing a JSON document (parents created) and returning its path."""

    def _write(path: Path, data) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2))
        return path

    return _write
