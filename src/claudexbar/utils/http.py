"""Minimal JSON-over-HTTP helpers built on httpx."""

import json

from dataclasses import dataclass
from typing import Any, Optional

import httpx

USER_AGENT = "ClaudexBar"


@dataclass
class HttpResponse:
    """Status code and raw body of a completed request."""

    status: int
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid UTF-8 JSON
        """
        return json.loads(self.body.decode("utf-8"))


def request(
    method: str,
    url: str,
    headers: Optional[dict[str, str]] = None,
    data: Optional[bytes] = None,
    timeout: float = 10.0,
) -> HttpResponse:
    """Perform an HTTP request and return the response, whatever its status.

    Non-2xx statuses are returned rather than raised so callers can map them
    onto their own error types.

    Raises:
        httpx.RequestError: On connection failures and timeouts
    """
    all_headers = {"User-Agent": USER_AGENT}
    all_headers.update(headers or {})

    response = httpx.request(
        method,
        url,
        headers=all_headers,
        content=data,
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
    )
    return HttpResponse(status=response.status_code, body=response.content)


def get_json(url: str, headers: Optional[dict[str, str]] = None, timeout: float = 10.0) -> HttpResponse:
    """GET a JSON resource."""
    merged = {"Accept": "application/json"}
    merged.update(headers or {})
    return request("GET", url, headers=merged, timeout=timeout)


def post_json(
    url: str,
    payload: dict[str, Any],
    headers: Optional[dict[str, str]] = None,
    timeout: float = 10.0,
) -> HttpResponse:
    """POST a JSON body."""
    merged = {"Content-Type": "application/json", "Accept": "application/json"}
    merged.update(headers or {})
    return request(
        "POST", url, headers=merged, data=json.dumps(payload).encode("utf-8"), timeout=timeout
    )


def post_form(
    url: str,
    fields: dict[str, str],
    headers: Optional[dict[str, str]] = None,
    timeout: float = 10.0,
) -> HttpResponse:
    """POST an application/x-www-form-urlencoded body."""
    merged = {"Content-Type": "application/x-www-form-urlencoded", "Accept": "application/json"}
    merged.update(headers or {})
    body = str(httpx.QueryParams(fields)).encode("utf-8")
    return request("POST", url, headers=merged, data=body, timeout=timeout)
