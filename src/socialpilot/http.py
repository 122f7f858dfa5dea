"""Thin urllib helpers for the JSON APIs this package talks to."""

from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field

USER_AGENT = "socialpilot/0.3"
DEFAULT_TIMEOUT = 30


class HTTPError(Exception):
    """Non-2xx response or transport failure, with the upstream message."""

    def __init__(self, message: str, *, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


@dataclass
class Response:
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> object:
        if not self.body:
            return {}
        try:
            return json.loads(self.body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise HTTPError(
                f"Expected JSON, got: {self.body[:100]!r}", status=self.status
            ) from exc


def build_url(url: str, params: dict[str, object] | None = None) -> str:
    """Append URL-encoded query params, skipping None values."""
    if not params:
        return url
    query = urllib.parse.urlencode({k: v for k, v in params.items() if v is not None})
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


def request(
    method: str,
    url: str,
    *,
    params: dict[str, object] | None = None,
    json_body: object | None = None,
    data: bytes | None = None,
    headers: dict[str, str] | None = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> Response:
    """Perform an HTTP request and return the raw response.

    Raises:
        HTTPError: On non-2xx status or network failure. The message carries
            the upstream error text when the body is JSON with a ``message``.
    """
    all_headers = {"User-Agent": USER_AGENT}
    if headers:
        all_headers.update(headers)

    body = data
    if json_body is not None:
        body = json.dumps(json_body).encode("utf-8")
        all_headers.setdefault("Content-Type", "application/json")

    req = urllib.request.Request(
        build_url(url, params),
        data=body,
        method=method,
        headers=all_headers,
    )

    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return Response(
                status=resp.status,
                headers={k.lower(): v for k, v in resp.headers.items()},
                body=resp.read(),
            )
    except urllib.error.HTTPError as exc:
        raw = exc.read().decode("utf-8", errors="replace")
        raise HTTPError(
            _upstream_message(raw) or f"HTTP {exc.code} {exc.reason}",
            status=exc.code,
            body=raw,
        ) from exc
    except urllib.error.URLError as exc:
        raise HTTPError(f"Request to {url} failed: {exc.reason}") from exc
    except (OSError, http.client.HTTPException) as exc:
        raise HTTPError(f"Request to {url} failed: {exc}") from exc


def get_json(
    url: str,
    *,
    params: dict[str, object] | None = None,
    headers: dict[str, str] | None = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> dict:
    """GET a JSON document."""
    result = request("GET", url, params=params, headers=headers, timeout=timeout).json()
    return result if isinstance(result, dict) else {"items": result}


def download_bytes(url: str, *, timeout: int = DEFAULT_TIMEOUT) -> bytes:
    """Fetch a resource with plain, unauthenticated retrieval."""
    return request("GET", url, timeout=timeout).body


def _upstream_message(raw: str) -> str:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        return raw[:300]
    if isinstance(data, dict):
        for key in ("message", "detail", "error_description", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
    return raw[:300]
