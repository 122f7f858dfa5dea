"""Tests for socialpilot.http helpers."""

from __future__ import annotations

import http.client
import io
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from socialpilot.http import HTTPError, Response, build_url, get_json, request


class TestBuildUrl:
    def test_skips_none(self) -> None:
        assert build_url("https://api.test/x", {"q": "AI ML", "page": None}) == (
            "https://api.test/x?q=AI+ML"
        )

    def test_existing_query(self) -> None:
        assert build_url("https://api.test/x?a=1", {"b": 2}) == "https://api.test/x?a=1&b=2"


class TestResponse:
    def test_empty_body_is_empty_dict(self) -> None:
        assert Response(status=204).json() == {}

    def test_non_json_body_raises_http_error(self) -> None:
        with pytest.raises(HTTPError, match="Expected JSON"):
            Response(status=200, body=b"<html>502 Bad Gateway</html>").json()


class TestRequest:
    @patch("socialpilot.http.urllib.request.urlopen")
    def test_upstream_message_surfaced(self, mock_open: MagicMock) -> None:
        mock_open.side_effect = urllib.error.HTTPError(
            "https://api.test",
            403,
            "Forbidden",
            {},
            io.BytesIO(b'{"detail": "You are not permitted to perform this action."}'),
        )

        with pytest.raises(HTTPError) as exc_info:
            request("POST", "https://api.test", json_body={"text": "hi"})

        assert exc_info.value.status == 403
        assert str(exc_info.value) == "You are not permitted to perform this action."

    @patch("socialpilot.http.urllib.request.urlopen")
    def test_network_failure(self, mock_open: MagicMock) -> None:
        mock_open.side_effect = urllib.error.URLError("connection refused")
        with pytest.raises(HTTPError, match="connection refused"):
            request("GET", "https://api.test")

    @patch("socialpilot.http.urllib.request.urlopen")
    def test_read_timeout(self, mock_open: MagicMock) -> None:
        mock_open.return_value.__enter__.return_value.read.side_effect = TimeoutError(
            "read timed out"
        )
        with pytest.raises(HTTPError, match="read timed out"):
            request("GET", "https://api.test")

    @patch("socialpilot.http.urllib.request.urlopen")
    def test_truncated_body(self, mock_open: MagicMock) -> None:
        mock_open.return_value.__enter__.return_value.read.side_effect = (
            http.client.IncompleteRead(b"{\"par")
        )
        with pytest.raises(HTTPError):
            request("GET", "https://api.test")

    @patch("socialpilot.http.urllib.request.urlopen")
    def test_connection_reset(self, mock_open: MagicMock) -> None:
        mock_open.side_effect = ConnectionResetError("reset by peer")
        with pytest.raises(HTTPError, match="reset by peer"):
            request("GET", "https://api.test")

    @patch("socialpilot.http.request")
    def test_get_json_wraps_lists(self, mock_request: MagicMock) -> None:
        mock_request.return_value = Response(status=200, body=b"[1, 2]")
        assert get_json("https://api.test") == {"items": [1, 2]}
