"""Tests for the HTTP fetch capability (requests is patched, no network)."""

from unittest.mock import MagicMock, patch

import requests

from common.http_client import FetchResult, fetch, parse_json
from common.logging_utils import safe_url
from constants import Constants


def _response(status=200, text="", headers=None, url="https://example.org/"):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    resp.headers = headers or {"Content-Type": "text/html"}
    resp.url = url
    return resp


class TestFetch:
    """Error folding and request parameters."""

    def test_success(self):
        with patch("common.http_client.requests.get", return_value=_response(text="hello")) as get:
            result = fetch("https://example.org/", timeout=5)
        assert result.ok
        assert result.text == "hello"
        assert result.status_code == 200
        _, kwargs = get.call_args
        assert kwargs["timeout"] == 5
        assert kwargs["headers"]["User-Agent"] == Constants.USER_AGENT

    def test_default_timeout(self, monkeypatch):
        monkeypatch.setattr(Constants, "REQUEST_TIMEOUT", 12)
        with patch("common.http_client.requests.get", return_value=_response()) as get:
            fetch("https://example.org/")
        assert get.call_args.kwargs["timeout"] == 12

    def test_extra_headers_merged(self):
        with patch("common.http_client.requests.get", return_value=_response()) as get:
            fetch("https://example.org/", headers={"Accept": "application/json"})
        headers = get.call_args.kwargs["headers"]
        assert headers["Accept"] == "application/json"
        assert "User-Agent" in headers

    def test_timeout_is_a_result(self):
        with patch("common.http_client.requests.get", side_effect=requests.Timeout("slow")):
            result = fetch("https://example.org/", timeout=3)
        assert not result.ok
        assert result.error == "Request timed out after 3 seconds"

    def test_connection_error_is_a_result(self):
        with patch("common.http_client.requests.get", side_effect=requests.ConnectionError("refused")):
            result = fetch("https://example.org/")
        assert result.error.startswith("Request failed:")

    def test_non_2xx_is_a_result(self):
        with patch("common.http_client.requests.get", return_value=_response(status=503, text="down")):
            result = fetch("https://example.org/x?token=secret")
        assert not result.ok
        assert result.status_code == 503
        assert "HTTP 503" in result.error
        assert "secret" not in result.error


class TestParseJson:
    """Decoding of JSON bodies."""

    def test_valid(self):
        assert parse_json(FetchResult(200, {}, '{"a": 1}')) == ({"a": 1}, None)

    def test_invalid(self):
        assert parse_json(FetchResult(200, {}, "nope")) == (None, "Response was not valid JSON")

    def test_empty(self):
        assert parse_json(FetchResult(200, {}, "")) == (None, "Empty response body")

    def test_failed_fetch(self):
        assert parse_json(FetchResult(0, {}, "", "boom")) == (None, "boom")


class TestSafeUrl:
    """Credential redaction in logged URLs."""

    def test_userinfo_and_token_removed(self):
        cleaned = safe_url("https://user:pw@example.org/path?token=abc&page=2")
        assert "pw" not in cleaned
        assert "abc" not in cleaned
        assert "page=2" in cleaned
