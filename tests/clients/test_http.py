"""Tests for HTTP client wrapper."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import MagicMock

import httpx
import pytest

from pipekit.clients.http import HTTPResponse, post, redact_url, request
from pipekit.errors import HTTPError, TimeoutError


class TestHTTPResponse:
    """Tests for HTTPResponse dataclass."""

    def test_ok_true_for_200(self):
        response = HTTPResponse(
            status_code=200,
            body='{"ok": true}',
            json={"ok": True},
            headers={"content-type": "application/json"},
        )
        assert response.ok is True

    def test_ok_false_for_404(self):
        response = HTTPResponse(status_code=404, body="Not found", json=None, headers={})
        assert response.ok is False

    def test_status_line(self):
        response = HTTPResponse(status_code=200, body="", json=None, headers={}, reason="OK")
        assert response.status_line == "HTTP/1.1 200 OK"

    def test_status_line_without_reason(self):
        response = HTTPResponse(status_code=599, body="", json=None, headers={})
        assert response.status_line == "HTTP/1.1 599"


class TestRequest:
    """Tests for request function."""

    def test_successful_get_request(self):
        mock_client = MagicMock(spec=httpx.Client)
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.text = '{"data": "value"}'
        mock_response.headers = {"content-type": "application/json"}
        mock_response.json.return_value = {"data": "value"}
        mock_response.reason_phrase = "OK"
        mock_response.http_version = "HTTP/1.1"
        mock_client.request.return_value = mock_response

        result = request(mock_client, "GET", "https://api.example.com/data")

        assert result.status_code == 200
        assert result.ok is True
        assert result.json == {"data": "value"}
        assert result.status_line == "HTTP/1.1 200 OK"
        mock_client.request.assert_called_once_with(
            method="GET",
            url="https://api.example.com/data",
            headers=None,
            json=None,
            timeout=None,
        )

    def test_post_with_json_body(self):
        mock_client = MagicMock(spec=httpx.Client)
        mock_response = MagicMock()
        mock_response.status_code = 201
        mock_response.text = '{"id": 1}'
        mock_response.headers = {"content-type": "application/json"}
        mock_response.json.return_value = {"id": 1}
        mock_client.request.return_value = mock_response

        result = request(
            mock_client,
            "post",
            "https://api.example.com/items",
            json_body={"name": "test"},
        )

        assert result.status_code == 201
        mock_client.request.assert_called_once_with(
            method="POST",
            url="https://api.example.com/items",
            headers=None,
            json={"name": "test"},
            timeout=None,
        )

    def test_json_and_content_are_exclusive(self):
        with pytest.raises(ValueError):
            request(MagicMock(), "POST", "https://x", json_body={}, content="raw")

    def test_timeout_raises_timeout_error(self):
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.request.side_effect = httpx.TimeoutException("Request timed out")
        mock_client.timeout = MagicMock(connect=30.0)

        with pytest.raises(TimeoutError) as exc_info:
            request(mock_client, "GET", "https://slow.example.com")

        assert "timed out" in str(exc_info.value)

    def test_request_error_raises_http_error(self):
        mock_client = MagicMock(spec=httpx.Client)
        mock_client.request.side_effect = httpx.RequestError("Connection refused")

        with pytest.raises(HTTPError) as exc_info:
            request(mock_client, "GET", "https://unreachable.example.com")

        assert "Request failed" in str(exc_info.value)

    def test_non_json_response(self, http_client_factory: Callable[..., httpx.Client]):
        client = http_client_factory(200, "<html>Hello</html>")

        result = request(client, "GET", "https://example.com")

        assert result.json is None
        assert result.body == "<html>Hello</html>"
        assert result.status_line == "HTTP/1.1 200 OK"


class TestPost:
    def test_sends_raw_body_with_content_type(
        self,
        http_client_factory: Callable[..., httpx.Client],
        recorded_requests: list[httpx.Request],
    ):
        client = http_client_factory(200, "ok")

        result = post(client, "https://example.com/in", "a=1&b=2", content_type="text/plain")

        assert result.ok
        sent = recorded_requests[0]
        assert sent.method == "POST"
        assert sent.headers["content-type"] == "text/plain"
        assert sent.content == b"a=1&b=2"


class TestRedactUrl:
    """Tests for URL redaction."""

    def test_redacts_discord_webhook(self):
        url = "https://discord.com/api/webhooks/123456/abc123secret"
        redacted = redact_url(url)
        assert "abc123secret" not in redacted
        assert "***" in redacted

    def test_redacts_slack_webhook(self):
        url = "https://hooks.slack.com/services/T00/B00/secret123"
        assert "secret123" not in redact_url(url)

    def test_redacts_mattermost_webhook(self):
        url = "https://chat.example.com/hooks/xyz789token"
        assert redact_url(url) == "https://chat.example.com/hooks/***"

    def test_non_webhook_urls_unchanged(self):
        url = "https://api.example.com/data?key=value"
        assert redact_url(url) == url
