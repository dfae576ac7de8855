"""HTTP client wrapper.

Provides a clean interface for HTTP requests with:
- Typed response objects
- Consistent error handling
- Centralized logging with webhook tokens redacted
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from pipekit.errors import HTTPError, TimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HTTPResponse:
    """Structured HTTP response.

    Attributes:
        status_code: HTTP status code (200, 404, etc.)
        body: Response body as string
        json: Parsed JSON body (None if not JSON)
        headers: Response headers as dict
        elapsed_ms: Request duration in milliseconds
        reason: Reason phrase sent by the server ('OK', 'Not Found')
        http_version: Protocol version of the response
    """

    status_code: int
    body: str
    json: dict[str, Any] | list[Any] | None
    headers: dict[str, str]
    elapsed_ms: float = 0.0
    reason: str = ""
    http_version: str = "HTTP/1.1"

    @property
    def ok(self) -> bool:
        """True if response has 2xx status code."""
        return 200 <= self.status_code < 300

    @property
    def status_line(self) -> str:
        """Status line as sent on the wire, e.g. 'HTTP/1.1 200 OK'."""
        return f"{self.http_version} {self.status_code} {self.reason}".rstrip()


def request(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    json_body: dict[str, Any] | list[Any] | None = None,
    content: str | bytes | None = None,
    timeout: float | None = None,
) -> HTTPResponse:
    """Make an HTTP request with consistent error handling.

    Args:
        client: httpx.Client instance (from deps.http)
        method: HTTP method (GET, POST, PUT, PATCH, DELETE)
        url: Target URL
        headers: Optional request headers
        json_body: Optional JSON body for POST/PUT/PATCH
        content: Optional raw body, mutually exclusive with json_body
        timeout: Optional timeout override (uses client default if not set)

    Returns:
        HTTPResponse with status, body, and parsed JSON

    Raises:
        HTTPError: If the request cannot be sent
        TimeoutError: If request times out
    """
    if json_body is not None and content is not None:
        raise ValueError("json_body and content are mutually exclusive")

    log_url = redact_url(url)
    logger.debug(f"HTTP {method} {log_url}")

    kwargs: dict[str, Any] = {
        "method": method.upper(),
        "url": url,
        "headers": headers,
        "json": json_body,
        "timeout": timeout,
    }
    if content is not None:
        kwargs["content"] = content

    try:
        response = client.request(**kwargs)
    except httpx.TimeoutException as e:
        raise TimeoutError(
            f"Request timed out: {method} {log_url}",
            timeout_seconds=timeout or client.timeout.connect,
        ) from e
    except httpx.RequestError as e:
        raise HTTPError(
            f"Request failed: {e}",
            url=log_url,
            method=method,
        ) from e

    # Parse JSON if content-type indicates JSON
    json_data = None
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        with contextlib.suppress(ValueError):
            json_data = response.json()

    elapsed_ms = _elapsed_ms(response)

    result = HTTPResponse(
        status_code=response.status_code,
        body=response.text,
        json=json_data,
        headers=dict(response.headers),
        elapsed_ms=elapsed_ms,
        reason=str(getattr(response, "reason_phrase", "") or ""),
        http_version=str(getattr(response, "http_version", "") or "HTTP/1.1"),
    )

    logger.debug(f"HTTP {method} {log_url} -> {result.status_code} in {elapsed_ms}ms")
    return result


def post(
    client: httpx.Client,
    url: str,
    data: str,
    *,
    content_type: str,
    timeout: float | None = None,
) -> HTTPResponse:
    """POST a pre-encoded string body with the given Content-Type."""
    return request(
        client,
        "POST",
        url,
        headers={"Content-Type": content_type},
        content=data.encode("utf-8"),
        timeout=timeout,
    )


def redact_url(url: str) -> str:
    """Redact sensitive parts of URLs for logging.

    Hides webhook tokens, which travel as the last path segment.
    """
    webhook_markers = (
        "discord.com/api/webhooks",
        "discordapp.com/api/webhooks",
        "hooks.slack.com",
        "/hooks/",
    )
    if any(marker in url for marker in webhook_markers):
        parts = url.split("/")
        if len(parts) >= 2:
            return "/".join(parts[:-1]) + "/***"

    return url


def _elapsed_ms(response: httpx.Response) -> float:
    # Responses built outside a client carry no elapsed time
    try:
        return round(response.elapsed.total_seconds() * 1000, 2)
    except RuntimeError:
        return 0.0
