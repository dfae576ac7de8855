"""Webhook client for Mattermost/Discord/Slack notifications.

Provides payload building and delivery for common webhook types, plus
chunked delivery of long build reports.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlencode

import httpx

from pipekit.chunking import DEFAULT_MESSAGE_LIMIT, split_message
from pipekit.clients.http import HTTPResponse, post, request
from pipekit.errors import PipelineError, WebhookError
from pipekit.mapping import readable_map

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


@dataclass
class WebhookPayload:
    """Structured webhook payload.

    Works with Mattermost, Discord, Slack, and generic webhooks.

    Attributes:
        message: Main message text
        title: Optional title for embed/attachment
        color: Hex color (e.g., '#00ff00')
        fields: List of {name, value, inline} dicts
        username: Bot username override
        avatar_url: Bot avatar URL (Discord and Mattermost)
    """

    message: str
    title: str | None = None
    color: str | None = None
    fields: list[dict[str, Any]] = field(default_factory=list)
    username: str = "Pipeline"
    avatar_url: str | None = None


def detect_webhook_type(url: str) -> str:
    """Detect webhook type from URL.

    Returns:
        'discord', 'slack', 'mattermost' or 'unknown'
    """
    if "discord.com/api/webhooks" in url or "discordapp.com/api/webhooks" in url:
        return "discord"
    elif "hooks.slack.com" in url:
        return "slack"
    elif "/hooks/" in url:
        return "mattermost"
    return "unknown"


def send_single_message(
    client: httpx.Client,
    url: str,
    text: str,
    *,
    verbose: int = 1,
    timeout: float = 30.0,
) -> bool:
    """Post one plain-text message to a chat webhook.

    Delivery problems are logged rather than raised, so a failed
    notification never fails the pipeline step that sends it.

    Args:
        client: httpx.Client instance (from deps.http)
        url: Webhook URL including its token
        text: Message text
        verbose: 0 silent, 1 log the status line, 2 also log the full response
        timeout: Request timeout in seconds

    Returns:
        True if the webhook answered with a 2xx status.
    """
    webhook_type = detect_webhook_type(url)

    try:
        if webhook_type == "mattermost":
            response = post(
                client,
                url,
                urlencode({"payload": json.dumps({"text": text})}),
                content_type=FORM_CONTENT_TYPE,
                timeout=timeout,
            )
        else:
            body = _build_text_payload(webhook_type, text)
            response = request(
                client,
                "POST",
                url,
                json_body=body,
                headers={"Content-Type": JSON_CONTENT_TYPE},
                timeout=timeout,
            )
    except PipelineError as e:
        logger.error(f"Sending {webhook_type} message: {e}")
        return False

    if verbose >= 2:
        logger.info(f"Sending {webhook_type} message: {readable_map(_describe(response))}")
    if verbose >= 1:
        logger.info(f"Sending {webhook_type} message: {response.status_line}")
    if not response.ok:
        logger.warning(
            f"Sending {webhook_type} message: {response.body or '<null or empty>'}"
        )
    return response.ok


def send_message(
    client: httpx.Client,
    url: str,
    text: str,
    *,
    verbose: int = 1,
    limit: int = DEFAULT_MESSAGE_LIMIT,
    timeout: float = 30.0,
) -> bool:
    """Post a message of any length, split into chunks of at most limit chars.

    Every chunk is attempted even when an earlier one fails.

    Returns:
        True if every chunk was delivered.
    """
    chunks = split_message(text, limit)
    if len(chunks) > 1:
        logger.debug(f"Message of {len(text)} chars split into {len(chunks)} chunks")

    delivered = True
    for chunk in chunks:
        if not send_single_message(client, url, chunk, verbose=verbose, timeout=timeout):
            delivered = False
    return delivered


def send_webhook(
    client: httpx.Client,
    url: str,
    payload: WebhookPayload,
    *,
    timeout: float = 30.0,
) -> HTTPResponse:
    """Send a structured webhook notification.

    Automatically detects webhook type and builds appropriate payload.

    Args:
        client: httpx.Client instance (from deps.http)
        url: Webhook URL (Mattermost, Discord, Slack, or generic)
        payload: WebhookPayload with message content
        timeout: Request timeout in seconds

    Returns:
        HTTPResponse from the webhook endpoint

    Raises:
        WebhookError: If webhook delivery fails
    """
    webhook_type = detect_webhook_type(url)

    if webhook_type == "discord":
        body = _build_discord_payload(payload)
    elif webhook_type in ("slack", "mattermost"):
        body = _build_slack_payload(payload)
    else:
        body = _build_generic_payload(payload)

    try:
        response = request(
            client,
            "POST",
            url,
            json_body=body,
            headers={"Content-Type": JSON_CONTENT_TYPE},
            timeout=timeout,
        )
    except PipelineError as e:
        raise WebhookError(
            f"Failed to deliver {webhook_type} webhook: {e}",
            webhook_type=webhook_type,
        ) from e

    if not response.ok:
        raise WebhookError(
            "Webhook returned error status",
            webhook_type=webhook_type,
            status_code=response.status_code,
        )

    return response


def _describe(response: HTTPResponse) -> dict[str, Any]:
    return {
        "response_status_line": response.status_line,
        "content_length": response.headers.get("content-length"),
        "response_is_chunked": response.headers.get("transfer-encoding") == "chunked",
        "response_content_encoding": response.headers.get("content-encoding"),
        "response_content": response.body,
        "elapsed_ms": response.elapsed_ms,
    }


def _build_text_payload(webhook_type: str, text: str) -> dict[str, Any]:
    if webhook_type == "discord":
        return {"content": text}
    return {"text": text}


def _build_discord_payload(payload: WebhookPayload) -> dict[str, Any]:
    """Build Discord webhook payload with embed."""
    result: dict[str, Any] = {"username": payload.username}

    if payload.avatar_url:
        result["avatar_url"] = payload.avatar_url

    # Use embed if we have title, color, or fields
    if payload.title or payload.color or payload.fields:
        embed: dict[str, Any] = {"description": payload.message}

        if payload.title:
            embed["title"] = payload.title

        if payload.color:
            embed["color"] = int(payload.color.lstrip("#"), 16)

        if payload.fields:
            embed["fields"] = [
                {"name": f["name"], "value": f["value"], "inline": f.get("inline", False)}
                for f in payload.fields
            ]

        embed["timestamp"] = datetime.now(UTC).isoformat()
        result["embeds"] = [embed]
    else:
        result["content"] = payload.message

    return result


def _build_slack_payload(payload: WebhookPayload) -> dict[str, Any]:
    """Build Slack-compatible payload (Mattermost accepts the same shape)."""
    result: dict[str, Any] = {"username": payload.username}

    if payload.avatar_url:
        result["icon_url"] = payload.avatar_url

    if payload.title or payload.color or payload.fields:
        attachment: dict[str, Any] = {"text": payload.message}

        if payload.title:
            attachment["title"] = payload.title

        if payload.color:
            attachment["color"] = payload.color

        if payload.fields:
            attachment["fields"] = [
                {"title": f["name"], "value": f["value"], "short": f.get("inline", False)}
                for f in payload.fields
            ]

        result["attachments"] = [attachment]
    else:
        result["text"] = payload.message

    return result


def _build_generic_payload(payload: WebhookPayload) -> dict[str, Any]:
    """Build generic webhook payload."""
    return {"text": payload.message, "username": payload.username}
