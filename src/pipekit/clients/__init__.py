"""Shared client modules for pipekit.

These provide reusable HTTP and webhook functionality
that pipeline helpers compose into their logic.
"""

from pipekit.clients.http import HTTPResponse, post, request
from pipekit.clients.webhook import (
    WebhookPayload,
    send_message,
    send_single_message,
    send_webhook,
)

__all__ = [
    "request",
    "post",
    "HTTPResponse",
    "send_webhook",
    "send_message",
    "send_single_message",
    "WebhookPayload",
]
