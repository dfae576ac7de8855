"""Typed exceptions for pipekit.

All helper errors inherit from PipelineError.
These provide structured error information for logging and debugging.
"""

from __future__ import annotations

import traceback
from typing import Any


class PipelineError(Exception):
    """Base exception for all pipekit errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class HTTPError(PipelineError):
    """HTTP request failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
        method: str = "GET",
    ):
        context = {"status_code": status_code, "url": url, "method": method}
        super().__init__(message, context={k: v for k, v in context.items() if v is not None})
        self.status_code = status_code
        self.url = url
        self.method = method


class WebhookError(PipelineError):
    """Webhook delivery failed."""

    def __init__(
        self,
        message: str,
        *,
        webhook_type: str | None = None,
        status_code: int | None = None,
    ):
        context = {"webhook_type": webhook_type, "status_code": status_code}
        super().__init__(message, context={k: v for k, v in context.items() if v is not None})
        self.webhook_type = webhook_type
        self.status_code = status_code


class TimeoutError(PipelineError):
    """Operation timed out."""

    def __init__(self, message: str, *, timeout_seconds: float | None = None):
        context = {"timeout_seconds": timeout_seconds} if timeout_seconds else {}
        super().__init__(message, context=context)
        self.timeout_seconds = timeout_seconds


class CommandError(PipelineError):
    """Shell command could not be started or exited with an error."""

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        returncode: int | None = None,
        stderr: str | None = None,
    ):
        context: dict[str, Any] = {}
        if command:
            context["command"] = command
        if returncode is not None:
            context["returncode"] = returncode
        super().__init__(message, context=context)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class ConfigError(PipelineError):
    """Configuration map is missing keys or has the wrong shape."""

    def __init__(self, message: str, *, field: str | None = None, value: Any = None):
        context: dict[str, Any] = {}
        if field:
            context["field"] = field
        if value is not None:
            # Truncate long values for readability
            str_val = str(value)
            context["value"] = str_val[:100] + "..." if len(str_val) > 100 else str_val
        super().__init__(message, context=context)
        self.field = field
        self.value = value


class MissingVariablesError(PipelineError):
    """One or more required pipeline variables are undefined."""

    def __init__(self, message: str, *, missing: list[str]):
        super().__init__(message, context={"missing": missing})
        self.missing = missing


class FileParameterError(PipelineError):
    """Uploaded file parameter cannot be placed into the workspace."""

    def __init__(self, message: str, *, name: str | None = None):
        context = {"name": name} if name else {}
        super().__init__(message, context=context)
        self.name = name


def readable_error(error: BaseException) -> str:
    """Render an exception with the line number it was raised from.

    Example:
        >>> readable_error(exc)
        'Line 42: ValueError: invalid literal'
    """
    frames = traceback.extract_tb(error.__traceback__)
    line = frames[-1].lineno if frames else "?"
    return f"Line {line}: {type(error).__name__}: {error}"
