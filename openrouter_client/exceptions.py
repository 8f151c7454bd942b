# openrouter_client/exceptions.py
"""
Custom exceptions for openrouter-client.

All public exceptions inherit from OpenRouterError so callers can catch
the whole family with a single except clause if preferred. Every error
also carries a ``kind`` discriminant, so callers that prefer branching
on a value can write::

    try:
        await client.request("POST", "/chat/completions", json=payload)
    except OpenRouterError as err:
        match err.kind:
            case ErrorKind.MAX_RETRIES:
                ...
            case ErrorKind.HTTP_STATUS if err.status_code == 401:
                ...
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Mapping


class ErrorKind(str, Enum):
    """Discriminant shared by every OpenRouterError."""

    NETWORK = "network"
    HTTP_STATUS = "http_status"
    INVALID_RESPONSE = "invalid_response"
    MAX_RETRIES = "max_retries"
    STREAM_PROTOCOL = "stream_protocol"
    VALIDATION = "validation"


class OpenRouterError(Exception):
    """Base exception for all client errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NetworkError(OpenRouterError):
    """
    Raised when a connection could not be established or was interrupted
    before a complete response arrived. Always retryable.
    """

    kind = ErrorKind.NETWORK


class HTTPStatusError(OpenRouterError):
    """
    Raised when the remote service answers with a non-2xx status.

    Attributes
    ----------
    status_code:
        HTTP status code of the response.
    reason:
        Reason phrase, e.g. "Service Unavailable".
    headers:
        Response headers (case-insensitive mapping when produced by httpx).
    body:
        Raw response body bytes.
    """

    kind = ErrorKind.HTTP_STATUS

    def __init__(
        self,
        message: str,
        status_code: int,
        reason: str = "",
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.headers = headers if headers is not None else {}
        self.body = body
        super().__init__(message)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class InvalidResponseError(OpenRouterError):
    """
    Raised when a successful response body is not valid JSON.
    Never retried; the original response is attached for diagnostics.
    """

    kind = ErrorKind.INVALID_RESPONSE

    def __init__(
        self,
        message: str,
        status_code: int,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> None:
        self.status_code = status_code
        self.headers = headers if headers is not None else {}
        self.body = body
        super().__init__(message)


class MaxRetriesExceeded(OpenRouterError):
    """
    Raised when the retry policy has used up its attempt budget.

    Attributes
    ----------
    max_attempts:
        The configured attempt budget that was exhausted.
    last_error:
        The failure of the final attempt (also chained as ``__cause__``).
    """

    kind = ErrorKind.MAX_RETRIES

    def __init__(self, max_attempts: int, last_error: Exception | None = None) -> None:
        self.max_attempts = max_attempts
        self.last_error = last_error
        message = f"Max retries ({max_attempts}) exceeded"
        if last_error is not None:
            message += f". Last error: {last_error}"
        super().__init__(message)

    @property
    def status_code(self) -> int | None:
        """Status of the last failure when it was an HTTP error, else None."""
        return getattr(self.last_error, "status_code", None)


class StreamProtocolError(OpenRouterError):
    """
    Raised when a streamed event carries an explicit error payload or
    ``finish_reason == "error"``. Halts the stream; never retried.
    """

    kind = ErrorKind.STREAM_PROTOCOL

    def __init__(self, message: str, payload: Any = None) -> None:
        self.payload = payload
        super().__init__(message)


class RequestValidationError(OpenRouterError):
    """
    Raised when caller-supplied request data is malformed.

    Attributes
    ----------
    errors:
        Mapping of field path → human readable message.
    context:
        Free-form description of what was being validated.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        errors: Mapping[str, str] | None = None,
        context: str = "",
    ) -> None:
        self.errors = dict(errors or {})
        self.context = context
        super().__init__(message)

    def error_report(self) -> str:
        lines = [
            "Validation Error Report",
            "=" * 50,
            f"Message: {self.message}",
            f"Context: {self.context}",
            f"Timestamp: {time.strftime('%Y-%m-%d %H:%M:%S')}",
        ]
        if self.errors:
            lines.append("")
            lines.append("Validation Errors:")
            lines.extend(f"  - {field}: {error}" for field, error in self.errors.items())
        return "\n".join(lines)
