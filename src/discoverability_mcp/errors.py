"""Structured error handling — failure kinds, classification, and tool error model."""

from __future__ import annotations

import json
from enum import Enum

import httpx
from pydantic import BaseModel, ValidationError


class FailureKind(str, Enum):
    """Why an analysis attempt did not produce a fresh result."""

    VALIDATION = "validation"
    QUOTA_EXCEEDED = "quota_exceeded"
    CLIENT_ERROR = "client_error"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    RATE_LIMITED = "rate_limited"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


RETRYABLE_KINDS: frozenset[FailureKind] = frozenset({
    FailureKind.TIMEOUT,
    FailureKind.NETWORK_ERROR,
    FailureKind.RATE_LIMITED,
})

_RATE_LIMIT_PATTERNS = ("429", "rate limit", "quota", "resource_exhausted")
_TIMEOUT_PATTERNS = ("timeout", "timed out")
_NETWORK_PATTERNS = (
    "network", "econnreset", "enotfound", "connection reset",
    "connection refused", "503", "service unavailable",
)
_CLIENT_PATTERNS = ("400", "401", "403", "permission denied", "unauthorized", "api key not valid")


def _status_code(error: Exception) -> int | None:
    """Pull an HTTP status from SDK exceptions (google-genai ``code``, httpx ``response``)."""
    code = getattr(error, "code", None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    code = getattr(error, "status_code", None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def classify_failure(error: Exception) -> FailureKind:
    """Map an upstream exception to a ``FailureKind``.

    Typed signals (timeouts, status codes, transport errors) win over
    message matching; the message patterns cover SDKs that only surface
    text.
    """
    if isinstance(error, (TimeoutError, httpx.TimeoutException)):
        return FailureKind.TIMEOUT

    status = _status_code(error)
    if status is not None:
        if status == 429:
            return FailureKind.RATE_LIMITED
        if status == 408:
            return FailureKind.TIMEOUT
        if 400 <= status < 500:
            return FailureKind.CLIENT_ERROR
        if status >= 500:
            return FailureKind.NETWORK_ERROR

    if isinstance(error, (httpx.TransportError, ConnectionError)):
        return FailureKind.NETWORK_ERROR
    if isinstance(error, (json.JSONDecodeError, ValidationError)):
        return FailureKind.MALFORMED_RESPONSE

    s = str(error).lower()
    if any(p in s for p in _RATE_LIMIT_PATTERNS):
        return FailureKind.RATE_LIMITED
    if any(p in s for p in _TIMEOUT_PATTERNS):
        return FailureKind.TIMEOUT
    if any(p in s for p in _NETWORK_PATTERNS):
        return FailureKind.NETWORK_ERROR
    if any(p in s for p in _CLIENT_PATTERNS):
        return FailureKind.CLIENT_ERROR
    return FailureKind.UNKNOWN


def is_retryable(kind: FailureKind) -> bool:
    return kind in RETRYABLE_KINDS


class ErrorCategory(str, Enum):
    """Categories of errors reported at the tool boundary."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    API_PERMISSION_DENIED = "API_PERMISSION_DENIED"
    API_INVALID_ARGUMENT = "API_INVALID_ARGUMENT"
    API_QUOTA_EXCEEDED = "API_QUOTA_EXCEEDED"
    NETWORK_ERROR = "NETWORK_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    UNKNOWN = "UNKNOWN"


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False
    retry_after_seconds: int | None = None


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, ValidationError):
        return (
            ErrorCategory.VALIDATION_FAILED,
            "Input failed validation — check required fields, types and value ranges",
        )
    if isinstance(error, PermissionError):
        return (
            ErrorCategory.API_PERMISSION_DENIED,
            "Operation not permitted by server policy",
        )

    kind = classify_failure(error)
    if kind is FailureKind.RATE_LIMITED:
        return (
            ErrorCategory.API_QUOTA_EXCEEDED,
            "Upstream rate limit hit — wait and retry",
        )
    if kind in (FailureKind.TIMEOUT, FailureKind.NETWORK_ERROR):
        return (
            ErrorCategory.NETWORK_ERROR,
            "Upstream unreachable or timed out — try again shortly",
        )
    if kind is FailureKind.MALFORMED_RESPONSE:
        return (
            ErrorCategory.MALFORMED_RESPONSE,
            "Upstream returned output that is not a valid analysis",
        )
    if kind is FailureKind.CLIENT_ERROR:
        s = str(error).lower()
        if "401" in s or "403" in s or "permission" in s or "api key" in s:
            return (
                ErrorCategory.API_PERMISSION_DENIED,
                "API key missing or lacks permission — check GEMINI_API_KEY",
            )
        return (
            ErrorCategory.API_INVALID_ARGUMENT,
            "Bad request — check input format",
        )
    if isinstance(error, ValueError):
        return (ErrorCategory.API_INVALID_ARGUMENT, str(error))

    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    retryable = cat in {
        ErrorCategory.API_QUOTA_EXCEEDED,
        ErrorCategory.NETWORK_ERROR,
    }
    return ToolError(
        error=str(error),
        category=cat.value,
        hint=hint,
        retryable=retryable,
        retry_after_seconds=60 if cat == ErrorCategory.API_QUOTA_EXCEEDED else None,
    ).model_dump(mode="json")
