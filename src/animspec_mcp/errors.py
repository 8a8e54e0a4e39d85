"""Error taxonomy, provider-error classification, and the tool error model."""

from __future__ import annotations

from enum import Enum

import httpx
from pydantic import BaseModel


class ErrorCategory(str, Enum):
    """Categories of analysis failures."""

    INVALID_INPUT = "INVALID_INPUT"
    TRANSPORT = "TRANSPORT"
    RATE_LIMITED = "RATE_LIMITED"
    PROVIDER_REJECTED = "PROVIDER_REJECTED"
    TIMEOUT = "TIMEOUT"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    UNKNOWN = "UNKNOWN"


class AnimSpecError(Exception):
    """Base class for every error the analysis core raises on purpose."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(AnimSpecError, ValueError):
    """Unknown format/quality/trigger, or missing video data. Raised before any provider call."""

    category = ErrorCategory.INVALID_INPUT


class TransportError(AnimSpecError):
    """The vision provider could not be reached, or the stream broke mid-flight."""

    category = ErrorCategory.TRANSPORT


class RateLimitError(AnimSpecError):
    """The provider throttled the request. Callers may back off and retry."""

    category = ErrorCategory.RATE_LIMITED
    retryable = True


class ProviderRejectionError(AnimSpecError):
    """Empty response, safety refusal, or a remote file that failed processing."""

    category = ErrorCategory.PROVIDER_REJECTED


class AnalysisTimeoutError(AnimSpecError, TimeoutError):
    """File readiness poll or the whole request exceeded its time bound."""

    category = ErrorCategory.TIMEOUT


_HINTS: dict[ErrorCategory, str] = {
    ErrorCategory.INVALID_INPUT: "Check format, quality, trigger and video fields",
    ErrorCategory.TRANSPORT: "Vision provider unreachable — check connectivity before retrying",
    ErrorCategory.RATE_LIMITED: "Rate limit hit — wait and retry",
    ErrorCategory.PROVIDER_REJECTED: "The provider refused or returned nothing — try a different video or quality",
    ErrorCategory.TIMEOUT: "Analysis took too long — try a shorter clip or a faster quality tier",
    ErrorCategory.FILE_NOT_FOUND: "File not found — check the path",
}

_RATE_LIMIT_MARKERS = ("429", "quota", "resource_exhausted", "rate limit")
_REJECTION_MARKERS = ("safety", "blocked", "prohibited_content", "content policy")


def classify_provider_error(exc: BaseException) -> AnimSpecError:
    """Map a raw SDK/network exception onto the taxonomy.

    Already-classified errors pass through untouched. Anything unrecognised is
    treated as a transport failure, since it happened on the way to the provider.
    """
    if isinstance(exc, AnimSpecError):
        return exc

    status = _status_code(exc)
    message = str(exc) or exc.__class__.__name__
    lowered = message.lower()

    if status == 429 or any(m in lowered for m in _RATE_LIMIT_MARKERS):
        return RateLimitError(f"Provider rate limit: {message}")
    if any(m in lowered for m in _REJECTION_MARKERS):
        return ProviderRejectionError(f"Provider rejected the request: {message}")
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return TransportError(f"Provider request timed out: {message}")
    if status is not None and 400 <= status < 500:
        return ProviderRejectionError(f"Provider rejected the request ({status}): {message}")
    return TransportError(f"Provider call failed: {message}")


def _status_code(exc: BaseException) -> int | None:
    """Extract an HTTP status from google-genai, openai, or httpx exceptions."""
    for attr in ("code", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False
    retry_after_seconds: int | None = None


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, FileNotFoundError):
        return ErrorCategory.FILE_NOT_FOUND, _HINTS[ErrorCategory.FILE_NOT_FOUND]
    if not isinstance(error, AnimSpecError):
        error = classify_provider_error(error)
    return error.category, _HINTS.get(error.category, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    return ToolError(
        error=str(error),
        category=cat.value,
        hint=hint,
        retryable=cat is ErrorCategory.RATE_LIMITED,
        retry_after_seconds=60 if cat == ErrorCategory.RATE_LIMITED else None,
    ).model_dump(mode="json")
