"""Tests for the error taxonomy, provider classification and ToolError dicts."""

from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest

from animspec_mcp.errors import (
    AnalysisTimeoutError,
    ErrorCategory,
    InvalidInputError,
    ProviderRejectionError,
    RateLimitError,
    TransportError,
    classify_provider_error,
    make_tool_error,
)


class _SDKError(Exception):
    def __init__(self, message: str, code: int | None = None, response=None):
        super().__init__(message)
        self.code = code
        self.response = response


class TestClassifyProviderError:
    def test_classified_errors_pass_through(self):
        exc = InvalidInputError("bad")
        assert classify_provider_error(exc) is exc

    def test_status_429_is_rate_limit(self):
        assert isinstance(classify_provider_error(_SDKError("Too many", code=429)), RateLimitError)

    @pytest.mark.parametrize("msg", ["RESOURCE_EXHAUSTED", "quota exceeded"])
    def test_rate_limit_messages(self, msg):
        assert isinstance(classify_provider_error(Exception(msg)), RateLimitError)

    def test_safety_is_rejection(self):
        result = classify_provider_error(Exception("Response blocked by SAFETY filter"))
        assert isinstance(result, ProviderRejectionError)

    def test_client_status_from_response_is_rejection(self):
        exc = _SDKError("forbidden", response=SimpleNamespace(status_code=403))
        result = classify_provider_error(exc)
        assert isinstance(result, ProviderRejectionError)
        assert "(403)" in result.message

    def test_server_status_is_transport(self):
        assert isinstance(classify_provider_error(_SDKError("oops", code=500)), TransportError)

    def test_httpx_timeout_is_transport(self):
        result = classify_provider_error(httpx.ReadTimeout("read timed out"))
        assert isinstance(result, TransportError)
        assert "timed out" in result.message

    def test_connection_error_is_transport(self):
        assert isinstance(classify_provider_error(httpx.ConnectError("refused")), TransportError)

    def test_empty_message_uses_class_name(self):
        assert "RuntimeError" in classify_provider_error(RuntimeError()).message


class TestTaxonomy:
    def test_categories_and_flags(self):
        assert InvalidInputError("x").category is ErrorCategory.INVALID_INPUT
        assert RateLimitError("x").retryable is True
        assert TransportError("x").retryable is False
        assert isinstance(AnalysisTimeoutError("x"), TimeoutError)


class TestMakeToolError:
    def test_file_not_found(self):
        result = make_tool_error(FileNotFoundError("missing.mp4"))
        assert result["category"] == "FILE_NOT_FOUND"
        assert result["retryable"] is False

    def test_rate_limit_is_retryable_with_delay(self):
        result = make_tool_error(RateLimitError("429"))
        assert result["category"] == "RATE_LIMITED"
        assert result["retryable"] is True
        assert result["retry_after_seconds"] == 60

    def test_invalid_input(self):
        result = make_tool_error(InvalidInputError("Invalid format: gif"))
        assert result == {
            "error": "Invalid format: gif",
            "category": "INVALID_INPUT",
            "hint": "Check format, quality, trigger and video fields",
            "retryable": False,
            "retry_after_seconds": None,
        }

    def test_raw_network_error_is_transport(self):
        result = make_tool_error(httpx.ConnectError("connection refused"))
        assert result["category"] == "TRANSPORT"
        assert result["retryable"] is False

    def test_retryable_flag_matches_error_class(self):
        for error in (RateLimitError("x"), TransportError("x"), ProviderRejectionError("x"), AnalysisTimeoutError("x")):
            assert make_tool_error(error)["retryable"] is error.retryable

    def test_timeout(self):
        assert make_tool_error(AnalysisTimeoutError("Analysis exceeded 300s"))["category"] == "TIMEOUT"
