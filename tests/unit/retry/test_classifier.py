"""
Unit tests for the failure classifier.

Tests cover:
- Status code mapping and retryability
- Message extraction from error bodies
- Transport exception mapping (httpx, OSError, aborted attempts)
- Undecodable success bodies
"""

import json

import httpx
import pytest

from sekha_sdk.cancellation import AbortReason, AttemptAborted
from sekha_sdk.retry import (
    classify_exception,
    classify_status,
    classify_undecodable_body,
    extract_message,
)
from sekha_sdk.types.errors import ErrorKind


class TestClassifyStatus:
    """Tests for classify_status()."""

    @pytest.mark.parametrize(
        "status, kind, retryable",
        [
            (400, ErrorKind.VALIDATION, False),
            (401, ErrorKind.AUTHENTICATION, False),
            (403, ErrorKind.AUTHENTICATION, False),
            (404, ErrorKind.NOT_FOUND, False),
            (429, ErrorKind.RATE_LIMITED, True),
            (500, ErrorKind.SERVER_FAULT, True),
            (502, ErrorKind.SERVER_FAULT, True),
            (503, ErrorKind.SERVER_FAULT, True),
            (599, ErrorKind.SERVER_FAULT, True),
            (409, ErrorKind.VALIDATION, False),
            (422, ErrorKind.VALIDATION, False),
            (302, ErrorKind.VALIDATION, False),
        ],
    )
    def test_status_mapping(self, status, kind, retryable):
        result = classify_status(status)
        assert result.kind is kind
        assert result.retryable is retryable
        assert result.status_code == status

    def test_message_from_body(self):
        result = classify_status(400, {"error": "label is required"})
        assert result.message == "label is required"
        assert result.body == {"error": "label is required"}

    def test_message_falls_back_to_reason(self):
        result = classify_status(404, None, "Not Found")
        assert result.message == "Not Found"

    def test_message_falls_back_to_status(self):
        assert classify_status(418).message == "HTTP 418"

    def test_authentication_has_canned_message(self):
        result = classify_status(401, {"error": "token expired"})
        assert result.message.startswith("Authentication failed")
        assert "token expired" in result.message

    def test_rate_limited_has_canned_message(self):
        result = classify_status(429)
        assert result.message == "Rate limit exceeded. Please slow down."


class TestExtractMessage:
    """Tests for extract_message()."""

    def test_lookup_order(self):
        body = {"detail": "third", "message": "second", "error": "first"}
        assert extract_message(body, "default") == "first"

    def test_skips_empty_fields(self):
        body = {"error": "", "message": None, "detail": "useful"}
        assert extract_message(body, "default") == "useful"

    def test_nested_error_object(self):
        body = {"error": {"message": "nested message", "code": 7}}
        assert extract_message(body, "default") == "nested message"

    def test_text_body(self):
        assert extract_message("  upstream down  ", "default") == "upstream down"

    @pytest.mark.parametrize("body", [None, {}, "   ", ["error"]])
    def test_default(self, body):
        assert extract_message(body, "default") == "default"


class TestClassifyException:
    """Tests for classify_exception()."""

    def test_cancelled_abort(self):
        error = AttemptAborted(AbortReason.CANCELLED)
        result = classify_exception(error)
        assert result.kind is ErrorKind.CANCELLED
        assert result.retryable is False
        assert result.cause is error

    def test_timeout_abort(self):
        result = classify_exception(AttemptAborted(AbortReason.TIMEOUT, 2.0))
        assert result.kind is ErrorKind.TIMEOUT
        assert result.retryable is True
        assert "2.0s" in result.message

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ReadTimeout("read timed out"),
            httpx.ConnectTimeout("connect timed out"),
            httpx.PoolTimeout("pool exhausted"),
        ],
    )
    def test_httpx_timeouts(self, error):
        result = classify_exception(error)
        assert result.kind is ErrorKind.TIMEOUT
        assert result.retryable is True

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("connection refused"),
            httpx.ReadError("connection reset"),
            httpx.RemoteProtocolError("peer closed connection"),
            ConnectionResetError("reset by peer"),
        ],
    )
    def test_connection_failures(self, error):
        result = classify_exception(error)
        assert result.kind is ErrorKind.CONNECTION
        assert result.retryable is True
        assert result.status_code is None
        assert result.cause is error

    def test_programming_errors_are_not_classified(self):
        with pytest.raises(TypeError):
            classify_exception(KeyError("oops"))


class TestClassifyUndecodableBody:
    """Tests for classify_undecodable_body()."""

    def test_server_fault_not_retryable(self):
        error = json.JSONDecodeError("Expecting value", "<html>", 0)
        result = classify_undecodable_body(200, error)
        assert result.kind is ErrorKind.SERVER_FAULT
        assert result.retryable is False
        assert result.status_code == 200
        assert result.cause is error
