"""Unit tests for store error classification."""

import httpx
import pytest
from sqlalchemy.exc import NoResultFound

from fines.domain.error import NotFoundError, StoreError
from fines.domain.service import get_recovery_strategy, parse_store_error
from fines.domain.value import ErrorType


class _DriverError(Exception):
    """Stand-in for a database driver error carrying a SQLSTATE."""

    def __init__(self, message: str, sqlstate: str):
        super().__init__(message)
        self.sqlstate = sqlstate


class _WrappedError(Exception):
    """Stand-in for an SQLAlchemy error wrapping the driver error."""

    def __init__(self, orig: Exception):
        super().__init__(str(orig))
        self.orig = orig


class TestParseStoreError:
    """Tests for parse_store_error."""

    def test_store_error_passes_through(self):
        """An already classified error is returned unchanged."""
        error = StoreError("boom", ErrorType.RATE_LIMIT)

        assert parse_store_error(error) is error

    def test_empty_error_is_unknown(self):
        """None and empty values classify as unknown."""
        result = parse_store_error(None)

        assert result.type == ErrorType.UNKNOWN
        assert result.message == "Unknown error occurred"

    @pytest.mark.parametrize(
        ("sqlstate", "message", "user_message"),
        [
            ("23505", "Duplicate entry", "This item already exists."),
            ("23503", "Referenced item not found", "The referenced item no longer exists."),
            ("23514", "Invalid data", "The provided data is invalid."),
        ],
    )
    def test_constraint_violations_are_validation_errors(
        self, sqlstate, message, user_message
    ):
        """Integrity violations map to validation errors with friendly text."""
        result = parse_store_error(_DriverError("violates constraint", sqlstate))

        assert result.type == ErrorType.VALIDATION
        assert result.code == sqlstate
        assert result.message == message
        assert result.user_message == user_message
        assert result.retryable is False

    def test_sqlstate_is_read_from_wrapped_driver_error(self):
        """Codes on ``orig`` are found too."""
        result = parse_store_error(_WrappedError(_DriverError("dup", "23505")))

        assert result.type == ErrorType.VALIDATION
        assert result.code == "23505"

    def test_no_rows_code_is_not_found(self):
        """The REST gateway's no-rows code means not found."""
        result = parse_store_error({"code": "PGRST116", "message": "0 rows"})

        assert result.type == ErrorType.NOT_FOUND
        assert result.user_message == "The requested item could not be found."

    def test_not_found_error_is_not_found(self):
        """Domain NotFoundError classifies as not found."""
        result = parse_store_error(NotFoundError("Comment", "abc"))

        assert result.type == ErrorType.NOT_FOUND
        assert result.message == "Comment not found: abc"

    def test_sqlalchemy_no_result_is_not_found(self):
        """A one-row query that found nothing classifies as not found."""
        result = parse_store_error(
            NoResultFound("No row was found when one was required")
        )

        assert result.type == ErrorType.NOT_FOUND
        assert result.retryable is False
        assert result.user_message == "The requested item could not be found."

    @pytest.mark.parametrize(
        ("status", "error_type"),
        [
            (400, ErrorType.VALIDATION),
            (401, ErrorType.AUTHENTICATION),
            (403, ErrorType.AUTHORIZATION),
            (404, ErrorType.NOT_FOUND),
            (429, ErrorType.RATE_LIMIT),
            (500, ErrorType.SERVER_ERROR),
            (503, ErrorType.SERVER_ERROR),
        ],
    )
    def test_http_status_is_classified(self, status, error_type):
        """Status codes on error payloads map to error types."""
        result = parse_store_error({"message": "failed", "status": status})

        assert result.type == error_type
        assert result.status_code == status

    def test_httpx_status_error_uses_response_status(self):
        """httpx HTTPStatusError carries the status on its response."""
        request = httpx.Request("GET", "https://store.example/comments")
        response = httpx.Response(502, request=request)
        error = httpx.HTTPStatusError("Bad gateway", request=request, response=response)

        result = parse_store_error(error)

        assert result.type == ErrorType.SERVER_ERROR
        assert result.status_code == 502
        assert result.retryable is True

    def test_transport_failures_are_network_errors(self):
        """Connection-level failures are retryable network errors."""
        request = httpx.Request("GET", "https://store.example/comments")

        for error in (
            httpx.ConnectError("refused", request=request),
            ConnectionError("reset by peer"),
            TimeoutError(),
        ):
            result = parse_store_error(error)
            assert result.type == ErrorType.NETWORK
            assert result.retryable is True

    def test_network_hint_in_message_is_network_error(self):
        """Messages mentioning fetch or network are network errors."""
        result = parse_store_error(RuntimeError("Failed to fetch"))

        assert result.type == ErrorType.NETWORK

    def test_anything_else_is_unknown_with_context(self):
        """Unrecognized errors keep the original for diagnostics."""
        result = parse_store_error(ValueError("weird"))

        assert result.type == ErrorType.UNKNOWN
        assert result.message == "weird"
        assert "original_error" in result.context
        assert result.retryable is False


class TestGetRecoveryStrategy:
    """Tests for get_recovery_strategy."""

    def test_network_offers_retry(self):
        strategy = get_recovery_strategy(StoreError("down", ErrorType.NETWORK))

        assert strategy.can_recover is True
        assert strategy.action_label == "Retry"

    def test_authentication_offers_sign_in(self):
        strategy = get_recovery_strategy(StoreError("401", ErrorType.AUTHENTICATION))

        assert strategy.can_recover is True
        assert strategy.action_label == "Sign In"

    def test_rate_limit_asks_to_wait(self):
        strategy = get_recovery_strategy(StoreError("slow", ErrorType.RATE_LIMIT))

        assert strategy.can_recover is True
        assert strategy.action_label is None

    def test_validation_is_not_recoverable(self):
        strategy = get_recovery_strategy(StoreError("bad", ErrorType.VALIDATION))

        assert strategy.can_recover is False
        assert "refresh" in strategy.message
