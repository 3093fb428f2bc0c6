"""Classification and reporting of store failures."""

from collections.abc import Mapping
from types import SimpleNamespace
from typing import Any

import httpx
import logfire
from sqlalchemy.exc import NoResultFound

from fines.domain.error import NotFoundError, StoreError
from fines.domain.model.common import DomainModel
from fines.domain.value import ErrorType

# PostgreSQL SQLSTATE codes (and the REST gateway's "no rows" code)
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
NO_ROWS = "PGRST116"

_NETWORK_HINTS = ("fetch", "network", "connection", "timeout")

_STATUS_TYPES: dict[int, tuple[ErrorType, str]] = {
    400: (ErrorType.VALIDATION, "Bad request"),
    401: (ErrorType.AUTHENTICATION, "Unauthorized"),
    403: (ErrorType.AUTHORIZATION, "Forbidden"),
    404: (ErrorType.NOT_FOUND, "Not found"),
    429: (ErrorType.RATE_LIMIT, "Too many requests"),
}


class RecoveryStrategy(DomainModel):
    """What the caller can offer the user after a failure."""

    can_recover: bool
    action_label: str | None = None
    message: str | None = None


def _error_code(error: Any) -> str | None:
    """Find a SQLSTATE-like code on the error or the driver error it wraps."""
    candidates = [c for c in (error, getattr(error, "orig", None)) if c is not None]
    for attr in ("sqlstate", "pgcode", "code"):
        for candidate in candidates:
            value = getattr(candidate, attr, None)
            if isinstance(value, str) and value:
                return value
    return None


def _status_code(error: Any) -> int | None:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def _message(error: Any) -> str:
    if isinstance(error, str):
        return error
    value = getattr(error, "message", None)
    if isinstance(value, str):
        return value
    return str(error) if isinstance(error, BaseException) else ""


def parse_store_error(error: Any) -> StoreError:
    """Translate any store failure into a ``StoreError``.

    Order of precedence: store error codes, HTTP status, transport-level
    failures (by type or by message), then ``unknown``.

    Args:
        error: Exception, error-like object or message string

    Returns:
        Classified store error
    """
    if isinstance(error, StoreError):
        return error
    if not error:
        return StoreError("Unknown error occurred", ErrorType.UNKNOWN)
    if isinstance(error, Mapping):
        # REST-style error payloads: {"code": ..., "message": ..., "status": ...}
        error = SimpleNamespace(**error)

    message = _message(error)

    if isinstance(error, NotFoundError):
        return StoreError(message, ErrorType.NOT_FOUND, code=NO_ROWS)
    if isinstance(error, NoResultFound):
        return StoreError(
            message,
            ErrorType.NOT_FOUND,
            code=NO_ROWS,
            user_message="The requested item could not be found.",
        )

    code = _error_code(error)
    if code == UNIQUE_VIOLATION:
        return StoreError(
            "Duplicate entry",
            ErrorType.VALIDATION,
            code=code,
            user_message="This item already exists.",
        )
    if code == FOREIGN_KEY_VIOLATION:
        return StoreError(
            "Referenced item not found",
            ErrorType.VALIDATION,
            code=code,
            user_message="The referenced item no longer exists.",
        )
    if code == CHECK_VIOLATION:
        return StoreError(
            "Invalid data",
            ErrorType.VALIDATION,
            code=code,
            user_message="The provided data is invalid.",
        )
    if code == NO_ROWS:
        return StoreError(
            "Item not found",
            ErrorType.NOT_FOUND,
            code=code,
            user_message="The requested item could not be found.",
        )

    status = _status_code(error)
    if status is not None:
        if status in _STATUS_TYPES:
            error_type, fallback = _STATUS_TYPES[status]
            return StoreError(message or fallback, error_type, status_code=status)
        if 500 <= status < 600:
            return StoreError(
                message or "Server error", ErrorType.SERVER_ERROR, status_code=status
            )

    lowered = message.lower()
    if isinstance(
        error, (httpx.TransportError, ConnectionError, TimeoutError)
    ) or any(hint in lowered for hint in _NETWORK_HINTS):
        return StoreError(
            message or "Network error", ErrorType.NETWORK, retryable=True
        )

    return StoreError(
        message or "An unexpected error occurred",
        ErrorType.UNKNOWN,
        context={"original_error": repr(error)},
    )


def get_recovery_strategy(error: StoreError) -> RecoveryStrategy:
    """Suggest a recovery action for a failed store call."""
    if error.type == ErrorType.NETWORK:
        return RecoveryStrategy(
            can_recover=True,
            action_label="Retry",
            message="Check your connection and try again.",
        )
    if error.type == ErrorType.AUTHENTICATION:
        return RecoveryStrategy(
            can_recover=True,
            action_label="Sign In",
            message="Please sign in to continue.",
        )
    if error.type == ErrorType.SERVER_ERROR:
        return RecoveryStrategy(
            can_recover=True,
            action_label="Retry",
            message="This might be a temporary issue.",
        )
    if error.type == ErrorType.RATE_LIMIT:
        return RecoveryStrategy(
            can_recover=True,
            message="Please wait a moment before trying again.",
        )
    return RecoveryStrategy(
        can_recover=False,
        message="Please refresh the page or contact support if the problem persists.",
    )


def log_store_error(error: StoreError, **context: Any) -> None:
    """Emit a structured log record for a failed store call."""
    logfire.error(
        "Store call failed: {message}",
        message=error.message,
        error_type=error.type.value,
        code=error.code,
        status_code=error.status_code,
        retryable=error.retryable,
        context={**error.context, **context},
    )
