"""Domain layer errors."""

from typing import Any

from fines.domain.value import ErrorType


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error.

    Carries the individual field errors so callers can render them next to
    the offending inputs.
    """

    def __init__(self, errors: list[Any]):
        self.errors = errors
        messages = "; ".join(getattr(e, "message", str(e)) for e in errors)
        super().__init__(messages or "Validation failed")


class NotAuthorizedError(DomainError):
    """Raised when a user attempts to change content they don't own."""

    def __init__(self, resource: str, resource_id: str, user_id: str):
        super().__init__(
            f"User {user_id} is not authorized to modify {resource} {resource_id}"
        )


class ContentDeletedException(DomainError):
    """Raised when attempting to modify deleted content."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"Cannot modify deleted {resource} {resource_id}")


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class OptimisticUpdateError(DomainError):
    """Raised to observers when the store rejects an optimistic mutation."""

    def __init__(self, message: str, optimistic_id: str):
        self.optimistic_id = optimistic_id
        super().__init__(message)


_RETRYABLE_TYPES = frozenset({ErrorType.NETWORK, ErrorType.SERVER_ERROR})

_USER_MESSAGES: dict[ErrorType, str] = {
    ErrorType.NETWORK: (
        "Unable to connect. Please check your internet connection and try again."
    ),
    ErrorType.VALIDATION: "Please check your input and try again.",
    ErrorType.AUTHENTICATION: "You need to be logged in to perform this action.",
    ErrorType.AUTHORIZATION: "You don't have permission to perform this action.",
    ErrorType.NOT_FOUND: "The requested item could not be found.",
    ErrorType.RATE_LIMIT: "Too many requests. Please wait a moment and try again.",
    ErrorType.SERVER_ERROR: (
        "Something went wrong on our end. Please try again in a moment."
    ),
}


def is_retryable_error(error_type: ErrorType) -> bool:
    """Only transient transport and server failures are worth retrying."""
    return error_type in _RETRYABLE_TYPES


def get_user_friendly_message(error_type: ErrorType, original_message: str) -> str:
    """Map an error type to the message shown to end users."""
    if error_type in _USER_MESSAGES:
        return _USER_MESSAGES[error_type]
    return original_message or "An unexpected error occurred."


class StoreError(DomainError):
    """Failed call against the comment store.

    Attributes:
        type: Error classification
        code: Machine code reported by the store (SQLSTATE etc.), if any
        status_code: HTTP status, if the failure came from an HTTP layer
        retryable: Whether repeating the call may succeed
        user_message: Message safe to show to end users
        context: Extra diagnostic data
    """

    def __init__(
        self,
        message: str,
        type: ErrorType = ErrorType.UNKNOWN,
        *,
        code: str | None = None,
        status_code: int | None = None,
        retryable: bool | None = None,
        user_message: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.type = type
        self.code = code
        self.status_code = status_code
        self.retryable = (
            retryable if retryable is not None else is_retryable_error(type)
        )
        self.user_message = user_message or get_user_friendly_message(type, message)
        self.context = context or {}

    def __repr__(self) -> str:
        return (
            f"StoreError(type={self.type.value!r}, message={self.message!r}, "
            f"code={self.code!r}, status_code={self.status_code!r})"
        )
