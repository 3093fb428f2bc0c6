"""Mapping of domain errors to HTTP responses."""

from fastapi import HTTPException, status

from fines.domain.error import (
    ContentDeletedException,
    DomainError,
    NotAuthorizedError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from fines.domain.value import ErrorType

_STORE_ERROR_STATUS: dict[ErrorType, int] = {
    ErrorType.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorType.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorType.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorType.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.RATE_LIMIT: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorType.NETWORK: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorType.SERVER_ERROR: status.HTTP_502_BAD_GATEWAY,
}


def to_http_exception(error: DomainError) -> HTTPException:
    """Translate a domain error into the HTTPException a route raises."""
    if isinstance(error, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[
                {"field": e.field, "code": e.code, "message": e.message}
                for e in error.errors
            ],
        )
    if isinstance(error, NotAuthorizedError):
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to modify this comment",
        )
    if isinstance(error, (ContentDeletedException, NotFoundError)):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(error),
        )
    if isinstance(error, StoreError):
        return HTTPException(
            status_code=_STORE_ERROR_STATUS.get(
                error.type, status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
            detail=error.user_message,
        )
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=str(error),
    )
