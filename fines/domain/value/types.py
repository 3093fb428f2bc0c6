"""Domain value objects for fines comments.

Value objects are immutable and defined by their values, not identity.
"""

from enum import Enum


class MutationKind(str, Enum):
    """Kind of local mutation awaiting store confirmation."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ChangeType(str, Enum):
    """Row-level change reported by the realtime feed."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class SubscriptionStatus(str, Enum):
    """Lifecycle status of a realtime channel."""

    SUBSCRIBED = "SUBSCRIBED"
    CHANNEL_ERROR = "CHANNEL_ERROR"
    CLOSED = "CLOSED"


class ErrorType(str, Enum):
    """Classification of failed store calls."""

    NETWORK = "network"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"
