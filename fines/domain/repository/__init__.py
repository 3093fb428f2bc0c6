"""Repository interfaces for the fines comments domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from fines.domain.repository.change_feed import (
    ChangeFeed,
    ChangeHandler,
    StatusHandler,
    Subscription,
)
from fines.domain.repository.comment import CommentRepository
from fines.domain.repository.user import UserRepository

__all__ = [
    "ChangeFeed",
    "ChangeHandler",
    "CommentRepository",
    "StatusHandler",
    "Subscription",
    "UserRepository",
]
