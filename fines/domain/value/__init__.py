"""Domain value objects for fines comments."""

from fines.domain.value.identifiers import (
    TEMP_ID_PREFIX,
    CommentId,
    FineId,
    UserId,
    is_temp_comment_id,
    new_temp_comment_id,
)
from fines.domain.value.types import (
    ChangeType,
    ErrorType,
    MutationKind,
    SubscriptionStatus,
)

__all__ = [
    # Identifiers
    "CommentId",
    "FineId",
    "UserId",
    "TEMP_ID_PREFIX",
    "is_temp_comment_id",
    "new_temp_comment_id",
    # Types
    "ChangeType",
    "ErrorType",
    "MutationKind",
    "SubscriptionStatus",
]
