"""Domain model entities for fines comments."""

from fines.domain.model.author import UNKNOWN_AUTHOR, Author
from fines.domain.model.comment import (
    Comment,
    CommentCreate,
    CommentNode,
    CommentPatch,
    CommentThread,
)
from fines.domain.model.optimistic import (
    OptimisticState,
    PendingMutation,
    RejectedMutation,
)
from fines.domain.model.realtime import RealtimeCommentUpdate, RowChange

__all__ = [
    "Author",
    "UNKNOWN_AUTHOR",
    "Comment",
    "CommentCreate",
    "CommentNode",
    "CommentPatch",
    "CommentThread",
    "OptimisticState",
    "PendingMutation",
    "RejectedMutation",
    "RealtimeCommentUpdate",
    "RowChange",
]
