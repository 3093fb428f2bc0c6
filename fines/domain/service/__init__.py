"""Domain services."""

from .base import Service
from .comment_store import CommentStoreClient, StoreResult
from .error_handling import (
    RecoveryStrategy,
    get_recovery_strategy,
    log_store_error,
    parse_store_error,
)
from .hierarchy import (
    build_comment_tree,
    count_total_replies,
    find_comment,
    flatten_comment_tree,
    replace_comment,
    select_visible_comments,
)
from .optimistic import OptimisticCommentManager, PendingEntry
from .realtime import RealtimeReconciler, apply_realtime_update
from .validation import (
    CommentFormData,
    FieldError,
    ValidationResult,
    can_delete,
    can_edit,
    can_reply,
    pending_comment_error,
    validate_content,
    validate_form_data,
)

__all__ = [
    "CommentFormData",
    "CommentStoreClient",
    "FieldError",
    "OptimisticCommentManager",
    "PendingEntry",
    "RealtimeReconciler",
    "RecoveryStrategy",
    "Service",
    "StoreResult",
    "ValidationResult",
    "apply_realtime_update",
    "build_comment_tree",
    "can_delete",
    "can_edit",
    "can_reply",
    "count_total_replies",
    "find_comment",
    "flatten_comment_tree",
    "get_recovery_strategy",
    "log_store_error",
    "parse_store_error",
    "replace_comment",
    "pending_comment_error",
    "select_visible_comments",
    "validate_content",
    "validate_form_data",
]
