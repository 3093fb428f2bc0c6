"""Comment entity.

Comments are threaded discussions attached to a fine. Replies point at
their parent through ``parent_comment_id``; the tree itself is never
persisted and is rebuilt from flat rows by the hierarchy builder.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, computed_field, field_validator

from fines.domain.model.author import Author
from fines.domain.model.common import DomainModel, ensure_aware
from fines.domain.model.optimistic import OptimisticState, RejectedMutation
from fines.domain.value import CommentId, FineId, UserId, is_temp_comment_id


class Comment(DomainModel):
    """Comment entity.

    Represents a root comment on a fine or a reply to another comment.

    A soft-deleted comment that still has replies stays in the thread as a
    placeholder (tombstone) so reply chains never dangle. Its content must
    be ignored by readers.

    ``optimistic`` is transient client state and is never sent to the store.
    """

    id: CommentId
    fine_id: FineId
    author_id: UserId
    parent_comment_id: Optional[CommentId] = None
    content: str = ""
    created_at: datetime
    updated_at: datetime
    is_deleted: bool = False
    author: Optional[Author] = None
    optimistic: Optional[OptimisticState] = Field(default=None, exclude=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Store timestamps as aware datetimes."""
        return ensure_aware(v)

    @property
    def is_root(self) -> bool:
        return self.parent_comment_id is None

    @property
    def is_edited(self) -> bool:
        """A comment whose timestamps differ has been edited."""
        return self.updated_at != self.created_at

    @property
    def is_temporary(self) -> bool:
        return is_temp_comment_id(self.id)

    @property
    def is_optimistic(self) -> bool:
        return self.optimistic is not None

    @property
    def optimistic_id(self) -> str | None:
        return self.optimistic.optimistic_id if self.optimistic else None

    @property
    def error(self) -> str | None:
        """Message of the last rejected mutation, if any."""
        if isinstance(self.optimistic, RejectedMutation):
            return self.optimistic.message
        return None

    def to_comment(self) -> "Comment":
        """Return the plain comment fields, dropping any tree data."""
        return Comment(**{name: getattr(self, name) for name in Comment.model_fields})


class CommentNode(Comment):
    """Comment materialized inside a thread tree.

    ``replies`` holds the direct children ordered by creation time.
    ``reply_count`` always equals the number of direct children; use
    ``count_total_replies`` for the transitive count.
    """

    replies: list["CommentNode"] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def reply_count(self) -> int:
        return len(self.replies)

    @classmethod
    def from_comment(
        cls, comment: Comment, replies: list["CommentNode"] | None = None
    ) -> "CommentNode":
        """Wrap a comment as a tree node."""
        fields = {name: getattr(comment, name) for name in Comment.model_fields}
        return cls(**fields, replies=list(replies or []))


class CommentThread(DomainModel):
    """A fine's comment tree plus the size of the flat set it was built from."""

    comments: list[CommentNode]
    total_count: int = Field(ge=0)


class CommentCreate(DomainModel):
    """Fields supplied by the caller when creating a comment."""

    content: str
    fine_id: FineId
    author_id: UserId
    parent_comment_id: Optional[CommentId] = None


class CommentPatch(DomainModel):
    """Editable comment fields."""

    content: str
