"""Realtime change events."""

from typing import Any, Optional

from fines.domain.model.comment import Comment
from fines.domain.model.common import DomainModel
from fines.domain.value import ChangeType


class RowChange(DomainModel):
    """Raw row change as delivered by a change feed.

    Rows are plain column dicts; the feed never joins author data.
    """

    type: ChangeType
    new: Optional[dict[str, Any]] = None
    old: Optional[dict[str, Any]] = None

    @property
    def fine_id(self) -> str | None:
        record = self.new or self.old or {}
        value = record.get("fine_id")
        return str(value) if value is not None else None


class RealtimeCommentUpdate(DomainModel):
    """Change event joined with author data, ready to fold into a tree."""

    type: ChangeType
    comment: Comment
    old_comment: Optional[Comment] = None
