"""In-memory comment repository for testing."""

from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import uuid4

from fines.domain.error import NotFoundError
from fines.domain.model import (
    UNKNOWN_AUTHOR,
    Comment,
    CommentCreate,
    RowChange,
)
from fines.domain.model.common import utc_now
from fines.domain.repository import CommentRepository
from fines.domain.service.hierarchy import select_visible_comments
from fines.domain.value import ChangeType, CommentId, FineId
from fines.persistence.realtime.inmemory import InMemoryChangeFeed
from fines.persistence.repository.inmemory.user import InMemoryUserRepository

FOREIGN_KEY_VIOLATION = "23503"


class InMemoryIntegrityError(Exception):
    """Constraint violation carrying a PostgreSQL SQLSTATE."""

    def __init__(self, message: str, sqlstate: str):
        super().__init__(message)
        self.sqlstate = sqlstate


class InMemoryCommentRepository(CommentRepository):
    """In-memory implementation of CommentRepository for testing.

    Authors are joined from ``user_repository`` when one is given. With a
    ``change_feed``, every write publishes a row change the way the
    database trigger does.
    """

    def __init__(
        self,
        user_repository: Optional[InMemoryUserRepository] = None,
        change_feed: Optional[InMemoryChangeFeed] = None,
    ) -> None:
        self.user_repository = user_repository
        self.change_feed = change_feed
        self._comments: dict[CommentId, Comment] = {}
        self._last_timestamp: Optional[datetime] = None

    def _now(self) -> datetime:
        # Strictly increasing so creation order is never ambiguous
        now = utc_now()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    async def _with_author(self, comment: Comment) -> Comment:
        if self.user_repository is None:
            return comment
        author = await self.user_repository.find_author(comment.author_id)
        return comment.model_copy(update={"author": author or UNKNOWN_AUTHOR})

    @staticmethod
    def _row(comment: Comment) -> dict[str, Any]:
        return comment.model_dump(mode="json", exclude={"author"})

    async def _publish(
        self, type: ChangeType, new: Optional[Comment], old: Optional[Comment]
    ) -> None:
        if self.change_feed is None:
            return
        await self.change_feed.publish(
            RowChange(
                type=type,
                new=self._row(new) if new else None,
                old=self._row(old) if old else None,
            )
        )

    async def find_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment by ID."""
        comment = self._comments.get(comment_id)
        return await self._with_author(comment) if comment else None

    async def find_thread(self, fine_id: FineId) -> list[Comment]:
        """Find the visible comments of a fine in creation order."""
        comments = [c for c in self._comments.values() if c.fine_id == fine_id]
        comments.sort(key=lambda c: (c.created_at, c.id))
        visible = select_visible_comments(comments)
        return [await self._with_author(c) for c in visible]

    async def create(self, data: CommentCreate) -> Comment:
        """Insert a comment."""
        parent_id = data.parent_comment_id or None
        if parent_id is not None and parent_id not in self._comments:
            raise InMemoryIntegrityError(
                f"parent comment {parent_id} does not exist", FOREIGN_KEY_VIOLATION
            )

        now = self._now()
        comment = Comment(
            id=CommentId(str(uuid4())),
            fine_id=data.fine_id,
            author_id=data.author_id,
            parent_comment_id=parent_id,
            content=data.content,
            created_at=now,
            updated_at=now,
        )
        self._comments[comment.id] = comment
        await self._publish(ChangeType.INSERT, comment, None)
        return await self._with_author(comment)

    async def update_content(self, comment_id: CommentId, content: str) -> Comment:
        """Replace a comment's content."""
        return await self._update(comment_id, content=content)

    async def soft_delete(self, comment_id: CommentId) -> Comment:
        """Mark a comment deleted."""
        return await self._update(comment_id, is_deleted=True)

    async def _update(self, comment_id: CommentId, **changes: Any) -> Comment:
        old = self._comments.get(comment_id)
        if old is None:
            raise NotFoundError("Comment", str(comment_id))
        comment = old.model_copy(update={**changes, "updated_at": self._now()})
        self._comments[comment_id] = comment
        await self._publish(ChangeType.UPDATE, comment, old)
        return await self._with_author(comment)

    def add(self, comment: Comment) -> Comment:
        """Seed a comment as-is, without publishing a change."""
        self._comments[comment.id] = comment.model_copy(update={"author": None})
        return comment
