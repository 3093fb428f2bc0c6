"""Comment store client.

Thin typed boundary over the comment and user repositories. Nothing raised
by a repository crosses this boundary: every operation returns a
``StoreResult`` whose ``error`` is a classified ``StoreError``. Retries are
the caller's choice (see ``fines.util.retry``).
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

import logfire

from fines.domain.error import NotFoundError, StoreError
from fines.domain.model import Author, Comment, CommentCreate, CommentPatch
from fines.domain.model.comment import CommentThread
from fines.domain.repository import CommentRepository, UserRepository
from fines.domain.value import CommentId, FineId, UserId

from .base import Service
from .error_handling import log_store_error, parse_store_error
from .hierarchy import build_comment_tree

T = TypeVar("T")


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Outcome of a store call: either ``data`` or ``error`` is set."""

    data: T | None = None
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CommentStoreClient(Service):
    """Store operations for one fine's comment thread."""

    def __init__(
        self,
        comment_repository: CommentRepository,
        user_repository: UserRepository,
    ) -> None:
        """Initialize comment store client.

        Args:
            comment_repository: Comment repository
            user_repository: User repository used for author lookups
        """
        self.comment_repository = comment_repository
        self.user_repository = user_repository

    async def _call(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        **attributes: Any,
    ) -> StoreResult[T]:
        with logfire.span("comment_store.{operation}", operation=operation, **attributes):
            try:
                data = await call()
            except Exception as e:
                error = parse_store_error(e)
                log_store_error(error, operation=operation, **attributes)
                return StoreResult(error=error)
            return StoreResult(data=data)

    async def fetch_thread(self, fine_id: FineId) -> StoreResult[CommentThread]:
        """Load a fine's thread as a reply tree.

        The store returns live comments plus tombstones that still hold
        replies; the flat set is built into a tree here with tombstone
        content cleared. ``total_count`` is the size of the flat set.

        Args:
            fine_id: Fine ID

        Returns:
            Result with the thread
        """

        async def load() -> CommentThread:
            rows = [
                c.model_copy(update={"content": ""}) if c.is_deleted else c
                for c in await self.comment_repository.find_thread(fine_id)
            ]
            thread = CommentThread(
                comments=build_comment_tree(rows), total_count=len(rows)
            )
            logfire.info(
                "Comment thread loaded",
                fine_id=str(fine_id),
                total_count=thread.total_count,
                root_count=len(thread.comments),
            )
            return thread

        return await self._call("fetch_thread", load, fine_id=str(fine_id))

    async def create(self, data: CommentCreate) -> StoreResult[Comment]:
        """Insert a comment; the store assigns id and timestamps.

        Args:
            data: Comment fields

        Returns:
            Result with the stored comment
        """

        async def insert() -> Comment:
            comment = await self.comment_repository.create(data)
            logfire.info(
                "Comment created",
                comment_id=str(comment.id),
                fine_id=str(comment.fine_id),
                parent_comment_id=comment.parent_comment_id,
            )
            return comment

        return await self._call(
            "create",
            insert,
            fine_id=str(data.fine_id),
            parent_comment_id=data.parent_comment_id,
        )

    async def update(
        self, comment_id: CommentId, patch: CommentPatch
    ) -> StoreResult[Comment]:
        """Replace a comment's content.

        Args:
            comment_id: Comment ID
            patch: New content

        Returns:
            Result with the updated comment
        """
        return await self._call(
            "update",
            lambda: self.comment_repository.update_content(comment_id, patch.content),
            comment_id=str(comment_id),
            content_length=len(patch.content),
        )

    async def soft_delete(self, comment_id: CommentId) -> StoreResult[Comment]:
        """Mark a comment deleted.

        Args:
            comment_id: Comment ID

        Returns:
            Result with the tombstoned comment
        """
        return await self._call(
            "soft_delete",
            lambda: self.comment_repository.soft_delete(comment_id),
            comment_id=str(comment_id),
        )

    async def get_comment(self, comment_id: CommentId) -> StoreResult[Comment]:
        """Load a single comment by id."""

        async def load() -> Comment:
            comment = await self.comment_repository.find_by_id(comment_id)
            if comment is None:
                raise NotFoundError("Comment", str(comment_id))
            return comment

        return await self._call("get_comment", load, comment_id=str(comment_id))

    async def get_author(self, user_id: UserId) -> StoreResult[Author]:
        """Look up author data for a user."""

        async def load() -> Author:
            author = await self.user_repository.find_author(user_id)
            if author is None:
                raise NotFoundError("User", str(user_id))
            return author

        return await self._call("get_author", load, user_id=str(user_id))
