"""Comment thread session.

Binds one fine's comment view: loads the thread, keeps it live through the
realtime feed and runs local writes through the optimistic manager.

Every write follows the same steps:

1. Validate (failures raise before anything is shown or sent)
2. Apply the optimistic mutation
3. Call the store (through ``retry_store_call`` when a policy is set;
   creates always run once)
4. Confirm with the stored comment, or reject with the store's message
"""

from typing import Awaitable, Callable, Optional

import logfire

from fines.config import Settings
from fines.domain.error import (
    ContentDeletedException,
    NotAuthorizedError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from fines.domain.model import Author, Comment, CommentCreate, CommentNode, CommentPatch
from fines.domain.model.comment import CommentThread
from fines.domain.repository import ChangeFeed
from fines.domain.service import (
    CommentFormData,
    CommentStoreClient,
    OptimisticCommentManager,
    RealtimeReconciler,
    StoreResult,
    can_delete,
    can_edit,
    can_reply,
    count_total_replies,
    find_comment,
    pending_comment_error,
    validate_content,
    validate_form_data,
)
from fines.domain.service.optimistic import DEFAULT_ERROR_GRACE_SECONDS
from fines.domain.service.validation import MAX_CONTENT_LENGTH
from fines.domain.value import CommentId, FineId, UserId, new_temp_comment_id
from fines.util.retry import RetryPolicy, retry_store_call

ErrorCallback = Callable[[Exception], None]


class CommentThreadSession:
    """Live, optimistic view of one fine's comment thread."""

    def __init__(
        self,
        fine_id: FineId,
        store: CommentStoreClient,
        change_feed: Optional[ChangeFeed] = None,
        *,
        on_error: Optional[ErrorCallback] = None,
        error_grace_seconds: float = DEFAULT_ERROR_GRACE_SECONDS,
        max_content_length: int = MAX_CONTENT_LENGTH,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        """Initialize thread session.

        Args:
            fine_id: Fine whose thread this session shows
            store: Comment store client
            change_feed: Realtime feed; without one the view only changes
                through local writes and ``resync``
            on_error: Receives rejected writes and realtime failures
            error_grace_seconds: How long rejected changes stay visible
            max_content_length: Trimmed character limit for content
            retry_policy: Retry reads, edits and removals with this policy
        """
        self.fine_id = fine_id
        self.store = store
        self.on_error = on_error
        self.max_content_length = max_content_length
        self.retry_policy = retry_policy
        self.error: Optional[StoreError] = None
        self.manager = OptimisticCommentManager(
            on_error=lambda error, optimistic_id: self._report(error),
            error_grace_seconds=error_grace_seconds,
        )
        self.reconciler = (
            RealtimeReconciler(
                change_feed,
                store,
                on_change=self.manager.apply_realtime,
                on_error=self._report,
            )
            if change_feed is not None
            else None
        )

    @classmethod
    def from_settings(
        cls,
        fine_id: FineId,
        store: CommentStoreClient,
        change_feed: Optional[ChangeFeed],
        settings: Settings,
        on_error: Optional[ErrorCallback] = None,
    ) -> "CommentThreadSession":
        """Build a session configured from ``Settings``.

        The feed is ignored when ``realtime.enabled`` is off.
        """
        return cls(
            fine_id,
            store,
            change_feed if settings.realtime.enabled else None,
            on_error=on_error,
            error_grace_seconds=settings.comments.error_grace_seconds,
            max_content_length=settings.comments.max_content_length,
            retry_policy=settings.retry,
        )

    @property
    def comments(self) -> list[CommentNode]:
        """Current reply tree, including optimistic changes."""
        return self.manager.comments

    @property
    def total_count(self) -> int:
        """Number of comments in the tree, tombstones included."""
        return sum(1 + count_total_replies(node) for node in self.manager.comments)

    @property
    def is_live(self) -> bool:
        return self.reconciler is not None and self.reconciler.is_subscribed

    async def open(self) -> StoreResult[CommentThread]:
        """Load the thread and start listening for changes."""
        result = await self.resync()
        if self.reconciler is not None:
            await self.reconciler.subscribe(self.fine_id)
        return result

    async def resync(self) -> StoreResult[CommentThread]:
        """Reload the thread from the store, discarding local state.

        On failure the current tree is kept and ``error`` is set.
        """
        result = await self._call(lambda: self.store.fetch_thread(self.fine_id))
        if result.error is not None:
            self.error = result.error
            self._report(result.error)
        else:
            self.error = None
            self.manager.set_comments(result.data.comments)
        return result

    async def post(
        self,
        content: str,
        author: Author,
        parent_comment_id: Optional[CommentId] = None,
    ) -> StoreResult[Comment]:
        """Post a root comment or a reply.

        Args:
            content: Comment text
            author: Posting user, shown on the tentative comment
            parent_comment_id: Comment to reply to

        Returns:
            The store result (the tree already reflects it)

        Raises:
            ValidationError: If the content or parent is invalid
            ContentDeletedException: If the parent is deleted
        """
        validation = validate_form_data(
            CommentFormData(
                content=content,
                fine_id=self.fine_id,
                parent_comment_id=parent_comment_id,
            ),
            self.max_content_length,
        )
        if not validation.is_valid:
            raise ValidationError(validation.errors)

        if parent_comment_id is not None:
            parent = find_comment(self.manager.comments, parent_comment_id)
            if parent is not None:
                if parent.is_temporary:
                    raise ValidationError([pending_comment_error("parent_comment_id")])
                if not can_reply(parent):
                    raise ContentDeletedException("comment", parent_comment_id)

        data = CommentCreate(
            content=content.strip(),
            fine_id=self.fine_id,
            author_id=author.id,
            parent_comment_id=parent_comment_id,
        )
        temp_id = self.manager.add_optimistic(data, new_temp_comment_id(), author)

        result = await self._call(lambda: self.store.create(data), repeatable=False)
        self._settle(temp_id, result)
        return result

    async def edit(
        self, comment_id: CommentId, content: str, user_id: UserId
    ) -> StoreResult[Comment]:
        """Edit a comment's content.

        Raises:
            ValidationError: If the content is invalid or the comment is
                still being saved
            NotFoundError: If the comment is not in the thread
            NotAuthorizedError: If the user is not the author
            ContentDeletedException: If the comment is deleted
        """
        validation = validate_content(content, self.max_content_length)
        if not validation.is_valid:
            raise ValidationError(validation.errors)
        target = self._owned_comment(comment_id, user_id, can_edit)

        optimistic_id = self.manager.update_optimistic(
            target.id, CommentPatch(content=content.strip())
        )
        result = await self._call(
            lambda: self.store.update(target.id, CommentPatch(content=content.strip()))
        )
        self._settle(optimistic_id, result)
        return result

    async def remove(
        self, comment_id: CommentId, user_id: UserId
    ) -> StoreResult[Comment]:
        """Soft-delete a comment.

        Raises:
            ValidationError: If the comment is still being saved
            NotFoundError: If the comment is not in the thread
            NotAuthorizedError: If the user is not the author
            ContentDeletedException: If the comment is already deleted
        """
        target = self._owned_comment(comment_id, user_id, can_delete)

        optimistic_id = self.manager.delete_optimistic(target.id)
        result = await self._call(lambda: self.store.soft_delete(target.id))
        self._settle(optimistic_id, result)
        return result

    async def close(self) -> None:
        """Stop listening; later store answers are ignored."""
        self.manager.close()
        if self.reconciler is not None:
            await self.reconciler.unsubscribe()

    def _owned_comment(
        self,
        comment_id: CommentId,
        user_id: UserId,
        allowed: Callable[[Comment, UserId], bool],
    ) -> CommentNode:
        target = find_comment(self.manager.comments, comment_id)
        if target is None:
            raise NotFoundError("Comment", str(comment_id))
        if target.is_temporary:
            raise ValidationError([pending_comment_error("comment_id")])
        if not allowed(target, user_id):
            if target.author_id != user_id:
                raise NotAuthorizedError("comment", str(comment_id), str(user_id))
            raise ContentDeletedException("comment", str(comment_id))
        return target

    def _settle(self, optimistic_id: str, result: StoreResult[Comment]) -> None:
        if result.error is not None:
            self.manager.reject(optimistic_id, result.error.user_message)
        else:
            self.manager.confirm(optimistic_id, result.data)

    async def _call(
        self,
        operation: Callable[[], Awaitable[StoreResult]],
        repeatable: bool = True,
    ) -> StoreResult:
        if self.retry_policy is None or not repeatable:
            return await operation()
        return await retry_store_call(operation, self.retry_policy)

    def _report(self, error: Exception) -> None:
        logfire.warn(
            "Comment thread error",
            fine_id=str(self.fine_id),
            error=str(error),
            error_type=type(error).__name__,
        )
        if self.on_error is not None:
            self.on_error(error)
