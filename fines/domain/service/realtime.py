"""Realtime reconciliation.

``RealtimeReconciler`` owns the change-feed subscription of one thread view,
joins raw row changes with author data and hands the result to
``on_change``. ``apply_realtime_update`` folds such an update into a reply
tree.
"""

from collections.abc import Callable, Sequence
from typing import Any

import logfire
from pydantic import ValidationError as PydanticValidationError

from fines.domain.model import (
    UNKNOWN_AUTHOR,
    Author,
    Comment,
    CommentNode,
    RealtimeCommentUpdate,
    RowChange,
)
from fines.domain.repository import ChangeFeed, Subscription
from fines.domain.value import ChangeType, FineId, SubscriptionStatus

from .base import Service
from .comment_store import CommentStoreClient
from .hierarchy import (
    build_comment_tree,
    find_comment,
    flatten_comment_tree,
    replace_comment,
)

SUBSCRIBE_FAILED_MESSAGE = "Failed to subscribe to real-time comments"

ChangeCallback = Callable[[RealtimeCommentUpdate], None]
ErrorCallback = Callable[[Exception], None]


def _stored_fields(node: CommentNode, incoming: Comment) -> dict[str, Any]:
    fields = {
        name: getattr(incoming, name)
        for name in Comment.model_fields
        if name != "optimistic"
    }
    fields["author"] = incoming.author or node.author
    return fields


def _splice(nodes: Sequence[CommentNode], incoming: Comment) -> list[CommentNode]:
    return replace_comment(
        nodes,
        lambda node: node.id == incoming.id,
        lambda node: node.model_copy(update=_stored_fields(node, incoming)),
    )


def _tombstone_or_remove(
    nodes: Sequence[CommentNode], incoming: Comment
) -> list[CommentNode]:
    def tombstone(node: CommentNode) -> CommentNode | None:
        if not node.replies:
            return None
        fields = _stored_fields(node, incoming)
        fields.update(is_deleted=True, content="")
        return node.model_copy(update=fields)

    return replace_comment(nodes, lambda node: node.id == incoming.id, tombstone)


def apply_realtime_update(
    comments: Sequence[CommentNode], update: RealtimeCommentUpdate
) -> list[CommentNode]:
    """Fold one realtime change into a reply tree.

    - INSERT appends the comment and rebuilds so it lands under its parent.
      An id that is already in the tree is treated as an UPDATE.
    - UPDATE replaces the stored fields and keeps replies and any local
      optimistic tag. An update that soft-deletes a leaf removes it.
    - DELETE turns a comment with replies into a tombstone and removes a
      leaf.

    Args:
        comments: Current tree (not modified)
        update: Joined change event

    Returns:
        The new tree
    """
    incoming = update.comment

    if update.type == ChangeType.INSERT:
        if find_comment(comments, incoming.id) is not None:
            return _splice(comments, incoming)
        flat = flatten_comment_tree(comments)
        flat.append(incoming.model_copy(update={"optimistic": None}))
        return build_comment_tree(flat)

    if update.type == ChangeType.UPDATE and not incoming.is_deleted:
        return _splice(comments, incoming)

    return _tombstone_or_remove(comments, incoming)


def _row_to_comment(row: dict[str, Any], author: Author, **overrides: Any) -> Comment:
    return Comment.model_validate({**row, **overrides, "author": author})


class RealtimeReconciler(Service):
    """Subscription owner for one fine's realtime comment changes."""

    def __init__(
        self,
        change_feed: ChangeFeed,
        store: CommentStoreClient,
        on_change: ChangeCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Initialize realtime reconciler.

        Args:
            change_feed: Source of raw row changes
            store: Store client used for author lookups
            on_change: Receives each joined update
            on_error: Receives subscription and handler failures
        """
        self.change_feed = change_feed
        self.store = store
        self.on_change = on_change
        self.on_error = on_error
        self._subscription: Subscription | None = None
        self._fine_id: FineId | None = None
        self._subscribed = False

    @property
    def fine_id(self) -> FineId | None:
        return self._fine_id

    @property
    def is_subscribed(self) -> bool:
        """True once the channel reported SUBSCRIBED and until it fails or closes."""
        return self._subscribed

    async def subscribe(self, fine_id: FineId) -> None:
        """Open the channel for ``fine_id``.

        An existing subscription for another fine is torn down first;
        subscribing again to the same fine is a no-op.
        """
        if self._subscription is not None:
            if self._fine_id == fine_id and self._subscription.is_active:
                return
            await self.unsubscribe()

        self._fine_id = fine_id
        with logfire.span("realtime.subscribe", fine_id=str(fine_id)):
            try:
                self._subscription = await self.change_feed.subscribe(
                    fine_id, self.handle_row_change, self._handle_status
                )
            except Exception as e:
                logfire.error(
                    "Realtime subscription failed",
                    fine_id=str(fine_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                self._report(e)

    async def switch_fine(self, fine_id: FineId) -> None:
        """Move the subscription to another fine."""
        await self.subscribe(fine_id)

    async def unsubscribe(self) -> None:
        """Close the current channel, if any."""
        subscription = self._subscription
        self._subscription = None
        self._subscribed = False
        if subscription is None:
            return
        await self.change_feed.unsubscribe(subscription)
        logfire.info("Realtime unsubscribed", fine_id=str(subscription.fine_id))

    def _handle_status(
        self, status: SubscriptionStatus, error: Exception | None
    ) -> None:
        if status == SubscriptionStatus.SUBSCRIBED:
            self._subscribed = True
            logfire.info("Realtime subscribed", fine_id=str(self._fine_id))
        elif status == SubscriptionStatus.CHANNEL_ERROR:
            self._subscribed = False
            logfire.error(
                "Realtime channel error",
                fine_id=str(self._fine_id),
                error=str(error) if error else None,
            )
            self._report(error or ConnectionError(SUBSCRIBE_FAILED_MESSAGE))
        else:
            self._subscribed = False

    def _report(self, error: Exception) -> None:
        if self.on_error is not None:
            self.on_error(error)

    async def handle_row_change(self, change: RowChange) -> None:
        """Join a raw change with author data and emit it.

        Changes for other fines are ignored. INSERT and UPDATE events whose
        author cannot be loaded are dropped; DELETE events fall back to the
        unknown author.
        """
        if self._fine_id is None or change.fine_id != str(self._fine_id):
            return

        try:
            update = await self._join(change)
        except Exception as e:
            logfire.error(
                "Error handling realtime comment change",
                fine_id=str(self._fine_id),
                change_type=change.type.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._report(e)
            return

        if update is None:
            return
        logfire.debug(
            "Realtime comment change",
            change_type=update.type.value,
            comment_id=str(update.comment.id),
        )
        if self.on_change is not None:
            self.on_change(update)

    async def _join(self, change: RowChange) -> RealtimeCommentUpdate | None:
        if change.type == ChangeType.DELETE:
            if not change.old:
                return None
            author = await self._author_or_unknown(change.old)
            return RealtimeCommentUpdate(
                type=ChangeType.DELETE,
                comment=_row_to_comment(change.old, author, is_deleted=True),
            )

        if not change.new:
            return None
        result = await self.store.get_author(change.new["author_id"])
        if result.error is not None or result.data is None:
            logfire.error(
                "Dropping realtime change: author lookup failed",
                comment_id=str(change.new.get("id")),
                author_id=str(change.new.get("author_id")),
                error=result.error.message if result.error else None,
            )
            return None

        row = change.new
        if "content" not in row:
            # Oversized notifications arrive without content
            stored = await self.store.get_comment(row["id"])
            if stored.error is not None or stored.data is None:
                logfire.error(
                    "Dropping realtime change: comment reload failed",
                    comment_id=str(row.get("id")),
                    error=stored.error.message if stored.error else None,
                )
                return None
            row = {**row, "content": stored.data.content}

        old_comment = None
        if change.type == ChangeType.UPDATE and change.old:
            old_comment = self._parse_old(change.old, result.data)

        return RealtimeCommentUpdate(
            type=change.type,
            comment=_row_to_comment(row, result.data),
            old_comment=old_comment,
        )

    async def _author_or_unknown(self, row: dict[str, Any]) -> Author:
        author_id = row.get("author_id")
        if not author_id:
            return UNKNOWN_AUTHOR
        result = await self.store.get_author(author_id)
        return result.data or UNKNOWN_AUTHOR

    @staticmethod
    def _parse_old(row: dict[str, Any], author: Author) -> Comment | None:
        # Old rows may be partial, depending on the table's replica identity
        try:
            return _row_to_comment(row, author)
        except PydanticValidationError:
            return None
