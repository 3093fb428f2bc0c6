"""Optimistic comment state.

``OptimisticCommentManager`` owns the reply tree of one thread view. Local
mutations show up in the tree immediately, tagged with a correlation id;
the caller later confirms or rejects them once the store answers.

The manager is driven from a single event loop and every mutation replaces
the tree in one assignment, so readers never observe a half-applied change.
"""

import asyncio
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

import logfire

from fines.domain.error import OptimisticUpdateError
from fines.domain.model import (
    Author,
    Comment,
    CommentCreate,
    CommentNode,
    CommentPatch,
    PendingMutation,
    RealtimeCommentUpdate,
    RejectedMutation,
)
from fines.domain.model.common import utc_now
from fines.domain.value import CommentId, MutationKind

from .base import Service
from .hierarchy import (
    build_comment_tree,
    find_comment,
    flatten_comment_tree,
    replace_comment,
)
from .realtime import apply_realtime_update

DEFAULT_ERROR_GRACE_SECONDS = 3.0

ErrorCallback = Callable[[Exception, str], None]


@dataclass(frozen=True)
class PendingEntry:
    """Side-table record of an unconfirmed mutation.

    ``snapshot`` is the target as it was before the mutation (None for
    inserts, which roll back by removal).
    """

    kind: MutationKind
    target_id: CommentId
    snapshot: Comment | None = None


def _clear_state(nodes: Sequence[CommentNode]) -> list[CommentNode]:
    return [
        node.model_copy(
            update={"optimistic": None, "replies": _clear_state(node.replies)}
        )
        for node in nodes
    ]


def _now_millis() -> int:
    return int(time.time() * 1000)


class OptimisticCommentManager(Service):
    """Single-owner state container for a thread's reply tree."""

    def __init__(
        self,
        initial_comments: Sequence[CommentNode] = (),
        on_error: ErrorCallback | None = None,
        error_grace_seconds: float = DEFAULT_ERROR_GRACE_SECONDS,
    ) -> None:
        """Initialize the manager.

        Args:
            initial_comments: Tree to start from (optimistic tags are dropped)
            on_error: Called with the error and correlation id on rejection
            error_grace_seconds: How long a rejected node stays visible
        """
        self.on_error = on_error
        self.error_grace_seconds = error_grace_seconds
        self._comments: list[CommentNode] = _clear_state(initial_comments)
        self._pending: dict[str, PendingEntry] = {}
        self._rollbacks: dict[str, asyncio.TimerHandle] = {}
        self._closed = False

    @property
    def comments(self) -> list[CommentNode]:
        """Current tree."""
        return list(self._comments)

    @property
    def pending(self) -> Mapping[str, PendingEntry]:
        """Unconfirmed mutations by correlation id (read-only)."""
        return MappingProxyType(self._pending)

    @property
    def closed(self) -> bool:
        return self._closed

    def _is_closed(self, operation: str, optimistic_id: str | None = None) -> bool:
        if self._closed:
            logfire.debug(
                "Ignoring {operation} on closed comment view",
                operation=operation,
                optimistic_id=optimistic_id,
            )
        return self._closed

    def add_optimistic(
        self, data: CommentCreate, temp_id: CommentId, author: Author
    ) -> CommentId:
        """Insert a tentative comment under its parent (or as a root).

        Args:
            data: Comment fields as submitted
            temp_id: Client-generated id, also used as the correlation id
            author: Author shown until the store confirms

        Returns:
            The correlation id
        """
        if self._is_closed("add_optimistic", temp_id):
            return temp_id

        now = utc_now()
        comment = Comment(
            id=temp_id,
            fine_id=data.fine_id,
            author_id=data.author_id,
            parent_comment_id=data.parent_comment_id or None,
            content=data.content,
            created_at=now,
            updated_at=now,
            is_deleted=False,
            author=author,
            optimistic=PendingMutation(
                kind=MutationKind.INSERT, target_id=temp_id, optimistic_id=temp_id
            ),
        )
        self._pending[temp_id] = PendingEntry(kind=MutationKind.INSERT, target_id=temp_id)

        flat = flatten_comment_tree(self._comments)
        flat.append(comment)
        self._comments = build_comment_tree(flat)
        return temp_id

    def update_optimistic(
        self,
        comment_id: CommentId,
        patch: CommentPatch,
        optimistic_id: str | None = None,
    ) -> str:
        """Apply an edit to a comment anywhere in the tree.

        Returns:
            The correlation id (generated when not supplied)
        """
        optimistic_id = optimistic_id or f"update-{comment_id}-{_now_millis()}"
        if self._is_closed("update_optimistic", optimistic_id):
            return optimistic_id

        target = find_comment(self._comments, comment_id)
        if target is None:
            logfire.warn(
                "Optimistic update target not in tree", comment_id=str(comment_id)
            )
            return optimistic_id

        self._pending[optimistic_id] = PendingEntry(
            kind=MutationKind.UPDATE, target_id=comment_id, snapshot=target.to_comment()
        )
        state = PendingMutation(
            kind=MutationKind.UPDATE, target_id=comment_id, optimistic_id=optimistic_id
        )
        self._comments = replace_comment(
            self._comments,
            lambda node: node.id == comment_id,
            lambda node: node.model_copy(
                update={
                    **patch.model_dump(),
                    "updated_at": utc_now(),
                    "optimistic": state,
                }
            ),
        )
        return optimistic_id

    def delete_optimistic(
        self, comment_id: CommentId, optimistic_id: str | None = None
    ) -> str:
        """Delete a comment locally.

        A comment with replies becomes a tombstone (content cleared, replies
        kept); a leaf is removed from the tree, matching what the store's
        thread query will return after the soft delete.

        Returns:
            The correlation id (generated when not supplied)
        """
        optimistic_id = optimistic_id or f"delete-{comment_id}-{_now_millis()}"
        if self._is_closed("delete_optimistic", optimistic_id):
            return optimistic_id

        target = find_comment(self._comments, comment_id)
        if target is None:
            logfire.warn(
                "Optimistic delete target not in tree", comment_id=str(comment_id)
            )
            return optimistic_id

        self._pending[optimistic_id] = PendingEntry(
            kind=MutationKind.DELETE, target_id=comment_id, snapshot=target.to_comment()
        )
        state = PendingMutation(
            kind=MutationKind.DELETE, target_id=comment_id, optimistic_id=optimistic_id
        )

        def tombstone(node: CommentNode) -> CommentNode | None:
            if not node.replies:
                return None
            return node.model_copy(
                update={"is_deleted": True, "content": "", "optimistic": state}
            )

        self._comments = replace_comment(
            self._comments, lambda node: node.id == comment_id, tombstone
        )
        return optimistic_id

    def confirm(self, optimistic_id: str, actual: Comment | None = None) -> None:
        """Mark a mutation as accepted by the store.

        With ``actual``, the tagged node takes the stored fields (so a
        tentative id becomes the real one); without it the tag is simply
        cleared. If realtime already delivered ``actual``, the tentative node
        is dropped instead of duplicating it.

        Args:
            optimistic_id: Correlation id of the mutation
            actual: Comment as returned by the store
        """
        if self._is_closed("confirm", optimistic_id):
            return
        self._pending.pop(optimistic_id, None)
        self._cancel_rollback(optimistic_id)

        def is_tagged(node: CommentNode) -> bool:
            return node.optimistic_id == optimistic_id

        if actual is None:
            self._comments = replace_comment(
                self._comments,
                is_tagged,
                lambda node: node.model_copy(update={"optimistic": None}),
            )
            return

        existing = find_comment(self._comments, actual.id)
        if existing is not None and existing.optimistic_id != optimistic_id:
            logfire.debug(
                "Confirmed comment already delivered by realtime",
                comment_id=str(actual.id),
                optimistic_id=optimistic_id,
            )
            self._comments = replace_comment(
                self._comments, is_tagged, lambda node: None
            )
            return

        def take_actual(node: CommentNode) -> CommentNode:
            fields = {name: getattr(actual, name) for name in Comment.model_fields}
            fields["optimistic"] = None
            fields["author"] = actual.author or node.author
            if actual.is_deleted:
                fields["content"] = ""
            replies = [
                reply.model_copy(update={"parent_comment_id": actual.id})
                if reply.parent_comment_id == node.id
                else reply
                for reply in node.replies
            ]
            return node.model_copy(update={**fields, "replies": replies})

        # Stored timestamps can move the node among its siblings
        self._comments = build_comment_tree(
            flatten_comment_tree(
                replace_comment(self._comments, is_tagged, take_actual)
            )
        )

    def reject(self, optimistic_id: str, message: str) -> None:
        """Mark a mutation as refused by the store.

        The node keeps its optimistic tag with the error so it can be shown,
        ``on_error`` is notified, and the mutation is rolled back once the
        grace window has passed. Unknown correlation ids are ignored.

        Must be called from a running event loop.

        Args:
            optimistic_id: Correlation id of the mutation
            message: Failure message
        """
        if self._is_closed("reject", optimistic_id):
            return
        entry = self._pending.get(optimistic_id)
        if entry is None:
            logfire.warn("Rejecting unknown optimistic update", optimistic_id=optimistic_id)
            return

        state = RejectedMutation(
            kind=entry.kind,
            target_id=entry.target_id,
            optimistic_id=optimistic_id,
            message=message,
        )
        self._comments = replace_comment(
            self._comments,
            lambda node: node.optimistic_id == optimistic_id,
            lambda node: node.model_copy(update={"optimistic": state}),
        )
        logfire.warn(
            "Optimistic update rejected",
            optimistic_id=optimistic_id,
            kind=entry.kind.value,
            target_id=str(entry.target_id),
            error=message,
        )

        if self.on_error is not None:
            self.on_error(OptimisticUpdateError(message, optimistic_id), optimistic_id)

        self._cancel_rollback(optimistic_id)
        loop = asyncio.get_running_loop()
        self._rollbacks[optimistic_id] = loop.call_later(
            self.error_grace_seconds, self._rollback, optimistic_id
        )

    def _rollback(self, optimistic_id: str) -> None:
        self._rollbacks.pop(optimistic_id, None)
        entry = self._pending.pop(optimistic_id, None)
        if entry is None or self._closed:
            return

        def is_tagged(node: CommentNode) -> bool:
            return node.optimistic_id == optimistic_id

        if entry.kind == MutationKind.INSERT or entry.snapshot is None:
            self._comments = replace_comment(self._comments, is_tagged, lambda node: None)
        else:
            snapshot = entry.snapshot
            tagged = find_comment(self._comments, entry.target_id)
            if tagged is not None and tagged.optimistic_id == optimistic_id:
                self._comments = replace_comment(
                    self._comments,
                    is_tagged,
                    lambda node: CommentNode.from_comment(snapshot, node.replies),
                )
            elif tagged is None:
                # Removed leaf: put it back where it was
                flat = flatten_comment_tree(self._comments)
                flat.append(snapshot)
                self._comments = build_comment_tree(flat)

        logfire.info(
            "Optimistic update rolled back",
            optimistic_id=optimistic_id,
            kind=entry.kind.value,
            target_id=str(entry.target_id),
        )

    def _cancel_rollback(self, optimistic_id: str) -> None:
        handle = self._rollbacks.pop(optimistic_id, None)
        if handle is not None:
            handle.cancel()

    def _cancel_all_rollbacks(self) -> None:
        for handle in self._rollbacks.values():
            handle.cancel()
        self._rollbacks.clear()

    def set_comments(self, comments: Sequence[CommentNode]) -> None:
        """Replace the whole tree from an authoritative source.

        All local optimistic state is discarded.
        """
        if self._is_closed("set_comments"):
            return
        self._cancel_all_rollbacks()
        self._pending.clear()
        self._comments = _clear_state(comments)

    def clear_optimistic_updates(self) -> None:
        """Drop unconfirmed local inserts and clear every other tag."""
        if self._is_closed("clear_optimistic_updates"):
            return
        self._cancel_all_rollbacks()
        self._pending.clear()

        def clear(nodes: Sequence[CommentNode]) -> list[CommentNode]:
            return [
                node.model_copy(
                    update={"optimistic": None, "replies": clear(node.replies)}
                )
                for node in nodes
                if node.optimistic is None or node.optimistic.kind != MutationKind.INSERT
            ]

        self._comments = clear(self._comments)

    def apply_realtime(self, update: RealtimeCommentUpdate) -> None:
        """Fold a realtime change into the tree."""
        if self._is_closed("apply_realtime"):
            return
        self._comments = apply_realtime_update(self._comments, update)

    def close(self) -> None:
        """Tear down: cancel pending rollbacks and ignore later callbacks."""
        self._cancel_all_rollbacks()
        self._pending.clear()
        self._closed = True
