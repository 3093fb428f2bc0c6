"""Test configuration and helpers."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from fines.domain.model import Author, Comment, CommentNode
from fines.domain.value import CommentId, FineId, UserId

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

FINE_ID = FineId("11111111-1111-4111-8111-111111111111")
ALICE = Author(
    id=UserId("a11ce000-0000-4000-8000-000000000001"),
    username="alice",
    display_name="Alice",
)
BOB = Author(
    id=UserId("b0b00000-0000-4000-8000-000000000002"),
    username="bob",
    display_name="Bob",
)


def at(minutes: float) -> datetime:
    """Timestamp ``minutes`` after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


def make_comment(
    id: Optional[str] = None,
    parent: Optional[str] = None,
    minute: float = 0,
    author: Author = ALICE,
    content: str = "comment",
    is_deleted: bool = False,
    fine_id: str = FINE_ID,
    edited_minute: Optional[float] = None,
) -> Comment:
    """Build a stored comment for tests.

    Args:
        id: Comment ID (random when omitted)
        parent: Parent comment ID
        minute: Creation time offset from BASE_TIME
        author: Author (also sets author_id)
        content: Comment text
        is_deleted: Soft-deleted flag
        fine_id: Fine the comment belongs to
        edited_minute: Update time offset (defaults to creation time)
    """
    created_at = at(minute)
    return Comment(
        id=CommentId(id or str(uuid4())),
        fine_id=FineId(fine_id),
        author_id=author.id,
        parent_comment_id=CommentId(parent) if parent else None,
        content=content,
        created_at=created_at,
        updated_at=at(edited_minute) if edited_minute is not None else created_at,
        is_deleted=is_deleted,
        author=author,
    )


def ids(nodes: list[CommentNode]) -> list[str]:
    """IDs of a list of nodes, in order."""
    return [node.id for node in nodes]
