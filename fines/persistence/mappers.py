"""Mappers for converting between database rows and domain models.

Domain models are immutable Pydantic models, so rows are mapped by hand
instead of through SQLAlchemy's ORM.
"""

from typing import Any, Dict, Optional

from fines.domain.model import UNKNOWN_AUTHOR, Author, Comment, CommentCreate
from fines.domain.value import CommentId, FineId, UserId


def row_to_author(row: Dict[str, Any]) -> Author:
    """Convert a users row to an Author.

    Args:
        row: Database row as dict (``user_id``, ``username``, ``name``)

    Returns:
        Author domain model
    """
    return Author(
        id=UserId(str(row["user_id"])),
        username=row["username"],
        display_name=row.get("name"),
    )


def row_to_comment(row: Dict[str, Any]) -> Comment:
    """Convert a comments row to a Comment.

    Rows selected with the author join carry ``author_username`` and
    ``author_name``; a missing user row maps to the unknown author.

    Args:
        row: Database row as dict

    Returns:
        Comment domain model
    """
    author: Optional[Author] = None
    if "author_username" in row:
        if row["author_username"] is None:
            author = UNKNOWN_AUTHOR
        else:
            author = Author(
                id=UserId(str(row["author_id"])),
                username=row["author_username"],
                display_name=row.get("author_name"),
            )

    parent_id = row.get("parent_comment_id")
    return Comment(
        id=CommentId(str(row["id"])),
        fine_id=FineId(str(row["fine_id"])),
        author_id=UserId(str(row["author_id"])),
        parent_comment_id=CommentId(str(parent_id)) if parent_id else None,
        content=row["content"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        is_deleted=row["is_deleted"],
        author=author,
    )


def comment_create_to_dict(data: CommentCreate) -> Dict[str, Any]:
    """Convert creation fields to an insert dict.

    Timestamps, id and ``is_deleted`` are left to column defaults.
    """
    return {
        "fine_id": data.fine_id,
        "author_id": data.author_id,
        "parent_comment_id": data.parent_comment_id or None,
        "content": data.content,
    }
