"""Strongly typed identifiers for fines comment entities.

The managed store hands out opaque string ids, so every identifier wraps
``str``. Tentative ids created on the client before the store confirms a
write carry the ``temp-`` prefix.
"""

from typing import NewType
from uuid import uuid4

CommentId = NewType("CommentId", str)
FineId = NewType("FineId", str)
UserId = NewType("UserId", str)

TEMP_ID_PREFIX = "temp-"


def new_temp_comment_id() -> CommentId:
    """Generate a tentative client-side comment id."""
    return CommentId(f"{TEMP_ID_PREFIX}{uuid4()}")


def is_temp_comment_id(comment_id: str) -> bool:
    """Return True if the id was generated on the client."""
    return comment_id.startswith(TEMP_ID_PREFIX)
