"""SQLAlchemy table definitions for fines comments.

These match the schema defined in the Alembic migrations. ``fines`` and
``users`` belong to the host application; only the columns this package
reads are declared.
"""

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

metadata = MetaData()

# UUID columns come back as strings to match the domain identifier types
_uuid = UUID(as_uuid=False)
_gen_uuid = text("gen_random_uuid()")
_now = text("NOW()")

# ============================================================================
# FINES TABLE (host application)
# ============================================================================
fines_table = Table(
    "fines",
    metadata,
    Column("id", _uuid, primary_key=True, server_default=_gen_uuid),
)

# ============================================================================
# USERS TABLE (host application)
# ============================================================================
users_table = Table(
    "users",
    metadata,
    Column("user_id", _uuid, primary_key=True, server_default=_gen_uuid),
    Column("username", String(255), nullable=False),
    Column("name", String(255), nullable=True),  # Display name
)

# ============================================================================
# COMMENTS TABLE
# ============================================================================
comments_table = Table(
    "comments",
    metadata,
    Column("id", _uuid, primary_key=True, server_default=_gen_uuid),
    Column(
        "fine_id", _uuid, ForeignKey("fines.id", ondelete="CASCADE"), nullable=False
    ),
    Column(
        "author_id",
        _uuid,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "parent_comment_id",
        _uuid,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("content", Text, nullable=False),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default=_now
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=_now
    ),
    Column("is_deleted", Boolean, nullable=False, server_default=text("false")),
)

Index("idx_comments_fine_id", comments_table.c.fine_id)
Index("idx_comments_parent_id", comments_table.c.parent_comment_id)
Index("idx_comments_created_at", comments_table.c.created_at)
Index("idx_comments_author_id", comments_table.c.author_id)
