"""initial_schema

Create the schema for fines comments:
- Fines and users (minimal columns; owned by the host application)
- Comments (threaded through parent_comment_id, soft-deleted via is_deleted)
- comment_changes NOTIFY trigger feeding the realtime change feed

Revision ID: 3f6c2a9d41b7
Revises:
Create Date: 2026-10-19 10:12:44.318207

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f6c2a9d41b7"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # gen_random_uuid()
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ========================================================================
    # FINES / USERS (host application tables, created only if missing)
    # ========================================================================
    op.execute("""
        CREATE TABLE IF NOT EXISTS fines (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            user_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            username VARCHAR(255) NOT NULL,
            name VARCHAR(255)
        )
    """)

    # ========================================================================
    # COMMENTS table
    # ========================================================================
    op.create_table(
        "comments",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("fine_id", sa.UUID(), nullable=False),
        sa.Column("author_id", sa.UUID(), nullable=False),
        sa.Column("parent_comment_id", sa.UUID(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "is_deleted",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.ForeignKeyConstraint(["fine_id"], ["fines.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["parent_comment_id"], ["comments.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("idx_comments_fine_id", "comments", ["fine_id"])
    op.create_index("idx_comments_parent_id", "comments", ["parent_comment_id"])
    op.create_index("idx_comments_created_at", "comments", ["created_at"])
    op.create_index("idx_comments_author_id", "comments", ["author_id"])

    # ========================================================================
    # TRIGGERS
    # ========================================================================

    # Publish every row change on the comment_changes channel.
    # NOTIFY payloads are limited to 8000 bytes: old rows are sent without
    # content, and new content is dropped when the payload would not fit
    # (listeners reload the row).
    op.execute("""
        CREATE OR REPLACE FUNCTION notify_comment_change()
        RETURNS TRIGGER AS $$
        DECLARE
            new_row JSONB;
            old_row JSONB;
            payload TEXT;
        BEGIN
            IF TG_OP <> 'DELETE' THEN
                new_row = to_jsonb(NEW);
            END IF;
            IF TG_OP <> 'INSERT' THEN
                old_row = to_jsonb(OLD) - 'content';
            END IF;

            payload = jsonb_build_object(
                'type', TG_OP, 'new', new_row, 'old', old_row
            )::text;
            IF octet_length(payload) > 7900 THEN
                payload = jsonb_build_object(
                    'type', TG_OP, 'new', new_row - 'content', 'old', old_row
                )::text;
            END IF;

            PERFORM pg_notify('comment_changes', payload);
            RETURN NULL;
        END;
        $$ LANGUAGE plpgsql
    """)

    op.execute("""
        CREATE TRIGGER comments_notify_change
        AFTER INSERT OR UPDATE OR DELETE ON comments
        FOR EACH ROW EXECUTE FUNCTION notify_comment_change()
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP TRIGGER IF EXISTS comments_notify_change ON comments")
    op.execute("DROP FUNCTION IF EXISTS notify_comment_change()")
    op.drop_index("idx_comments_author_id", table_name="comments")
    op.drop_index("idx_comments_created_at", table_name="comments")
    op.drop_index("idx_comments_parent_id", table_name="comments")
    op.drop_index("idx_comments_fine_id", table_name="comments")
    op.drop_table("comments")
