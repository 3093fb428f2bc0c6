"""PostgreSQL implementation of Comment repository."""

from typing import List, Optional

from sqlalchemy import Select, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fines.domain.error import NotFoundError
from fines.domain.model import Comment, CommentCreate
from fines.domain.repository import CommentRepository
from fines.domain.service.hierarchy import select_visible_comments
from fines.domain.value import CommentId, FineId
from fines.persistence.mappers import comment_create_to_dict, row_to_comment
from fines.persistence.tables import comments_table, users_table


def _select_with_author() -> Select:
    """Comments joined with their author's username and display name."""
    return select(
        comments_table,
        users_table.c.username.label("author_username"),
        users_table.c.name.label("author_name"),
    ).select_from(
        comments_table.outerjoin(
            users_table, users_table.c.user_id == comments_table.c.author_id
        )
    )


class PostgresCommentRepository(CommentRepository):
    """PostgreSQL implementation of CommentRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment by ID, with author data."""
        stmt = _select_with_author().where(comments_table.c.id == comment_id)
        result = await self.session.execute(stmt)
        row = result.fetchone()
        return row_to_comment(row._asdict()) if row else None

    async def find_thread(self, fine_id: FineId) -> List[Comment]:
        """Find the visible comments of a fine in creation order."""
        stmt = (
            _select_with_author()
            .where(comments_table.c.fine_id == fine_id)
            .order_by(comments_table.c.created_at, comments_table.c.id)
        )
        result = await self.session.execute(stmt)
        comments = [row_to_comment(row._asdict()) for row in result.fetchall()]
        # Deleted leaves are dropped, tombstones holding replies are kept
        return select_visible_comments(comments)

    async def create(self, data: CommentCreate) -> Comment:
        """Insert a comment and return it with author data."""
        stmt = (
            insert(comments_table)
            .values(**comment_create_to_dict(data))
            .returning(comments_table.c.id)
        )
        result = await self.session.execute(stmt)
        comment_id = CommentId(str(result.scalar_one()))
        await self.session.flush()
        return await self._get(comment_id)

    async def update_content(self, comment_id: CommentId, content: str) -> Comment:
        """Replace a comment's content."""
        stmt = (
            update(comments_table)
            .where(comments_table.c.id == comment_id)
            .values(content=content, updated_at=func.now())
            .returning(comments_table.c.id)
        )
        await self._execute_update(stmt, comment_id)
        return await self._get(comment_id)

    async def soft_delete(self, comment_id: CommentId) -> Comment:
        """Mark a comment deleted."""
        stmt = (
            update(comments_table)
            .where(comments_table.c.id == comment_id)
            .values(is_deleted=True, updated_at=func.now())
            .returning(comments_table.c.id)
        )
        await self._execute_update(stmt, comment_id)
        return await self._get(comment_id)

    async def _execute_update(self, stmt, comment_id: CommentId) -> None:
        result = await self.session.execute(stmt)
        if result.fetchone() is None:
            raise NotFoundError("Comment", str(comment_id))
        await self.session.flush()

    async def _get(self, comment_id: CommentId) -> Comment:
        comment = await self.find_by_id(comment_id)
        if comment is None:
            raise NotFoundError("Comment", str(comment_id))
        return comment
