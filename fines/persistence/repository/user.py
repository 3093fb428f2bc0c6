"""PostgreSQL implementation of User repository."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fines.domain.model import Author
from fines.domain.repository import UserRepository
from fines.domain.value import UserId
from fines.persistence.mappers import row_to_author
from fines.persistence.tables import users_table


class PostgresUserRepository(UserRepository):
    """PostgreSQL implementation of UserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_author(self, user_id: UserId) -> Optional[Author]:
        """Find author data for a user."""
        stmt = select(
            users_table.c.user_id, users_table.c.username, users_table.c.name
        ).where(users_table.c.user_id == user_id)
        result = await self.session.execute(stmt)
        row = result.fetchone()
        return row_to_author(row._asdict()) if row else None
