"""In-memory user repository for testing."""

from typing import Optional

from fines.domain.model import Author
from fines.domain.repository import UserRepository
from fines.domain.value import UserId


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of UserRepository for testing."""

    def __init__(self) -> None:
        self._authors: dict[UserId, Author] = {}

    async def find_author(self, user_id: UserId) -> Optional[Author]:
        """Find author data for a user."""
        return self._authors.get(user_id)

    def add(self, author: Author) -> Author:
        """Register a user."""
        self._authors[author.id] = author
        return author
