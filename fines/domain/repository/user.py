"""User repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from fines.domain.model.author import Author
from fines.domain.value import UserId


class UserRepository(ABC):
    """Read-only access to the external user store."""

    @abstractmethod
    async def find_author(self, user_id: UserId) -> Optional[Author]:
        """Find author data for a user.

        Args:
            user_id: The user's unique identifier

        Returns:
            The author if found, None otherwise
        """
        pass
