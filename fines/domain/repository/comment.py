"""Comment repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from fines.domain.model.comment import Comment, CommentCreate
from fines.domain.value import CommentId, FineId


class CommentRepository(ABC):
    """Repository for Comment entity.

    Defines the contract for comment persistence operations.
    Implementations live in the persistence layer and raise on failure;
    translating failures into ``StoreError`` is the store client's job.
    """

    @abstractmethod
    async def find_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment by ID.

        Args:
            comment_id: The comment's unique identifier

        Returns:
            The comment if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_thread(self, fine_id: FineId) -> List[Comment]:
        """Find the visible comments of a fine, with author data.

        Returns every non-deleted comment plus every deleted comment that
        still has a non-deleted descendant, ordered by creation time.

        Args:
            fine_id: The fine whose thread to load

        Returns:
            Flat list of comments
        """
        pass

    @abstractmethod
    async def create(self, data: CommentCreate) -> Comment:
        """Insert a new comment.

        The store assigns the id and sets ``created_at == updated_at``.

        Args:
            data: Comment fields supplied by the caller

        Returns:
            The stored comment
        """
        pass

    @abstractmethod
    async def update_content(self, comment_id: CommentId, content: str) -> Comment:
        """Replace a comment's content and refresh ``updated_at``.

        Raises:
            NotFoundError: If no comment has this id
        """
        pass

    @abstractmethod
    async def soft_delete(self, comment_id: CommentId) -> Comment:
        """Mark a comment deleted and refresh ``updated_at``.

        Content is left in place; readers ignore it once ``is_deleted`` is set.

        Raises:
            NotFoundError: If no comment has this id
        """
        pass
