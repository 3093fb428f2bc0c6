"""Delete comment use case."""

import logfire
from pydantic import BaseModel

from fines.application.usecase.base import BaseUseCase
from fines.application.usecase.comment.common import load_owned_comment
from fines.domain.model import Comment
from fines.domain.service import CommentStoreClient


class DeleteCommentRequest(BaseModel):
    """Delete comment request."""

    comment_id: str
    user_id: str  # Current user ID (must be author)


class DeleteCommentResponse(BaseModel):
    """Delete comment response."""

    comment: Comment


class DeleteCommentUseCase(BaseUseCase):
    """Use case for soft-deleting a comment.

    The row stays in the store flagged as deleted; the thread keeps it as a
    placeholder while it still has replies.
    """

    def __init__(self, store: CommentStoreClient) -> None:
        """Initialize delete comment use case.

        Args:
            store: Comment store client
        """
        self.store = store

    async def execute(self, request: DeleteCommentRequest) -> DeleteCommentResponse:
        """Execute delete comment flow.

        Raises:
            NotFoundError: If the comment does not exist
            NotAuthorizedError: If the user doesn't own the comment
            ContentDeletedException: If the comment is already deleted
            StoreError: If the store call fails
        """
        await load_owned_comment(self.store, request.comment_id, request.user_id)

        result = await self.store.soft_delete(request.comment_id)
        if result.error is not None:
            raise result.error

        logfire.info("Comment deleted", comment_id=request.comment_id)
        return DeleteCommentResponse(comment=result.data)
