"""Update comment use case."""

from pydantic import BaseModel

from fines.application.usecase.base import BaseUseCase
from fines.application.usecase.comment.common import load_owned_comment
from fines.config import CommentSettings
from fines.domain.error import ValidationError
from fines.domain.model import Comment, CommentPatch
from fines.domain.service import CommentStoreClient, validate_content


class UpdateCommentRequest(BaseModel):
    """Update comment request."""

    comment_id: str
    user_id: str  # Current user ID (must be author)
    content: str


class UpdateCommentResponse(BaseModel):
    """Update comment response."""

    comment: Comment


class UpdateCommentUseCase(BaseUseCase):
    """Use case for editing a comment's content."""

    def __init__(
        self, store: CommentStoreClient, comment_settings: CommentSettings
    ) -> None:
        """Initialize update comment use case.

        Args:
            store: Comment store client
            comment_settings: Comment limits
        """
        self.store = store
        self.comment_settings = comment_settings

    async def execute(self, request: UpdateCommentRequest) -> UpdateCommentResponse:
        """Execute update comment flow.

        Raises:
            ValidationError: If the new content is invalid
            NotFoundError: If the comment does not exist
            NotAuthorizedError: If the user doesn't own the comment
            ContentDeletedException: If the comment is deleted
            StoreError: If the store call fails
        """
        # 1. Validate content
        validation = validate_content(
            request.content, self.comment_settings.max_content_length
        )
        if not validation.is_valid:
            raise ValidationError(validation.errors)

        # 2. Check ownership and state
        await load_owned_comment(self.store, request.comment_id, request.user_id)

        # 3. Update
        result = await self.store.update(
            request.comment_id, CommentPatch(content=request.content.strip())
        )
        if result.error is not None:
            raise result.error
        return UpdateCommentResponse(comment=result.data)
