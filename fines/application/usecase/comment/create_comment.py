"""Create comment use case."""

from typing import Optional

import logfire
from pydantic import BaseModel

from fines.application.usecase.base import BaseUseCase
from fines.config import CommentSettings
from fines.domain.error import (
    ContentDeletedException,
    NotFoundError,
    ValidationError,
)
from fines.domain.model import Comment, CommentCreate
from fines.domain.service import (
    CommentFormData,
    CommentStoreClient,
    can_reply,
    validate_form_data,
)
from fines.domain.value import CommentId, ErrorType, FineId, UserId


class CreateCommentRequest(BaseModel):
    """Create comment request."""

    fine_id: str
    author_id: str
    content: str
    parent_comment_id: Optional[str] = None  # Set for replies


class CreateCommentResponse(BaseModel):
    """Create comment response."""

    comment: Comment


class CreateCommentUseCase(BaseUseCase):
    """Use case for posting a root comment or a reply."""

    def __init__(
        self, store: CommentStoreClient, comment_settings: CommentSettings
    ) -> None:
        """Initialize create comment use case.

        Args:
            store: Comment store client
            comment_settings: Comment limits
        """
        self.store = store
        self.comment_settings = comment_settings

    async def execute(self, request: CreateCommentRequest) -> CreateCommentResponse:
        """Execute create comment flow.

        Args:
            request: Comment fields

        Returns:
            The stored comment

        Raises:
            ValidationError: If the form is invalid
            NotFoundError: If the parent comment is not in this fine's thread
            ContentDeletedException: If the parent comment is deleted
            StoreError: If the store call fails
        """
        # 1. Validate form
        validation = validate_form_data(
            CommentFormData(
                content=request.content,
                fine_id=request.fine_id,
                parent_comment_id=request.parent_comment_id,
            ),
            max_length=self.comment_settings.max_content_length,
        )
        if not validation.is_valid:
            raise ValidationError(validation.errors)

        # 2. Check parent belongs to the same fine and accepts replies
        parent_id = request.parent_comment_id
        if parent_id is not None:
            parent_result = await self.store.get_comment(CommentId(parent_id))
            if parent_result.error is not None:
                if parent_result.error.type == ErrorType.NOT_FOUND:
                    raise NotFoundError("Comment", parent_id)
                raise parent_result.error
            parent = parent_result.data
            if parent.fine_id != request.fine_id:
                raise NotFoundError("Comment", parent_id)
            if not can_reply(parent):
                raise ContentDeletedException("comment", parent_id)

        # 3. Insert
        result = await self.store.create(
            CommentCreate(
                content=request.content.strip(),
                fine_id=FineId(request.fine_id),
                author_id=UserId(request.author_id),
                parent_comment_id=CommentId(parent_id) if parent_id else None,
            )
        )
        if result.error is not None:
            raise result.error

        logfire.info(
            "Comment posted",
            comment_id=str(result.data.id),
            fine_id=request.fine_id,
            is_reply=parent_id is not None,
        )
        return CreateCommentResponse(comment=result.data)
