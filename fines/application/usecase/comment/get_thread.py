"""Get comment thread use case."""

from pydantic import BaseModel

from fines.application.usecase.base import BaseUseCase
from fines.domain.model import CommentNode
from fines.domain.service import CommentStoreClient
from fines.domain.value import FineId


class GetCommentThreadRequest(BaseModel):
    """Get comment thread request."""

    fine_id: str


class GetCommentThreadResponse(BaseModel):
    """Get comment thread response."""

    comments: list[CommentNode]
    total_count: int


class GetCommentThreadUseCase(BaseUseCase):
    """Use case for loading a fine's comments as a reply tree."""

    def __init__(self, store: CommentStoreClient) -> None:
        """Initialize get comment thread use case.

        Args:
            store: Comment store client
        """
        self.store = store

    async def execute(
        self, request: GetCommentThreadRequest
    ) -> GetCommentThreadResponse:
        """Execute get comment thread flow.

        Raises:
            StoreError: If the thread could not be loaded
        """
        result = await self.store.fetch_thread(FineId(request.fine_id))
        if result.error is not None:
            raise result.error
        thread = result.data
        return GetCommentThreadResponse(
            comments=thread.comments, total_count=thread.total_count
        )
