"""Shared steps of the comment use cases."""

from fines.domain.error import (
    ContentDeletedException,
    NotAuthorizedError,
    NotFoundError,
)
from fines.domain.model import Comment
from fines.domain.service import CommentStoreClient
from fines.domain.value import CommentId, ErrorType


async def load_owned_comment(
    store: CommentStoreClient, comment_id: str, user_id: str
) -> Comment:
    """Load a comment the user is about to change.

    Raises:
        NotFoundError: If the comment does not exist
        NotAuthorizedError: If the user is not the author
        ContentDeletedException: If the comment is deleted
        StoreError: If the store call fails
    """
    result = await store.get_comment(CommentId(comment_id))
    if result.error is not None:
        if result.error.type == ErrorType.NOT_FOUND:
            raise NotFoundError("Comment", comment_id)
        raise result.error

    comment = result.data
    if comment.author_id != user_id:
        raise NotAuthorizedError("comment", comment_id, user_id)
    if comment.is_deleted:
        raise ContentDeletedException("comment", comment_id)
    return comment
