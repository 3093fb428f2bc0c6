"""Comment routes.

Callers are identified by the ``X-User-Id`` header set by the upstream
gateway after it authenticated the request.
"""

from typing import Optional

import logfire
from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Header, HTTPException, status
from pydantic import BaseModel

from fines.application.usecase.comment import (
    CreateCommentRequest,
    CreateCommentResponse,
    CreateCommentUseCase,
    DeleteCommentRequest,
    DeleteCommentResponse,
    DeleteCommentUseCase,
    GetCommentThreadRequest,
    GetCommentThreadResponse,
    GetCommentThreadUseCase,
    UpdateCommentRequest,
    UpdateCommentResponse,
    UpdateCommentUseCase,
)
from fines.domain.error import DomainError, StoreError
from fines.interface.error import to_http_exception

router = APIRouter(tags=["comments"], route_class=DishkaRoute)


def require_user(user_id: Optional[str]) -> str:
    """Return the caller's user ID or reject the request."""
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user_id


def _fail(error: DomainError, action: str) -> HTTPException:
    if isinstance(error, StoreError):
        logfire.error(
            "Store error while trying to {action}", action=action, error=repr(error)
        )
    else:
        logfire.warn("Failed to {action}", action=action, error=str(error))
    return to_http_exception(error)


class CreateCommentAPIRequest(BaseModel):
    """API request for creating a comment."""

    content: str
    parent_comment_id: Optional[str] = None  # Parent comment ID for replies


class UpdateCommentAPIRequest(BaseModel):
    """API request for editing a comment."""

    content: str


@router.get("/fines/{fine_id}/comments", response_model=GetCommentThreadResponse)
async def get_comments(
    fine_id: str,
    get_thread_use_case: FromDishka[GetCommentThreadUseCase],
) -> GetCommentThreadResponse:
    """Get a fine's comments as a reply tree.

    Deleted comments that still have replies are included with empty
    content; ``total_count`` counts every comment in the tree.
    """
    try:
        return await get_thread_use_case.execute(
            GetCommentThreadRequest(fine_id=fine_id)
        )
    except DomainError as e:
        raise _fail(e, "load comments")


@router.post(
    "/fines/{fine_id}/comments",
    response_model=CreateCommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    fine_id: str,
    request: CreateCommentAPIRequest,
    create_comment_use_case: FromDishka[CreateCommentUseCase],
    x_user_id: Optional[str] = Header(default=None),
) -> CreateCommentResponse:
    """Post a comment on a fine or reply to another comment.

    Raises:
        HTTPException: 401 without a user, 422 on invalid content, 404 if
            the parent is missing or deleted
    """
    user_id = require_user(x_user_id)
    try:
        return await create_comment_use_case.execute(
            CreateCommentRequest(
                fine_id=fine_id,
                author_id=user_id,
                content=request.content,
                parent_comment_id=request.parent_comment_id,
            )
        )
    except DomainError as e:
        raise _fail(e, "create comment")


@router.patch("/comments/{comment_id}", response_model=UpdateCommentResponse)
async def update_comment(
    comment_id: str,
    request: UpdateCommentAPIRequest,
    update_comment_use_case: FromDishka[UpdateCommentUseCase],
    x_user_id: Optional[str] = Header(default=None),
) -> UpdateCommentResponse:
    """Edit a comment. Only its author may edit, and only while it is live."""
    user_id = require_user(x_user_id)
    try:
        return await update_comment_use_case.execute(
            UpdateCommentRequest(
                comment_id=comment_id, user_id=user_id, content=request.content
            )
        )
    except DomainError as e:
        raise _fail(e, "update comment")


@router.delete("/comments/{comment_id}", response_model=DeleteCommentResponse)
async def delete_comment(
    comment_id: str,
    delete_comment_use_case: FromDishka[DeleteCommentUseCase],
    x_user_id: Optional[str] = Header(default=None),
) -> DeleteCommentResponse:
    """Soft-delete a comment. Only its author may delete it."""
    user_id = require_user(x_user_id)
    try:
        return await delete_comment_use_case.execute(
            DeleteCommentRequest(comment_id=comment_id, user_id=user_id)
        )
    except DomainError as e:
        raise _fail(e, "delete comment")
