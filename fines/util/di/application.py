"""Application layer DI providers."""

from dishka import Scope, provide

from fines.application.usecase.comment import (
    CreateCommentUseCase,
    DeleteCommentUseCase,
    GetCommentThreadUseCase,
    UpdateCommentUseCase,
)
from fines.config import CommentSettings
from fines.domain.service import CommentStoreClient
from fines.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    @provide(scope=Scope.REQUEST)
    def get_get_comment_thread_use_case(
        self, store: CommentStoreClient
    ) -> GetCommentThreadUseCase:
        """Provide get comment thread use case."""
        return GetCommentThreadUseCase(store=store)

    @provide(scope=Scope.REQUEST)
    def get_create_comment_use_case(
        self, store: CommentStoreClient, comment_settings: CommentSettings
    ) -> CreateCommentUseCase:
        """Provide create comment use case."""
        return CreateCommentUseCase(store=store, comment_settings=comment_settings)

    @provide(scope=Scope.REQUEST)
    def get_update_comment_use_case(
        self, store: CommentStoreClient, comment_settings: CommentSettings
    ) -> UpdateCommentUseCase:
        """Provide update comment use case."""
        return UpdateCommentUseCase(store=store, comment_settings=comment_settings)

    @provide(scope=Scope.REQUEST)
    def get_delete_comment_use_case(
        self, store: CommentStoreClient
    ) -> DeleteCommentUseCase:
        """Provide delete comment use case."""
        return DeleteCommentUseCase(store=store)
