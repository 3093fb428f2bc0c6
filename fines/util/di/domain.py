"""Domain layer DI providers."""

from dishka import Scope, provide

from fines.domain.repository import CommentRepository, UserRepository
from fines.domain.service import CommentStoreClient
from fines.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    Each HTTP request gets fresh service instances with their own transaction.
    """

    scope = Scope.REQUEST

    @provide
    def get_comment_store_client(
        self, comment_repository: CommentRepository, user_repository: UserRepository
    ) -> CommentStoreClient:
        """Provide comment store client."""
        return CommentStoreClient(
            comment_repository=comment_repository, user_repository=user_repository
        )
