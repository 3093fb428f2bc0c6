"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from fines.config import CommentSettings, Settings
from fines.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Settings from the environment and ``.env``."""

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        return Settings()

    @provide(scope=Scope.APP)
    def provide_comment_settings(self, settings: Settings) -> CommentSettings:
        """Content limits for the write use cases."""
        return settings.comments
