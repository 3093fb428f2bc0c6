"""Realtime infrastructure providers."""

from dishka import Scope, provide

from fines.config import Settings
from fines.domain.repository import ChangeFeed
from fines.persistence.database import connect_listener
from fines.persistence.realtime import PostgresChangeFeed
from fines.util.di.base import ProviderBase
from fines.util.observability import instrument_asyncpg


class RealtimeProvider(ProviderBase):
    """Realtime component base."""

    __mock_component__ = "realtime"
    # LISTEN needs the same database the repositories write to
    __depends_on__ = {"persistence"}


class ProdRealtimeProvider(RealtimeProvider):
    """Production realtime provider using PostgreSQL LISTEN/NOTIFY."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_change_feed(self, settings: Settings) -> ChangeFeed:
        """Provide change feed; each subscription opens its own connection."""
        instrument_asyncpg()
        return PostgresChangeFeed(connect=lambda: connect_listener(settings))
