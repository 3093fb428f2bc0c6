"""PostgreSQL change feed using LISTEN/NOTIFY.

The ``comments`` table trigger (see the migrations) sends one JSON payload
per row change on the configured channel:

    {"type": "INSERT" | "UPDATE" | "DELETE", "new": {...} | null, "old": {...} | null}

Each subscription holds its own asyncpg connection. Notifications are
queued and handled one at a time so a fine's changes are applied in the
order they were committed.
"""

import asyncio
import contextlib
import json
from typing import Any, Awaitable, Callable, Optional

import asyncpg
import logfire
from pydantic import ValidationError as PydanticValidationError

from fines.domain.model import RowChange
from fines.domain.repository import (
    ChangeFeed,
    ChangeHandler,
    StatusHandler,
    Subscription,
)
from fines.domain.value import FineId, SubscriptionStatus

DEFAULT_CHANNEL = "comment_changes"

Connector = Callable[[], Awaitable[asyncpg.Connection]]


def parse_notification(payload: str) -> Optional[RowChange]:
    """Parse a trigger payload, returning None for malformed ones."""
    try:
        return RowChange.model_validate(json.loads(payload))
    except (ValueError, PydanticValidationError) as e:
        logfire.warn("Ignoring malformed change notification", error=str(e))
        return None


class PostgresSubscription(Subscription):
    """One LISTEN connection delivering a single fine's changes."""

    def __init__(
        self,
        fine_id: FineId,
        connection: asyncpg.Connection,
        on_change: ChangeHandler,
        on_status: StatusHandler,
    ) -> None:
        self.fine_id = fine_id
        self.connection = connection
        self.on_change = on_change
        self.on_status = on_status
        self.queue: asyncio.Queue[RowChange] = asyncio.Queue()
        self.worker: Optional[asyncio.Task[None]] = None
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active and not self.connection.is_closed()

    def on_notification(
        self, connection: Any, pid: int, channel: str, payload: str
    ) -> None:
        change = parse_notification(payload)
        if change is None or change.fine_id != str(self.fine_id):
            return
        self.queue.put_nowait(change)

    def on_termination(self, connection: Any) -> None:
        if not self._active:
            return
        self._active = False
        logfire.error("Change feed connection lost", fine_id=str(self.fine_id))
        self.on_status(
            SubscriptionStatus.CHANNEL_ERROR,
            ConnectionError("Change feed connection lost"),
        )

    async def run(self) -> None:
        while True:
            change = await self.queue.get()
            try:
                await self.on_change(change)
            except Exception as e:
                logfire.error(
                    "Change handler failed",
                    fine_id=str(self.fine_id),
                    change_type=change.type.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )


class PostgresChangeFeed(ChangeFeed):
    """ChangeFeed backed by PostgreSQL LISTEN/NOTIFY."""

    def __init__(self, connect: Connector, channel: str = DEFAULT_CHANNEL) -> None:
        """Initialize change feed.

        Args:
            connect: Opens a dedicated asyncpg connection
            channel: NOTIFY channel written by the comments trigger
        """
        self.connect = connect
        self.channel = channel

    async def subscribe(
        self,
        fine_id: FineId,
        on_change: ChangeHandler,
        on_status: StatusHandler,
    ) -> Subscription:
        """Open a LISTEN connection for one fine."""
        connection = await self.connect()
        subscription = PostgresSubscription(fine_id, connection, on_change, on_status)
        try:
            connection.add_termination_listener(subscription.on_termination)
            await connection.add_listener(self.channel, subscription.on_notification)
        except Exception:
            await connection.close()
            raise

        subscription.worker = asyncio.create_task(subscription.run())
        subscription._active = True
        logfire.info(
            "Listening for comment changes", fine_id=str(fine_id), channel=self.channel
        )
        on_status(SubscriptionStatus.SUBSCRIBED, None)
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        """Stop listening and close the connection."""
        if not isinstance(subscription, PostgresSubscription):
            return
        was_active = subscription.is_active
        subscription._active = False
        connection = subscription.connection
        if not connection.is_closed():
            connection.remove_termination_listener(subscription.on_termination)
            await connection.remove_listener(self.channel, subscription.on_notification)
            await connection.close()
        worker, subscription.worker = subscription.worker, None
        if worker is not None and worker is not asyncio.current_task():
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker
        if was_active:
            subscription.on_status(SubscriptionStatus.CLOSED, None)
