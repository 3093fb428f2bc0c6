"""In-memory change feed for testing.

Changes are pushed explicitly with ``publish`` (the in-memory comment
repository does this on every write, like the database trigger does).
``fail`` simulates a dropped channel.
"""

from typing import List, Optional

from fines.domain.model import RowChange
from fines.domain.repository import (
    ChangeFeed,
    ChangeHandler,
    StatusHandler,
    Subscription,
)
from fines.domain.value import FineId, SubscriptionStatus


class InMemorySubscription(Subscription):
    """Subscription held by the in-memory feed."""

    def __init__(
        self, fine_id: FineId, on_change: ChangeHandler, on_status: StatusHandler
    ) -> None:
        self.fine_id = fine_id
        self.on_change = on_change
        self.on_status = on_status
        self._active = True

    @property
    def is_active(self) -> bool:
        return self._active

    def deactivate(self) -> None:
        self._active = False


class InMemoryChangeFeed(ChangeFeed):
    """In-memory implementation of ChangeFeed for testing."""

    def __init__(self) -> None:
        self._subscriptions: List[InMemorySubscription] = []

    @property
    def subscriptions(self) -> List[InMemorySubscription]:
        """Currently active subscriptions."""
        return list(self._subscriptions)

    async def subscribe(
        self,
        fine_id: FineId,
        on_change: ChangeHandler,
        on_status: StatusHandler,
    ) -> Subscription:
        """Open a channel and report it as subscribed straight away."""
        subscription = InMemorySubscription(fine_id, on_change, on_status)
        self._subscriptions.append(subscription)
        on_status(SubscriptionStatus.SUBSCRIBED, None)
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        """Close a channel."""
        if not isinstance(subscription, InMemorySubscription):
            return
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
        if subscription.is_active:
            subscription.deactivate()
            subscription.on_status(SubscriptionStatus.CLOSED, None)

    async def publish(self, change: RowChange) -> int:
        """Deliver a change to every subscriber of its fine.

        Returns:
            Number of subscriptions the change was delivered to
        """
        delivered = 0
        for subscription in list(self._subscriptions):
            if subscription.is_active and str(subscription.fine_id) == change.fine_id:
                await subscription.on_change(change)
                delivered += 1
        return delivered

    def fail(
        self, fine_id: Optional[FineId] = None, error: Optional[Exception] = None
    ) -> None:
        """Drop channels (all, or one fine's) with a channel error."""
        for subscription in list(self._subscriptions):
            if fine_id is not None and subscription.fine_id != fine_id:
                continue
            self._subscriptions.remove(subscription)
            subscription.deactivate()
            subscription.on_status(SubscriptionStatus.CHANNEL_ERROR, error)
