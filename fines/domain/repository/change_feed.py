"""Change feed interface."""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from fines.domain.model.realtime import RowChange
from fines.domain.value import FineId, SubscriptionStatus

ChangeHandler = Callable[[RowChange], Awaitable[None]]
StatusHandler = Callable[[SubscriptionStatus, Exception | None], None]


class Subscription(ABC):
    """Handle for one open realtime channel."""

    fine_id: FineId

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """Whether the channel is still delivering events."""
        pass


class ChangeFeed(ABC):
    """Push-based feed of row changes on the comments table.

    Implementations deliver only changes for the subscribed fine and report
    channel status transitions through ``on_status``.
    """

    @abstractmethod
    async def subscribe(
        self,
        fine_id: FineId,
        on_change: ChangeHandler,
        on_status: StatusHandler,
    ) -> Subscription:
        """Open a channel for one fine's comments."""
        pass

    @abstractmethod
    async def unsubscribe(self, subscription: Subscription) -> None:
        """Close a channel. Closing an inactive channel is a no-op."""
        pass
