# quick_notes/Sync/status.py
# Description: Sync status notification channel consumed by the UI layer.
#
# Imports
import asyncio
from enum import Enum
from typing import Callable, List
#
# 3rd-Party Imports
from loguru import logger
#
# Local Imports
#
########################################################################################################################
#
# Functions:

class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"
    NOT_CONFIGURED = "not-configured"


StatusListener = Callable[[SyncStatus], None]


class StatusSubscription:
    """
    A bounded, coalescing queue of status tokens for one consumer.

    When the queue is full the oldest token is dropped, so a slow consumer always
    ends up seeing the most recent status but may miss intermediate ones.
    """

    def __init__(self, channel: "SyncStatusChannel", maxsize: int = 8):
        self._channel = channel
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, maxsize))

    def _offer(self, status: SyncStatus) -> None:
        while True:
            try:
                self._queue.put_nowait(status)
                return
            except asyncio.QueueFull:
                try:
                    self._queue.get_nowait()
                except asyncio.QueueEmpty:
                    pass

    async def get(self) -> SyncStatus:
        return await self._queue.get()

    def drain(self) -> List[SyncStatus]:
        """Returns every pending token without waiting."""
        pending = []
        while True:
            try:
                pending.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return pending

    def close(self) -> None:
        self._channel.unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> SyncStatus:
        return await self.get()


class SyncStatusChannel:
    """
    Fan-out of sync status tokens.

    Delivery is at-least-once for the latest status and possibly coalesced. Publishing
    never blocks and never raises: failing listeners are logged and skipped.
    """

    def __init__(self, initial: SyncStatus = SyncStatus.IDLE):
        self._latest = initial
        self._subscriptions: List[StatusSubscription] = []
        self._listeners: List[StatusListener] = []

    @property
    def latest(self) -> SyncStatus:
        return self._latest

    def subscribe(self, maxsize: int = 8) -> StatusSubscription:
        subscription = StatusSubscription(self, maxsize=maxsize)
        subscription._offer(self._latest)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: StatusSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def add_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Registers a fire-and-forget callback. Returns a function that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return _remove

    def publish(self, status: SyncStatus) -> None:
        self._latest = status
        for subscription in list(self._subscriptions):
            subscription._offer(status)
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                logger.warning(f"Sync status listener {listener!r} failed on '{status.value}': {e}")

#
# End of status.py
########################################################################################################################
