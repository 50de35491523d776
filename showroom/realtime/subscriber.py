"""Change-feed subscriber keeping view snapshots consistent with the store.

Every view registers a refetch callback per collection. Handles on the same
collection share one reference-counted feed channel, which is closed when the
last handle is released.
"""

import asyncio
import inspect
import itertools
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional, Set

from loguru import logger

from ..errors import SubscriptionError
from ..utils.retry import Backoff
from .feed import Channel, ChangeEvent, ChangeFeed

OnChange = Callable[[], Any]
OnError = Callable[[SubscriptionError], Any]


class SubscriptionHandle:
    """Registration of one refetch callback on one collection."""

    _ids = itertools.count(1)

    def __init__(
        self,
        collection: str,
        on_change: OnChange,
        on_error: Optional[OnError] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.id = next(self._ids)
        self.collection = collection
        self.on_change = on_change
        self.on_error = on_error
        self.loop = loop
        self.active = True
        self.pending: Set = set()

    def __repr__(self):
        return f"<SubscriptionHandle(id={self.id}, collection='{self.collection}', active={self.active})>"


class _SharedChannel:
    def __init__(self, collection: str):
        self.collection = collection
        self.handles: List[SubscriptionHandle] = []
        self.channel: Optional[Channel] = None

    @property
    def open(self) -> bool:
        return self.channel is not None and self.channel.open


class ChangeFeedSubscriber:
    """Subscribes refetch callbacks to collection change events.

    Delivery is at-least-once. When the transport drops, the subscriber
    reconnects with exponential backoff and then fires every handle once so
    that changes missed while disconnected are picked up by a refetch. If
    reconnection fails, a SubscriptionError is logged and handed to each
    handle's ``on_error``; callers keep their last snapshot.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        max_retries: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 10.0,
    ):
        self.feed = feed
        self.backoff = Backoff(max_retries, base_delay, max_delay)

        self._channels: Dict[str, _SharedChannel] = {}
        self._tasks: Set[asyncio.Future] = set()
        self._reconnect_task: Optional[asyncio.Task] = None

        self.feed.add_disconnect_listener(self._on_disconnect)

    @classmethod
    def from_config(cls, feed: ChangeFeed, config) -> "ChangeFeedSubscriber":
        return cls(
            feed,
            max_retries=config.max_retries,
            base_delay=config.base_delay,
            max_delay=config.max_delay,
        )

    @property
    def healthy(self) -> bool:
        """True when the feed is up and every shared channel is open."""
        return self.feed.connected and all(shared.open for shared in self._channels.values())

    def handle_count(self, collection: str) -> int:
        shared = self._channels.get(collection)
        return len(shared.handles) if shared else 0

    def subscribe(
        self,
        collection: str,
        on_change: OnChange,
        on_error: Optional[OnError] = None,
    ) -> SubscriptionHandle:
        """Invoke ``on_change`` after every committed change to ``collection``.

        Prefer :meth:`subscription`, which guarantees release.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        handle = SubscriptionHandle(collection, on_change, on_error, loop)

        shared = self._channels.get(collection)
        if shared is None:
            shared = _SharedChannel(collection)
            self._channels[collection] = shared
            self._open(shared)

        shared.handles.append(handle)
        logger.debug(f"Subscribed {handle} ({len(shared.handles)} on channel)")

        if not shared.open:
            self._schedule_reconnect()

        return handle

    def unsubscribe(self, handle: SubscriptionHandle):
        """Stop callbacks for a handle and cancel its pending refetches.

        Releasing twice is a no-op.
        """
        if not handle.active:
            return
        handle.active = False
        for future in list(handle.pending):
            _cancel(future)
        handle.pending.clear()

        shared = self._channels.get(handle.collection)
        if shared is None:
            return
        if handle in shared.handles:
            shared.handles.remove(handle)
        logger.debug(f"Unsubscribed {handle} ({len(shared.handles)} left on channel)")

        if not shared.handles:
            if shared.channel is not None:
                self.feed.close_channel(shared.channel)
            del self._channels[handle.collection]

    @asynccontextmanager
    async def subscription(
        self,
        collection: str,
        on_change: OnChange,
        on_error: Optional[OnError] = None,
    ):
        """Scoped subscription released on exit, even on error."""
        handle = self.subscribe(collection, on_change, on_error)
        try:
            yield handle
        finally:
            self.unsubscribe(handle)

    def close(self):
        """Release every handle and detach from the feed."""
        for shared in list(self._channels.values()):
            for handle in list(shared.handles):
                self.unsubscribe(handle)
        self.feed.remove_disconnect_listener(self._on_disconnect)
        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()

    async def reconnect(self) -> bool:
        """Re-establish the feed and reopen every shared channel.

        Returns:
            True when all channels are open again
        """
        try:
            await self.backoff.run(self._connect_once, label="Change feed reconnect")
        except Exception as e:
            error = e if isinstance(e, SubscriptionError) else SubscriptionError(
                f"could not re-establish change feed: {e}"
            )
            logger.error(f"Change feed reconnect failed: {error}")
            self._report_error(error)
            return False

        logger.info(f"Change feed re-established for {len(self._channels)} collections")
        for shared in list(self._channels.values()):
            for handle in list(shared.handles):
                self._invoke(handle)
        return True

    async def _connect_once(self):
        if not self.feed.connected:
            await self.feed.connect()
        for shared in self._channels.values():
            if not shared.open:
                self._open(shared)
        if not self.healthy:
            raise SubscriptionError("change feed channels still closed")

    def _open(self, shared: _SharedChannel):
        try:
            shared.channel = self.feed.open_channel(
                shared.collection, lambda event, shared=shared: self._dispatch(shared, event)
            )
        except SubscriptionError as e:
            shared.channel = None
            logger.warning(f"Could not open channel for {shared.collection}: {e}")

    def _dispatch(self, shared: _SharedChannel, event: ChangeEvent):
        logger.debug(f"{event.event} on {event.collection} (id={event.record_id})")
        for handle in list(shared.handles):
            if handle.active:
                self._invoke(handle)

    def _invoke(self, handle: SubscriptionHandle):
        try:
            result = handle.on_change()
        except Exception as e:
            logger.error(f"on_change for {handle} failed: {e}")
            return
        if inspect.isawaitable(result):
            self._schedule(handle, result)

    def _schedule(self, handle: SubscriptionHandle, awaitable):
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        owner = handle.loop
        if owner is not None and owner.is_closed():
            owner = None

        if running is not None and (owner is None or owner is running):
            future = asyncio.ensure_future(awaitable)
        elif owner is not None:
            future = asyncio.run_coroutine_threadsafe(_await(awaitable), owner)
        else:
            logger.warning(f"No event loop to run refetch for {handle}")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        self._tasks.add(future)
        handle.pending.add(future)
        future.add_done_callback(handle.pending.discard)
        future.add_done_callback(self._task_done)

    def _task_done(self, future):
        self._tasks.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Refetch callback failed: {error}")

    def _report_error(self, error: SubscriptionError):
        for shared in list(self._channels.values()):
            for handle in list(shared.handles):
                if handle.active and handle.on_error is not None:
                    try:
                        handle.on_error(error)
                    except Exception as e:
                        logger.error(f"on_error for {handle} failed: {e}")

    def _on_disconnect(self, reason: str):
        for shared in self._channels.values():
            shared.channel = None
        self._schedule_reconnect()

    def _schedule_reconnect(self):
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; reconnect deferred to supervisor")
            return
        self._reconnect_task = loop.create_task(self.reconnect())


async def _await(awaitable):
    return await awaitable


def _cancel(future):
    if isinstance(future, asyncio.Future):
        loop = future.get_loop()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is not loop and not loop.is_closed():
            loop.call_soon_threadsafe(future.cancel)
            return
    future.cancel()
