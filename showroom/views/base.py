"""Shared lifecycle for views backed by live collections."""

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from ..errors import StorageError, SubscriptionError
from ..realtime.subscriber import ChangeFeedSubscriber, SubscriptionHandle
from ..storage.database import Database

Records = List[Dict[str, Any]]


class CollectionView:
    """Base class for storefront and admin views.

    Lifecycle: ``mount()`` fetches every source once and subscribes to its
    collection; each change event triggers a full refetch of that collection;
    ``dispose()`` releases the subscriptions. Fetches that complete after
    dispose are discarded.

    ``on_render`` (plain or coroutine function taking the view) is called once
    after mount and again after every completed refetch.

    Subclasses implement :meth:`sources`.
    """

    def __init__(
        self,
        db: Database,
        subscriber: ChangeFeedSubscriber,
        on_render: Optional[Callable[["CollectionView"], Any]] = None,
    ):
        self.db = db
        self.subscriber = subscriber
        self.on_render = on_render

        self.mounted = False
        self.disposed = False
        self.stale = False
        self.notifications: List[str] = []

        self._pending = 0
        self._handles: List[SubscriptionHandle] = []

    def sources(self) -> List[Tuple[str, Callable[[], Any]]]:
        """(collection, refetch coroutine function) pairs this view follows."""
        raise NotImplementedError

    @property
    def loading(self) -> bool:
        return self._pending > 0

    async def mount(self):
        """Initial fetch, then one subscription per followed collection."""
        if self.disposed:
            raise RuntimeError(f"{type(self).__name__} already disposed")
        if self.mounted:
            return

        sources = self.sources()
        await asyncio.gather(*(refetch() for _, refetch in sources))
        for collection, refetch in sources:
            handle = self.subscriber.subscribe(collection, refetch, on_error=self._on_subscription_error)
            self._handles.append(handle)

        self.mounted = True
        logger.debug(f"Mounted {type(self).__name__} on {[c for c, _ in sources]}")
        await self.rendered()

    async def rendered(self):
        """Hand the current snapshot to ``on_render``.

        Skipped before mount completes, so mounting renders exactly once.
        """
        if self.on_render is None or not self.mounted or self.disposed:
            return
        result = self.on_render(self)
        if inspect.isawaitable(result):
            await result

    async def refresh(self):
        """Refetch every followed collection."""
        await asyncio.gather(*(refetch() for _, refetch in self.sources()))

    async def dispose(self):
        self.close()

    def close(self):
        """Release subscriptions; in-flight fetches are discarded on return."""
        if self.disposed:
            return
        self.disposed = True
        for handle in self._handles:
            self.subscriber.unsubscribe(handle)
        self._handles.clear()
        logger.debug(f"Disposed {type(self).__name__}")

    async def __aenter__(self):
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.dispose()

    def dismiss_notifications(self):
        self.notifications.clear()

    def notify(self, message: str):
        if not self.disposed:
            self.notifications.append(message)

    async def _fetch(self, collection: str, order_by: str = "created_at", direction: str = "desc") -> Optional[Records]:
        """Fetch a collection, returning None when the result must be ignored.

        Storage failures are recorded as notifications; the caller keeps its
        last snapshot.
        """
        if self.disposed:
            return None

        self._pending += 1
        try:
            # Suspend so the loading state is observable and teardown can intervene
            await asyncio.sleep(0)
            if self.disposed:
                return None
            records = self.db.list(collection, order_by, direction)
        except StorageError as e:
            logger.error(f"Error fetching {collection}: {e}")
            self.notify(f"Could not load {collection.replace('_', ' ')}: {e}")
            return None
        finally:
            self._pending -= 1

        if self.disposed:
            logger.debug(f"Discarding {collection} fetch for disposed {type(self).__name__}")
            return None

        self.stale = False
        return records

    def _on_subscription_error(self, error: SubscriptionError):
        logger.warning(f"{type(self).__name__} showing last snapshot: {error}")
        self.stale = True
