"""In-process change feed carrying committed mutations to subscribers."""

import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from loguru import logger

from ..errors import SubscriptionError

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed create/update/delete on one collection."""

    collection: str
    event: str  # INSERT, UPDATE, DELETE
    record_id: Optional[int]
    committed_at: datetime = field(default_factory=datetime.utcnow)


class Channel:
    """Transport-level registration of one listener on one collection."""

    _ids = itertools.count(1)

    def __init__(self, collection: str, listener: Callable[[ChangeEvent], None]):
        self.id = next(self._ids)
        self.collection = collection
        self.listener = listener
        self.open = True

    def __repr__(self):
        return f"<Channel(id={self.id}, collection='{self.collection}', open={self.open})>"


class ChangeFeed:
    """Broker between the persistence gateway and change subscribers.

    Channels only live as long as the transport is connected. A disconnect
    closes every channel and notifies disconnect listeners; events published
    while disconnected are dropped, so subscribers must refetch after they
    reconnect.
    """

    def __init__(self):
        self._channels: Dict[str, List[Channel]] = {}
        self._disconnect_listeners: List[Callable[[str], None]] = []
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    def open_channel(self, collection: str, listener: Callable[[ChangeEvent], None]) -> Channel:
        """Register a listener for events on a collection.

        Raises:
            SubscriptionError: If the transport is disconnected
        """
        if not self._connected:
            raise SubscriptionError("change feed is disconnected", collection=collection)

        channel = Channel(collection, listener)
        self._channels.setdefault(collection, []).append(channel)
        logger.debug(f"Opened {channel}")
        return channel

    def close_channel(self, channel: Channel):
        channel.open = False
        channels = self._channels.get(channel.collection, [])
        if channel in channels:
            channels.remove(channel)
            logger.debug(f"Closed {channel}")
        if not channels:
            self._channels.pop(channel.collection, None)

    def channel_count(self, collection: Optional[str] = None) -> int:
        if collection is not None:
            return len(self._channels.get(collection, []))
        return sum(len(channels) for channels in self._channels.values())

    def publish(self, event: ChangeEvent):
        """Deliver an event to every open channel of its collection."""
        if not self._connected:
            logger.debug(f"Feed disconnected, dropping {event.event} on {event.collection}")
            return

        for channel in list(self._channels.get(event.collection, [])):
            if not channel.open:
                continue
            try:
                channel.listener(event)
            except Exception as e:
                logger.error(f"Change listener on {channel} failed: {e}")

    def add_disconnect_listener(self, listener: Callable[[str], None]):
        self._disconnect_listeners.append(listener)

    def remove_disconnect_listener(self, listener: Callable[[str], None]):
        if listener in self._disconnect_listeners:
            self._disconnect_listeners.remove(listener)

    def disconnect(self, reason: str = "transport closed"):
        """Drop the transport, closing every channel."""
        if not self._connected:
            return

        logger.warning(f"Change feed disconnected: {reason}")
        self._connected = False
        for channels in self._channels.values():
            for channel in channels:
                channel.open = False
        self._channels.clear()

        for listener in list(self._disconnect_listeners):
            try:
                listener(reason)
            except Exception as e:
                logger.error(f"Disconnect listener failed: {e}")

    async def connect(self):
        """Re-establish the transport.

        Raises:
            SubscriptionError: If the transport cannot be established
        """
        if not self._connected:
            logger.info("Change feed connected")
        self._connected = True
