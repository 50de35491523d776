"""Live change notifications"""

from .feed import ChangeEvent, ChangeFeed
from .subscriber import ChangeFeedSubscriber, SubscriptionHandle
from .supervisor import FeedSupervisor

__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "ChangeFeedSubscriber",
    "SubscriptionHandle",
    "FeedSupervisor",
]
