"""Membership pricing table."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MembershipDuration(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class PricingTable:
    """Subscription price per membership duration.

    Process-wide constant; never persisted.
    """

    monthly: int = 5000
    quarterly: int = 13500
    yearly: int = 48000

    @classmethod
    def from_config(cls, config) -> "PricingTable":
        return cls(monthly=config.monthly, quarterly=config.quarterly, yearly=config.yearly)

    def price_for(self, duration: Optional[str]) -> Optional[int]:
        """Subscription price for a duration, None when no duration is set.

        Raises:
            ValueError: If the duration is not one of monthly/quarterly/yearly
        """
        if not duration:
            return None
        return getattr(self, MembershipDuration(duration).value)
