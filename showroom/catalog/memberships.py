"""Membership record management."""

from typing import Any, Dict, Optional

from loguru import logger

from ..errors import RecordNotFound
from ..financing.pricing import PricingTable
from ..storage.database import Database
from .validation import validate_member

MEMBERS = "membership_records"

MEMBER_FIELDS = ("name", "email", "phone", "membership_type", "membership_duration")


class MembershipService:
    """Saves membership records, pricing them from their duration."""

    def __init__(self, db: Database, pricing: Optional[PricingTable] = None):
        self.db = db
        self.pricing = pricing or PricingTable()

    def save_member(self, member_id: Optional[int], fields: Dict[str, Any]) -> Dict[str, Any]:
        """Create (``member_id`` is None) or update a membership record.

        A duration sets ``subscription_price`` from the pricing table; with no
        duration the price is cleared. The free-text type and the duration are
        not checked for mutual exclusivity.

        Returns:
            The fields written to the gateway, or the inserted record
        """
        changes = {key: value for key, value in fields.items() if key in MEMBER_FIELDS}
        for key, value in list(changes.items()):
            if isinstance(value, str):
                changes[key] = value.strip()
        if changes.get("membership_duration") == "":
            changes["membership_duration"] = None

        if member_id is None:
            validate_member(changes)
            changes["subscription_price"] = self.pricing.price_for(changes.get("membership_duration"))
            member = self.db.insert(MEMBERS, changes)
            logger.info(f"Added member {member['name']} (ID: {member['id']})")
            return member

        current = self.db.get(MEMBERS, member_id)
        if current is None:
            raise RecordNotFound(MEMBERS, member_id)

        merged = {**{key: current.get(key) for key in MEMBER_FIELDS}, **changes}
        validate_member(merged)
        if "membership_duration" in changes:
            changes["subscription_price"] = self.pricing.price_for(changes["membership_duration"])

        self.db.update(MEMBERS, member_id, changes)
        logger.info(f"Updated member {member_id}")
        return changes

    def delete_member(self, member_id: int):
        self.db.delete(MEMBERS, member_id)
        logger.info(f"Deleted member {member_id}")
