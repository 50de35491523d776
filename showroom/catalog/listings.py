"""Vehicle listing management.

Monthly payment precedence:

- a price change recomputes the payment and clears any override
- an explicit payment always wins and marks the listing overridden, also when
  it arrives in the same edit as a price change
- resending the stored payment unchanged is not an explicit payment
- the override stays in force until the next price change
"""

from typing import Any, Dict, Optional

from loguru import logger

from ..errors import RecordNotFound
from ..financing.amortization import FinancingTerms, listing_monthly_payment
from ..storage.database import Database
from .validation import validate_vehicle

VEHICLES = "vehicles"

VEHICLE_FIELDS = (
    "make",
    "model",
    "year",
    "price",
    "monthly_payment",
    "image",
    "mileage",
    "transmission",
    "fuel_type",
)


def _clean(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {key: value for key, value in fields.items() if key in VEHICLE_FIELDS}
    for key in ("make", "model", "image"):
        if isinstance(cleaned.get(key), str):
            cleaned[key] = cleaned[key].strip()
    return cleaned


class ListingService:
    """Creates, updates and deletes vehicle listings through the gateway."""

    def __init__(self, db: Database, terms: Optional[FinancingTerms] = None):
        self.db = db
        self.terms = terms or FinancingTerms()

    def create_vehicle(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and insert a vehicle.

        The monthly payment is derived from the price unless the caller
        supplies one.

        Raises:
            ValidationError: If any field is invalid
            StorageError: If the insert fails
        """
        record = _clean(fields)
        validate_vehicle(record)

        if record.get("monthly_payment") is None:
            record["monthly_payment"] = listing_monthly_payment(record["price"], self.terms)
            record["monthly_payment_overridden"] = False
        else:
            record["monthly_payment_overridden"] = True

        vehicle = self.db.insert(VEHICLES, record)
        logger.info(
            f"Listed {vehicle['make']} {vehicle['model']} (ID: {vehicle['id']}) "
            f"at {vehicle['price']}, monthly {vehicle['monthly_payment']}"
        )
        return vehicle

    def update_vehicle(self, vehicle_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and apply a partial update.

        Returns:
            The fields written to the gateway

        Raises:
            RecordNotFound: If the vehicle does not exist
            ValidationError: If the merged record is invalid
            StorageError: If the update fails
        """
        current = self.db.get(VEHICLES, vehicle_id)
        if current is None:
            raise RecordNotFound(VEHICLES, vehicle_id)

        changes = _clean(fields)
        merged = {**{key: current.get(key) for key in VEHICLE_FIELDS}, **changes}
        validate_vehicle(merged)

        # Full-record saves resend the stored payment; only a different value is an override
        explicit_payment = changes.get("monthly_payment")
        if explicit_payment is not None and explicit_payment == current["monthly_payment"]:
            explicit_payment = None
        price_changed = "price" in changes and changes["price"] != current["price"]

        if explicit_payment is not None:
            changes["monthly_payment_overridden"] = True
        elif price_changed:
            changes["monthly_payment"] = listing_monthly_payment(changes["price"], self.terms)
            changes["monthly_payment_overridden"] = False
        else:
            changes.pop("monthly_payment", None)

        if changes:
            self.db.update(VEHICLES, vehicle_id, changes)
            logger.info(f"Updated vehicle {vehicle_id}: {', '.join(sorted(changes))}")
        return changes

    def delete_vehicle(self, vehicle_id: int):
        self.db.delete(VEHICLES, vehicle_id)
        logger.info(f"Deleted vehicle {vehicle_id}")
