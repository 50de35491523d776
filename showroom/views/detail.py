"""Vehicle detail view with the financing calculator."""

from typing import Any, Dict, List, Optional, Sequence

from ..catalog.providers import checkout_links
from ..financing.amortization import (
    FinancingTerms,
    InstallmentQuote,
    minimum_down_payment,
    quote_installment,
    quote_term_options,
)
from ..realtime.subscriber import ChangeFeedSubscriber
from ..storage.database import Database
from .base import CollectionView


class VehicleDetailView(CollectionView):
    """Single vehicle page.

    Follows the whole ``vehicles`` collection and picks its record out of each
    refetch, so an admin edit or delete shows up immediately.
    """

    def __init__(
        self,
        db: Database,
        subscriber: ChangeFeedSubscriber,
        vehicle_id: int,
        terms: Optional[FinancingTerms] = None,
        hidden_provider_keywords: Sequence[str] = (),
        on_render=None,
    ):
        super().__init__(db, subscriber, on_render)
        self.vehicle_id = vehicle_id
        self.terms = terms or FinancingTerms()
        self.hidden_provider_keywords = list(hidden_provider_keywords)
        self.vehicle: Optional[Dict[str, Any]] = None
        self.provider_links: List[Dict[str, Any]] = []

    @property
    def found(self) -> bool:
        return self.vehicle is not None

    def sources(self):
        return [
            ("vehicles", self.fetch_vehicle),
            ("provider_links", self.fetch_provider_links),
        ]

    async def fetch_vehicle(self):
        records = await self._fetch("vehicles")
        if records is not None:
            self.vehicle = next((r for r in records if r["id"] == self.vehicle_id), None)
            await self.rendered()

    async def fetch_provider_links(self):
        records = await self._fetch("provider_links", "name", "asc")
        if records is not None:
            self.provider_links = checkout_links(records, self.hidden_provider_keywords)
            await self.rendered()

    def minimum_down_payment(self) -> Optional[int]:
        if not self.found:
            return None
        return minimum_down_payment(self.vehicle["price"], self.terms)

    def financing(self, down_payment: Optional[int] = None) -> List[InstallmentQuote]:
        """Quotes for every term option, empty when the vehicle is gone."""
        if not self.found:
            return []
        return quote_term_options(self.vehicle["price"], down_payment, self.terms)

    def quote(self, down_payment: Optional[int] = None, term_months: Optional[int] = None) -> Optional[InstallmentQuote]:
        if not self.found:
            return None
        return quote_installment(
            self.vehicle["price"],
            down_payment,
            term_months,
            self.terms.annual_rate_percent,
            self.terms,
        )
