"""Storefront catalog view."""

from typing import Any, Dict, List, Optional, Sequence

from ..catalog.filters import CatalogFilter, apply_filter, distinct_makes
from ..catalog.providers import checkout_links
from ..realtime.subscriber import ChangeFeedSubscriber
from ..storage.database import Database
from .base import CollectionView


class CatalogView(CollectionView):
    """Vehicle grid with filters and checkout provider links."""

    def __init__(
        self,
        db: Database,
        subscriber: ChangeFeedSubscriber,
        hidden_provider_keywords: Sequence[str] = (),
        fuzzy_threshold: float = 85.0,
        on_render=None,
    ):
        super().__init__(db, subscriber, on_render)
        self.hidden_provider_keywords = list(hidden_provider_keywords)
        self.fuzzy_threshold = fuzzy_threshold
        self.vehicles: List[Dict[str, Any]] = []
        self.provider_links: List[Dict[str, Any]] = []

    def sources(self):
        return [
            ("vehicles", self.fetch_vehicles),
            ("provider_links", self.fetch_provider_links),
        ]

    async def fetch_vehicles(self):
        records = await self._fetch("vehicles", "created_at", "desc")
        if records is not None:
            self.vehicles = records
            await self.rendered()

    async def fetch_provider_links(self):
        records = await self._fetch("provider_links", "name", "asc")
        if records is not None:
            self.provider_links = checkout_links(records, self.hidden_provider_keywords)
            await self.rendered()

    def filtered(
        self,
        min_price: int = 0,
        max_price: Optional[int] = None,
        makes: Sequence[str] = (),
        query: str = "",
    ) -> List[Dict[str, Any]]:
        """Vehicles in the current snapshot matching the filter."""
        catalog_filter = CatalogFilter(
            min_price=min_price,
            max_price=max_price,
            makes=list(makes),
            query=query,
            fuzzy_threshold=self.fuzzy_threshold,
        )
        return apply_filter(self.vehicles, catalog_filter)

    def makes(self) -> List[str]:
        return distinct_makes(self.vehicles)
