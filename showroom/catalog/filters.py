"""Catalog filtering."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from rapidfuzz import fuzz


@dataclass
class CatalogFilter:
    """Storefront filter state.

    An empty ``makes`` selection matches every make; an empty query matches
    every vehicle.
    """

    min_price: int = 0
    max_price: Optional[int] = None
    makes: Sequence[str] = field(default_factory=list)
    query: str = ""
    fuzzy_threshold: float = 85.0

    def matches(self, vehicle: Dict[str, Any]) -> bool:
        price = vehicle.get("price") or 0
        if price < self.min_price:
            return False
        if self.max_price is not None and price > self.max_price:
            return False
        if self.makes and vehicle.get("make") not in self.makes:
            return False
        return self._matches_query(vehicle)

    def _matches_query(self, vehicle: Dict[str, Any]) -> bool:
        query = self.query.strip().lower()
        if not query:
            return True

        targets = [str(vehicle.get("make") or "").lower(), str(vehicle.get("model") or "").lower()]
        if any(query in target for target in targets):
            return True

        # Typo tolerance: compare against whole names and their words
        words = [word for target in targets for word in target.split()]
        for candidate in targets + words:
            if candidate and fuzz.ratio(query, candidate) >= self.fuzzy_threshold:
                return True
        return False


def apply_filter(vehicles: Iterable[Dict[str, Any]], catalog_filter: CatalogFilter) -> List[Dict[str, Any]]:
    """Vehicles matching the filter, preserving input order."""
    return [vehicle for vehicle in vehicles if catalog_filter.matches(vehicle)]


def distinct_makes(vehicles: Iterable[Dict[str, Any]]) -> List[str]:
    """Makes in order of first appearance."""
    seen: Dict[str, None] = {}
    for vehicle in vehicles:
        make = vehicle.get("make")
        if make and make not in seen:
            seen[make] = None
    return list(seen)
