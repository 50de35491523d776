"""Admin dashboard analytics."""

from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..financing.amortization import round_half_up


@dataclass(frozen=True)
class PriceBand:
    label: str
    min_price: int
    max_price: Optional[int]  # exclusive, None for open-ended

    def contains(self, price: int) -> bool:
        return price >= self.min_price and (self.max_price is None or price < self.max_price)


PRICE_BANDS = (
    PriceBand("under 3M", 0, 3_000_000),
    PriceBand("3M-5M", 3_000_000, 5_000_000),
    PriceBand("over 5M", 5_000_000, None),
)


def _percentage(count: int, total: int) -> float:
    return round(count / total * 100, 1) if total else 0.0


def make_distribution(vehicles: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Vehicle count per make, in order of first appearance."""
    counts = Counter(vehicle["make"] for vehicle in vehicles)
    total = len(vehicles)
    return [
        {"make": make, "count": count, "percentage": _percentage(count, total)}
        for make, count in counts.items()
    ]


def price_bands(vehicles: Sequence[Dict[str, Any]], bands: Sequence[PriceBand] = PRICE_BANDS) -> List[Dict[str, Any]]:
    """Vehicle count per price band."""
    total = len(vehicles)
    results = []
    for band in bands:
        count = sum(1 for vehicle in vehicles if band.contains(vehicle["price"]))
        results.append({"band": band.label, "count": count, "percentage": _percentage(count, total)})
    return results


def summarize(vehicles: Sequence[Dict[str, Any]], members: Sequence[Dict[str, Any]] = ()) -> Dict[str, Any]:
    """Overview figures shown on the dashboard."""
    total = len(vehicles)
    average = round_half_up(sum(vehicle["price"] for vehicle in vehicles) / total) if total else 0
    return {
        "vehicle_count": total,
        "member_count": len(members),
        "average_price": average,
        "makes": make_distribution(vehicles),
        "price_bands": price_bands(vehicles),
    }
