"""Display formatting helpers."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union


def format_price(amount: Union[int, float, Decimal], suffix: str = " DA") -> str:
    """Format a currency amount as an integer-grouped decimal with a suffix.

    Fractional minor units are never displayed; they are rounded half-up.

    >>> format_price(4200000)
    '4,200,000 DA'
    """
    whole = int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return f"{whole:,}{suffix}"
