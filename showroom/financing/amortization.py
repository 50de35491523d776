"""Installment financing calculator.

All amounts are integer currency minor units. Intermediate math is done in
Decimal so that the final round-half-up step sees the exact formula value.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence, Union

from ..errors import ValidationError

Amount = Union[int, float, Decimal]

DEFAULT_TERM_OPTIONS = (12, 24, 36, 48, 60)


@dataclass(frozen=True)
class FinancingTerms:
    """Financing parameters used for listing defaults.

    Defaults: 20% down payment, 36 months at 5.9% APR.
    """

    down_payment_percent: int = 20
    term_months: int = 36
    annual_rate_percent: float = 5.9
    term_options: Sequence[int] = field(default=DEFAULT_TERM_OPTIONS)

    @classmethod
    def from_config(cls, config) -> "FinancingTerms":
        """Build terms from a FinancingConfig."""
        return cls(
            down_payment_percent=config.down_payment_percent,
            term_months=config.term_months,
            annual_rate_percent=config.annual_rate_percent,
            term_options=tuple(config.term_options),
        )


@dataclass
class InstallmentQuote:
    """Result of a financing simulation for one term."""

    price: int
    down_payment: int
    principal: int
    term_months: int
    annual_rate_percent: float
    monthly_payment: int
    total_paid: int
    total_interest: int


def _to_decimal(value: Amount) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Amount) -> int:
    """Round to the nearest whole minor unit, halves away from zero."""
    return int(_to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_monthly_payment(principal: Amount, annual_rate_percent: Amount, term_months: int) -> int:
    """Compute the amortized monthly payment.

    Uses the standard formula ``P * r * (1+r)^n / ((1+r)^n - 1)`` with the
    periodic rate ``r = annual_rate_percent / 100 / 12``. A zero rate falls
    back to ``P / n``. A positive principal never yields a zero payment.

    Args:
        principal: Financed amount, >= 0
        annual_rate_percent: Nominal annual rate in percent, >= 0
        term_months: Number of monthly payments, >= 1

    Returns:
        Payment rounded half-up to a whole minor unit

    Raises:
        ValidationError: If any argument is out of range
    """
    errors = {}
    if isinstance(term_months, bool) or not isinstance(term_months, int):
        errors["term_months"] = "term must be a whole number of months"
    elif term_months < 1:
        errors["term_months"] = "term must be at least one month"

    p = _to_decimal(principal)
    rate = _to_decimal(annual_rate_percent)
    if p < 0:
        errors["principal"] = "principal must not be negative"
    if rate < 0:
        errors["annual_rate_percent"] = "rate must not be negative"
    if errors:
        raise ValidationError(errors)

    if rate == 0:
        payment = p / term_months
    else:
        r = rate / 100 / 12
        growth = (1 + r) ** term_months
        payment = p * r * growth / (growth - 1)

    # Any financed amount costs at least one minor unit a month
    if p > 0:
        return max(round_half_up(payment), 1)
    return round_half_up(payment)


def financed_principal(price: Amount, down_payment_percent: int) -> Decimal:
    """Portion of the price left after the down payment."""
    return _to_decimal(price) * (100 - _to_decimal(down_payment_percent)) / 100


def listing_monthly_payment(price: Amount, terms: Optional[FinancingTerms] = None) -> int:
    """Default monthly payment shown on a listing."""
    terms = terms or FinancingTerms()
    principal = financed_principal(price, terms.down_payment_percent)
    return compute_monthly_payment(principal, terms.annual_rate_percent, terms.term_months)


def minimum_down_payment(price: Amount, terms: Optional[FinancingTerms] = None) -> int:
    terms = terms or FinancingTerms()
    return round_half_up(_to_decimal(price) * _to_decimal(terms.down_payment_percent) / 100)


def quote_installment(
    price: int,
    down_payment: Optional[int] = None,
    term_months: Optional[int] = None,
    annual_rate_percent: Optional[float] = None,
    terms: Optional[FinancingTerms] = None,
) -> InstallmentQuote:
    """Simulate financing for a vehicle.

    Args:
        price: Vehicle list price
        down_payment: Amount paid upfront, defaults to the minimum
        term_months: Term length, defaults to the configured term
        annual_rate_percent: Rate, defaults to the configured rate
        terms: Financing defaults

    Returns:
        InstallmentQuote for the requested plan

    Raises:
        ValidationError: If the down payment or term is out of range
    """
    terms = terms or FinancingTerms()
    if price <= 0:
        raise ValidationError.single("price", "price must be greater than zero")

    minimum = minimum_down_payment(price, terms)
    if down_payment is None:
        down_payment = minimum
    if down_payment < minimum:
        raise ValidationError.single(
            "down_payment", f"down payment must be at least {minimum}"
        )
    if down_payment >= price:
        raise ValidationError.single("down_payment", "down payment must be below the price")

    if term_months is None:
        term_months = terms.term_months
    if annual_rate_percent is None:
        annual_rate_percent = terms.annual_rate_percent

    principal = price - down_payment
    monthly = compute_monthly_payment(principal, annual_rate_percent, term_months)
    total_paid = down_payment + monthly * term_months

    return InstallmentQuote(
        price=price,
        down_payment=down_payment,
        principal=principal,
        term_months=term_months,
        annual_rate_percent=annual_rate_percent,
        monthly_payment=monthly,
        total_paid=total_paid,
        total_interest=total_paid - price,
    )


def quote_term_options(
    price: int,
    down_payment: Optional[int] = None,
    terms: Optional[FinancingTerms] = None,
) -> List[InstallmentQuote]:
    """One quote per configured term option, shortest term first."""
    terms = terms or FinancingTerms()
    return [
        quote_installment(price, down_payment, term, terms.annual_rate_percent, terms)
        for term in sorted(terms.term_options)
    ]
