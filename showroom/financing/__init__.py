"""Financing calculators and membership pricing"""

from .amortization import (
    FinancingTerms,
    InstallmentQuote,
    compute_monthly_payment,
    listing_monthly_payment,
    minimum_down_payment,
    quote_installment,
    quote_term_options,
)
from .pricing import MembershipDuration, PricingTable

__all__ = [
    "FinancingTerms",
    "InstallmentQuote",
    "compute_monthly_payment",
    "listing_monthly_payment",
    "minimum_down_payment",
    "quote_installment",
    "quote_term_options",
    "MembershipDuration",
    "PricingTable",
]
