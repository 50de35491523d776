from decimal import Decimal

import pytest

from showroom.errors import ValidationError
from showroom.financing import (
    FinancingTerms,
    compute_monthly_payment,
    listing_monthly_payment,
    minimum_down_payment,
    quote_installment,
    quote_term_options,
)
from showroom.financing.amortization import round_half_up


def amortized(principal, annual_rate_percent, term_months):
    r = annual_rate_percent / 100 / 12
    growth = (1 + r) ** term_months
    return principal * r * growth / (growth - 1)


def test_zero_rate_splits_principal_evenly():
    assert compute_monthly_payment(1000000, 0, 36) == 27778
    assert compute_monthly_payment(360000, 0, 12) == 30000


def test_payment_matches_standard_formula():
    result = compute_monthly_payment(2560000, 5.9, 36)

    assert abs(result - amortized(2560000, 5.9, 36)) <= 0.5 + 1e-6
    assert 77000 < result < 78500


@pytest.mark.parametrize("term", [12, 24, 36, 48, 60])
def test_every_term_option_matches_formula(term):
    result = compute_monthly_payment(2560000, 5.9, term)
    assert abs(result - amortized(2560000, 5.9, term)) <= 0.5 + 1e-6


def test_payment_rounds_half_up():
    # 5 / 2 = 2.5 must round to 3, not to the even 2
    assert compute_monthly_payment(5, 0, 2) == 3
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("2.49")) == 2


def test_payment_is_non_decreasing_in_principal():
    payments = [compute_monthly_payment(p, 5.9, 36) for p in range(100000, 5000000, 250000)]

    assert payments == sorted(payments)
    assert all(payment > 0 for payment in payments)


def test_longer_terms_lower_the_payment():
    payments = [compute_monthly_payment(2560000, 5.9, term) for term in (12, 24, 36, 48, 60)]
    assert payments == sorted(payments, reverse=True)


def test_zero_principal_costs_nothing():
    assert compute_monthly_payment(0, 5.9, 36) == 0


@pytest.mark.parametrize("principal", [1, 5, 17])
def test_tiny_principal_still_costs_something(principal):
    assert compute_monthly_payment(principal, 5.9, 60) >= 1
    assert compute_monthly_payment(principal, 0, 60) >= 1


@pytest.mark.parametrize(
    "principal, rate, term, field",
    [
        (-1, 5.9, 36, "principal"),
        (1000, -0.5, 36, "annual_rate_percent"),
        (1000, 5.9, 0, "term_months"),
        (1000, 5.9, 12.5, "term_months"),
        (1000, 5.9, True, "term_months"),
    ],
)
def test_out_of_range_inputs_are_rejected(principal, rate, term, field):
    with pytest.raises(ValidationError) as excinfo:
        compute_monthly_payment(principal, rate, term)

    assert field in excinfo.value.errors


def test_listing_payment_finances_eighty_percent_over_default_term():
    assert listing_monthly_payment(3200000) == compute_monthly_payment(2560000, 5.9, 36)


def test_listing_payment_uses_custom_terms():
    terms = FinancingTerms(down_payment_percent=30, term_months=48, annual_rate_percent=4.0)
    assert listing_monthly_payment(1000000, terms) == compute_monthly_payment(700000, 4.0, 48)


def test_quote_defaults_to_minimum_down_payment():
    quote = quote_installment(3200000)

    assert quote.down_payment == 640000 == minimum_down_payment(3200000)
    assert quote.principal == 2560000
    assert quote.term_months == 36
    assert quote.monthly_payment == compute_monthly_payment(2560000, 5.9, 36)
    assert quote.total_paid == 640000 + quote.monthly_payment * 36
    assert quote.total_interest == quote.total_paid - 3200000
    assert quote.total_interest > 0


def test_quote_with_larger_down_payment_and_custom_term():
    quote = quote_installment(3200000, down_payment=1200000, term_months=24)

    assert quote.principal == 2000000
    assert quote.monthly_payment == compute_monthly_payment(2000000, 5.9, 24)


def test_quote_rejects_down_payment_below_minimum():
    with pytest.raises(ValidationError) as excinfo:
        quote_installment(3200000, down_payment=100000)

    assert "down_payment" in excinfo.value.errors


def test_quote_rejects_down_payment_covering_price():
    with pytest.raises(ValidationError):
        quote_installment(3200000, down_payment=3200000)


def test_quote_rejects_non_positive_price():
    with pytest.raises(ValidationError):
        quote_installment(0)


def test_term_options_are_sorted_shortest_first():
    terms = FinancingTerms(term_options=(60, 12, 36))
    quotes = quote_term_options(3200000, terms=terms)

    assert [quote.term_months for quote in quotes] == [12, 36, 60]
    assert quotes[0].monthly_payment > quotes[-1].monthly_payment
    assert all(quote.down_payment == 640000 for quote in quotes)
