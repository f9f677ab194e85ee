import pytest

from storefront.payments.errors import CommerceError, InvalidAmount
from storefront.payments.fees import (
    FEE_LINE_NAME,
    FEE_PERCENTAGE,
    compute_fee,
    compute_total,
    format_currency,
    format_fee_text,
    quote,
)


def test_fee_is_five_percent_of_subtotal():
    assert FEE_PERCENTAGE == 5
    assert FEE_LINE_NAME == "Transaction Fee (5%)"
    assert compute_fee(10000) == 500
    assert compute_fee(2000) == 100
    assert compute_fee(0) == 0


@pytest.mark.parametrize("subtotal", list(range(0, 2001)) + [99999, 123456789])
def test_total_equals_subtotal_plus_fee(subtotal):
    fee = compute_fee(subtotal)
    total = compute_total(subtotal)
    assert total == subtotal + fee
    assert fee >= 0
    assert fee == (subtotal * 5 + 50) // 100


def test_fee_rounds_half_up():
    # 10 * 5% = 0.5 -> 1 ; 30 * 5% = 1.5 -> 2 ; 50 * 5% = 2.5 -> 3
    assert compute_fee(10) == 1
    assert compute_fee(30) == 2
    assert compute_fee(50) == 3
    # 9 * 5% = 0.45 -> 0
    assert compute_fee(9) == 0


@pytest.mark.parametrize("bad", [-1, -0.01, float("nan"), float("inf"), "100", None, True])
def test_invalid_amount_raises(bad):
    with pytest.raises(InvalidAmount):
        compute_fee(bad)


@pytest.mark.parametrize("fractional", [0.5, 12.5, 1999.99])
def test_non_integral_subtotal_is_rejected(fractional):
    with pytest.raises(InvalidAmount):
        compute_fee(fractional)
    with pytest.raises(InvalidAmount):
        compute_total(fractional)


def test_integral_float_subtotal_is_accepted():
    assert compute_fee(10000.0) == 500
    assert compute_total(10000.0) == 10500


def test_invalid_amount_is_a_commerce_and_value_error():
    with pytest.raises(ValueError):
        compute_total(-5)
    with pytest.raises(CommerceError):
        compute_total(-5)


def test_fee_percentage_override():
    assert compute_fee(10000, fee_percentage=10) == 1000
    assert compute_total(10000, fee_percentage=0) == 10000


def test_quote_groups_values():
    q = quote(10000)
    assert q.subtotal == 10000
    assert q.fee == 500
    assert q.total == 10500
    assert q.to_dict() == {"subtotal": 10000, "fee": 500, "total": 10500, "fee_percentage": 5}


def test_format_currency():
    assert format_currency(1234) == "$12.34"
    assert format_currency(123456) == "$1,234.56"
    assert format_currency(500, "eur") == "€5.00"
    assert format_currency(500, "chf") == "5.00 CHF"
    assert format_currency(-250) == "-$2.50"


def test_format_fee_text():
    assert format_fee_text(10000) == "$5.00 (5%)"
    assert format_fee_text(0) == "$0.00 (5%)"
