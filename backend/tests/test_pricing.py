"""Tests for pricing: TTC decomposition, delivery fees, partial amounts."""
import pytest

from blane_checkout.core.constants import PAYMENT_CASH, PAYMENT_ONLINE, PAYMENT_PARTIAL
from blane_checkout.services.pricing import (
    base_price,
    delivery_fee,
    partial_amount,
    quote,
    round2,
    tax_amount,
    total_price,
)

from conftest import make_deal


@pytest.mark.parametrize("unit_price", [0.01, 9.99, 100, 1234.5])
@pytest.mark.parametrize("quantity", [1, 2, 7])
@pytest.mark.parametrize("tax_rate", [0, 5.5, 20, 99.9])
def test_base_plus_tax_equals_ttc_subtotal(unit_price, quantity, tax_rate):
    base = base_price(unit_price, quantity, tax_rate)
    tax = tax_amount(unit_price, quantity, tax_rate)
    assert abs(base * (1 + tax_rate / 100) - unit_price * quantity) < 1e-6
    assert abs(base + tax - unit_price * quantity) < 1e-6


@pytest.mark.parametrize("total", [1.0, 75.5, 230.0, 9999.99])
@pytest.mark.parametrize("percentage", [1, 33, 50, 100])
def test_partial_amount_is_positive_and_within_total(total, percentage):
    amount = partial_amount(total, percentage)
    assert 0 < amount <= total


def test_digital_deal_scenario():
    deal = make_deal(is_digital=True)
    q = quote(deal, 2, "Rabat")
    assert round2(q.base_price) == 166.67
    assert round2(q.tax_amount) == 33.33
    assert q.delivery_fee == 0
    assert q.total_price == 200.0


def test_out_of_city_delivery_fee_added_to_total():
    deal = make_deal()
    q = quote(deal, 2, "Rabat")
    assert q.delivery_fee == 30
    assert q.total_price == 230.0
    # tax stays embedded in the unit price, the fee is not taxed again
    assert abs(q.base_price + q.tax_amount - 200.0) < 1e-6


def test_partial_defaults_to_33_percent():
    deal = make_deal(partiel_field=None)
    q = quote(deal, 2, "Rabat")
    assert q.partial_percentage == 33
    assert q.partial_amount == 75.9
    assert q.amount_due_now(PAYMENT_PARTIAL) == 75.9
    assert q.amount_due_now(PAYMENT_ONLINE) == 230.0
    assert q.amount_due_now(PAYMENT_CASH) == 230.0


def test_configured_partial_percentage():
    q = quote(make_deal(partiel_field=50), 1, "Casablanca")
    assert q.partial_amount == 57.5


def test_in_city_fee_matches_case_and_whitespace_insensitively():
    deal = make_deal()
    assert delivery_fee(deal, "  casablanca ") == 15
    assert delivery_fee(deal, "Marrakech") == 30


def test_missing_fees_are_zero():
    deal = make_deal(livraison_in_city=None, livraison_out_city=None)
    assert delivery_fee(deal, "Casablanca") == 0
    assert delivery_fee(deal, "Tanger") == 0


def test_reservations_have_no_delivery_fee():
    deal = make_deal(type="reservation", type_time="time")
    assert delivery_fee(deal, "Tanger") == 0


def test_missing_tva_uses_default_rate():
    q = quote(make_deal(tva=None, is_digital=True), 1)
    assert q.tax_rate == 20
    assert round2(q.base_price) == 83.33


def test_total_price_and_round2():
    assert total_price(19.99, 3, 15) == pytest.approx(74.97)
    assert round2(2.675) == 2.68
    assert round2(75.9) == 75.9
