"""
Transaction pricing. Pure functions, re-evaluated on every quantity/date/city change.

Unit prices are TTC: tax is already embedded and is only decomposed for display,
never added again. basePrice + taxAmount == unitPrice * quantity (up to float rounding).
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from blane_checkout.core.constants import DEFAULT_PARTIAL_PERCENTAGE, DEFAULT_TVA_RATE, PAYMENT_PARTIAL
from blane_checkout.schemas import Deal

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round half-up to 2 decimals (money display and wire amounts)."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def tax_rate_of(deal: Deal) -> float:
    return deal.tva if deal.tva is not None else DEFAULT_TVA_RATE


def partial_percentage_of(deal: Deal) -> float:
    # 0 or missing means "not configured", same as the catalogue admin
    return deal.partiel_field or DEFAULT_PARTIAL_PERCENTAGE


def base_price(unit_price: float, quantity: int, tax_rate_percent: float) -> float:
    return unit_price * quantity / (1 + tax_rate_percent / 100)


def tax_amount(unit_price: float, quantity: int, tax_rate_percent: float) -> float:
    return base_price(unit_price, quantity, tax_rate_percent) * tax_rate_percent / 100


def delivery_fee(deal: Deal, destination_city: str | None) -> float:
    """In-city fee when the destination is the deal's home city, else out-of-city. Zero for digital deals."""
    if deal.is_digital or deal.is_reservation:
        return 0.0
    same_city = (destination_city or "").strip().lower() == (deal.city or "").strip().lower()
    fee = deal.livraison_in_city if same_city else deal.livraison_out_city
    return float(fee or 0)


def total_price(unit_price: float, quantity: int, fee: float = 0.0) -> float:
    return unit_price * quantity + fee


def partial_amount(total: float, percentage: float | None = None) -> float:
    pct = percentage or DEFAULT_PARTIAL_PERCENTAGE
    return round2(total * pct / 100)


@dataclass(frozen=True)
class PriceQuote:
    """Everything the confirmation summary and the payload need, for one (quantity, city)."""

    quantity: int
    unit_price: float
    tax_rate: float
    base_price: float
    tax_amount: float
    delivery_fee: float
    total_price: float
    partial_percentage: float
    partial_amount: float

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity

    def amount_due_now(self, method: str) -> float:
        return self.partial_amount if method == PAYMENT_PARTIAL else round2(self.total_price)


def quote(deal: Deal, quantity: int, destination_city: str | None = None) -> PriceQuote:
    rate = tax_rate_of(deal)
    fee = delivery_fee(deal, destination_city)
    total = total_price(deal.price_current, quantity, fee)
    pct = partial_percentage_of(deal)
    return PriceQuote(
        quantity=quantity,
        unit_price=deal.price_current,
        tax_rate=rate,
        base_price=base_price(deal.price_current, quantity, rate),
        tax_amount=tax_amount(deal.price_current, quantity, rate),
        delivery_fee=fee,
        total_price=total,
        partial_percentage=pct,
        partial_amount=partial_amount(total, pct),
    )
