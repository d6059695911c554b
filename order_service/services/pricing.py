"""
Pricing Resolver - pure price and total computations

All amounts are Naira as ``Decimal``. Line totals and order totals are
rounded half-up to kobo; unit prices are kept exact.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional, Sequence, Union

from order_service.errors import ValidationError

Number = Union[int, float, str, Decimal]

KOBO = Decimal("0.01")
HUNDRED = Decimal(100)


def to_decimal(value: Number) -> Decimal:
    """Convert a JSON/ORM number to Decimal without float artefacts"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(KOBO, rounding=ROUND_HALF_UP)


def effective_unit_price(base_price: Number, discount_percentage: Number = 0) -> Decimal:
    """
    Unit price after an optional percentage discount

    Raises:
        ValidationError: If the price is negative or the discount is outside [0, 100]
    """
    price = to_decimal(base_price)
    discount = to_decimal(discount_percentage or 0)
    if price < 0:
        raise ValidationError(f"Price must be non-negative, got {price}")
    if discount < 0 or discount > 100:
        raise ValidationError(f"Discount percentage must be between 0 and 100, got {discount}")
    if discount > 0:
        return price * (HUNDRED - discount) / HUNDRED
    return price


def line_total(base_price: Number, discount_percentage: Number, quantity: int) -> Decimal:
    """Effective unit price times quantity; quantity must be at least 1"""
    if quantity < 1:
        raise ValidationError(f"Quantity must be at least 1, got {quantity}")
    return to_money(effective_unit_price(base_price, discount_percentage) * quantity)


def order_subtotal(lines: Iterable[Mapping]) -> Decimal:
    """Sum of line totals over ``price``/``discount_percentage``/``quantity`` mappings"""
    subtotal = Decimal("0.00")
    for line in lines:
        subtotal += line_total(
            line["price"],
            line.get("discount_percentage", 0),
            line["quantity"]
        )
    return subtotal


def order_total(subtotal: Number, shipping_fee: Number) -> Decimal:
    fee = to_money(shipping_fee)
    if fee < 0:
        raise ValidationError(f"Shipping fee must be non-negative, got {fee}")
    return to_money(subtotal) + fee


def active_discount(
    category: Optional[str],
    promotions: Sequence,
    at: Optional[datetime] = None,
) -> int:
    """
    Highest discount among promotions running at ``at``

    A promotion applies when it is flagged active, ``at`` falls inside its
    date window and it either has no category or matches ``category``.
    """
    at = at or datetime.utcnow()
    best = 0
    for promo in promotions:
        if not promo.active:
            continue
        start = _naive(promo.start_date)
        end = _naive(promo.end_date)
        if not (start <= _naive(at) <= end):
            continue
        if promo.category and promo.category != category:
            continue
        best = max(best, promo.discount_percentage)
    return best


def _naive(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; compare everything in naive UTC
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
