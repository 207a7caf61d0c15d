"""Order-level discount rules.

Two stackable discounts apply to the pre-discount subtotal:

* a bulk discount when the order holds at least ``BULK_DISCOUNT_MIN_ITEMS``
  books (counted by quantity, not by distinct titles)
* a loyalty discount once the customer has more than
  ``LOYALTY_DISCOUNT_MIN_ORDERS`` completed orders

Everything here is a pure function of its arguments and the settings, so a
cart preview and the order placement always agree.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence

from bookstore.config import settings

CENT = Decimal("0.01")
NO_DISCOUNT_MESSAGE = "No discount applied."


def qualifies_for_bulk(cart_item_count: int) -> bool:
    return cart_item_count >= settings.BULK_DISCOUNT_MIN_ITEMS


def qualifies_for_loyalty(completed_order_count: int) -> bool:
    return completed_order_count > settings.LOYALTY_DISCOUNT_MIN_ORDERS


def compute_discount(cart_item_count: int, completed_order_count: int) -> Decimal:
    fraction = Decimal("0")
    if qualifies_for_bulk(cart_item_count):
        fraction += Decimal(settings.BULK_DISCOUNT_RATE)
    if qualifies_for_loyalty(completed_order_count):
        fraction += Decimal(settings.LOYALTY_DISCOUNT_RATE)
    return fraction


def describe_discount(cart_item_count: int, completed_order_count: int) -> str:
    parts = []
    if qualifies_for_bulk(cart_item_count):
        parts.append(
            f"{_percent(settings.BULK_DISCOUNT_RATE)}% discount for ordering "
            f"{settings.BULK_DISCOUNT_MIN_ITEMS} or more books"
        )
    if qualifies_for_loyalty(completed_order_count):
        parts.append(
            f"{_percent(settings.LOYALTY_DISCOUNT_RATE)}% loyalty discount for completing "
            f"more than {settings.LOYALTY_DISCOUNT_MIN_ORDERS} orders"
        )
    if not parts:
        return NO_DISCOUNT_MESSAGE
    return "You got a " + " and a ".join(parts) + "."


def discount_amount(subtotal: Decimal, fraction: Decimal) -> Decimal:
    return (Decimal(subtotal) * Decimal(fraction)).quantize(CENT, rounding=ROUND_HALF_UP)


def allocate_discount(line_subtotals: Sequence[Decimal], total_discount: Decimal) -> List[Decimal]:
    """Split ``total_discount`` across lines proportionally to their subtotals.

    Each share is rounded to cents; the last line takes whatever remainder
    keeps the shares summing exactly to ``total_discount``.
    """
    if not line_subtotals:
        return []

    total_discount = Decimal(total_discount)
    order_subtotal = sum((Decimal(s) for s in line_subtotals), Decimal("0"))
    if order_subtotal == 0 or total_discount == 0:
        return [Decimal("0.00") for _ in line_subtotals]

    shares = []
    allocated = Decimal("0")
    for line in line_subtotals[:-1]:
        share = (Decimal(line) / order_subtotal * total_discount).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        shares.append(share)
        allocated += share

    shares.append((total_discount - allocated).quantize(CENT))
    return shares


def _percent(rate) -> str:
    return format((Decimal(rate) * 100).normalize(), "f")
