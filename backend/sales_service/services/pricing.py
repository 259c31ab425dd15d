"""
Price and discount arithmetic for orders and returns. Pure functions, no I/O.

Line discounts come as an amount/percentage pair: a positive percentage
always wins and recomputes the amount from the unit price.

Order lines and return lines do not total the same way. An order line is
``(price + discount) * quantity`` while a return line is
``(price - discount) * quantity``. Stored totals follow these exact
formulas; tests pin the difference.
"""
from typing import Tuple


def resolve_discount(base: float, discount_amount: float, discount_percentage: float) -> float:
    if discount_percentage and discount_percentage > 0:
        return base * discount_percentage / 100
    return discount_amount or 0.0


def order_line_total(
    price: float, discount_amount: float, discount_percentage: float, quantity: int
) -> Tuple[float, float]:
    """Returns ``(discount_amount, total_price)`` for an order line."""
    discount = resolve_discount(price, discount_amount, discount_percentage)
    return discount, (price + discount) * quantity


def return_line_total(
    price: float, discount_amount: float, discount_percentage: float, quantity: int
) -> Tuple[float, float]:
    """Returns ``(discount_amount, total_price)`` for a return line."""
    discount = resolve_discount(price, discount_amount, discount_percentage)
    return discount, (price - discount) * quantity


def header_discount(sum_of_line_totals: float, discount_amount: float, discount_percentage: float) -> float:
    return resolve_discount(sum_of_line_totals, discount_amount, discount_percentage)


def header_total(sum_of_line_totals: float, discount_amount: float) -> float:
    return sum_of_line_totals - discount_amount


def proportional_return_discount(
    order_discount_amount: float, ordered_qty: int, returned_qty: int, already_allocated: float
) -> float:
    """
    Share of a flat order discount carried by a return of ``returned_qty``
    units, capped so that all returns together never exceed the order's
    discount.
    """
    if ordered_qty <= 0 or order_discount_amount <= 0:
        return 0.0
    per_unit = order_discount_amount / ordered_qty
    candidate = per_unit * returned_qty
    remaining = max(order_discount_amount - already_allocated, 0.0)
    return min(candidate, remaining)
