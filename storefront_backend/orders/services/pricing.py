# orders/services/pricing.py

"""
ORDER PRICING (PURE)

Fixed-point money helpers and order total rules:
- item subtotal = sum(unit_price x quantity)
- customer charge = subtotal - discount (never below zero)
- customer total  = customer charge + customer shipping
- agent net       = customer charge + customer shipping - agent shipping

No database access here; callers pass plain values or model instances.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


class PricingError(ValueError):
    pass


def money(value) -> Decimal:
    """
    Quantize to 2dp. Rejects NaN/Infinity and non-numeric input.
    """
    if value is None or value == "":
        return ZERO

    if isinstance(value, float):
        value = str(value)

    try:
        amt = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise PricingError(f"Invalid money value: {value!r}") from exc

    if not amt.is_finite():
        raise PricingError(f"Money value must be finite: {value!r}")

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def quantity(value) -> int:
    try:
        qty = int(value)
    except (TypeError, ValueError) as exc:
        raise PricingError(f"Invalid quantity: {value!r}") from exc

    if qty < 0:
        raise PricingError("Quantity cannot be negative")
    return qty


def items_subtotal(items) -> Decimal:
    """
    items: iterable of objects/dicts with unit_price and quantity.
    """
    total = ZERO
    for item in items:
        if isinstance(item, dict):
            unit_price, qty = item.get("unit_price"), item.get("quantity")
        else:
            unit_price, qty = item.unit_price, item.quantity
        total += money(unit_price) * quantity(qty)
    return money(total)


def customer_charge(*, subtotal, discount) -> Decimal:
    charge = money(subtotal) - money(discount)
    if charge < ZERO:
        raise PricingError("Discount cannot exceed the item subtotal")
    return charge


def customer_total(*, charge, customer_shipping) -> Decimal:
    return money(money(charge) + money(customer_shipping))


def agent_net(*, charge, customer_shipping, agent_shipping) -> Decimal:
    return money(money(charge) + money(customer_shipping) - money(agent_shipping))
