# orders/services/order_service.py

"""
ORDER INTAKE SERVICE

Creates pending orders with their item lines and derived money fields.
Checkout/cart flows call this; nothing here touches the agent ledger.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from orders.models import Customer, Order, OrderItem
from orders.services.pricing import (
    PricingError,
    customer_charge,
    items_subtotal,
    money,
    quantity,
)

logger = logging.getLogger("orders")


def _normalize_items(items: list[dict]) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError("An order requires at least one item.")

    normalized = []
    for line in items:
        if not isinstance(line, dict):
            raise ValidationError("Order items must be objects.")

        name = str(line.get("product_name") or "").strip()
        if not name:
            raise ValidationError("Each order item must include product_name.")

        try:
            qty = quantity(line.get("quantity"))
            unit_price = money(line.get("unit_price"))
        except PricingError as exc:
            raise ValidationError(str(exc)) from exc

        if qty <= 0:
            raise ValidationError("Order item quantity must be an integer >= 1.")
        if unit_price < 0:
            raise ValidationError("Order item unit_price cannot be negative.")

        normalized.append(
            {
                "product_id": str(line.get("product_id") or "").strip() or name,
                "product_name": name,
                "quantity": qty,
                "unit_price": unit_price,
            }
        )
    return normalized


@transaction.atomic
def create_order(
    *,
    customer: Customer,
    items: list[dict],
    customer_shipping_cost=None,
    discount_amount=None,
    notes: str = "",
) -> Order:
    """
    CREATE PENDING ORDER (atomic)

    customer_charge_amount = item subtotal - discount
    """
    normalized = _normalize_items(items)

    try:
        shipping = money(customer_shipping_cost)
        discount = money(discount_amount)
        charge = customer_charge(subtotal=items_subtotal(normalized), discount=discount)
    except PricingError as exc:
        raise ValidationError(str(exc)) from exc

    if shipping < 0 or discount < 0:
        raise ValidationError("Shipping and discount cannot be negative.")

    order = Order.objects.create(
        customer=customer,
        status=Order.STATUS_PENDING,
        customer_charge_amount=charge,
        customer_shipping_cost=shipping,
        discount_amount=discount,
        notes=(notes or "").strip(),
    )

    OrderItem.objects.bulk_create(
        [OrderItem(order=order, **line) for line in normalized]
    )

    logger.info(
        "Order created",
        extra={
            "order_id": str(order.id),
            "order_number": order.order_number,
            "customer_charge_amount": str(charge),
        },
    )
    return order
