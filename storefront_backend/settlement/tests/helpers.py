# settlement/tests/helpers.py

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from agents.models import Agent
from orders.models import Customer
from orders.services.order_service import create_order
from settlement.models import LedgerEntry
from settlement.services.attribution import move_to_day


def make_agent(serial="AG-001", name="Karim"):
    return Agent.objects.create(name=name, phone="01000000000", serial_number=serial)


def make_customer(name="Mona"):
    return Customer.objects.create(name=name, phone="01111111111", governorate="Giza")


def make_order(*, items=None, shipping="0", discount="0", customer=None):
    items = items or [("Widget", 1, "100.00")]
    return create_order(
        customer=customer or make_customer(),
        items=[
            {"product_name": name, "quantity": qty, "unit_price": price}
            for name, qty, price in items
        ],
        customer_shipping_cost=shipping,
        discount_amount=discount,
    )


def days_ago(n: int):
    return timezone.localdate() - timedelta(days=n)


def backdate_assignment(order, days: int):
    """
    Pretend the order was assigned `days` business days ago.
    """
    day = days_ago(days)
    order.refresh_from_db()
    order.assigned_at = move_to_day(order.assigned_at, day)
    order.first_assigned_at = order.assigned_at
    order.save(update_fields=["assigned_at", "first_assigned_at"])
    LedgerEntry.objects.filter(order=order).update(attribution_date=day)
    return day


def D(value) -> Decimal:
    return Decimal(str(value))
