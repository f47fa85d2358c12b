# settlement/services/reschedule_service.py

"""
REATTRIBUTION (RESCHEDULE)

Moves an order, and every ledger entry tied to it, to another business day.

Rules:
- order must have been assigned
- first assignment day <= new day <= today
- new day differs from the current attribution day
- local time-of-day of assigned_at is preserved
- all-or-nothing: entries and order move together or not at all

This is one of the two sanctioned bulk writers of LedgerEntry
(QuerySet.update bypasses the immutable instance save()).
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from django.db import transaction

from orders.models import Order
from settlement.models import LedgerEntry
from settlement.services.attribution import (
    business_day,
    business_today,
    move_to_day,
    order_attribution_day,
)
from settlement.services.exceptions import RescheduleError
from settlement.services.locks import lock_agent, lock_order

logger = logging.getLogger("settlement")


def _lock_rows(order_or_id) -> Order:
    order_id = getattr(order_or_id, "pk", order_or_id)

    agent_ids = set(
        LedgerEntry.objects.filter(order_id=order_id).values_list("agent_id", flat=True)
    )
    current = Order.objects.filter(pk=order_id).values_list("agent_id", flat=True).first()
    if current:
        agent_ids.add(current)

    for agent_id in sorted(agent_ids, key=str):
        lock_agent(agent_id)
    return lock_order(order_id)


def _move_entries(order: Order, new_date: date) -> int:
    return LedgerEntry.objects.filter(order=order).update(attribution_date=new_date)


def _move_order(order: Order, new_date: date) -> None:
    order.assigned_at = move_to_day(order.assigned_at, new_date)
    order.save(update_fields=["assigned_at", "updated_at"])


@transaction.atomic
def reschedule_order(*, order, new_date: date, user=None) -> Order:
    if not isinstance(new_date, date) or isinstance(new_date, datetime):
        raise RescheduleError("new_date must be a calendar date")

    order = _lock_rows(order)

    if order.assigned_at is None:
        raise RescheduleError(f"Order #{order.order_number} was never assigned")

    first_day = business_day(order.first_assigned_at or order.assigned_at)
    today = business_today()
    current = order_attribution_day(order)

    if new_date < first_day or new_date > today:
        raise RescheduleError(
            f"new_date must lie between {first_day.isoformat()} and {today.isoformat()}"
        )
    if new_date == current:
        raise RescheduleError(f"Order #{order.order_number} is already on {current.isoformat()}")

    try:
        moved = _move_entries(order, new_date)
        _move_order(order, new_date)
    except Exception:
        logger.exception(
            "Reschedule failed; rolling back",
            extra={"order_id": str(order.id), "new_date": new_date.isoformat()},
        )
        raise

    logger.info(
        "Order rescheduled",
        extra={
            "order_id": str(order.id),
            "from_date": current.isoformat(),
            "to_date": new_date.isoformat(),
            "entries_moved": moved,
            "user_id": getattr(user, "pk", None),
        },
    )
    return order
