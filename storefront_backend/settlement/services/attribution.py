# settlement/services/attribution.py

"""
ATTRIBUTION DAY HELPERS

Money is bucketed by the business day an order was assigned, in the
configured TIME_ZONE, not by when an adjustment was recorded.
"""

from __future__ import annotations

from datetime import date, datetime

from django.utils import timezone


def business_today() -> date:
    return timezone.localdate()


def business_day(dt: datetime | date | None) -> date | None:
    if dt is None:
        return None
    if isinstance(dt, date) and not isinstance(dt, datetime):
        return dt
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt, timezone.get_current_timezone())
    return timezone.localtime(dt).date()


def order_attribution_day(order) -> date | None:
    return business_day(order.assigned_at)


def move_to_day(dt: datetime, day: date) -> datetime:
    """
    Same local wall-clock time, different business day.
    """
    local = timezone.localtime(dt)
    moved = datetime.combine(day, local.time().replace(tzinfo=None))
    return timezone.make_aware(moved, timezone.get_current_timezone())
