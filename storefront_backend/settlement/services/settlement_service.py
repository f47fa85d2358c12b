# settlement/services/settlement_service.py

"""
======================================================
PATH: settlement/services/settlement_service.py
======================================================
SETTLEMENT OPERATIONS (STATE MACHINE + LEDGER)

Each public function is ONE transaction boundary:
- Lock agent row, then order row (select_for_update)
- Validate preconditions BEFORE any write
- Mutate Order state and append LedgerEntry rows together

Sign conventions (receivable = net_required - delivered - paid):
- owed          + (charge + customer shipping - agent shipping)
- modification  ± correction of net required
- return        - (returned goods value)
- delivered     + (cash the agent collected and handed over)
- payment       + (advance handed over before delivery)

Attribution:
- Every order-linked entry is dated on the order's attribution day
  (assigned_at in the business timezone), never on "today".
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from decimal import Decimal

from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.db.models import Min, Sum
from django.utils import timezone

from orders.models import Order, ReturnRecord, ReturnRecordItem
from orders.services.order_lifecycle import (
    OUTSTANDING_STATES,
    InvalidOrderTransitionError,
    can_adjust_shipping,
    can_register_return,
    validate_transition,
)
from orders.services.pricing import PricingError, agent_net, money, quantity
from settlement.models import LedgerEntry
from settlement.services.agent_totals import refresh_agent_totals
from settlement.services.attribution import (
    business_day,
    business_today,
    order_attribution_day,
)
from settlement.services.balance_service import ZERO, get_agent_balance
from settlement.services.exceptions import (
    InvalidOrderStateError,
    LedgerValidationError,
    ReturnQuantityError,
)
from settlement.services.ledger_store import append_entry, clear_outstanding_payments
from settlement.services.locks import lock_agent, lock_order, lock_order_with_agent

logger = logging.getLogger("settlement")

SETTLE_PERMISSION = "settlement.settle_agent"


# ============================================================
# INTERNAL HELPERS
# ============================================================


def _non_negative_money(value, *, field: str) -> Decimal:
    try:
        amt = money(value)
    except PricingError as exc:
        raise LedgerValidationError(f"{field}: {exc}") from exc

    if amt < ZERO:
        raise LedgerValidationError(f"{field} cannot be negative")
    return amt


def _transition(order: Order, target_status: str) -> None:
    try:
        validate_transition(order=order, target_status=target_status)
    except InvalidOrderTransitionError as exc:
        raise InvalidOrderStateError(str(exc)) from exc


def _require_assigned(order: Order, agent) -> None:
    if agent is None or order.assigned_at is None:
        raise InvalidOrderStateError(f"Order #{order.order_number} is not assigned to an agent")


def _deliver(order: Order, agent, *, user=None, refresh_totals: bool = True) -> LedgerEntry:
    amount = agent_net(
        charge=order.customer_charge_amount,
        customer_shipping=order.customer_shipping_cost,
        agent_shipping=order.agent_shipping_cost,
    )

    entry = append_entry(
        agent=agent,
        order=order,
        entry_type=LedgerEntry.DELIVERED,
        amount=amount,
        attribution_date=order_attribution_day(order),
        note=f"Delivered order #{order.order_number}",
        recorded_by=user,
        refresh_totals=refresh_totals,
    )

    order.status = Order.STATUS_DELIVERED
    order.delivered_amount = amount
    order.save(update_fields=["status", "delivered_amount", "updated_at"])
    return entry


def _order_net_contribution(order: Order) -> Decimal:
    """
    What this order currently adds to its agent's net required.
    """
    total = LedgerEntry.objects.filter(
        order=order,
        entry_type__in=[LedgerEntry.OWED, LedgerEntry.MODIFICATION, LedgerEntry.RETURN],
    ).aggregate(total=Sum("amount"))["total"]
    return money(total)


# ============================================================
# ASSIGNMENT / SHIPPING
# ============================================================


@transaction.atomic
def assign_to_agent(*, order, agent, agent_shipping_cost, user=None) -> LedgerEntry:
    """
    pending -> shipped

    Appends OWED = charge + customer shipping - agent shipping,
    attributed to today.
    """
    agent = lock_agent(agent)
    order = lock_order(order)

    if order.agent_id is not None:
        raise InvalidOrderStateError(f"Order #{order.order_number} is already assigned")

    _transition(order, Order.STATUS_SHIPPED)

    agent_shipping = _non_negative_money(agent_shipping_cost, field="agent_shipping_cost")
    owed = agent_net(
        charge=order.customer_charge_amount,
        customer_shipping=order.customer_shipping_cost,
        agent_shipping=agent_shipping,
    )

    now = timezone.now()

    order.agent = agent
    order.agent_shipping_cost = agent_shipping
    order.status = Order.STATUS_SHIPPED
    order.assigned_at = now
    order.first_assigned_at = now
    order.save(
        update_fields=[
            "agent",
            "agent_shipping_cost",
            "status",
            "assigned_at",
            "first_assigned_at",
            "updated_at",
        ]
    )

    entry = append_entry(
        agent=agent,
        order=order,
        entry_type=LedgerEntry.OWED,
        amount=owed,
        attribution_date=business_day(now),
        note=f"Assigned order #{order.order_number}",
        recorded_by=user,
    )

    logger.info(
        "Order assigned to agent",
        extra={
            "order_id": str(order.id),
            "agent_id": str(agent.id),
            "owed": str(owed),
        },
    )
    return entry


@transaction.atomic
def adjust_agent_shipping(*, order, new_cost, user=None) -> LedgerEntry | None:
    """
    Correct the agent shipping cost of an assigned order.

    Appends MODIFICATION = -(new - old) on the order's attribution day.
    Returns None when the cost is unchanged.
    """
    order, agent = lock_order_with_agent(order)
    _require_assigned(order, agent)
    if not can_adjust_shipping(order=order):
        raise InvalidOrderStateError(
            f"Agent shipping of order #{order.order_number} cannot change in status '{order.status}'"
        )

    new_cost = _non_negative_money(new_cost, field="agent_shipping_cost")
    old_cost = money(order.agent_shipping_cost)
    diff = -(new_cost - old_cost)

    if diff == ZERO:
        return None

    order.agent_shipping_cost = new_cost
    order.save(update_fields=["agent_shipping_cost", "updated_at"])

    entry = append_entry(
        agent=agent,
        order=order,
        entry_type=LedgerEntry.MODIFICATION,
        amount=diff,
        attribution_date=order_attribution_day(order),
        note=f"Agent shipping {old_cost} -> {new_cost} on order #{order.order_number}",
        recorded_by=user,
    )

    logger.info(
        "Agent shipping adjusted",
        extra={
            "order_id": str(order.id),
            "agent_id": str(agent.id),
            "old_cost": str(old_cost),
            "new_cost": str(new_cost),
        },
    )
    return entry


# ============================================================
# DELIVERY
# ============================================================


@transaction.atomic
def mark_delivered(*, order, user=None) -> LedgerEntry:
    order, agent = lock_order_with_agent(order)
    _require_assigned(order, agent)
    _transition(order, Order.STATUS_DELIVERED)

    entry = _deliver(order, agent, user=user)

    logger.info(
        "Order delivered",
        extra={"order_id": str(order.id), "agent_id": str(agent.id), "amount": str(entry.amount)},
    )
    return entry


@transaction.atomic
def mark_delivered_with_modification(*, order, modified_amount, user=None) -> LedgerEntry:
    """
    The customer paid modified_amount for the goods instead of the charge.

    MODIFICATION = modified - charge
    DELIVERED    = modified + customer shipping - agent shipping
    """
    order, agent = lock_order_with_agent(order)
    _require_assigned(order, agent)
    _transition(order, Order.STATUS_DELIVERED_WITH_MODIFICATION)

    modified = _non_negative_money(modified_amount, field="modified_amount")
    day = order_attribution_day(order)
    diff = modified - money(order.customer_charge_amount)

    if diff != ZERO:
        append_entry(
            agent=agent,
            order=order,
            entry_type=LedgerEntry.MODIFICATION,
            amount=diff,
            attribution_date=day,
            note=f"Collected {modified} instead of {order.customer_charge_amount}",
            recorded_by=user,
            refresh_totals=False,
        )

    delivered = agent_net(
        charge=modified,
        customer_shipping=order.customer_shipping_cost,
        agent_shipping=order.agent_shipping_cost,
    )
    entry = append_entry(
        agent=agent,
        order=order,
        entry_type=LedgerEntry.DELIVERED,
        amount=delivered,
        attribution_date=day,
        note=f"Delivered order #{order.order_number} with modification",
        recorded_by=user,
    )

    order.status = Order.STATUS_DELIVERED_WITH_MODIFICATION
    order.modified_amount = modified
    order.delivered_amount = delivered
    order.save(update_fields=["status", "modified_amount", "delivered_amount", "updated_at"])

    logger.info(
        "Order delivered with modification",
        extra={
            "order_id": str(order.id),
            "agent_id": str(agent.id),
            "modified_amount": str(modified),
            "delivered": str(delivered),
        },
    )
    return entry


# ============================================================
# RETURNS
# ============================================================


def _aggregate_return_lines(lines) -> "OrderedDict[str, int]":
    if not isinstance(lines, (list, tuple)):
        raise ReturnQuantityError("Returned items must be a list")

    wanted: OrderedDict[str, int] = OrderedDict()
    for line in lines:
        if not isinstance(line, dict) or not line.get("order_item_id"):
            raise ReturnQuantityError("Each returned item requires order_item_id")
        try:
            qty = quantity(line.get("quantity"))
        except PricingError as exc:
            raise ReturnQuantityError(str(exc)) from exc

        key = str(line["order_item_id"])
        wanted[key] = wanted.get(key, 0) + qty
    return wanted


@transaction.atomic
def register_return(
    *,
    order,
    items,
    remove_shipping: bool = False,
    note: str = "",
    user=None,
) -> ReturnRecord:
    """
    Register goods handed back by the agent.

    - quantities must lie in [0, remaining] per line (remaining = ordered - returned)
    - remove_shipping -> return_no_shipping, agent cleared
    - all lines fully returned -> returned, otherwise partially_returned
    - RETURN = -(sum of unit_price x qty) on the attribution day
    """
    order, agent = lock_order_with_agent(order)
    _require_assigned(order, agent)

    if not can_register_return(order=order):
        raise InvalidOrderStateError(
            f"Order #{order.order_number} cannot accept returns in status '{order.status}'"
        )

    wanted = _aggregate_return_lines(items)

    order_items = OrderedDict((str(item.id), item) for item in order.items.order_by("id"))
    unknown = [key for key in wanted if key not in order_items]
    if unknown:
        raise ReturnQuantityError(f"Items do not belong to order #{order.order_number}: {unknown}")

    already = {
        str(row["order_item_id"]): row["qty"]
        for row in ReturnRecordItem.objects.filter(order_item__order=order)
        .values("order_item_id")
        .annotate(qty=Sum("quantity"))
    }

    lines = []
    fully_returned = True
    for key, item in order_items.items():
        previously = already.get(key, 0)
        remaining = item.quantity - previously
        qty = wanted.get(key, 0)

        if qty > remaining:
            raise ReturnQuantityError(
                f"Cannot return {qty} x {item.product_name}; only {remaining} remaining"
            )
        if previously + qty < item.quantity:
            fully_returned = False
        if qty:
            lines.append((item, qty))

    if not lines and not remove_shipping:
        raise ReturnQuantityError("Nothing to return")

    if remove_shipping:
        target = Order.STATUS_RETURN_NO_SHIPPING
    elif fully_returned:
        target = Order.STATUS_RETURNED
    else:
        target = Order.STATUS_PARTIALLY_RETURNED
    _transition(order, target)

    return_amount = money(sum((money(item.unit_price) * qty for item, qty in lines), ZERO))
    day = order_attribution_day(order)

    record = ReturnRecord.objects.create(
        order=order,
        customer_id=order.customer_id,
        agent=agent,
        return_amount=return_amount,
        remove_shipping=bool(remove_shipping),
        note=(note or "").strip(),
    )
    ReturnRecordItem.objects.bulk_create(
        [
            ReturnRecordItem(
                return_record=record,
                order_item=item,
                position=position,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=qty,
                unit_price=item.unit_price,
            )
            for position, (item, qty) in enumerate(lines)
        ]
    )

    if return_amount != ZERO:
        append_entry(
            agent=agent,
            order=order,
            entry_type=LedgerEntry.RETURN,
            amount=-return_amount,
            attribution_date=day,
            note=f"Return on order #{order.order_number}",
            recorded_by=user,
        )

    order.status = target
    update_fields = ["status", "updated_at"]
    if remove_shipping:
        order.agent = None
        update_fields.append("agent")
    order.save(update_fields=update_fields)

    logger.info(
        "Return registered",
        extra={
            "order_id": str(order.id),
            "agent_id": str(agent.id),
            "return_amount": str(return_amount),
            "status": target,
        },
    )
    return record


# ============================================================
# ADVANCE PAYMENTS
# ============================================================


@transaction.atomic
def record_advance_payment(*, agent, amount, on_date=None, note: str = "", user=None) -> LedgerEntry:
    agent = lock_agent(agent)

    try:
        amt = money(amount)
    except PricingError as exc:
        raise LedgerValidationError(str(exc)) from exc

    if amt <= ZERO:
        raise LedgerValidationError("Advance payment must be greater than zero")

    today = business_today()
    day = on_date or today
    if day > today:
        raise LedgerValidationError("Advance payments cannot be dated in the future")

    entry = append_entry(
        agent=agent,
        entry_type=LedgerEntry.PAYMENT,
        amount=amt,
        attribution_date=day,
        note=note or "Advance payment",
        recorded_by=user,
    )

    logger.info(
        "Advance payment recorded",
        extra={"agent_id": str(agent.id), "amount": str(amt), "date": day.isoformat()},
    )
    return entry


def _void_note(entry: LedgerEntry) -> str:
    return f"Void of payment {entry.id}"


@transaction.atomic
def void_advance_payment(*, entry, user=None) -> LedgerEntry:
    """
    Offset a payment with PAYMENT(-amount) on the same attribution day.
    """
    agent = lock_agent(entry.agent_id)

    if entry.entry_type != LedgerEntry.PAYMENT or entry.amount <= ZERO:
        raise LedgerValidationError("Only positive advance payments can be voided")

    if not LedgerEntry.objects.filter(pk=entry.pk).exists():
        raise LedgerValidationError("Payment was already cleared")

    if LedgerEntry.objects.filter(
        agent=agent, entry_type=LedgerEntry.PAYMENT, note=_void_note(entry)
    ).exists():
        raise LedgerValidationError("Payment was already voided")

    voided = append_entry(
        agent=agent,
        entry_type=LedgerEntry.PAYMENT,
        amount=-entry.amount,
        attribution_date=entry.attribution_date,
        note=_void_note(entry),
        recorded_by=user,
    )

    logger.info(
        "Advance payment voided",
        extra={"agent_id": str(agent.id), "entry_id": str(entry.id), "amount": str(entry.amount)},
    )
    return voided


# ============================================================
# PERIOD RESETS
# ============================================================


def _append_reset(*, agent, entry_type: str, figure: str, on_date=None, user=None):
    agent = lock_agent(agent)

    # Net is computed only once the agent row is locked.
    balance = get_agent_balance(agent, on_date)
    net = getattr(balance, figure)

    if net <= ZERO:
        return None

    qs = LedgerEntry.objects.filter(agent=agent)
    if on_date is not None:
        qs = qs.filter(attribution_date=on_date)
    period_start = qs.aggregate(first=Min("attribution_date"))["first"]
    period_end = on_date or business_today()

    entry = append_entry(
        agent=agent,
        entry_type=entry_type,
        amount=net,
        attribution_date=period_end,
        period_start=min(period_start or period_end, period_end),
        period_end=period_end,
        note=f"{figure} reset",
        recorded_by=user,
    )

    logger.info(
        "Agent period reset",
        extra={
            "agent_id": str(agent.id),
            "entry_type": entry_type,
            "amount": str(net),
            "date": on_date.isoformat() if on_date else None,
        },
    )
    return entry


@transaction.atomic
def reset_delivered(*, agent, on_date=None, user=None) -> LedgerEntry | None:
    return _append_reset(
        agent=agent,
        entry_type=LedgerEntry.DELIVERED_RESET,
        figure="delivered_net",
        on_date=on_date,
        user=user,
    )


@transaction.atomic
def reset_returns(*, agent, on_date=None, user=None) -> LedgerEntry | None:
    return _append_reset(
        agent=agent,
        entry_type=LedgerEntry.RETURN_RESET,
        figure="remaining_returns",
        on_date=on_date,
        user=user,
    )


@transaction.atomic
def reset_advance(*, agent, user=None) -> list[dict]:
    agent = lock_agent(agent)
    removed = clear_outstanding_payments(agent)

    logger.info(
        "Advance payments cleared",
        extra={
            "agent_id": str(agent.id),
            "count": len(removed),
            "user_id": getattr(user, "pk", None),
        },
    )
    return removed


# ============================================================
# SETTLEMENT (IRREVERSIBLE)
# ============================================================


@transaction.atomic
def settle_agent(*, agent, user) -> dict:
    """
    Close out an agent:
    - every pending/shipped order -> delivered (shipped ones get DELIVERED)
    - every outstanding PAYMENT entry deleted

    Requires settlement.settle_agent.
    """
    if user is None or not user.has_perm(SETTLE_PERMISSION):
        raise PermissionDenied("You do not have permission to settle agent accounts.")

    agent = lock_agent(agent)

    orders = list(
        Order.objects.select_for_update()
        .filter(agent=agent, status__in=OUTSTANDING_STATES)
        .order_by("order_number")
    )

    delivered_ids = []
    for order in orders:
        if order.status == Order.STATUS_SHIPPED:
            _deliver(order, agent, user=user, refresh_totals=False)
        else:
            order.status = Order.STATUS_DELIVERED
            order.save(update_fields=["status", "updated_at"])
        delivered_ids.append(str(order.id))

    removed = clear_outstanding_payments(agent)
    refresh_agent_totals(agent)

    logger.warning(
        "Agent settled",
        extra={
            "agent_id": str(agent.id),
            "orders_delivered": len(delivered_ids),
            "payments_cleared": len(removed),
            "user_id": getattr(user, "pk", None),
        },
    )
    return {
        "agent": agent,
        "orders_delivered": delivered_ids,
        "payments_cleared": removed,
        "balance": get_agent_balance(agent),
    }


# ============================================================
# CANCELLATION
# ============================================================


@transaction.atomic
def cancel_order(*, order, user=None) -> LedgerEntry | None:
    """
    pending -> cancelled: status only.
    shipped -> cancelled: MODIFICATION(-current net) so the order stops
    contributing to net required.
    """
    order, agent = lock_order_with_agent(order)
    _transition(order, Order.STATUS_CANCELLED)

    entry = None
    if order.status == Order.STATUS_SHIPPED and agent is not None:
        net = _order_net_contribution(order)
        if net != ZERO:
            entry = append_entry(
                agent=agent,
                order=order,
                entry_type=LedgerEntry.MODIFICATION,
                amount=-net,
                attribution_date=order_attribution_day(order),
                note=f"Cancelled order #{order.order_number}",
                recorded_by=user,
            )

    order.status = Order.STATUS_CANCELLED
    order.save(update_fields=["status", "updated_at"])

    logger.info(
        "Order cancelled",
        extra={
            "order_id": str(order.id),
            "agent_id": str(agent.id) if agent else None,
            "offset": str(entry.amount) if entry else None,
        },
    )
    return entry
