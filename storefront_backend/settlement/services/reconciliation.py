# settlement/services/reconciliation.py

"""
LEDGER vs ORDER RECONCILIATION (READ-ONLY)

Recomputes an agent's receivable from order state instead of the ledger:

    per assigned order (not cancelled):
        net      = effective charge + customer shipping - agent shipping
        returned = sum(return_record.return_amount)
        delivered= order.delivered_amount
    receivable = sum(net - returned) - sum(delivered) - advance payments

Orders returned without shipping lose their agent, so they are found
through their return records.
"""

from __future__ import annotations

from datetime import date

from django.db.models import Q, Sum

from orders.models import Order, ReturnRecord
from orders.services.pricing import agent_net, money
from settlement.models import LedgerEntry
from settlement.services.attribution import order_attribution_day
from settlement.services.balance_service import ZERO, get_agent_balance


def _agent_orders(agent):
    return (
        Order.objects.filter(
            Q(agent=agent) | Q(return_records__agent=agent),
            assigned_at__isnull=False,
        )
        .exclude(status=Order.STATUS_CANCELLED)
        .distinct()
    )


def receivable_from_orders(agent, on_date: date | None = None):
    net_required = ZERO
    delivered = ZERO

    for order in _agent_orders(agent):
        if on_date is not None and order_attribution_day(order) != on_date:
            continue

        returned = ReturnRecord.objects.filter(order=order).aggregate(
            total=Sum("return_amount")
        )["total"]

        net_required += agent_net(
            charge=order.effective_charge_amount,
            customer_shipping=order.customer_shipping_cost,
            agent_shipping=order.agent_shipping_cost,
        ) - money(returned)

        if order.delivered_amount is not None:
            delivered += money(order.delivered_amount)

    payments = LedgerEntry.objects.filter(agent=agent, entry_type=LedgerEntry.PAYMENT)
    if on_date is not None:
        payments = payments.filter(attribution_date=on_date)
    paid = money(payments.aggregate(total=Sum("amount"))["total"])

    return money(net_required - delivered - paid)


def reconcile_agent(agent, on_date: date | None = None) -> dict:
    ledger = get_agent_balance(agent, on_date).receivable
    orders = receivable_from_orders(agent, on_date)

    return {
        "agent_id": str(agent.id),
        "date": on_date.isoformat() if on_date else None,
        "ledger_receivable": str(ledger),
        "order_receivable": str(orders),
        "difference": str(ledger - orders),
        "balanced": ledger == orders,
    }
