# settlement/services/locks.py

"""
ROW LOCKS FOR SETTLEMENT OPERATIONS

Every settlement operation locks the agent row (and the order row when one
is involved) before reading derived figures. Two operators acting on the
same agent therefore serialize; different agents never contend.

Lock order is always AGENT, then ORDER.

Must be called inside transaction.atomic().
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import transaction

from agents.models import Agent
from orders.models import Order
from settlement.services.exceptions import (
    AgentNotFoundError,
    InvalidOrderStateError,
    OrderNotFoundError,
)


def _assert_in_transaction():
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("Row locks must be taken inside transaction.atomic()")


def lock_agent(agent_or_id) -> Agent:
    _assert_in_transaction()
    agent_id = getattr(agent_or_id, "pk", agent_or_id)
    try:
        return Agent.objects.select_for_update().get(pk=agent_id)
    except (Agent.DoesNotExist, ValueError, ValidationError) as exc:
        raise AgentNotFoundError(f"Agent {agent_id} not found") from exc


def lock_order(order_or_id) -> Order:
    _assert_in_transaction()
    order_id = getattr(order_or_id, "pk", order_or_id)
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except (Order.DoesNotExist, ValueError, ValidationError) as exc:
        raise OrderNotFoundError(f"Order {order_id} not found") from exc


def lock_order_with_agent(order_or_id) -> tuple[Order, Agent | None]:
    """
    Lock the order's current agent, then the order itself.

    The agent is read before the order lock is held, so the pairing is
    re-checked once both rows are locked.
    """
    _assert_in_transaction()
    order_id = getattr(order_or_id, "pk", order_or_id)
    try:
        agent_id = (
            Order.objects.filter(pk=order_id).values_list("agent_id", flat=True).get()
        )
    except (Order.DoesNotExist, ValueError, ValidationError) as exc:
        raise OrderNotFoundError(f"Order {order_id} not found") from exc

    agent = lock_agent(agent_id) if agent_id else None
    order = lock_order(order_id)

    if order.agent_id != agent_id:
        raise InvalidOrderStateError(
            f"Order #{order.order_number} was reassigned concurrently; retry the operation"
        )
    return order, agent
