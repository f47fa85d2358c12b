"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Order entities.

DESIGN PRINCIPLES:
- No database writes
- No ledger mutation
- No side effects
- Single source of truth
"""

from orders.models import Order

# ============================================================
# DOMAIN ERRORS
# ============================================================


class OrderLifecycleError(Exception):
    pass


class InvalidOrderTransitionError(OrderLifecycleError):
    pass


# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Order.STATUS_RETURNED,
    Order.STATUS_RETURN_NO_SHIPPING,
    Order.STATUS_CANCELLED,
}

RETURN_STATES = {
    Order.STATUS_RETURNED,
    Order.STATUS_PARTIALLY_RETURNED,
    Order.STATUS_RETURN_NO_SHIPPING,
}

ALLOWED_TRANSITIONS = {
    Order.STATUS_PENDING: {
        Order.STATUS_SHIPPED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_SHIPPED: {
        Order.STATUS_DELIVERED,
        Order.STATUS_DELIVERED_WITH_MODIFICATION,
        Order.STATUS_CANCELLED,
        *RETURN_STATES,
    },
    Order.STATUS_DELIVERED: RETURN_STATES,
    Order.STATUS_DELIVERED_WITH_MODIFICATION: RETURN_STATES,
    Order.STATUS_PARTIALLY_RETURNED: RETURN_STATES,
}

# Orders whose agent shipping cost can no longer change.
SHIPPING_LOCKED_STATES = {
    Order.STATUS_PENDING,
    Order.STATUS_RETURN_NO_SHIPPING,
    Order.STATUS_CANCELLED,
}

# Orders that settle_agent() closes out.
OUTSTANDING_STATES = {
    Order.STATUS_PENDING,
    Order.STATUS_SHIPPED,
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, order: Order, target_status: str):
    if not can_transition(
        from_status=order.status,
        to_status=target_status,
    ):
        raise InvalidOrderTransitionError(
            f"Order #{order.order_number} cannot transition from "
            f"'{order.status}' to '{target_status}'"
        )


def can_register_return(*, order: Order) -> bool:
    return any(
        can_transition(from_status=order.status, to_status=s) for s in RETURN_STATES
    )


def can_adjust_shipping(*, order: Order) -> bool:
    """
    Shipping corrections need an order that still contributes to the
    agent's net required (not pending, not cancelled, agent not dropped).
    """
    return order.status not in SHIPPING_LOCKED_STATES
