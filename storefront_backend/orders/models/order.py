# orders/models/order.py

"""
======================================================
PATH: orders/models/order.py
======================================================
ORDER MODEL (MUTABLE STATE)

Represents a storefront order and its delivery lifecycle.

Money fields:
- customer_charge_amount: item subtotal minus discount (what the customer
  pays for goods, excluding shipping)
- customer_shipping_cost: shipping charged to the customer
- agent_shipping_cost: what the delivery agent keeps for the trip; tracked
  independently of customer_shipping_cost
- modified_amount: amount actually collected when delivered with modification
- delivered_amount: snapshot of the Delivered ledger entry

Attribution:
- assigned_at is the attribution moment for every ledger entry of the order
  (rewritten by the reschedule service)
- first_assigned_at is set once at assignment and never moves

Status changes with money effects MUST go through
settlement.services.settlement_service; this model holds state only.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import IntegrityError, models, transaction
from django.db.models import Max

from agents.models import Agent
from orders.models.customer import Customer

ORDER_NUMBER_ATTEMPTS = 5


class Order(models.Model):
    STATUS_PENDING = "pending"
    STATUS_SHIPPED = "shipped"
    STATUS_DELIVERED = "delivered"
    STATUS_DELIVERED_WITH_MODIFICATION = "delivered_with_modification"
    STATUS_RETURNED = "returned"
    STATUS_PARTIALLY_RETURNED = "partially_returned"
    STATUS_RETURN_NO_SHIPPING = "return_no_shipping"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_DELIVERED_WITH_MODIFICATION, "Delivered with modification"),
        (STATUS_RETURNED, "Returned"),
        (STATUS_PARTIALLY_RETURNED, "Partially returned"),
        (STATUS_RETURN_NO_SHIPPING, "Returned without shipping"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.PositiveIntegerField(
        unique=True,
        editable=False,
        help_text="Human-facing sequence number",
    )

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    agent = models.ForeignKey(
        Agent,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )

    status = models.CharField(
        max_length=32,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
    )

    customer_charge_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    customer_shipping_cost = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    agent_shipping_cost = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    discount_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    modified_amount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    delivered_amount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )

    assigned_at = models.DateTimeField(null=True, blank=True)
    first_assigned_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_3f2a1c_idx"),
            models.Index(fields=["agent", "status"], name="orders_agent_i_7e41b9_idx"),
            models.Index(fields=["assigned_at"], name="orders_assigne_c09d55_idx"),
        ]

    # --------------------------------------------------
    # READ HELPERS
    # --------------------------------------------------

    @property
    def effective_charge_amount(self) -> Decimal:
        if self.modified_amount is not None:
            return Decimal(self.modified_amount)
        return Decimal(self.customer_charge_amount)

    @property
    def customer_total(self) -> Decimal:
        """What the customer pays: goods + customer shipping."""
        return Decimal(self.customer_charge_amount) + Decimal(self.customer_shipping_cost)

    @property
    def agent_net_amount(self) -> Decimal:
        """What the agent must hand over for this order."""
        return (
            Decimal(self.customer_charge_amount)
            + Decimal(self.customer_shipping_cost)
            - Decimal(self.agent_shipping_cost)
        )

    @property
    def is_assigned(self) -> bool:
        return self.agent_id is not None and self.assigned_at is not None

    @classmethod
    def next_order_number(cls) -> int:
        last = cls.objects.aggregate(last=Max("order_number"))["last"] or 0
        return last + 1

    def save(self, *args, **kwargs):
        if self.order_number:
            super().save(*args, **kwargs)
            return

        # Concurrent intakes can read the same Max; retry inside a savepoint.
        for attempt in range(ORDER_NUMBER_ATTEMPTS):
            self.order_number = self.next_order_number()
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                self.order_number = None
                if attempt == ORDER_NUMBER_ATTEMPTS - 1:
                    raise

    def __str__(self):
        return f"#{self.order_number} | {self.status}"
