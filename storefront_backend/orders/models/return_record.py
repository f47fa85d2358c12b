# orders/models/return_record.py

"""
======================================================
PATH: orders/models/return_record.py
======================================================
RETURN RECORD (APPEND-ONLY)

Purpose:
- Immutable record of goods handed back by a delivery agent.
- Multiple records per order are allowed (cumulative partial returns).
- ReturnRecordItem rows are the single source of truth for
  "already returned" quantities per order item.

Design guarantees:
- Append-only (no updates, no deletes)
- Over-returning is prevented at service layer
- agent is kept even when the order itself loses its agent
  (return_no_shipping clears Order.agent)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models

from agents.models import Agent
from orders.models.customer import Customer
from orders.models.order import Order
from orders.models.order_item import OrderItem


class ReturnRecord(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name="return_records",
    )

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="return_records",
    )

    agent = models.ForeignKey(
        Agent,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="return_records",
    )

    return_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Sum of unit_price x quantity over the returned lines (positive).",
    )

    remove_shipping = models.BooleanField(default=False)

    note = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "return_records"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="returns_order_i_1a9e4d_idx"),
            models.Index(fields=["agent", "created_at"], name="returns_agent_i_6c02f7_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("ReturnRecord records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("ReturnRecord records cannot be deleted")

    def __str__(self):
        return f"Return | order={self.order_id} | {self.return_amount}"


class ReturnRecordItem(models.Model):
    """
    Immutable returned line (ordered by position).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    return_record = models.ForeignKey(
        ReturnRecord,
        on_delete=models.PROTECT,
        related_name="items",
    )

    order_item = models.ForeignKey(
        OrderItem,
        on_delete=models.PROTECT,
        related_name="returns",
    )

    position = models.PositiveIntegerField(default=0)

    product_id = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "return_record_items"
        ordering = ["return_record", "position"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("ReturnRecordItem records are immutable")

        if self.quantity <= 0:
            raise ValueError("quantity must be greater than zero")

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("ReturnRecordItem records cannot be deleted")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_price) * Decimal(self.quantity)

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"
