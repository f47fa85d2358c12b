# orders/models/order_item.py

import uuid
from decimal import Decimal

from django.db import models

from orders.models.order import Order


class OrderItem(models.Model):
    """
    One product line on an order.

    product_id / product_name are snapshots; the catalog lives elsewhere.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product_id = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255)

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "order_items"
        ordering = ["id"]

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_price) * Decimal(self.quantity)

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"
