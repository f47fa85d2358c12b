# orders/models/__init__.py

"""
ORDERS MODELS PACKAGE EXPORTS

Keep this file imports-only (no business logic).
"""

from orders.models.customer import Customer
from orders.models.order import Order
from orders.models.order_item import OrderItem
from orders.models.return_record import ReturnRecord, ReturnRecordItem

__all__ = [
    "Customer",
    "Order",
    "OrderItem",
    "ReturnRecord",
    "ReturnRecordItem",
]
