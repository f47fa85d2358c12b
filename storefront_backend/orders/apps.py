"""
ORDERS APP CONFIG

Orders, order items, customers and return records (mutable order state).
"""

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
    verbose_name = "Orders"
