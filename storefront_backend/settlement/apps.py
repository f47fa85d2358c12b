"""
SETTLEMENT APP CONFIG

Delivery-agent settlement ledger:
- append-only ledger entries
- balance calculator
- settlement operations and reattribution
"""

from django.apps import AppConfig


class SettlementConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "settlement"
    verbose_name = "Agent Settlement"
