"""
AGENTS APP CONFIG

Delivery agents (couriers) and their cached ledger totals.
"""

from django.apps import AppConfig


class AgentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "agents"
    verbose_name = "Delivery Agents"
