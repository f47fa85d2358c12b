# agents/models/agent.py

"""
======================================================
PATH: agents/models/agent.py
======================================================
DELIVERY AGENT MODEL

A courier who carries orders to customers and collects cash on delivery.

Cached totals:
- total_owed  = owed + modifications + returns   (net required)
- total_paid  = delivered + advance payments
- receivable  = total_owed - total_paid

These two fields are memoized projections of settlement.LedgerEntry.
They are ONLY written by settlement.services.agent_totals.refresh_agent_totals()
inside the same transaction that appends ledger entries. Never mutate them
directly from views, admin or other services.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models


class Agent(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=120)
    phone = models.CharField(max_length=32)
    serial_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="Operator-facing agent code (printed on manifests).",
    )

    is_active = models.BooleanField(default=True)

    total_owed = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
        help_text="Cached net required (ledger projection).",
    )
    total_paid = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
        help_text="Cached delivered + advance payments (ledger projection).",
    )
    totals_refreshed_at = models.DateTimeField(null=True, blank=True, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "agents"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["serial_number"], name="agents_serial__5d1e0a_idx"),
            models.Index(fields=["is_active"], name="agents_is_acti_8b7c21_idx"),
        ]

    @property
    def cached_receivable(self) -> Decimal:
        return (self.total_owed or Decimal("0.00")) - (self.total_paid or Decimal("0.00"))

    def __str__(self):
        return f"{self.name} ({self.serial_number})"
