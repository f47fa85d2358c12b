# settlement/models/ledger_entry.py

"""
======================================================
PATH: settlement/models/ledger_entry.py
======================================================
AGENT LEDGER ENTRY MODEL

A signed, type-tagged monetary fact about one delivery agent
(and usually one order).

Guarantees:
- Immutable once created (instance save() on an existing row and
  instance delete() both raise)
- Amount is signed; meaning comes from entry_type
  (return entries are stored negative)
- attribution_date is the reporting day, distinct from created_at

Sanctioned bulk writers (settlement service layer only):
- reschedule_service moves attribution_date for all entries of one order
- settlement_service clears outstanding PAYMENT entries (reset_advance / settle)
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from agents.models import Agent
from orders.models import Order


class LedgerEntry(models.Model):
    OWED = "owed"
    PAYMENT = "payment"
    DELIVERED = "delivered"
    RETURN = "return"
    MODIFICATION = "modification"
    DELIVERED_RESET = "delivered_reset"
    RETURN_RESET = "return_reset"

    ENTRY_TYPES = [
        (OWED, "Owed"),
        (PAYMENT, "Payment"),
        (DELIVERED, "Delivered"),
        (RETURN, "Return"),
        (MODIFICATION, "Modification"),
        (DELIVERED_RESET, "Delivered reset"),
        (RETURN_RESET, "Return reset"),
    ]

    RESET_TYPES = (DELIVERED_RESET, RETURN_RESET)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    agent = models.ForeignKey(
        Agent,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )

    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="ledger_entries",
    )

    entry_type = models.CharField(
        max_length=16,
        choices=ENTRY_TYPES,
    )

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Signed monetary value",
    )

    attribution_date = models.DateField(
        help_text="Reporting day (business timezone)",
    )

    period_start = models.DateField(
        null=True,
        blank=True,
        help_text="First day of the period a reset entry closes",
    )
    period_end = models.DateField(
        null=True,
        blank=True,
        help_text="Last day of the period a reset entry closes",
    )

    note = models.TextField(blank=True, default="")

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="agent_ledger_entries",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "ledger_entries"
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["agent", "attribution_date"], name="ledger_agent_date_idx"),
            models.Index(fields=["agent", "entry_type"], name="ledger_agent_type_idx"),
            models.Index(fields=["order"], name="ledger_order_idx"),
            models.Index(fields=["created_at"], name="ledger_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(period_start__isnull=True)
                | Q(period_end__isnull=True)
                | Q(period_end__gte=F("period_start")),
                name="chk_ledger_period_end_gte_start",
            ),
        ]
        permissions = [
            ("settle_agent", "Can settle delivery agent accounts"),
        ]

    def __str__(self):
        return f"{self.entry_type} {self.amount} → {self.agent_id} @ {self.attribution_date}"

    def clean(self):
        if self.entry_type not in dict(self.ENTRY_TYPES):
            raise ValidationError("Invalid entry_type")

        if self.amount is None or not self.amount.is_finite():
            raise ValidationError("Ledger amount must be a finite number")

        if self.entry_type == self.RETURN and self.amount > 0:
            raise ValidationError("Return entries are stored as negative amounts")

        if self.entry_type in self.RESET_TYPES and self.amount < 0:
            raise ValidationError("Reset entries cannot be negative")

        if self.period_start and self.period_end and self.period_end < self.period_start:
            raise ValidationError({"period_end": "period_end must be >= period_start"})

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("LedgerEntry records are immutable and cannot be modified")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("LedgerEntry records are immutable and cannot be deleted")
