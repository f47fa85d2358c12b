"""
======================================================
PATH: settlement/migrations/0001_initial.py
======================================================
MIGRATION: CREATE LedgerEntry (append-only agent ledger)
"""

from __future__ import annotations

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("agents", "0001_initial"),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True, default=uuid.uuid4, editable=False, serialize=False
                    ),
                ),
                (
                    "entry_type",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("owed", "Owed"),
                            ("payment", "Payment"),
                            ("delivered", "Delivered"),
                            ("return", "Return"),
                            ("modification", "Modification"),
                            ("delivered_reset", "Delivered reset"),
                            ("return_reset", "Return reset"),
                        ],
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        max_digits=14, decimal_places=2, help_text="Signed monetary value"
                    ),
                ),
                (
                    "attribution_date",
                    models.DateField(help_text="Reporting day (business timezone)"),
                ),
                (
                    "period_start",
                    models.DateField(
                        null=True,
                        blank=True,
                        help_text="First day of the period a reset entry closes",
                    ),
                ),
                (
                    "period_end",
                    models.DateField(
                        null=True,
                        blank=True,
                        help_text="Last day of the period a reset entry closes",
                    ),
                ),
                ("note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "agent",
                    models.ForeignKey(
                        to="agents.agent",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        to="orders.order",
                        on_delete=django.db.models.deletion.PROTECT,
                        null=True,
                        blank=True,
                        related_name="ledger_entries",
                    ),
                ),
                (
                    "recorded_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        on_delete=django.db.models.deletion.SET_NULL,
                        null=True,
                        blank=True,
                        related_name="agent_ledger_entries",
                    ),
                ),
            ],
            options={
                "db_table": "ledger_entries",
                "verbose_name": "Ledger Entry",
                "verbose_name_plural": "Ledger Entries",
                "ordering": ["created_at"],
                "permissions": [("settle_agent", "Can settle delivery agent accounts")],
                "indexes": [
                    models.Index(fields=["agent", "attribution_date"], name="ledger_agent_date_idx"),
                    models.Index(fields=["agent", "entry_type"], name="ledger_agent_type_idx"),
                    models.Index(fields=["order"], name="ledger_order_idx"),
                    models.Index(fields=["created_at"], name="ledger_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(period_start__isnull=True)
                        | models.Q(period_end__isnull=True)
                        | models.Q(period_end__gte=models.F("period_start")),
                        name="chk_ledger_period_end_gte_start",
                    ),
                ],
            },
        ),
    ]
