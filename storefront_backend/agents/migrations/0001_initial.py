"""
======================================================
PATH: agents/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Agent
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Agent",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=120)),
                ("phone", models.CharField(max_length=32)),
                (
                    "serial_number",
                    models.CharField(
                        max_length=32,
                        unique=True,
                        help_text="Operator-facing agent code (printed on manifests).",
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                (
                    "total_owed",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        default=Decimal("0.00"),
                        editable=False,
                        help_text="Cached net required (ledger projection).",
                    ),
                ),
                (
                    "total_paid",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        default=Decimal("0.00"),
                        editable=False,
                        help_text="Cached delivered + advance payments (ledger projection).",
                    ),
                ),
                (
                    "totals_refreshed_at",
                    models.DateTimeField(null=True, blank=True, editable=False),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "agents",
                "ordering": ["name"],
            },
        ),
        migrations.AddIndex(
            model_name="agent",
            index=models.Index(fields=["serial_number"], name="agents_serial__5d1e0a_idx"),
        ),
        migrations.AddIndex(
            model_name="agent",
            index=models.Index(fields=["is_active"], name="agents_is_acti_8b7c21_idx"),
        ),
    ]
