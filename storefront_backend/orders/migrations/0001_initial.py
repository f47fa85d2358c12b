"""
======================================================
PATH: orders/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Customer, Order, OrderItem, ReturnRecord, ReturnRecordItem
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("agents", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True, default=uuid.uuid4, editable=False, serialize=False
                    ),
                ),
                ("name", models.CharField(max_length=120)),
                ("phone", models.CharField(max_length=32)),
                ("phone2", models.CharField(max_length=32, blank=True, default="")),
                ("address", models.TextField(blank=True, default="")),
                ("governorate", models.CharField(max_length=64, blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "customers",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True, default=uuid.uuid4, editable=False, serialize=False
                    ),
                ),
                (
                    "order_number",
                    models.PositiveIntegerField(
                        unique=True, editable=False, help_text="Human-facing sequence number"
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        max_length=32,
                        default="pending",
                        choices=[
                            ("pending", "Pending"),
                            ("shipped", "Shipped"),
                            ("delivered", "Delivered"),
                            ("delivered_with_modification", "Delivered with modification"),
                            ("returned", "Returned"),
                            ("partially_returned", "Partially returned"),
                            ("return_no_shipping", "Returned without shipping"),
                            ("cancelled", "Cancelled"),
                        ],
                    ),
                ),
                (
                    "customer_charge_amount",
                    models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00")),
                ),
                (
                    "customer_shipping_cost",
                    models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00")),
                ),
                (
                    "agent_shipping_cost",
                    models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00")),
                ),
                (
                    "discount_amount",
                    models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00")),
                ),
                (
                    "modified_amount",
                    models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True),
                ),
                (
                    "delivered_amount",
                    models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True),
                ),
                ("assigned_at", models.DateTimeField(null=True, blank=True)),
                ("first_assigned_at", models.DateTimeField(null=True, blank=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        to="orders.customer",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                    ),
                ),
                (
                    "agent",
                    models.ForeignKey(
                        to="agents.agent",
                        on_delete=django.db.models.deletion.SET_NULL,
                        null=True,
                        blank=True,
                        related_name="orders",
                    ),
                ),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="orders_status_3f2a1c_idx"),
                    models.Index(fields=["agent", "status"], name="orders_agent_i_7e41b9_idx"),
                    models.Index(fields=["assigned_at"], name="orders_assigne_c09d55_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True, default=uuid.uuid4, editable=False, serialize=False
                    ),
                ),
                ("product_id", models.CharField(max_length=64)),
                ("product_name", models.CharField(max_length=255)),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(max_digits=12, decimal_places=2)),
                (
                    "order",
                    models.ForeignKey(
                        to="orders.order",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                    ),
                ),
            ],
            options={
                "db_table": "order_items",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="ReturnRecord",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True, default=uuid.uuid4, editable=False, serialize=False
                    ),
                ),
                (
                    "return_amount",
                    models.DecimalField(
                        max_digits=12,
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Sum of unit_price x quantity over the returned lines (positive).",
                    ),
                ),
                ("remove_shipping", models.BooleanField(default=False)),
                ("note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        to="orders.order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_records",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        to="orders.customer",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_records",
                    ),
                ),
                (
                    "agent",
                    models.ForeignKey(
                        to="agents.agent",
                        on_delete=django.db.models.deletion.SET_NULL,
                        null=True,
                        blank=True,
                        related_name="return_records",
                    ),
                ),
            ],
            options={
                "db_table": "return_records",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["order", "created_at"], name="returns_order_i_1a9e4d_idx"),
                    models.Index(fields=["agent", "created_at"], name="returns_agent_i_6c02f7_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReturnRecordItem",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True, default=uuid.uuid4, editable=False, serialize=False
                    ),
                ),
                ("position", models.PositiveIntegerField(default=0)),
                ("product_id", models.CharField(max_length=64)),
                ("product_name", models.CharField(max_length=255)),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(max_digits=12, decimal_places=2)),
                (
                    "return_record",
                    models.ForeignKey(
                        to="orders.returnrecord",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items",
                    ),
                ),
                (
                    "order_item",
                    models.ForeignKey(
                        to="orders.orderitem",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="returns",
                    ),
                ),
            ],
            options={
                "db_table": "return_record_items",
                "ordering": ["return_record", "position"],
            },
        ),
    ]
