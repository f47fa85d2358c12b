# orders/models/customer.py

import uuid

from django.db import models


class Customer(models.Model):
    """
    Storefront customer (delivery address book entry).

    Owned by the customer/checkout subsystem; kept here only because
    orders and return records reference it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=120)
    phone = models.CharField(max_length=32)
    phone2 = models.CharField(max_length=32, blank=True, default="")
    address = models.TextField(blank=True, default="")
    governorate = models.CharField(max_length=64, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "customers"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} | {self.phone}"
