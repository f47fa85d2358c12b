# orders/api/filters.py

import django_filters

from orders.models import Order


class OrderFilter(django_filters.FilterSet):
    """
    ?status=shipped&agent=<uuid>&date=YYYY-MM-DD

    date matches the attribution day (assigned_at in the business timezone).
    """

    date = django_filters.DateFilter(field_name="assigned_at", lookup_expr="date")

    class Meta:
        model = Order
        fields = ["status", "agent", "date"]
