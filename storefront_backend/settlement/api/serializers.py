# settlement/api/serializers.py

from rest_framework import serializers

from settlement.models import LedgerEntry


class LedgerEntrySerializer(serializers.ModelSerializer):
    """
    Ledger entry (read-only, append-only audit row).
    """

    order_number = serializers.SerializerMethodField()

    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "agent",
            "order",
            "order_number",
            "entry_type",
            "amount",
            "attribution_date",
            "period_start",
            "period_end",
            "note",
            "recorded_by",
            "created_at",
        ]
        read_only_fields = fields

    def get_order_number(self, obj):
        order = getattr(obj, "order", None)
        return getattr(order, "order_number", None)


class DayQuerySerializer(serializers.Serializer):
    """
    ?date=YYYY-MM-DD (omitted -> all-time view)
    """

    date = serializers.DateField(required=False, allow_null=True)


class EntryQuerySerializer(DayQuerySerializer):
    type = serializers.CharField(required=False, allow_blank=True)

    def validate_type(self, value):
        types = [t.strip() for t in (value or "").split(",") if t.strip()]
        valid = {t for t, _ in LedgerEntry.ENTRY_TYPES}
        unknown = [t for t in types if t not in valid]
        if unknown:
            raise serializers.ValidationError(f"Unknown entry types: {unknown}")
        return types


class AdvancePaymentCommandSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    date = serializers.DateField(required=False, allow_null=True)
    note = serializers.CharField(required=False, allow_blank=True, max_length=255)


class ResetCommandSerializer(serializers.Serializer):
    date = serializers.DateField(required=False, allow_null=True)


class BalanceSerializer(serializers.Serializer):
    """
    Schema-only mirror of Balance.as_dict().
    """

    date = serializers.DateField(allow_null=True)
    owed = serializers.DecimalField(max_digits=14, decimal_places=2)
    paid = serializers.DecimalField(max_digits=14, decimal_places=2)
    delivered = serializers.DecimalField(max_digits=14, decimal_places=2)
    returns = serializers.DecimalField(max_digits=14, decimal_places=2)
    modifications = serializers.DecimalField(max_digits=14, decimal_places=2)
    delivered_reset = serializers.DecimalField(max_digits=14, decimal_places=2)
    return_reset = serializers.DecimalField(max_digits=14, decimal_places=2)
    net_required = serializers.DecimalField(max_digits=14, decimal_places=2)
    receivable = serializers.DecimalField(max_digits=14, decimal_places=2)
    delivered_net = serializers.DecimalField(max_digits=14, decimal_places=2)
    returns_abs = serializers.DecimalField(max_digits=14, decimal_places=2)
    remaining_returns = serializers.DecimalField(max_digits=14, decimal_places=2)
