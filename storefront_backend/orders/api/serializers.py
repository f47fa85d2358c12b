# orders/api/serializers.py

from rest_framework import serializers

from orders.models import Customer, Order, OrderItem, ReturnRecord, ReturnRecordItem


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ["id", "name", "phone", "phone2", "address", "governorate"]
        read_only_fields = fields


class OrderItemSerializer(serializers.ModelSerializer):
    returned_quantity = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "returned_quantity",
        ]
        read_only_fields = fields

    def get_returned_quantity(self, obj):
        return sum(line.quantity for line in obj.returns.all())


class OrderSerializer(serializers.ModelSerializer):
    """
    Order read model (state only; money movements live in the agent ledger).
    """

    customer = CustomerSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    agent_net_amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    customer_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "agent",
            "status",
            "customer_charge_amount",
            "customer_shipping_cost",
            "agent_shipping_cost",
            "discount_amount",
            "modified_amount",
            "delivered_amount",
            "customer_total",
            "agent_net_amount",
            "assigned_at",
            "first_assigned_at",
            "notes",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReturnRecordItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReturnRecordItem
        fields = ["order_item", "position", "product_id", "product_name", "quantity", "unit_price"]
        read_only_fields = fields


class ReturnRecordSerializer(serializers.ModelSerializer):
    items = ReturnRecordItemSerializer(many=True, read_only=True)
    order_number = serializers.IntegerField(source="order.order_number", read_only=True)

    class Meta:
        model = ReturnRecord
        fields = [
            "id",
            "order",
            "order_number",
            "customer",
            "agent",
            "return_amount",
            "remove_shipping",
            "note",
            "items",
            "created_at",
        ]
        read_only_fields = fields


# ======================================================
# COMMAND SERIALIZERS (input validation only)
# ======================================================


class AssignCommandSerializer(serializers.Serializer):
    agent = serializers.UUIDField()
    agent_shipping_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class AdjustShippingCommandSerializer(serializers.Serializer):
    agent_shipping_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class DeliverWithModificationCommandSerializer(serializers.Serializer):
    modified_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class ReturnLineSerializer(serializers.Serializer):
    order_item_id = serializers.UUIDField()
    # Range is enforced by the return service (remaining quantity per line).
    quantity = serializers.IntegerField()


class ReturnCommandSerializer(serializers.Serializer):
    items = ReturnLineSerializer(many=True, required=False, default=list)
    remove_shipping = serializers.BooleanField(required=False, default=False)
    note = serializers.CharField(required=False, allow_blank=True, max_length=500)


class RescheduleCommandSerializer(serializers.Serializer):
    new_date = serializers.DateField()
