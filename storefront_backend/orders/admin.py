# orders/admin.py

from django.contrib import admin

from orders.models import Customer, Order, OrderItem, ReturnRecord, ReturnRecordItem


# ======================================================
# ORDER ADMIN
# ======================================================


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "status",
        "agent",
        "customer_charge_amount",
        "customer_shipping_cost",
        "agent_shipping_cost",
        "assigned_at",
        "created_at",
    )
    # Money and lifecycle fields change only through the settlement services.
    readonly_fields = (
        "order_number",
        "status",
        "agent",
        "agent_shipping_cost",
        "modified_amount",
        "delivered_amount",
        "assigned_at",
        "first_assigned_at",
        "created_at",
        "updated_at",
    )
    search_fields = ("order_number", "customer__name", "customer__phone")
    list_filter = ("status", "agent")
    inlines = [OrderItemInline]


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "governorate", "created_at")
    search_fields = ("name", "phone", "phone2")
    list_filter = ("governorate",)


# ======================================================
# RETURN RECORD ADMIN
# ======================================================


class ReturnRecordItemInline(admin.TabularInline):
    model = ReturnRecordItem
    extra = 0
    can_delete = False
    readonly_fields = ("position", "product_id", "product_name", "quantity", "unit_price")


@admin.register(ReturnRecord)
class ReturnRecordAdmin(admin.ModelAdmin):
    list_display = ("order", "agent", "return_amount", "remove_shipping", "created_at")
    readonly_fields = (
        "order",
        "customer",
        "agent",
        "return_amount",
        "remove_shipping",
        "note",
        "created_at",
    )
    list_filter = ("remove_shipping", "created_at")
    inlines = [ReturnRecordItemInline]
