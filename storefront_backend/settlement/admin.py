# settlement/admin.py

from django.contrib import admin

from settlement.models import LedgerEntry


# ======================================================
# LEDGER ENTRY ADMIN (READ-ONLY)
# ======================================================


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "agent",
        "order",
        "entry_type",
        "amount",
        "attribution_date",
    )
    list_filter = ("entry_type", "attribution_date")
    search_fields = ("agent__name", "agent__serial_number", "note")
    date_hierarchy = "attribution_date"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
