# agents/admin.py

from django.contrib import admin

from agents.models import Agent


# ======================================================
# AGENT ADMIN
# ======================================================


@admin.register(Agent)
class AgentAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "serial_number",
        "phone",
        "total_owed",
        "total_paid",
        "is_active",
        "created_at",
    )
    readonly_fields = (
        "total_owed",
        "total_paid",
        "totals_refreshed_at",
        "created_at",
        "updated_at",
    )
    search_fields = ("name", "serial_number", "phone")
    list_filter = ("is_active",)
