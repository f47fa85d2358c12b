# agents/api/serializers.py

from rest_framework import serializers

from agents.models import Agent
from agents.services.agent_service import create_agent, update_agent


class AgentSerializer(serializers.ModelSerializer):
    """
    Delivery agent with its cached ledger totals (read-only).
    """

    receivable = serializers.DecimalField(
        source="cached_receivable", max_digits=14, decimal_places=2, read_only=True
    )

    class Meta:
        model = Agent
        fields = [
            "id",
            "name",
            "phone",
            "serial_number",
            "is_active",
            "total_owed",
            "total_paid",
            "receivable",
            "totals_refreshed_at",
            "created_at",
        ]
        read_only_fields = [
            "id",
            "total_owed",
            "total_paid",
            "receivable",
            "totals_refreshed_at",
            "created_at",
        ]

    def create(self, validated_data):
        return create_agent(**validated_data)

    def update(self, instance, validated_data):
        return update_agent(agent=instance, **validated_data)
