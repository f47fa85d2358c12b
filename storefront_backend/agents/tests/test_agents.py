# agents/tests/test_agents.py

from __future__ import annotations

from datetime import date

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from agents.models import Agent
from agents.services.agent_service import create_agent, delete_agent, update_agent
from settlement.models import LedgerEntry
from settlement.services.exceptions import AgentInUseError
from settlement.services.ledger_store import append_entry

User = get_user_model()


class AgentServiceTests(TestCase):
    """
    GUARANTEES:
    - serial_number stays unique
    - cached totals start at zero and are not editable here
    - agents with ledger history are never deleted
    """

    def setUp(self):
        self.agent = create_agent(name=" Karim ", phone="0100", serial_number="AG-1")

    def test_create_strips_and_starts_with_zero_totals(self):
        self.assertEqual(self.agent.name, "Karim")
        self.assertEqual(self.agent.total_owed, 0)
        self.assertEqual(self.agent.cached_receivable, 0)

    def test_duplicate_serial_is_rejected(self):
        with self.assertRaises(ValidationError):
            create_agent(name="Other", phone="0101", serial_number="AG-1")

    def test_update_rejects_cached_totals(self):
        with self.assertRaises(ValidationError):
            update_agent(agent=self.agent, total_owed="5")

    def test_update_fields(self):
        update_agent(agent=self.agent, phone="0199", is_active=False)
        self.agent.refresh_from_db()
        self.assertEqual(self.agent.phone, "0199")
        self.assertFalse(self.agent.is_active)

    def test_delete_unused_agent(self):
        delete_agent(agent=self.agent)
        self.assertFalse(Agent.objects.exists())

    def test_delete_agent_with_history_is_refused(self):
        append_entry(
            agent=self.agent,
            entry_type=LedgerEntry.PAYMENT,
            amount="10",
            attribution_date=date(2025, 1, 1),
        )
        with self.assertRaises(AgentInUseError):
            delete_agent(agent=self.agent)
        self.assertTrue(Agent.objects.filter(pk=self.agent.pk).exists())


class AgentApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(
            user=User.objects.create_user(username="operator", password="password123")
        )

    def test_create_and_list(self):
        res = self.client.post(
            "/api/agents/",
            {"name": "Samir", "phone": "0102", "serial_number": "AG-7", "total_owed": "500"},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["total_owed"], "0.00")

        res = self.client.get("/api/agents/")
        self.assertEqual(res.data["count"], 1)

    def test_delete_with_history_returns_conflict(self):
        agent = create_agent(name="Samir", phone="0102", serial_number="AG-7")
        append_entry(
            agent=agent,
            entry_type=LedgerEntry.PAYMENT,
            amount="10",
            attribution_date=date(2025, 1, 1),
        )

        res = self.client.delete(f"/api/agents/{agent.id}/")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "AGENT_IN_USE")
