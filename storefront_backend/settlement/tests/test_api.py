# settlement/tests/test_api.py

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.test import TestCase
from rest_framework.test import APIClient

from orders.models import Order
from settlement.models import LedgerEntry

from .helpers import D, backdate_assignment, days_ago, make_agent, make_order

User = get_user_model()


class SettlementApiTests(TestCase):
    """
    HTTP surface over the settlement services.

    GUARANTEES:
    - Errors use {"error": {"code", "message"}}
    - Settle is permission-gated
    - Balance endpoint reflects the ledger (all-time and daily)
    """

    def setUp(self):
        self.user = User.objects.create_user(username="operator", password="password123")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.agent = make_agent()
        self.order = make_order(items=[("Widget", 1, "100.00")], shipping="20.00")

    def _assign(self, cost="10.00"):
        return self.client.post(
            f"/api/orders/{self.order.id}/assign/",
            {"agent": str(self.agent.id), "agent_shipping_cost": cost},
            format="json",
        )

    def test_anonymous_requests_are_rejected(self):
        res = APIClient().get(f"/api/agents/{self.agent.id}/balance/")
        self.assertEqual(res.status_code, 401)

    def test_health_is_public(self):
        res = APIClient().get("/api/health/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], "ok")

    def test_assign_deliver_and_balance(self):
        res = self._assign()
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], Order.STATUS_SHIPPED)

        res = self.client.post(f"/api/orders/{self.order.id}/deliver/")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(D(res.data["delivered_amount"]), D("110"))

        res = self.client.get(f"/api/agents/{self.agent.id}/balance/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["owed"], "110.00")
        self.assertEqual(res.data["receivable"], "0.00")
        self.assertIsNone(res.data["date"])

    def test_daily_balance(self):
        self._assign()
        day = backdate_assignment(self.order, 2)

        res = self.client.get(f"/api/agents/{self.agent.id}/balance/", {"date": day.isoformat()})
        self.assertEqual(res.data["owed"], "110.00")

        res = self.client.get(
            f"/api/agents/{self.agent.id}/balance/", {"date": days_ago(0).isoformat()}
        )
        self.assertEqual(res.data["owed"], "0.00")

    def test_invalid_transition_returns_conflict(self):
        res = self.client.post(f"/api/orders/{self.order.id}/deliver/")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "INVALID_ORDER_STATE")

    def test_double_assignment_returns_conflict(self):
        self._assign()
        res = self._assign()
        self.assertEqual(res.status_code, 409)
        self.assertEqual(LedgerEntry.objects.count(), 1)

    def test_return_over_quota_is_bad_request(self):
        self._assign()
        item = self.order.items.get()

        res = self.client.post(
            f"/api/orders/{self.order.id}/return/",
            {"items": [{"order_item_id": str(item.id), "quantity": 2}]},
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_RETURN_QUANTITY")

    def test_return_creates_record(self):
        self._assign()
        item = self.order.items.get()

        res = self.client.post(
            f"/api/orders/{self.order.id}/return/",
            {"items": [{"order_item_id": str(item.id), "quantity": 1}], "note": "damaged"},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(D(res.data["return_amount"]), D("100"))

        res = self.client.get(f"/api/agents/{self.agent.id}/returns/")
        self.assertEqual(len(res.data), 1)

    def test_reschedule_endpoint(self):
        self._assign()
        backdate_assignment(self.order, 3)

        res = self.client.post(
            f"/api/orders/{self.order.id}/reschedule/",
            {"new_date": days_ago(1).isoformat()},
            format="json",
        )
        self.assertEqual(res.status_code, 200, res.data)

        res = self.client.post(
            f"/api/orders/{self.order.id}/reschedule/",
            {"new_date": days_ago(-1).isoformat()},
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_RESCHEDULE")

    def test_payments_entries_and_void(self):
        res = self.client.post(
            f"/api/agents/{self.agent.id}/payments/", {"amount": "40.00"}, format="json"
        )
        self.assertEqual(res.status_code, 201, res.data)
        entry_id = res.data["id"]

        res = self.client.get(f"/api/agents/{self.agent.id}/entries/", {"type": "payment"})
        self.assertEqual([row["id"] for row in res.data], [entry_id])

        res = self.client.post(f"/api/ledger/entries/{entry_id}/void/")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(D(res.data["amount"]), D("-40"))

        res = self.client.get(f"/api/agents/{self.agent.id}/balance/")
        self.assertEqual(res.data["paid"], "0.00")

    def test_unknown_entry_type_filter_is_rejected(self):
        res = self.client.get(f"/api/agents/{self.agent.id}/entries/", {"type": "bonus"})
        self.assertEqual(res.status_code, 400)

    def test_reset_delivered_endpoint(self):
        self._assign()
        self.client.post(f"/api/orders/{self.order.id}/deliver/")

        res = self.client.post(f"/api/agents/{self.agent.id}/reset-delivered/", {}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(D(res.data["entry"]["amount"]), D("110"))
        self.assertEqual(res.data["balance"]["delivered_net"], "0.00")

        res = self.client.post(f"/api/agents/{self.agent.id}/reset-delivered/", {}, format="json")
        self.assertIsNone(res.data["entry"])

    def test_settle_requires_permission(self):
        self._assign()

        res = self.client.post(f"/api/agents/{self.agent.id}/settle/")
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.data["error"]["code"], "PERMISSION_DENIED")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_SHIPPED)

    def test_settle_with_permission(self):
        self._assign()
        self.user.user_permissions.add(Permission.objects.get(codename="settle_agent"))
        user = User.objects.get(pk=self.user.pk)
        self.client.force_authenticate(user=user)

        res = self.client.post(f"/api/agents/{self.agent.id}/settle/")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["orders_delivered"], [str(self.order.id)])
        self.assertEqual(res.data["balance"]["receivable"], "0.00")

    def test_reconcile_endpoint(self):
        self._assign()
        res = self.client.get(f"/api/agents/{self.agent.id}/reconcile/")
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["balanced"])

    def test_orders_filter_by_status(self):
        self._assign()
        make_order()

        res = self.client.get("/api/orders/", {"status": Order.STATUS_SHIPPED})
        self.assertEqual(res.status_code, 200)
        self.assertEqual([row["id"] for row in res.data["results"]], [str(self.order.id)])

        res = self.client.get(f"/api/agents/{self.agent.id}/orders/", {"status": "shipped"})
        self.assertEqual(len(res.data), 1)
