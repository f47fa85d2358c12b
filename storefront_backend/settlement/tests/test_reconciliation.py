# settlement/tests/test_reconciliation.py

from __future__ import annotations

from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from agents.models import Agent
from settlement.services import settlement_service as svc
from settlement.services.balance_service import get_agent_balance
from settlement.services.exceptions import InvalidOrderStateError
from settlement.services.reconciliation import reconcile_agent, receivable_from_orders
from settlement.services.reschedule_service import reschedule_order

from .helpers import D, backdate_assignment, days_ago, make_agent, make_order


class CrossCheckTests(TestCase):
    """
    Ledger-derived receivable == order-derived receivable,
    all-time and per attribution day.
    """

    def setUp(self):
        self.agent = make_agent()

        delivered = make_order(items=[("Widget", 1, "100.00")], shipping="20.00")
        svc.assign_to_agent(order=delivered, agent=self.agent, agent_shipping_cost="10")
        svc.adjust_agent_shipping(order=delivered, new_cost="15")
        svc.mark_delivered(order=delivered)
        self.day_a = backdate_assignment(delivered, 2)

        partial = make_order(items=[("Soap", 3, "10.00"), ("Shampoo", 2, "20.00")], shipping="15.00")
        svc.assign_to_agent(order=partial, agent=self.agent, agent_shipping_cost="5")
        svc.register_return(
            order=partial,
            items=[{"order_item_id": partial.items.get(product_name="Soap").id, "quantity": 1}],
        )

        modified = make_order(items=[("Lamp", 1, "200.00")], shipping="30.00")
        svc.assign_to_agent(order=modified, agent=self.agent, agent_shipping_cost="20")
        svc.mark_delivered_with_modification(order=modified, modified_amount="150")

        dropped = make_order(items=[("Mug", 2, "25.00")], shipping="10.00")
        svc.assign_to_agent(order=dropped, agent=self.agent, agent_shipping_cost="10")
        svc.register_return(
            order=dropped,
            items=[{"order_item_id": dropped.items.get().id, "quantity": 1}],
            remove_shipping=True,
        )

        cancelled = make_order(items=[("Pen", 5, "2.00")])
        svc.assign_to_agent(order=cancelled, agent=self.agent, agent_shipping_cost="0")
        svc.cancel_order(order=cancelled)

        moved = make_order(items=[("Chair", 1, "60.00")], shipping="10.00")
        svc.assign_to_agent(order=moved, agent=self.agent, agent_shipping_cost="10")
        backdate_assignment(moved, 3)
        reschedule_order(order=moved, new_date=days_ago(1))

        svc.record_advance_payment(agent=self.agent, amount="35", on_date=days_ago(1))
        svc.reset_delivered(agent=self.agent)

    def test_all_time_views_agree(self):
        result = reconcile_agent(self.agent)
        self.assertTrue(result["balanced"], result)

    def test_daily_views_agree(self):
        for n in range(0, 4):
            result = reconcile_agent(self.agent, days_ago(n))
            self.assertTrue(result["balanced"], result)

    def test_order_view_value(self):
        # Day A holds only the delivered order: 100 + 20 - 15 - 105
        self.assertEqual(receivable_from_orders(self.agent, self.day_a), D("0"))

    def test_reconcile_command_reports_balanced_agents(self):
        out = StringIO()
        call_command("reconcile_agents", "--strict", stdout=out)
        self.assertIn("0 mismatch", out.getvalue())


class TerminalStatusCrossCheckTests(TestCase):
    """
    Every operation attempted on an order in a terminal status either
    fails untouched or keeps ledger and order views equal.
    """

    def setUp(self):
        self.agent = make_agent()
        self.order = make_order(items=[("Widget", 2, "50.00")], shipping="20.00")
        svc.assign_to_agent(order=self.order, agent=self.agent, agent_shipping_cost="10")
        self.day = backdate_assignment(self.order, 2)

    def _assert_balanced(self):
        self.assertTrue(reconcile_agent(self.agent)["balanced"])
        for n in range(0, 4):
            result = reconcile_agent(self.agent, days_ago(n))
            self.assertTrue(result["balanced"], result)

    def _assert_rejected(self, operation):
        receivable = get_agent_balance(self.agent).receivable
        with self.assertRaises(InvalidOrderStateError):
            operation()
        self.assertEqual(get_agent_balance(self.agent).receivable, receivable)
        self._assert_balanced()

    def _return_all(self, **kwargs):
        return svc.register_return(
            order=self.order,
            items=[{"order_item_id": self.order.items.get().id, "quantity": 2}],
            **kwargs,
        )

    def test_cancelled_order(self):
        svc.cancel_order(order=self.order)
        self._assert_balanced()

        self._assert_rejected(lambda: svc.adjust_agent_shipping(order=self.order, new_cost="50"))
        self._assert_rejected(lambda: svc.mark_delivered(order=self.order))
        self._assert_rejected(
            lambda: svc.mark_delivered_with_modification(order=self.order, modified_amount="40")
        )
        self._assert_rejected(self._return_all)
        self._assert_rejected(lambda: svc.cancel_order(order=self.order))

        reschedule_order(order=self.order, new_date=days_ago(1))
        self._assert_balanced()

    def test_returned_without_shipping(self):
        self._return_all(remove_shipping=True)
        self._assert_balanced()

        self._assert_rejected(lambda: svc.adjust_agent_shipping(order=self.order, new_cost="50"))
        self._assert_rejected(lambda: svc.mark_delivered(order=self.order))
        self._assert_rejected(self._return_all)
        self._assert_rejected(lambda: svc.cancel_order(order=self.order))

        reschedule_order(order=self.order, new_date=days_ago(1))
        self._assert_balanced()

    def test_fully_returned_after_delivery(self):
        svc.mark_delivered(order=self.order)
        self._return_all()
        self._assert_balanced()

        svc.adjust_agent_shipping(order=self.order, new_cost="15")
        self._assert_balanced()

        self._assert_rejected(lambda: svc.cancel_order(order=self.order))
        self._assert_rejected(self._return_all)

        reschedule_order(order=self.order, new_date=days_ago(0))
        self._assert_balanced()

    def test_mixed_reset_scopes_on_one_day(self):
        svc.mark_delivered(order=self.order)
        svc.reset_delivered(agent=self.agent)

        today = make_order(items=[("Lamp", 1, "60.00")])
        svc.assign_to_agent(order=today, agent=self.agent, agent_shipping_cost="0")
        svc.mark_delivered(order=today)
        svc.reset_delivered(agent=self.agent, on_date=days_ago(0))
        svc.record_advance_payment(agent=self.agent, amount="25")

        self._assert_balanced()
        self.assertEqual(get_agent_balance(self.agent, days_ago(0)).delivered_net, D("0"))
        self.assertEqual(get_agent_balance(self.agent).delivered_net, D("0"))
        self.assertEqual(get_agent_balance(self.agent, self.day).delivered, D("110"))


class RebuildTotalsCommandTests(TestCase):
    def test_drifted_cache_is_repaired(self):
        agent = make_agent()
        order = make_order(items=[("Widget", 1, "100.00")], shipping="20.00")
        svc.assign_to_agent(order=order, agent=agent, agent_shipping_cost="10")

        Agent.objects.filter(pk=agent.pk).update(total_owed=D("999"), total_paid=D("1"))

        out = StringIO()
        call_command("rebuild_agent_totals", stdout=out)

        agent.refresh_from_db()
        self.assertEqual(agent.total_owed, D("110"))
        self.assertEqual(agent.total_paid, D("0"))
        self.assertIn("1 repaired", out.getvalue())
