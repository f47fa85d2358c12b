# settlement/tests/test_reschedule.py

from __future__ import annotations

from unittest import mock

from django.test import TestCase
from django.utils import timezone

from settlement.models import LedgerEntry
from settlement.services import settlement_service as svc
from settlement.services.balance_service import get_agent_balance
from settlement.services.exceptions import RescheduleError
from settlement.services.reschedule_service import reschedule_order

from .helpers import D, backdate_assignment, days_ago, make_agent, make_order


class RescheduleTests(TestCase):
    def setUp(self):
        self.agent = make_agent()
        self.order = make_order(items=[("Widget", 1, "100.00")], shipping="20.00")
        svc.assign_to_agent(order=self.order, agent=self.agent, agent_shipping_cost="10")
        self.d1 = backdate_assignment(self.order, 3)
        self.d2 = days_ago(1)

    def test_order_and_entries_move_together(self):
        svc.adjust_agent_shipping(order=self.order, new_cost="20")
        self.order.refresh_from_db()
        local_time = timezone.localtime(self.order.assigned_at).time()

        moved = reschedule_order(order=self.order, new_date=self.d2)

        self.assertEqual(timezone.localtime(moved.assigned_at).date(), self.d2)
        self.assertEqual(timezone.localtime(moved.assigned_at).time(), local_time)
        self.assertEqual(
            set(LedgerEntry.objects.filter(order=self.order).values_list("attribution_date", flat=True)),
            {self.d2},
        )

        self.assertEqual(get_agent_balance(self.agent, self.d1).owed, D("0"))
        self.assertEqual(get_agent_balance(self.agent, self.d2).owed, D("110"))
        self.assertEqual(get_agent_balance(self.agent, self.d2).net_required, D("100"))

    def test_first_assignment_day_never_moves(self):
        self.order.refresh_from_db()
        first = self.order.first_assigned_at

        reschedule_order(order=self.order, new_date=self.d2)
        reschedule_order(order=self.order, new_date=self.d1)

        self.order.refresh_from_db()
        self.assertEqual(self.order.first_assigned_at, first)

    def test_later_entries_follow_the_moved_day(self):
        reschedule_order(order=self.order, new_date=self.d2)
        entry = svc.mark_delivered(order=self.order)
        self.assertEqual(entry.attribution_date, self.d2)

    def test_date_outside_window_is_rejected(self):
        for bad in (days_ago(4), days_ago(-1)):
            with self.assertRaises(RescheduleError):
                reschedule_order(order=self.order, new_date=bad)

        self.assertEqual(
            LedgerEntry.objects.get(order=self.order).attribution_date, self.d1
        )

    def test_same_day_is_rejected(self):
        with self.assertRaises(RescheduleError):
            reschedule_order(order=self.order, new_date=self.d1)

    def test_unassigned_order_is_rejected(self):
        with self.assertRaises(RescheduleError):
            reschedule_order(order=make_order(), new_date=self.d2)

    def test_failure_partway_moves_nothing(self):
        with mock.patch(
            "settlement.services.reschedule_service._move_order",
            side_effect=RuntimeError("disk full"),
        ):
            with self.assertRaises(RuntimeError):
                reschedule_order(order=self.order, new_date=self.d2)

        self.order.refresh_from_db()
        self.assertEqual(timezone.localtime(self.order.assigned_at).date(), self.d1)
        self.assertEqual(
            LedgerEntry.objects.get(order=self.order).attribution_date, self.d1
        )
