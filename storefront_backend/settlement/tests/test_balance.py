# settlement/tests/test_balance.py

from __future__ import annotations

from datetime import date
from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase

from settlement.models import LedgerEntry
from settlement.services.balance_service import (
    BalanceServiceError,
    compute_balance,
    get_agent_balance,
)
from settlement.services.ledger_store import append_entry

from .helpers import D, make_agent

D1 = date(2025, 3, 1)
D2 = date(2025, 3, 2)


def _entry(entry_type, amount, day=D1, period=(None, None)):
    return SimpleNamespace(
        entry_type=entry_type,
        amount=D(amount),
        attribution_date=day,
        period_start=period[0],
        period_end=period[1],
    )


class ComputeBalanceTests(SimpleTestCase):
    """
    Pure fold over ledger entries.
    """

    def test_empty_ledger_is_all_zero(self):
        balance = compute_balance([])
        self.assertEqual(balance.receivable, D("0.00"))
        self.assertEqual(balance.net_required, D("0.00"))
        self.assertIsNone(balance.on_date)

    def test_fold_formulas(self):
        balance = compute_balance(
            [
                _entry(LedgerEntry.OWED, "110"),
                _entry(LedgerEntry.OWED, "70"),
                _entry(LedgerEntry.MODIFICATION, "-20"),
                _entry(LedgerEntry.RETURN, "-10"),
                _entry(LedgerEntry.DELIVERED, "90"),
                _entry(LedgerEntry.PAYMENT, "25"),
                _entry(LedgerEntry.DELIVERED_RESET, "40"),
                _entry(LedgerEntry.RETURN_RESET, "4"),
            ]
        )

        self.assertEqual(balance.net_required, D("150"))
        self.assertEqual(balance.receivable, D("35"))
        self.assertEqual(balance.delivered_net, D("50"))
        self.assertEqual(balance.returns_abs, D("10"))
        self.assertEqual(balance.remaining_returns, D("6"))

    def test_resets_never_push_running_figures_below_zero(self):
        balance = compute_balance(
            [
                _entry(LedgerEntry.DELIVERED, "10"),
                _entry(LedgerEntry.DELIVERED_RESET, "30"),
                _entry(LedgerEntry.RETURN, "-5"),
                _entry(LedgerEntry.RETURN_RESET, "9"),
            ]
        )
        self.assertEqual(balance.delivered_net, D("0"))
        self.assertEqual(balance.remaining_returns, D("0"))

    def test_resets_do_not_touch_receivable(self):
        base = [_entry(LedgerEntry.OWED, "100"), _entry(LedgerEntry.DELIVERED, "60")]
        with_reset = base + [_entry(LedgerEntry.DELIVERED_RESET, "60")]

        self.assertEqual(compute_balance(base).receivable, compute_balance(with_reset).receivable)

    def test_date_filter_restricts_to_one_day(self):
        entries = [
            _entry(LedgerEntry.OWED, "100", D1),
            _entry(LedgerEntry.OWED, "50", D2),
            _entry(LedgerEntry.PAYMENT, "20", D2),
        ]

        day1 = compute_balance(entries, D1)
        day2 = compute_balance(entries, D2)
        all_time = compute_balance(entries)

        self.assertEqual(day1.receivable, D("100"))
        self.assertEqual(day2.receivable, D("30"))
        self.assertEqual(all_time.receivable, D("130"))
        self.assertEqual(day2.as_dict()["date"], "2025-03-02")

    def test_daily_view_ignores_resets_closing_a_longer_period(self):
        entries = [
            _entry(LedgerEntry.DELIVERED, "100", D1),
            _entry(LedgerEntry.DELIVERED_RESET, "100", D2, period=(D1, D2)),
            _entry(LedgerEntry.DELIVERED, "60", D2),
            _entry(LedgerEntry.RETURN, "-8", D2),
            _entry(LedgerEntry.RETURN_RESET, "8", D2, period=(D2, D2)),
        ]

        day2 = compute_balance(entries, D2)
        self.assertEqual(day2.delivered_reset, D("0"))
        self.assertEqual(day2.delivered_net, D("60"))
        self.assertEqual(day2.remaining_returns, D("0"))

        all_time = compute_balance(entries)
        self.assertEqual(all_time.delivered_reset, D("100"))
        self.assertEqual(all_time.delivered_net, D("60"))

    def test_unknown_entry_type_is_rejected(self):
        with self.assertRaises(BalanceServiceError):
            compute_balance([_entry("bonus", "1")])

    def test_as_dict_exposes_derived_figures(self):
        data = compute_balance([_entry(LedgerEntry.OWED, "12.50")]).as_dict()
        self.assertEqual(data["owed"], "12.50")
        self.assertEqual(data["receivable"], "12.50")
        self.assertIsNone(data["date"])
        self.assertNotIn("on_date", data)


class DatabaseBalanceTests(TestCase):
    def setUp(self):
        self.agent = make_agent()

    def test_database_aggregate_matches_pure_fold(self):
        rows = [
            (LedgerEntry.OWED, "110", D1),
            (LedgerEntry.MODIFICATION, "-20", D1),
            (LedgerEntry.DELIVERED, "90", D1),
            (LedgerEntry.OWED, "70", D2),
            (LedgerEntry.RETURN, "-10", D2),
            (LedgerEntry.PAYMENT, "15", D2),
            (LedgerEntry.RETURN_RESET, "10", D2),
        ]
        for entry_type, amount, day in rows:
            append_entry(agent=self.agent, entry_type=entry_type, amount=amount, attribution_date=day)

        entries = list(LedgerEntry.objects.filter(agent=self.agent))

        for day in (None, D1, D2):
            self.assertEqual(get_agent_balance(self.agent, day), compute_balance(entries, day))

    def test_database_aggregate_scopes_resets_like_pure_fold(self):
        rows = [
            (LedgerEntry.DELIVERED, "100", D1, None, None),
            (LedgerEntry.DELIVERED_RESET, "100", D2, D1, D2),
            (LedgerEntry.DELIVERED, "60", D2, None, None),
            (LedgerEntry.DELIVERED_RESET, "60", D2, D2, D2),
        ]
        for entry_type, amount, day, start, end in rows:
            append_entry(
                agent=self.agent,
                entry_type=entry_type,
                amount=amount,
                attribution_date=day,
                period_start=start,
                period_end=end,
            )

        entries = list(LedgerEntry.objects.filter(agent=self.agent))

        for day in (None, D1, D2):
            self.assertEqual(get_agent_balance(self.agent, day), compute_balance(entries, day))
        self.assertEqual(get_agent_balance(self.agent, D2).delivered_reset, D("60"))
        self.assertEqual(get_agent_balance(self.agent).delivered_net, D("0"))

    def test_agent_without_entries_has_zero_balance(self):
        self.assertEqual(get_agent_balance(self.agent).receivable, D("0.00"))

    def test_agent_is_required(self):
        with self.assertRaises(BalanceServiceError):
            get_agent_balance(None)
