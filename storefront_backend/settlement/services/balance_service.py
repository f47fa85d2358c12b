# settlement/services/balance_service.py

"""
BALANCE SERVICE (AUTHORITATIVE, READ-ONLY)

This module answers ONE question:
"How much should this delivery agent hand over (or receive)?"

Fold over ledger entries:
    owed         = Σ owed
    paid         = Σ payment
    delivered    = Σ delivered
    returns      = Σ return            (stored negative)
    modifications= Σ modification
    net_required = owed + modifications + returns
    receivable   = net_required - delivered - paid
    delivered_net     = max(0, delivered - Σ delivered_reset)
    remaining_returns = max(0, |returns| - Σ return_reset)

receivable >= 0 → the agent owes the business; negative → the business owes the agent.

RULES:
- READ-ONLY: no writes, ever
- LedgerEntry is the single source of truth
- date filter → daily view (attribution_date == day); no filter → all-time view
- a daily view counts only resets that close that single day; an all-time
  reset is dated today but closes a longer period, so only the all-time
  view counts it
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal

from django.db.models import Case, F, Q, Sum, When
from django.db.models.functions import Coalesce

from orders.services.pricing import money
from settlement.models import LedgerEntry

ZERO = Decimal("0.00")


# ============================================================
# DOMAIN ERRORS
# ============================================================


class BalanceServiceError(Exception):
    """Base error for balance computations"""


# ============================================================
# BALANCE VALUE OBJECT
# ============================================================


@dataclass(frozen=True)
class Balance:
    owed: Decimal = ZERO
    paid: Decimal = ZERO
    delivered: Decimal = ZERO
    returns: Decimal = ZERO
    modifications: Decimal = ZERO
    delivered_reset: Decimal = ZERO
    return_reset: Decimal = ZERO
    on_date: date | None = None

    @property
    def net_required(self) -> Decimal:
        return self.owed + self.modifications + self.returns

    @property
    def receivable(self) -> Decimal:
        return self.net_required - self.delivered - self.paid

    @property
    def delivered_net(self) -> Decimal:
        return max(ZERO, self.delivered - self.delivered_reset)

    @property
    def returns_abs(self) -> Decimal:
        return abs(self.returns)

    @property
    def remaining_returns(self) -> Decimal:
        return max(ZERO, self.returns_abs - self.return_reset)

    def as_dict(self) -> dict:
        data = asdict(self)
        data["date"] = self.on_date.isoformat() if self.on_date else None
        del data["on_date"]
        for key in ("owed", "paid", "delivered", "returns", "modifications",
                    "delivered_reset", "return_reset"):
            data[key] = str(data[key])
        data.update(
            {
                "net_required": str(self.net_required),
                "receivable": str(self.receivable),
                "delivered_net": str(self.delivered_net),
                "returns_abs": str(self.returns_abs),
                "remaining_returns": str(self.remaining_returns),
            }
        )
        return data


_FIELD_BY_TYPE = {
    LedgerEntry.OWED: "owed",
    LedgerEntry.PAYMENT: "paid",
    LedgerEntry.DELIVERED: "delivered",
    LedgerEntry.RETURN: "returns",
    LedgerEntry.MODIFICATION: "modifications",
    LedgerEntry.DELIVERED_RESET: "delivered_reset",
    LedgerEntry.RETURN_RESET: "return_reset",
}

RESET_TYPES = {LedgerEntry.DELIVERED_RESET, LedgerEntry.RETURN_RESET}


def _closes_only(entry, day: date) -> bool:
    period_start = getattr(entry, "period_start", None)
    period_end = getattr(entry, "period_end", None)
    return period_start in (None, day) and period_end in (None, day)


# ============================================================
# PURE FOLD
# ============================================================


def compute_balance(entries, date_filter: date | None = None) -> Balance:
    """
    Pure fold over entries (LedgerEntry instances or any object with
    entry_type, amount and attribution_date).
    """
    totals = {field: ZERO for field in _FIELD_BY_TYPE.values()}

    for entry in entries:
        if date_filter is not None and entry.attribution_date != date_filter:
            continue

        field = _FIELD_BY_TYPE.get(entry.entry_type)
        if field is None:
            raise BalanceServiceError(f"Unknown ledger entry type: {entry.entry_type!r}")

        if (
            date_filter is not None
            and entry.entry_type in RESET_TYPES
            and not _closes_only(entry, date_filter)
        ):
            continue

        totals[field] += Decimal(entry.amount)

    return Balance(on_date=date_filter, **totals)


# ============================================================
# DATABASE AGGREGATE (same rules, one query)
# ============================================================


def _sum_of(entry_type: str, on_date: date | None = None):
    condition = Q(entry_type=entry_type)
    if on_date is not None and entry_type in RESET_TYPES:
        condition &= Q(period_start__isnull=True) | Q(period_start=on_date)
        condition &= Q(period_end__isnull=True) | Q(period_end=on_date)

    return Coalesce(
        Sum(Case(When(condition, then=F("amount")))),
        ZERO,
    )


def get_agent_balance(agent, on_date: date | None = None) -> Balance:
    """
    Balance of one agent, all-time (on_date=None) or for one attribution day.
    """
    if agent is None:
        raise BalanceServiceError("Agent is required")

    qs = LedgerEntry.objects.filter(agent=agent)
    if on_date is not None:
        qs = qs.filter(attribution_date=on_date)

    aggregates = qs.aggregate(
        **{field: _sum_of(entry_type, on_date) for entry_type, field in _FIELD_BY_TYPE.items()}
    )

    return Balance(
        on_date=on_date,
        **{field: money(aggregates[field]) for field in _FIELD_BY_TYPE.values()},
    )


def get_balances_for_agents(agents, on_date: date | None = None) -> list[dict]:
    """
    Dashboard rows: one balance per agent.
    """
    return [
        {"agent": agent, "balance": get_agent_balance(agent, on_date)}
        for agent in agents
    ]
