# settlement/services/ledger_store.py

"""
======================================================
PATH: settlement/services/ledger_store.py
======================================================
LEDGER ENTRY STORE

This module is the ONLY place allowed to:
- Create LedgerEntry rows
- Clear outstanding PAYMENT rows (reset_advance / settle)
- Refresh the agent cache after a ledger write

Everything else (settlement operations, API, admin) must pass through here.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from agents.models import Agent
from orders.services.pricing import PricingError, money
from settlement.models import LedgerEntry
from settlement.services.agent_totals import refresh_agent_totals
from settlement.services.exceptions import AgentNotFoundError, LedgerValidationError

VALID_TYPES = {value for value, _ in LedgerEntry.ENTRY_TYPES}


def _ledger_amount(value) -> Decimal:
    if isinstance(value, bool):
        raise LedgerValidationError(f"Invalid ledger amount: {value!r}")
    try:
        return money(value)
    except PricingError as exc:
        raise LedgerValidationError(str(exc)) from exc


def _resolve_agent(agent) -> Agent:
    if isinstance(agent, Agent):
        if agent.pk and Agent.objects.filter(pk=agent.pk).exists():
            return agent
        raise AgentNotFoundError(f"Agent {agent.pk} not found")

    try:
        return Agent.objects.get(pk=agent)
    except (Agent.DoesNotExist, ValueError, ValidationError) as exc:
        raise AgentNotFoundError(f"Agent {agent} not found") from exc


@transaction.atomic
def append_entry(
    *,
    agent,
    entry_type: str,
    amount,
    attribution_date: date,
    order=None,
    note: str = "",
    period_start: date | None = None,
    period_end: date | None = None,
    recorded_by=None,
    refresh_totals: bool = True,
) -> LedgerEntry:
    """
    Append one immutable ledger entry and refresh the agent cache.

    Raises:
        LedgerValidationError: non-finite / non-numeric amount, unknown type,
            missing attribution date, or model validation failure
        AgentNotFoundError: agent does not exist
    """
    if entry_type not in VALID_TYPES:
        raise LedgerValidationError(f"Unknown ledger entry type: {entry_type!r}")

    amt = _ledger_amount(amount)

    if attribution_date is None:
        raise LedgerValidationError("attribution_date is required")

    agent = _resolve_agent(agent)

    entry = LedgerEntry(
        agent=agent,
        order=order,
        entry_type=entry_type,
        amount=amt,
        attribution_date=attribution_date,
        period_start=period_start,
        period_end=period_end,
        note=(note or "").strip(),
        recorded_by=recorded_by if getattr(recorded_by, "is_authenticated", False) else None,
    )

    try:
        entry.save()
    except ValidationError as exc:
        raise LedgerValidationError("; ".join(exc.messages)) from exc

    if refresh_totals:
        refresh_agent_totals(agent)

    return entry


def query_entries(agent, *, on_date: date | None = None, types=None):
    """
    Entries of one agent ordered by created_at (optionally one day / some types).
    """
    agent = _resolve_agent(agent)

    qs = LedgerEntry.objects.filter(agent=agent).select_related("order")
    if on_date is not None:
        qs = qs.filter(attribution_date=on_date)
    if types:
        unknown = set(types) - VALID_TYPES
        if unknown:
            raise LedgerValidationError(f"Unknown ledger entry types: {sorted(unknown)}")
        qs = qs.filter(entry_type__in=list(types))

    return qs.order_by("created_at", "id")


def entries_for_order(order):
    return LedgerEntry.objects.filter(order=order).order_by("created_at", "id")


@transaction.atomic
def clear_outstanding_payments(agent: Agent) -> list[dict]:
    """
    Delete every PAYMENT entry of the agent (advance payments consumed).
    Returns a snapshot of what was removed for the audit log.
    """
    qs = LedgerEntry.objects.filter(agent=agent, entry_type=LedgerEntry.PAYMENT)
    removed = [
        {
            "id": str(row["id"]),
            "amount": str(row["amount"]),
            "attribution_date": row["attribution_date"].isoformat(),
        }
        for row in qs.values("id", "amount", "attribution_date")
    ]

    if removed:
        # QuerySet.delete() bypasses LedgerEntry.delete(); this is the one
        # sanctioned destructive path.
        qs.delete()

    refresh_agent_totals(agent)
    return removed
