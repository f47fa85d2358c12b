# settlement/services/agent_totals.py

"""
AGENT TOTALS READ MODEL

Agent.total_owed / Agent.total_paid are memoized projections of the ledger:
- total_owed = net_required  (owed + modifications + returns)
- total_paid = delivered + payments

They are recomputed by folding the ledger, never incremented in place.
Every ledger append (and every payment clearing) calls
refresh_agent_totals() in the same transaction.
"""

from __future__ import annotations

import logging

from django.utils import timezone

from agents.models import Agent
from settlement.services.balance_service import get_agent_balance

logger = logging.getLogger("settlement")


def refresh_agent_totals(agent: Agent) -> Agent:
    balance = get_agent_balance(agent)

    agent.total_owed = balance.net_required
    agent.total_paid = balance.delivered + balance.paid
    agent.totals_refreshed_at = timezone.now()

    Agent.objects.filter(pk=agent.pk).update(
        total_owed=agent.total_owed,
        total_paid=agent.total_paid,
        totals_refreshed_at=agent.totals_refreshed_at,
    )
    return agent


def rebuild_all_agent_totals() -> list[dict]:
    """
    Replay every agent's ledger into its cache.
    Returns the agents whose cached figures had drifted.
    """
    drifted: list[dict] = []

    for agent in Agent.objects.order_by("serial_number"):
        old_owed, old_paid = agent.total_owed, agent.total_paid
        refresh_agent_totals(agent)

        if old_owed != agent.total_owed or old_paid != agent.total_paid:
            drifted.append(
                {
                    "agent_id": str(agent.id),
                    "serial_number": agent.serial_number,
                    "old_total_owed": str(old_owed),
                    "old_total_paid": str(old_paid),
                    "total_owed": str(agent.total_owed),
                    "total_paid": str(agent.total_paid),
                }
            )
            logger.warning("Agent totals drift repaired", extra=drifted[-1])

    return drifted
