# settlement/management/commands/reconcile_agents.py

from __future__ import annotations

from datetime import datetime

from django.core.management.base import BaseCommand, CommandError

from agents.models import Agent
from settlement.services.reconciliation import reconcile_agent


def _parse_date(s: str | None):
    """
    Parse YYYY-MM-DD into a date, or None.
    """
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


class Command(BaseCommand):
    help = "Compare ledger-derived receivables with order-derived receivables per agent."

    def add_arguments(self, parser):
        parser.add_argument("--date", dest="on_date", help="Attribution day YYYY-MM-DD (optional)")
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any agent is out of balance.",
        )

    def handle(self, *args, **options):
        on_date = _parse_date(options.get("on_date"))
        if options.get("on_date") and not on_date:
            raise CommandError("Invalid --date. Use YYYY-MM-DD")

        mismatches = 0
        for agent in Agent.objects.order_by("serial_number"):
            result = reconcile_agent(agent, on_date)
            line = (
                f"{agent.serial_number}: ledger={result['ledger_receivable']} "
                f"orders={result['order_receivable']}"
            )
            if result["balanced"]:
                self.stdout.write(line)
            else:
                mismatches += 1
                self.stdout.write(self.style.ERROR(f"{line} diff={result['difference']}"))

        if mismatches and options.get("strict"):
            raise CommandError(f"{mismatches} agent(s) out of balance")

        self.stdout.write(self.style.SUCCESS(f"Reconciliation finished ({mismatches} mismatch(es))."))
