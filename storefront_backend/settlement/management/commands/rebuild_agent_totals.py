# settlement/management/commands/rebuild_agent_totals.py

from __future__ import annotations

from django.core.management.base import BaseCommand
from django.db import transaction

from settlement.services.agent_totals import rebuild_all_agent_totals


class Command(BaseCommand):
    help = "Recompute every agent's cached total_owed / total_paid from the ledger."

    def handle(self, *args, **options):
        with transaction.atomic():
            drifted = rebuild_all_agent_totals()

        for row in drifted:
            self.stdout.write(
                self.style.WARNING(
                    f"{row['serial_number']}: owed {row['old_total_owed']} -> {row['total_owed']}, "
                    f"paid {row['old_total_paid']} -> {row['total_paid']}"
                )
            )

        self.stdout.write(self.style.SUCCESS(f"Agent totals rebuilt ({len(drifted)} repaired)."))
