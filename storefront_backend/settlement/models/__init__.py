# settlement/models/__init__.py

"""
SETTLEMENT MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from settlement.models.ledger_entry import LedgerEntry

__all__ = ["LedgerEntry"]
