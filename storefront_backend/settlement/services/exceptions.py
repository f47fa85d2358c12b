# settlement/services/exceptions.py

"""
SETTLEMENT SERVICE ERRORS

Centralized domain errors for the agent settlement ledger.
"""


class SettlementError(Exception):
    """Base exception for all settlement service failures."""


class LedgerValidationError(SettlementError):
    """Raised when a ledger entry is rejected (bad amount, type, dates)."""


class AgentNotFoundError(SettlementError):
    """Raised when the referenced delivery agent does not exist."""


class OrderNotFoundError(SettlementError):
    """Raised when the referenced order does not exist."""


class InvalidOrderStateError(SettlementError):
    """Raised when an order is not in a state that allows the operation."""


class ReturnQuantityError(SettlementError):
    """Raised on negative, unknown or over-quota return lines."""


class RescheduleError(SettlementError):
    """Raised when an order cannot be moved to the requested day."""


class AgentInUseError(SettlementError):
    """Raised when deleting an agent that already has ledger history."""
