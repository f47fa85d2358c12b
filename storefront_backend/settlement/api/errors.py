# settlement/api/errors.py

"""
API ERROR NORMALIZATION

Every settlement/agent/order endpoint answers failures as:
    {"error": {"code": "...", "message": "..."}}
"""

from __future__ import annotations

from django.core.exceptions import PermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response

from orders.services.order_lifecycle import OrderLifecycleError
from settlement.services.exceptions import (
    AgentInUseError,
    AgentNotFoundError,
    InvalidOrderStateError,
    LedgerValidationError,
    OrderNotFoundError,
    RescheduleError,
    ReturnQuantityError,
    SettlementError,
)

# Exceptions a service call may raise that map to a client error.
DOMAIN_ERRORS = (SettlementError, OrderLifecycleError, PermissionDenied, DjangoValidationError)

_ERROR_MAP = (
    (AgentNotFoundError, "AGENT_NOT_FOUND", status.HTTP_404_NOT_FOUND),
    (OrderNotFoundError, "ORDER_NOT_FOUND", status.HTTP_404_NOT_FOUND),
    (InvalidOrderStateError, "INVALID_ORDER_STATE", status.HTTP_409_CONFLICT),
    (OrderLifecycleError, "INVALID_ORDER_STATE", status.HTTP_409_CONFLICT),
    (AgentInUseError, "AGENT_IN_USE", status.HTTP_409_CONFLICT),
    (ReturnQuantityError, "INVALID_RETURN_QUANTITY", status.HTTP_400_BAD_REQUEST),
    (RescheduleError, "INVALID_RESCHEDULE", status.HTTP_400_BAD_REQUEST),
    (LedgerValidationError, "LEDGER_VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST),
    (PermissionDenied, "PERMISSION_DENIED", status.HTTP_403_FORBIDDEN),
    (DjangoValidationError, "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST),
)


def error_response(*, code: str, message: str, http_status: int):
    """
    Canonical API error response.
    """
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


def _message(exc) -> str:
    if isinstance(exc, DjangoValidationError):
        return "; ".join(exc.messages)
    return str(exc) or exc.__class__.__name__


def domain_error_response(exc):
    for exc_type, code, http_status in _ERROR_MAP:
        if isinstance(exc, exc_type):
            return error_response(code=code, message=_message(exc), http_status=http_status)

    return error_response(
        code="SETTLEMENT_ERROR",
        message=_message(exc),
        http_status=status.HTTP_400_BAD_REQUEST,
    )
