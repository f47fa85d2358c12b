# agents/api/views.py

"""
DELIVERY AGENT API

CRUD:
- /api/agents/                   (delete refused once ledger history exists)

Ledger views (read-only, ?date=YYYY-MM-DD for the daily view):
- GET  /api/agents/<id>/balance/
- GET  /api/agents/<id>/entries/?type=payment,owed
- GET  /api/agents/<id>/orders/?status=
- GET  /api/agents/<id>/returns/
- GET  /api/agents/<id>/reconcile/

Settlement actions:
- POST /api/agents/<id>/payments/
- POST /api/agents/<id>/reset-delivered/
- POST /api/agents/<id>/reset-returns/
- POST /api/agents/<id>/reset-advance/
- POST /api/agents/<id>/settle/      (requires settlement.settle_agent)
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ModelViewSet

from agents.api.serializers import AgentSerializer
from agents.models import Agent
from agents.services.agent_service import delete_agent
from orders.api.filters import OrderFilter
from orders.api.serializers import OrderSerializer, ReturnRecordSerializer
from orders.models import Order, ReturnRecord
from settlement.api.errors import DOMAIN_ERRORS, domain_error_response, error_response
from settlement.api.serializers import (
    AdvancePaymentCommandSerializer,
    BalanceSerializer,
    DayQuerySerializer,
    EntryQuerySerializer,
    LedgerEntrySerializer,
    ResetCommandSerializer,
)
from settlement.services import settlement_service
from settlement.services.balance_service import get_agent_balance
from settlement.services.ledger_store import query_entries
from settlement.services.reconciliation import reconcile_agent

DATE_PARAM = OpenApiParameter(
    name="date",
    type=str,
    required=False,
    description="Attribution day (YYYY-MM-DD). Omit for the all-time view.",
)


def _query(serializer_class, request):
    serializer = serializer_class(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def _command(serializer_class, request):
    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


@extend_schema(tags=["agents"])
class AgentViewSet(ModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = AgentSerializer
    filterset_fields = ["is_active"]

    queryset = Agent.objects.all().order_by("name")

    def destroy(self, request, *args, **kwargs):
        agent = self.get_object()
        try:
            delete_agent(agent=agent)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # --------------------------------------------------
    # READ MODELS
    # --------------------------------------------------

    @extend_schema(parameters=[DATE_PARAM], responses={200: BalanceSerializer})
    @action(detail=True, methods=["get"], url_path="balance")
    def balance(self, request, pk=None):
        agent = self.get_object()
        params = _query(DayQuerySerializer, request)
        balance = get_agent_balance(agent, params.get("date"))
        return Response({"agent": str(agent.id), **balance.as_dict()})

    @extend_schema(
        parameters=[
            DATE_PARAM,
            OpenApiParameter(
                name="type",
                type=str,
                required=False,
                description="Comma-separated entry types (e.g. payment,owed).",
            ),
        ],
        responses={200: LedgerEntrySerializer(many=True)},
    )
    @action(detail=True, methods=["get"], url_path="entries")
    def entries(self, request, pk=None):
        agent = self.get_object()
        params = _query(EntryQuerySerializer, request)
        try:
            qs = query_entries(agent, on_date=params.get("date"), types=params.get("type"))
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(LedgerEntrySerializer(qs, many=True).data)

    @extend_schema(parameters=[DATE_PARAM], responses={200: OrderSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="orders")
    def orders(self, request, pk=None):
        agent = self.get_object()
        base = (
            Order.objects.filter(agent=agent)
            .select_related("customer", "agent")
            .prefetch_related("items", "items__returns")
            .order_by("-assigned_at")
        )
        filtered = OrderFilter(request.query_params, queryset=base)
        if not filtered.is_valid():
            return error_response(
                code="VALIDATION_ERROR",
                message=str(dict(filtered.errors)),
                http_status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(OrderSerializer(filtered.qs, many=True).data)

    @extend_schema(parameters=[DATE_PARAM], responses={200: ReturnRecordSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="returns")
    def returns(self, request, pk=None):
        agent = self.get_object()
        params = _query(DayQuerySerializer, request)

        qs = (
            ReturnRecord.objects.filter(agent=agent)
            .select_related("order")
            .prefetch_related("items")
            .order_by("-created_at")
        )
        if params.get("date"):
            qs = qs.filter(order__assigned_at__date=params["date"])
        return Response(ReturnRecordSerializer(qs, many=True).data)

    @extend_schema(parameters=[DATE_PARAM], responses={200: dict})
    @action(detail=True, methods=["get"], url_path="reconcile")
    def reconcile(self, request, pk=None):
        agent = self.get_object()
        params = _query(DayQuerySerializer, request)
        return Response(reconcile_agent(agent, params.get("date")))

    # --------------------------------------------------
    # SETTLEMENT ACTIONS
    # --------------------------------------------------

    @extend_schema(request=AdvancePaymentCommandSerializer, responses={201: LedgerEntrySerializer})
    @action(detail=True, methods=["post"], url_path="payments")
    def payments(self, request, pk=None):
        agent = self.get_object()
        data = _command(AdvancePaymentCommandSerializer, request)
        try:
            entry = settlement_service.record_advance_payment(
                agent=agent,
                amount=data["amount"],
                on_date=data.get("date"),
                note=data.get("note", ""),
                user=request.user,
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(LedgerEntrySerializer(entry).data, status=status.HTTP_201_CREATED)

    def _reset(self, request, fn):
        agent = self.get_object()
        data = _command(ResetCommandSerializer, request)
        try:
            entry = fn(agent=agent, on_date=data.get("date"), user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return Response(
            {
                "entry": LedgerEntrySerializer(entry).data if entry else None,
                "balance": get_agent_balance(agent, data.get("date")).as_dict(),
            }
        )

    @extend_schema(request=ResetCommandSerializer, responses={200: dict})
    @action(detail=True, methods=["post"], url_path="reset-delivered")
    def reset_delivered(self, request, pk=None):
        return self._reset(request, settlement_service.reset_delivered)

    @extend_schema(request=ResetCommandSerializer, responses={200: dict})
    @action(detail=True, methods=["post"], url_path="reset-returns")
    def reset_returns(self, request, pk=None):
        return self._reset(request, settlement_service.reset_returns)

    @extend_schema(request=None, responses={200: dict})
    @action(detail=True, methods=["post"], url_path="reset-advance")
    def reset_advance(self, request, pk=None):
        agent = self.get_object()
        try:
            removed = settlement_service.reset_advance(agent=agent, user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response({"payments_cleared": removed, "balance": get_agent_balance(agent).as_dict()})

    @extend_schema(request=None, responses={200: dict, 403: dict})
    @action(detail=True, methods=["post"], url_path="settle")
    def settle(self, request, pk=None):
        if not request.user.has_perm(settlement_service.SETTLE_PERMISSION):
            return error_response(
                code="PERMISSION_DENIED",
                message="You do not have permission to settle agent accounts.",
                http_status=status.HTTP_403_FORBIDDEN,
            )

        agent = self.get_object()
        try:
            result = settlement_service.settle_agent(agent=agent, user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return Response(
            {
                "agent": str(agent.id),
                "orders_delivered": result["orders_delivered"],
                "payments_cleared": result["payments_cleared"],
                "balance": result["balance"].as_dict(),
            }
        )
