# orders/api/views.py

"""
ORDER API (READ + LIFECYCLE ACTIONS)

Orders are read-only resources; every state change goes through a
settlement service action so the agent ledger moves with it:

    POST /api/orders/<id>/assign/
    POST /api/orders/<id>/adjust-shipping/
    POST /api/orders/<id>/deliver/
    POST /api/orders/<id>/deliver-with-modification/
    POST /api/orders/<id>/return/
    POST /api/orders/<id>/cancel/
    POST /api/orders/<id>/reschedule/
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ReadOnlyModelViewSet

from orders.api.filters import OrderFilter
from orders.api.serializers import (
    AdjustShippingCommandSerializer,
    AssignCommandSerializer,
    DeliverWithModificationCommandSerializer,
    OrderSerializer,
    RescheduleCommandSerializer,
    ReturnCommandSerializer,
    ReturnRecordSerializer,
)
from orders.models import Order
from settlement.api.errors import DOMAIN_ERRORS, domain_error_response
from settlement.services import reschedule_service, settlement_service


@extend_schema(tags=["orders"])
class OrderViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    http_method_names = ["get", "post", "head", "options"]

    queryset = (
        Order.objects.select_related("customer", "agent")
        .prefetch_related("items", "items__returns")
        .order_by("-created_at")
    )

    def get_serializer_class(self):
        return {
            "assign": AssignCommandSerializer,
            "adjust_shipping": AdjustShippingCommandSerializer,
            "deliver_with_modification": DeliverWithModificationCommandSerializer,
            "register_return": ReturnCommandSerializer,
            "reschedule": RescheduleCommandSerializer,
        }.get(self.action, OrderSerializer)

    # --------------------------------------------------
    # HELPERS
    # --------------------------------------------------

    def _command(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def _run(self, order, fn, *, http_status=status.HTTP_200_OK):
        try:
            fn()
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        fresh = self.get_queryset().get(pk=order.pk)
        return Response(OrderSerializer(fresh).data, status=http_status)

    # --------------------------------------------------
    # ACTIONS
    # --------------------------------------------------

    @extend_schema(responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="assign")
    def assign(self, request, pk=None):
        order = self.get_object()
        data = self._command(request)
        return self._run(
            order,
            lambda: settlement_service.assign_to_agent(
                order=order,
                agent=data["agent"],
                agent_shipping_cost=data["agent_shipping_cost"],
                user=request.user,
            ),
        )

    @extend_schema(responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="adjust-shipping")
    def adjust_shipping(self, request, pk=None):
        order = self.get_object()
        data = self._command(request)
        return self._run(
            order,
            lambda: settlement_service.adjust_agent_shipping(
                order=order,
                new_cost=data["agent_shipping_cost"],
                user=request.user,
            ),
        )

    @extend_schema(request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="deliver")
    def deliver(self, request, pk=None):
        order = self.get_object()
        return self._run(
            order,
            lambda: settlement_service.mark_delivered(order=order, user=request.user),
        )

    @extend_schema(responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="deliver-with-modification")
    def deliver_with_modification(self, request, pk=None):
        order = self.get_object()
        data = self._command(request)
        return self._run(
            order,
            lambda: settlement_service.mark_delivered_with_modification(
                order=order,
                modified_amount=data["modified_amount"],
                user=request.user,
            ),
        )

    @extend_schema(responses={201: ReturnRecordSerializer})
    @action(detail=True, methods=["post"], url_path="return")
    def register_return(self, request, pk=None):
        order = self.get_object()
        data = self._command(request)

        try:
            record = settlement_service.register_return(
                order=order,
                items=[dict(line) for line in data.get("items", [])],
                remove_shipping=data.get("remove_shipping", False),
                note=data.get("note", ""),
                user=request.user,
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return Response(ReturnRecordSerializer(record).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        order = self.get_object()
        return self._run(
            order,
            lambda: settlement_service.cancel_order(order=order, user=request.user),
        )

    @extend_schema(responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="reschedule")
    def reschedule(self, request, pk=None):
        order = self.get_object()
        data = self._command(request)
        return self._run(
            order,
            lambda: reschedule_service.reschedule_order(
                order=order,
                new_date=data["new_date"],
                user=request.user,
            ),
        )
