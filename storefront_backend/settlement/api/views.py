# settlement/api/views.py

"""
LEDGER API (READ-ONLY + VOID)

- GET  /api/ledger/entries/?agent=&entry_type=&attribution_date=
- POST /api/ledger/entries/<id>/void/   (advance payments only)

Entries are never edited or deleted over HTTP; a void appends an
offsetting PAYMENT entry.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ReadOnlyModelViewSet

from settlement.api.errors import DOMAIN_ERRORS, domain_error_response
from settlement.api.serializers import LedgerEntrySerializer
from settlement.models import LedgerEntry
from settlement.services.settlement_service import void_advance_payment


@extend_schema(tags=["settlement"])
class LedgerEntryViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = LedgerEntrySerializer
    http_method_names = ["get", "post", "head", "options"]
    filterset_fields = ["agent", "order", "entry_type", "attribution_date"]

    queryset = LedgerEntry.objects.select_related("order").order_by("-created_at")

    @extend_schema(request=None, responses={201: LedgerEntrySerializer})
    @action(detail=True, methods=["post"], url_path="void")
    def void(self, request, pk=None):
        entry = self.get_object()

        try:
            voided = void_advance_payment(entry=entry, user=request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return Response(LedgerEntrySerializer(voided).data, status=status.HTTP_201_CREATED)
