# settlement/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from settlement.api.views import LedgerEntryViewSet

router = DefaultRouter()
router.register("entries", LedgerEntryViewSet, basename="ledger-entry")

urlpatterns = [
    path("", include(router.urls)),
]
