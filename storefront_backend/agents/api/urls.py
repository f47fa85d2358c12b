# agents/api/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from agents.api.views import AgentViewSet

router = SimpleRouter()
router.register("", AgentViewSet, basename="agent")

urlpatterns = [
    path("", include(router.urls)),
]
