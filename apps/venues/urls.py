"""URL routing for the venues domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import VenueViewSet

router = DefaultRouter()
router.register(r"", VenueViewSet, basename="venue")

urlpatterns = [
    path("", include(router.urls)),
]
