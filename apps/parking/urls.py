"""URL routing for the parking engine."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import ParkingLayoutView

urlpatterns = [
    path("venues/<int:venue_id>/layout/", ParkingLayoutView.as_view(), name="parking-layout"),
]
