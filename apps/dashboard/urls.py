from __future__ import annotations

from django.urls import path  # type: ignore

from .views import AdminOverviewView

urlpatterns = [
    path("overview/", AdminOverviewView.as_view(), name="admin-overview"),
]
