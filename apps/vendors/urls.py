"""URL routing for vendor tools."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import MarkSlotArrivedView, QRCheckInView, VendorDashboardView, VenueBookedSlotsView

urlpatterns = [
    path("dashboard/", VendorDashboardView.as_view(), name="vendor-dashboard"),
    path("venues/<int:venue_id>/slots/", VenueBookedSlotsView.as_view(), name="vendor-venue-slots"),
    path("slots/<int:slot_id>/arrive/", MarkSlotArrivedView.as_view(), name="vendor-slot-arrive"),
    path("check-in/", QRCheckInView.as_view(), name="vendor-qr-check-in"),
]
