"""Parking layout API."""

from __future__ import annotations

from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import permissions  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.venues.models import Venue

from .services import get_layout


class ParkingLayoutView(APIView):
    """Grid of a venue with the state of every slot."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, venue_id: int):  # type: ignore
        venue = get_object_or_404(Venue.objects.active(), pk=venue_id)
        return Response(get_layout(venue))
