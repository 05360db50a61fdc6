"""Venue API views."""

from __future__ import annotations

import logging

from django.db.models import ProtectedError  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import status, viewsets  # type: ignore
from rest_framework.filters import OrderingFilter, SearchFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.api.permissions import IsAdminOrReadOnly, is_platform_admin

from .filters import VenueFilterSet
from .models import Venue
from .serializers import VenueSerializer, VenueWriteSerializer

logger = logging.getLogger(__name__)


class VenueViewSet(viewsets.ModelViewSet):
    """Events, universities and airports.

    Anyone can browse active venues; admins see inactive ones too and are
    the only ones allowed to create, edit or delete.
    """

    queryset = Venue.objects.all()
    permission_classes = [IsAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = VenueFilterSet
    search_fields = ["name", "location"]
    ordering_fields = ["starts_at", "name", "slot_price", "created_at"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if is_platform_admin(self.request.user):
            return qs
        return qs.active()

    def get_serializer_class(self):  # type: ignore
        if self.action in {"create", "update", "partial_update"}:
            return VenueWriteSerializer
        return VenueSerializer

    def perform_create(self, serializer):  # type: ignore
        venue = serializer.save()
        logger.info("Venue %s (%s) created with %s slots", venue.pk, venue.kind, venue.total_parking_slots)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        venue = self.get_object()
        try:
            venue.delete()
        except ProtectedError:
            return Response(
                {"detail": "Venue has bookings; deactivate it instead."},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
