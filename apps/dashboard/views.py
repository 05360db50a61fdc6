"""Admin overview endpoint."""

from __future__ import annotations

from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.api.permissions import IsPlatformAdmin

from .services import admin_overview


class AdminOverviewView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request, *args, **kwargs):  # type: ignore
        return Response(admin_overview())
