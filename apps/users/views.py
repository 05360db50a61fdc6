"""User API views."""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model  # type: ignore
from django.db.models import Q  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .api.permissions import IsPlatformAdmin
from .serializers import UserRoleSerializer, UserSerializer

User = get_user_model()
logger = logging.getLogger(__name__)


class UserViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """User management.

    - `me` reads or updates the current user's profile
    - listing, search and role changes are admin only
    """

    queryset = User.objects.all()

    def get_permissions(self):  # type: ignore
        if self.action == "me":
            return [permissions.IsAuthenticated()]
        return [permissions.IsAuthenticated(), IsPlatformAdmin()]

    def get_serializer_class(self):  # type: ignore
        if self.action == "me":
            return UserSerializer
        return UserRoleSerializer

    def get_queryset(self):  # type: ignore
        queryset = super().get_queryset()
        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(
                Q(email__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
            )
        role = self.request.query_params.get("role")
        if role:
            queryset = queryset.filter(role=role)
        return queryset

    @action(detail=False, methods=["get", "patch"])
    def me(self, request):
        """Return or update the current user's profile."""
        if request.method == "PATCH":
            serializer = UserSerializer(request.user, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
            return Response(serializer.data)
        return Response(UserSerializer(request.user).data)

    def _change_role(self, request, role: str):
        user = self.get_object()
        if user.pk == request.user.pk and user.role == User.Role.ADMIN and role != User.Role.ADMIN:
            return Response(
                {"detail": "You cannot revoke your own admin role."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        user.set_role(role)
        logger.info("User %s changed role of %s to %s", request.user.pk, user.pk, role)
        return Response(UserRoleSerializer(user).data)

    @action(detail=True, methods=["post"], url_path="grant-admin")
    def grant_admin(self, request, pk=None):
        return self._change_role(request, User.Role.ADMIN)

    @action(detail=True, methods=["post"], url_path="revoke-admin")
    def revoke_admin(self, request, pk=None):
        user = self.get_object()
        if user.role != User.Role.ADMIN:
            return Response(UserRoleSerializer(user).data)
        return self._change_role(request, User.Role.CUSTOMER)

    @action(detail=True, methods=["post"], url_path="grant-vendor")
    def grant_vendor(self, request, pk=None):
        return self._change_role(request, User.Role.VENDOR)

    @action(detail=True, methods=["post"], url_path="revoke-vendor")
    def revoke_vendor(self, request, pk=None):
        user = self.get_object()
        if user.role != User.Role.VENDOR:
            return Response(UserRoleSerializer(user).data)
        return self._change_role(request, User.Role.CUSTOMER)
