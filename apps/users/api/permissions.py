"""Role based permission classes shared by every app."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_platform_admin(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_admin_role") and user.is_admin_role()


class IsPlatformAdmin(permissions.BasePermission):
    """Only admins (role ``admin``, staff or superusers)."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_platform_admin(request.user)


class IsVendorOrAdmin(permissions.BasePermission):
    """
    Vendors check customers in at venues; admins can do everything a
    vendor can.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if is_platform_admin(user):
            return True
        return bool(user and user.is_authenticated and user.is_vendor_role())


class IsAdminOrReadOnly(permissions.BasePermission):
    """Anyone can read, only admins can write."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return is_platform_admin(request.user)
