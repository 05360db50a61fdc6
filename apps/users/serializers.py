"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Profile of the current user. Role is managed by admins only."""

    full_name = serializers.CharField(read_only=True)
    is_admin = serializers.SerializerMethodField()
    is_vendor = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "phone",
            "avatar_url",
            "role",
            "is_admin",
            "is_vendor",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "email", "role", "created_at", "updated_at"]

    def get_is_admin(self, obj) -> bool:
        return obj.is_admin_role()

    def get_is_vendor(self, obj) -> bool:
        return obj.is_vendor_role()


class UserRoleSerializer(serializers.ModelSerializer):
    """Row of the admin user management list."""

    full_name = serializers.CharField(read_only=True)
    is_admin = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "full_name", "role", "is_admin", "is_active", "created_at"]
        read_only_fields = fields

    def get_is_admin(self, obj) -> bool:
        return obj.is_admin_role()
