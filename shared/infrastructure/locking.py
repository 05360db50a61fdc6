"""Row locking helpers for the Django ORM."""

from __future__ import annotations

from django.db import NotSupportedError, transaction  # type: ignore


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def lock_instance(model, pk):
    """Re-read ``model`` row ``pk`` under a row lock (when supported)."""

    return lock_queryset_if_possible(model.objects.filter(pk=pk)).get()
