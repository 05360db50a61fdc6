"""FilterSet definitions for venue listing."""

from __future__ import annotations

import django_filters  # type: ignore
from django.utils import timezone  # type: ignore

from .models import Venue


class VenueFilterSet(django_filters.FilterSet):
    kind = django_filters.ChoiceFilter(choices=Venue.Kind.choices)
    location = django_filters.CharFilter(field_name="location", lookup_expr="icontains")
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    upcoming = django_filters.BooleanFilter(method="filter_upcoming")
    has_availability = django_filters.BooleanFilter(method="filter_has_availability")

    class Meta:
        model = Venue
        fields = ["kind", "location", "name"]

    def filter_upcoming(self, queryset, name, value):  # type: ignore
        if value is None:
            return queryset
        now = timezone.now()
        if value:
            return queryset.filter(kind=Venue.Kind.EVENT, starts_at__gt=now)
        return queryset.exclude(kind=Venue.Kind.EVENT, starts_at__gt=now)

    def filter_has_availability(self, queryset, name, value):  # type: ignore
        if value is None:
            return queryset
        if value:
            return queryset.filter(available_parking_slots__gt=0)
        return queryset.filter(available_parking_slots=0)
