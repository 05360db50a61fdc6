"""FilterSet for booking listings."""

from __future__ import annotations

import django_filters  # type: ignore

from apps.venues.models import Venue

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(choices=Booking.Status.choices)
    kind = django_filters.ChoiceFilter(field_name="venue__kind", choices=Venue.Kind.choices)
    venue = django_filters.NumberFilter(field_name="venue_id")

    class Meta:
        model = Booking
        fields = ["status", "kind", "venue"]
