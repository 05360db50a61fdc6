"""Venue domain model."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class VenueQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def upcoming(self, now=None):
        now = now or timezone.now()
        return self.filter(kind=Venue.Kind.EVENT, starts_at__gt=now)


class Venue(models.Model):
    """A bookable place with a parking grid: an event, a university or an airport."""

    class Kind(models.TextChoices):
        EVENT = "event", _("Event")
        UNIVERSITY = "university", _("University")
        AIRPORT = "airport", _("Airport")

    class PricingMode(models.TextChoices):
        FLAT = "flat", _("Flat per slot")
        HOURLY = "hourly", _("Per slot per hour")

    kind = models.CharField(max_length=20, choices=Kind.choices, db_index=True)
    name = models.CharField(max_length=255)
    location = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    image_url = models.URLField(max_length=500, blank=True)
    total_parking_slots = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    available_parking_slots = models.PositiveIntegerField(default=0)
    slot_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("20.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    starts_at = models.DateTimeField(null=True, blank=True, db_index=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = VenueQuerySet.as_manager()

    class Meta:
        ordering = ["kind", "starts_at", "name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(available_parking_slots__lte=models.F("total_parking_slots")),
                name="venue_available_lte_total",
            ),
        ]
        indexes = [models.Index(fields=["kind", "is_active"])]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_kind_display()})"

    def clean(self) -> None:
        if self.kind == self.Kind.EVENT and not self.starts_at:
            raise ValidationError({"starts_at": _("Events require a start date and time.")})
        if self.kind != self.Kind.EVENT and self.starts_at:
            raise ValidationError({"starts_at": _("Only events have a start date and time.")})

    @property
    def is_event(self) -> bool:
        return self.kind == self.Kind.EVENT

    @property
    def pricing_mode(self) -> str:
        return self.PricingMode.FLAT if self.is_event else self.PricingMode.HOURLY

    @property
    def max_slots_per_booking(self) -> int:
        if self.is_event:
            return 1
        return settings.PARKING_MAX_SLOTS_PER_BOOKING

    @property
    def reserved_parking_slots(self) -> int:
        return self.total_parking_slots - self.available_parking_slots

    def has_started(self, now=None) -> bool:
        if not self.starts_at:
            return False
        return self.starts_at <= (now or timezone.now())
