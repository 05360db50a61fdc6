from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from django.core.management.base import BaseCommand  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.venues.models import Venue

UNSPLASH = "https://images.unsplash.com/{}?auto=format&fit=crop&w=1170&q=80"

SAMPLE_EVENTS = [
    {
        "name": "Taylor Swift | The Eras Tour",
        "description": "Experience the magic of Taylor Swift's record-breaking Eras Tour.",
        "starts_at": datetime(2025, 5, 20, 19, 0),
        "location": "SoFi Stadium, Los Angeles",
        "total_parking_slots": 500,
        "image_url": UNSPLASH.format("photo-1501281668745-f7f57925c3b4"),
    },
    {
        "name": "Coldplay: Music of the Spheres World Tour",
        "description": "Coldplay's spectacular world tour with stunning visuals and hits.",
        "starts_at": datetime(2025, 6, 15, 18, 30),
        "location": "MetLife Stadium, New Jersey",
        "total_parking_slots": 400,
        "image_url": UNSPLASH.format("photo-1470229722913-7c0e2dbbafd3"),
    },
    {
        "name": "Beyoncé Renaissance World Tour",
        "description": "Beyoncé's Renaissance tour celebrating her latest album.",
        "starts_at": datetime(2025, 7, 8, 20, 0),
        "location": "Mercedes-Benz Stadium, Atlanta",
        "total_parking_slots": 600,
        "image_url": UNSPLASH.format("photo-1459749411175-04bf5292ceea"),
    },
    {
        "name": "Ed Sheeran: Mathematics Tour",
        "description": "An intimate evening with Ed Sheeran's chart-topping songs.",
        "starts_at": datetime(2025, 8, 12, 19, 30),
        "location": "Wembley Stadium, London",
        "total_parking_slots": 450,
        "image_url": UNSPLASH.format("photo-1429962714451-bb934ecdc4ec"),
    },
]

SAMPLE_UNIVERSITIES = [
    {"name": "Indian Institute of Technology Bombay", "location": "Powai, Mumbai", "total_parking_slots": 120},
    {"name": "University of Delhi North Campus", "location": "Delhi", "total_parking_slots": 80},
    {"name": "Indian Institute of Science", "location": "Bengaluru", "total_parking_slots": 64},
]

SAMPLE_AIRPORTS = [
    {"name": "Chhatrapati Shivaji Maharaj International Airport", "location": "Mumbai", "total_parking_slots": 300},
    {"name": "Indira Gandhi International Airport", "location": "New Delhi", "total_parking_slots": 350},
    {"name": "Kempegowda International Airport", "location": "Bengaluru", "total_parking_slots": 250},
]


class Command(BaseCommand):
    help = "Creates sample events, universities and airports; existing names are skipped"

    def add_arguments(self, parser):  # type: ignore
        parser.add_argument(
            "--roll-forward",
            action="store_true",
            help="Move past event dates forward by whole years so they are upcoming",
        )
        parser.add_argument("--event-price", type=Decimal, default=Decimal("20.00"))
        parser.add_argument("--hourly-rate", type=Decimal, default=Decimal("40.00"))

    @transaction.atomic
    def handle(self, *args, **options):  # type: ignore
        now = timezone.now()
        created = 0

        for data in SAMPLE_EVENTS:
            starts_at = timezone.make_aware(data["starts_at"])
            if options["roll_forward"]:
                while starts_at <= now:
                    starts_at = starts_at.replace(year=starts_at.year + 1)
            created += self._create(
                Venue.Kind.EVENT,
                dict(data, starts_at=starts_at, slot_price=options["event_price"]),
            )

        for kind, rows in ((Venue.Kind.UNIVERSITY, SAMPLE_UNIVERSITIES), (Venue.Kind.AIRPORT, SAMPLE_AIRPORTS)):
            for data in rows:
                created += self._create(kind, dict(data, slot_price=options["hourly_rate"]))

        self.stdout.write(self.style.SUCCESS(f"Created {created} venues"))

    def _create(self, kind: str, data: dict) -> int:
        if Venue.objects.filter(kind=kind, name=data["name"]).exists():
            self.stdout.write(f"Skipping existing {kind} '{data['name']}'")
            return 0
        Venue.objects.create(
            kind=kind,
            available_parking_slots=data["total_parking_slots"],
            **data,
        )
        return 1
