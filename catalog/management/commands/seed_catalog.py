"""Seed reference data for a fresh install.

Creates the standard size ladder, a few base colors and the two default
stock locations. Re-running is idempotent; existing rows are reused by name
or code.
"""

from catalog.models import Color, Size
from catalog.services import SIZE_SORT_ORDER
from django.core.management.base import BaseCommand
from django.db import transaction
from inventory.models import Location
from inventory.services import create_location

COLORS = [
    ("Black", "#000000"),
    ("White", "#FFFFFF"),
    ("Navy", "#1F2A44"),
    ("Maroon", "#800000"),
    ("Misty", "#B8C4C2"),
]

LOCATIONS = [
    ("DISPLAY", "Display Area", True),
    ("LEMARI", "Storage Cabinet", False),
]


class Command(BaseCommand):
    help = "Seed sizes, colors and default stock locations"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding catalog reference data...")

        for name, order in SIZE_SORT_ORDER.items():
            Size.objects.get_or_create(name=name, defaults={"sort_order": order})

        for name, hex_code in COLORS:
            Color.objects.get_or_create(name=name, defaults={"hex_code": hex_code})

        for code, name, is_default in LOCATIONS:
            if not Location.objects.filter(code=code).exists():
                create_location(code, name, is_default=is_default)

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed complete: {Size.objects.count()} sizes, {Color.objects.count()} colors, "
                f"{Location.objects.count()} locations"
            )
        )
