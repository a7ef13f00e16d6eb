from __future__ import annotations

from django.core.management.base import BaseCommand  # type: ignore

from apps.bookings.seeding import seed_status_transitions


class Command(BaseCommand):
    help = "Seeds the default booking status transition table"

    def add_arguments(self, parser):  # type: ignore
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Overwrite existing transitions with the defaults.",
        )

    def handle(self, *args, **options):  # type: ignore
        touched = seed_status_transitions(reset=options["reset"])
        self.stdout.write(self.style.SUCCESS(f"{touched} transitions seeded"))
