# billing/management/commands/seed_tier_limits.py

from django.core.management.base import BaseCommand
from django.db import transaction

from billing.services.tier_service import seed_tier_limits


class Command(BaseCommand):
    help = "Seed (or refresh) the per-tier feature limits"

    def add_arguments(self, parser):
        parser.add_argument(
            "--keep-existing",
            action="store_true",
            help="Only insert missing rows; leave edited limits untouched.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding tier limits...")

        created, updated = seed_tier_limits(overwrite=not options["keep_existing"])

        self.stdout.write(
            self.style.SUCCESS(f"Tier limits seeded: {created} created, {updated} updated")
        )
