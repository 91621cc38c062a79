# invoicing/management/commands/cleanup_expired_records.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from invoicing.services.retention_service import purge_expired_records


class Command(BaseCommand):
    help = "Purge invoices (with their receipts, payments and credit notes) whose retention period has ended."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List invoices that would be purged without deleting anything.",
        )

    def handle(self, *args, **options):
        dry_run = bool(options.get("dry_run"))

        self.stdout.write("Cleaning up records past retention...")
        if dry_run:
            self.stdout.write("DRY RUN: nothing will be deleted.\n")

        result = purge_expired_records(dry_run=dry_run)

        for number in result.invoice_numbers:
            self.stdout.write(f"PURGE {number}")

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Businesses:    {result.businesses}")
        self.stdout.write(f"Invoices:      {result.invoices}")
        self.stdout.write(f"Receipts:      {result.receipts}")
        self.stdout.write(f"Payments:      {result.payments}")
        self.stdout.write(f"Credit notes:  {result.credit_notes}")

        self.stdout.write(self.style.SUCCESS("Retention cleanup complete."))
