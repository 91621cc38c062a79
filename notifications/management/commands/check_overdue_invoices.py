# notifications/management/commands/check_overdue_invoices.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from notifications.services.overdue_service import check_overdue_invoices


class Command(BaseCommand):
    help = "Create overdue alerts (in-app + email) for issued/sent invoices past their due date."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List invoices that would be alerted without writing anything.",
        )

    def handle(self, *args, **options):
        dry_run = bool(options.get("dry_run"))

        self.stdout.write("Checking overdue invoices...")
        if dry_run:
            self.stdout.write("DRY RUN: no notifications or emails will be sent.\n")

        result = check_overdue_invoices(dry_run=dry_run)

        for number in result.invoice_numbers:
            self.stdout.write(f"OVERDUE {number}")

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Invoices checked:  {result.checked}")
        self.stdout.write(f"Invoices alerted:  {result.alerted}")
        self.stdout.write(f"Skipped (<24h):    {result.skipped_recent}")
        self.stdout.write(f"Notifications:     {result.notifications}")
        self.stdout.write(f"Emails sent:       {result.emails_sent}")
        if result.email_failures:
            self.stdout.write(self.style.WARNING(f"Email failures:    {result.email_failures}"))

        self.stdout.write(self.style.SUCCESS("Overdue check complete."))
