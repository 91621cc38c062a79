# notifications/management/commands/send_due_date_reminders.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from notifications.services.reminder_service import send_due_date_reminders


class Command(BaseCommand):
    help = "Email clients payment reminders before (and optionally after) invoice due dates."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List reminders that would be sent without writing anything.",
        )

    def handle(self, *args, **options):
        dry_run = bool(options.get("dry_run"))

        self.stdout.write("Sending due date reminders...")
        if dry_run:
            self.stdout.write("DRY RUN: no notifications or emails will be sent.\n")

        result = send_due_date_reminders(dry_run=dry_run)

        for line in result.reminded:
            self.stdout.write(f"REMIND {line}")

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Users with reminders: {result.users}")
        self.stdout.write(f"Invoices checked:     {result.checked}")
        self.stdout.write(f"Skipped (<24h):       {result.skipped_recent}")
        self.stdout.write(f"Notifications:        {result.reminders}")
        self.stdout.write(f"Emails sent:          {result.emails_sent}")
        if result.email_failures:
            self.stdout.write(self.style.WARNING(f"Email failures:       {result.email_failures}"))

        self.stdout.write(self.style.SUCCESS("Reminder run complete."))
