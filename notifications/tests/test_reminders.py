# notifications/tests/test_reminders.py

from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from invoicing.models import Invoice
from invoicing.tests.fixtures import InvoiceFixtureMixin
from notifications.models import Notification
from notifications.services.brevo import EmailDeliveryError
from notifications.services.reminder_service import reminder_steps, send_due_date_reminders

CONFIGURED = "notifications.services.reminder_service.is_email_configured"
SEND = "notifications.services.reminder_service.send_transactional_email"


class DueDateReminderTests(InvoiceFixtureMixin, TestCase):
    """
    GUARANTEES:
    - Only creators who opted in get reminders for their open invoices
    - Before-due days follow reminder_schedule, else reminder_days_before
    - Overdue days apply only when overdue reminders are enabled
    - The same reminder is not repeated within 24 hours
    - The client is emailed with the creator's custom message
    """

    def setUp(self):
        super().setUp()
        self.today = timezone.localdate()
        self.owner.email_payment_reminders = True
        self.owner.reminder_days_before = 3
        self.owner.save()

        self.due_soon = self._issued(due_date=self.today + timedelta(days=3))
        self.late = self._issued(due_date=self.today - timedelta(days=7))
        self._issued(due_date=self.today + timedelta(days=5))
        self._draft(due_date=self.today + timedelta(days=3))

        paid = self._issued(due_date=self.today + timedelta(days=3))
        Invoice.objects.filter(pk=paid.pk).update(status=Invoice.STATUS_PAID)

    def _reminders(self, type=Notification.TYPE_PAYMENT_REMINDER):
        return Notification.objects.filter(type=type)

    def test_reminds_open_invoice_on_reminder_day_once(self):
        result = send_due_date_reminders(today=self.today)
        self.assertEqual(result.users, 1)
        self.assertEqual(result.reminded, [f"{self.due_soon.invoice_number} (due in 3 day(s))"])
        self.assertEqual(self._reminders().count(), 1)
        self.assertEqual(self._reminders().get().entity_id, self.due_soon.id)
        self.assertFalse(self._reminders(Notification.TYPE_OVERDUE_REMINDER).exists())

        again = send_due_date_reminders(today=self.today)
        self.assertEqual(again.skipped_recent, 1)
        self.assertEqual(self._reminders().count(), 1)

    def test_schedule_overrides_days_before(self):
        self.owner.reminder_schedule = [5, 1]
        self.owner.save()

        result = send_due_date_reminders(today=self.today)
        self.assertEqual(len(result.reminded), 1)
        self.assertIn("due in 5 day(s)", result.reminded[0])

    def test_overdue_schedule_needs_opt_in(self):
        self.owner.overdue_reminder_schedule = [7]
        self.owner.save()
        send_due_date_reminders(today=self.today)
        self.assertFalse(self._reminders(Notification.TYPE_OVERDUE_REMINDER).exists())

        self.owner.overdue_reminder_enabled = True
        self.owner.save()
        self.assertEqual(
            [s.label for s in reminder_steps(self.owner)],
            ["due in 3 day(s)", "7 day(s) overdue"],
        )

        send_due_date_reminders(today=self.today)
        overdue = self._reminders(Notification.TYPE_OVERDUE_REMINDER).get()
        self.assertEqual(overdue.entity_id, self.late.id)
        self.assertIn("(7 day(s) overdue)", overdue.message)

    def test_opted_out_creator_gets_nothing(self):
        self.owner.email_payment_reminders = False
        self.owner.save()
        result = send_due_date_reminders(today=self.today)
        self.assertEqual(result.users, 0)
        self.assertFalse(self._reminders().exists())

    def test_dry_run_writes_nothing(self):
        result = send_due_date_reminders(today=self.today, dry_run=True)
        self.assertEqual(len(result.reminded), 1)
        self.assertFalse(self._reminders().exists())

    @patch(SEND, return_value={"messageId": "m-1"})
    @patch(CONFIGURED, return_value=True)
    def test_client_is_emailed_with_custom_message(self, _configured, send):
        self.owner.reminder_email_template = "Bank transfer details are on the invoice <b>footer</b>."
        self.owner.save()

        result = send_due_date_reminders(today=self.today)
        self.assertEqual(result.emails_sent, 1)
        kwargs = send.call_args.kwargs
        self.assertEqual(kwargs["to_email"], "ap@dangote.example")
        self.assertIn(self.due_soon.invoice_number, kwargs["subject"])
        self.assertIn("Bank transfer details", kwargs["html_content"])
        self.assertIn("&lt;b&gt;footer&lt;/b&gt;", kwargs["html_content"])
        self.assertIn(f"/verify/invoice/{self.due_soon.verification_id}", kwargs["html_content"])

    @patch(SEND, side_effect=EmailDeliveryError("Brevo URLError: timeout"))
    @patch(CONFIGURED, return_value=True)
    def test_email_failure_keeps_notification(self, _configured, _send):
        result = send_due_date_reminders(today=self.today)
        self.assertEqual(result.email_failures, 1)
        self.assertEqual(self._reminders().count(), 1)

    def test_management_command(self):
        out = StringIO()
        call_command("send_due_date_reminders", stdout=out)
        output = out.getvalue()
        self.assertIn(f"REMIND {self.due_soon.invoice_number}", output)
        self.assertIn("Reminder run complete.", output)
        self.assertEqual(self._reminders().count(), 1)
