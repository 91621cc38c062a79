# notifications/tests/test_notifications.py

from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from invoicing.models import Invoice
from invoicing.tests.fixtures import InvoiceFixtureMixin
from notifications.models import Notification
from notifications.services import notification_service
from notifications.services.brevo import EmailDeliveryError
from notifications.services.notification_service import notify_safely
from notifications.services.overdue_service import check_overdue_invoices
from permissions.roles import ROLE_ADMIN, ROLE_MEMBER

CONFIGURED = "notifications.services.overdue_service.is_email_configured"
SEND = "notifications.services.overdue_service.send_transactional_email"


class NotificationApiTests(InvoiceFixtureMixin, TestCase):
    def test_lifecycle_events_notify_actor(self):
        self._issued()
        res = self.api.get("/api/notifications/")
        self.assertEqual(res.status_code, 200)
        types = [row["type"] for row in res.json()["results"]]
        self.assertIn(Notification.TYPE_INVOICE_ISSUED, types)

    def test_mark_read_and_read_all(self):
        self._issued()
        self._issued()
        first = Notification.objects.filter(user=self.owner).first()

        res = self.api.post(f"/api/notifications/{first.id}/read/")
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.json()["notification"]["is_read"])

        res = self.api.get("/api/notifications/?unread=true")
        self.assertEqual(res.json()["count"], 1)

        res = self.api.post("/api/notifications/read-all/")
        self.assertEqual(res.json()["updated"], 1)
        self.assertFalse(Notification.objects.filter(user=self.owner, is_read=False).exists())

    def test_cannot_read_someone_elses_notification(self):
        self._issued()
        note = Notification.objects.filter(user=self.owner).first()

        self.api.force_authenticate(user=self._user("other@example.com"))
        self.assertEqual(self.api.post(f"/api/notifications/{note.id}/read/").status_code, 404)

    def test_notify_safely_swallows_failures(self):
        with patch.object(notification_service, "create_notification", side_effect=RuntimeError("db down")):
            self.assertIsNone(notify_safely(user=self.owner, type=Notification.TYPE_INVOICE_ISSUED, title="x"))


class OverdueCheckTests(InvoiceFixtureMixin, TestCase):
    """
    GUARANTEES:
    - Only issued/sent invoices past due are alerted
    - One alert per invoice per 24 hours
    - Owners who opted out get no email
    """

    def setUp(self):
        super().setUp()
        self.today = timezone.localdate()
        self.overdue = self._issued(due_date=self.today - timedelta(days=3))
        self._issued(due_date=self.today + timedelta(days=3))
        self._draft(due_date=self.today - timedelta(days=3))

        paid = self._issued(due_date=self.today - timedelta(days=3))
        Invoice.objects.filter(pk=paid.pk).update(status=Invoice.STATUS_PAID)

        self.admin = self._user("admin@example.com", ROLE_ADMIN)
        self._user("member@example.com", ROLE_MEMBER)

    def _alerts(self):
        return Notification.objects.filter(type=Notification.TYPE_INVOICE_OVERDUE)

    def test_alerts_managers_once_per_day(self):
        result = check_overdue_invoices()
        self.assertEqual(result.checked, 1)
        self.assertEqual(result.invoice_numbers, [self.overdue.invoice_number])
        self.assertEqual(
            set(self._alerts().values_list("user__email", flat=True)),
            {"owner@example.com", "admin@example.com"},
        )

        again = check_overdue_invoices()
        self.assertEqual(again.skipped_recent, 1)
        self.assertEqual(self._alerts().count(), 2)

    def test_sent_invoices_are_included(self):
        Invoice.objects.filter(pk=self.overdue.pk).update(status=Invoice.STATUS_SENT)
        self.assertEqual(check_overdue_invoices().alerted, 1)

    def test_dry_run_writes_nothing(self):
        result = check_overdue_invoices(dry_run=True)
        self.assertEqual(result.alerted, 1)
        self.assertFalse(self._alerts().exists())

    @patch(SEND, return_value={"messageId": "m-1"})
    @patch(CONFIGURED, return_value=True)
    def test_owner_is_emailed(self, _configured, send):
        result = check_overdue_invoices()
        self.assertEqual(result.emails_sent, 1)
        kwargs = send.call_args.kwargs
        self.assertEqual(kwargs["to_email"], "owner@example.com")
        self.assertIn(self.overdue.invoice_number, kwargs["subject"])

    @patch(SEND)
    @patch(CONFIGURED, return_value=True)
    def test_opted_out_owner_gets_no_email(self, _configured, send):
        self.owner.email_overdue_alerts = False
        self.owner.save(update_fields=["email_overdue_alerts"])

        result = check_overdue_invoices()
        send.assert_not_called()
        self.assertEqual(result.emails_sent, 0)
        self.assertEqual(self._alerts().count(), 2)

    @patch(SEND, side_effect=EmailDeliveryError("Brevo URLError: timeout"))
    @patch(CONFIGURED, return_value=True)
    def test_email_failure_keeps_notifications(self, _configured, _send):
        result = check_overdue_invoices()
        self.assertEqual(result.email_failures, 1)
        self.assertEqual(self._alerts().count(), 2)

    def test_management_command(self):
        out = StringIO()
        call_command("check_overdue_invoices", stdout=out)
        output = out.getvalue()
        self.assertIn(f"OVERDUE {self.overdue.invoice_number}", output)
        self.assertIn("Overdue check complete.", output)
        self.assertEqual(self._alerts().count(), 2)
