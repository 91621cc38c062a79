# invoicing/tests/test_send.py

import base64
from unittest.mock import patch

from django.test import TestCase

from audit.models import AuditEventType, AuditLog
from invoicing.models import Invoice
from invoicing.tests.fixtures import InvoiceFixtureMixin
from notifications.services.brevo import EmailDeliveryError

CONFIGURED = "invoicing.services.delivery_service.is_email_configured"
SEND = "invoicing.services.delivery_service.send_transactional_email"


class SendInvoiceTests(InvoiceFixtureMixin, TestCase):
    """
    GUARANTEES:
    - Drafts are never sent
    - The status moves issued -> sent only after the provider accepted the email
    - Provider failures surface as 500 without touching the invoice
    """

    def _send(self, invoice, **body):
        payload = {"recipient_email": "ap@dangote.example", "custom_message": "Thanks for your business"}
        payload.update(body)
        return self.api.post(f"/api/invoices/{invoice.id}/send/", payload, format="json")

    @patch(SEND, return_value={"messageId": "abc"})
    @patch(CONFIGURED, return_value=True)
    def test_send_marks_invoice_sent(self, _configured, send):
        invoice = self._issued()

        res = self._send(invoice)
        self.assertEqual(res.status_code, 200, res.content)
        body = res.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["recipient"], "ap@dangote.example")
        self.assertTrue(body["attachment_included"])

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_SENT)

        kwargs = send.call_args.kwargs
        self.assertEqual(kwargs["to_email"], "ap@dangote.example")
        self.assertEqual(kwargs["subject"], "Invoice INV-0001 from Lagos Widgets Ltd")
        self.assertIn("Thanks for your business", kwargs["html_content"])
        self.assertIn(f"/verify/invoice/{invoice.verification_id}", kwargs["html_content"])

        attachment = kwargs["attachments"][0]
        self.assertEqual(attachment["name"], "Invoice-INV-0001.html")
        self.assertIn("INV-0001", base64.b64decode(attachment["content"]).decode("utf-8"))

        self.assertTrue(
            AuditLog.objects.filter(event_type=AuditEventType.INVOICE_SENT, entity_id=invoice.id).exists()
        )

    @patch(SEND)
    @patch(CONFIGURED, return_value=True)
    def test_draft_cannot_be_sent(self, _configured, send):
        res = self._send(self._draft())
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Cannot send draft invoices. Please issue the invoice first.")
        send.assert_not_called()

    @patch(SEND)
    @patch(CONFIGURED, return_value=True)
    def test_recipient_email_validated(self, _configured, send):
        invoice = self._issued()
        self.assertEqual(self._send(invoice, recipient_email="").status_code, 400)
        self.assertEqual(self._send(invoice, recipient_email="not-an-email").status_code, 400)
        send.assert_not_called()

    @patch(SEND)
    def test_unconfigured_provider_is_500(self, send):
        invoice = self._issued()

        res = self._send(invoice)
        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json()["error"], "Email service not configured")
        send.assert_not_called()

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_ISSUED)

    @patch(SEND, side_effect=EmailDeliveryError("Brevo HTTPError: 401 Key not found"))
    @patch(CONFIGURED, return_value=True)
    def test_provider_failure_leaves_status(self, _configured, _send):
        invoice = self._issued()

        res = self._send(invoice)
        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json()["error"], "Failed to send email. Please try again later.")

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_ISSUED)
        self.assertFalse(AuditLog.objects.filter(event_type=AuditEventType.INVOICE_SENT).exists())

    @patch(SEND, return_value={})
    @patch(CONFIGURED, return_value=True)
    def test_resending_paid_invoice_keeps_status(self, _configured, _send):
        invoice = self._issued()
        Invoice.objects.filter(pk=invoice.pk).update(status=Invoice.STATUS_PAID)

        self.assertEqual(self._send(invoice).status_code, 200)
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_PAID)
