# invoicing/tests/test_void.py

from decimal import Decimal

from django.test import TestCase

from audit.models import AuditEventType, AuditLog
from invoicing.models import CreditNote, Invoice
from invoicing.services.exceptions import DuplicateCreditNoteError
from invoicing.services.payment_service import record_payment
from invoicing.services.void_service import void_invoice
from invoicing.tests.fixtures import InvoiceFixtureMixin
from notifications.models import Notification
from permissions.roles import ROLE_AUDITOR, ROLE_MEMBER

REASON = "Client cancelled the engagement"


class VoidInvoiceTests(InvoiceFixtureMixin, TestCase):
    """
    GUARANTEES:
    - Voiding creates exactly one credit note for the full total
    - A second void is a conflict (409), never a second credit note
    - Only owners/admins may void
    """

    def _void(self, invoice, reason=REASON):
        return self.api.post(f"/api/invoices/{invoice.id}/void/", {"reason": reason}, format="json")

    def test_void_creates_credit_note(self):
        invoice = self._issued()

        res = self._void(invoice)
        self.assertEqual(res.status_code, 200, res.content)
        credit = res.json()["credit_note"]
        self.assertEqual(credit["credit_note_number"], "CN-INV-0001")
        self.assertEqual(self._d(credit["amount"]), Decimal("850000.00"))
        self.assertEqual(credit["reason"], REASON)

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_VOIDED)
        self.assertEqual(invoice.void_reason, REASON)
        self.assertEqual(invoice.voided_by, self.owner)
        self.assertIsNotNone(invoice.voided_at)

        note = CreditNote.objects.get(original_invoice=invoice)
        self.assertEqual(len(note.credit_note_hash), 64)
        self.assertEqual(note.currency, "NGN")

        self.assertTrue(
            AuditLog.objects.filter(event_type=AuditEventType.INVOICE_VOIDED, entity_id=invoice.id).exists()
        )
        self.assertTrue(
            Notification.objects.filter(user=self.owner, type=Notification.TYPE_INVOICE_VOIDED).exists()
        )

        res = self.api.get("/api/credit-notes/")
        self.assertEqual(res.json()["count"], 1)

    def test_second_void_is_conflict(self):
        invoice = self._issued()
        self.assertEqual(self._void(invoice).status_code, 200)

        res = self._void(invoice)
        self.assertEqual(res.status_code, 409)
        self.assertFalse(res.json()["success"])
        self.assertEqual(CreditNote.objects.filter(original_invoice=invoice).count(), 1)

        with self.assertRaises(DuplicateCreditNoteError):
            void_invoice(invoice_id=invoice.id, user=self.owner, reason=REASON)

    def test_reason_must_be_ten_characters(self):
        invoice = self._issued()
        for reason in ("", "   ", "too short"):
            res = self._void(invoice, reason=reason)
            self.assertEqual(res.status_code, 400, reason)
        self.assertFalse(CreditNote.objects.exists())

    def test_draft_and_paid_cannot_be_voided(self):
        draft = self._draft()
        res = self._void(draft)
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Cannot void invoice with status: draft")

        paid = self._issued()
        record_payment(invoice_id=paid.id, user=self.owner, amount=paid.total_amount)
        res = self._void(paid)
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Cannot void invoice with status: paid")

    def test_member_and_auditor_cannot_void(self):
        invoice = self._issued()

        for email, role in (("member@example.com", ROLE_MEMBER), ("auditor@example.com", ROLE_AUDITOR)):
            self.api.force_authenticate(user=self._user(email, role))
            self.assertEqual(self._void(invoice).status_code, 403, role)

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_ISSUED)

    def test_credit_note_is_immutable(self):
        note = void_invoice(invoice_id=self._issued().id, user=self.owner, reason=REASON)
        note.reason = "rewritten after the fact"
        with self.assertRaises(RuntimeError):
            note.save()
        with self.assertRaises(RuntimeError):
            note.delete()
