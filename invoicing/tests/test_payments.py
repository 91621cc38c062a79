# invoicing/tests/test_payments.py

from decimal import Decimal

from django.test import TestCase

from audit.models import AuditEventType, AuditLog
from businesses.services.business_service import create_business
from invoicing.models import Invoice, Payment, Receipt
from invoicing.services.hashing import receipt_hash_matches
from invoicing.services.payment_service import record_payment
from invoicing.tests.fixtures import InvoiceFixtureMixin
from permissions.roles import ROLE_AUDITOR, ROLE_MEMBER


class RecordPaymentTests(InvoiceFixtureMixin, TestCase):
    """
    GUARANTEES:
    - Partial payments keep the invoice open; the covering payment marks it paid
    - Every payment produces exactly one receipt with a valid hash
    - Payments and receipts are append-only
    """

    def _pay(self, invoice, amount, **extra):
        return self.api.post(
            f"/api/invoices/{invoice.id}/record-payment/",
            {"amount": amount, **extra},
            format="json",
        )

    def test_partial_then_full_payment(self):
        invoice = self._issued()
        self.assertEqual(invoice.total_amount, Decimal("850000.00"))

        res = self._pay(invoice, "350000", payment_method="bank_transfer", payment_reference="TRF-001")
        self.assertEqual(res.status_code, 200, res.content)
        body = res.json()
        self.assertEqual(body["invoice_status"], "issued")
        self.assertEqual(self._d(body["payment"]["amount"]), Decimal("350000.00"))
        self.assertEqual(body["receipt"]["receipt_number"], "RCP-INV-001")

        invoice.refresh_from_db()
        self.assertEqual(invoice.amount_paid, Decimal("350000.00"))
        self.assertEqual(invoice.balance_due, Decimal("500000.00"))

        res = self._pay(invoice, 500000)
        self.assertEqual(res.status_code, 200, res.content)
        self.assertEqual(res.json()["invoice_status"], "paid")
        self.assertEqual(res.json()["receipt"]["receipt_number"], "RCP-INV-002")

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_PAID)
        self.assertEqual(invoice.amount_paid, invoice.total_amount)

        receipts = Receipt.objects.filter(invoice=invoice)
        self.assertEqual(receipts.count(), 2)
        for receipt in receipts:
            self.assertTrue(receipt_hash_matches(receipt))
            self.assertEqual(receipt.issuer_snapshot["legal_name"], "Lagos Widgets Ltd")
            self.assertEqual(receipt.payer_snapshot["name"], "Dangote Foods")

        first = receipts.get(receipt_number="RCP-INV-001")
        self.assertEqual(first.payment_snapshot["payment_reference"], "TRF-001")

        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.PAYMENT_RECORDED).count(), 2)
        self.assertEqual(AuditLog.objects.filter(event_type=AuditEventType.RECEIPT_ISSUED).count(), 2)

        res = self.api.get(f"/api/receipts/?invoice={invoice.id}")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["count"], 2)

    def test_paid_invoice_rejects_further_payments(self):
        invoice = self._issued()
        record_payment(invoice_id=invoice.id, user=self.owner, amount="850000")

        res = self._pay(invoice, "1")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Cannot record payment for invoice with status: paid")

    def test_draft_cannot_be_paid(self):
        invoice = self._draft()
        res = self._pay(invoice, "100")
        self.assertEqual(res.status_code, 400)
        self.assertFalse(Payment.objects.exists())

    def test_amount_validation(self):
        invoice = self._issued()
        for bad in ("-5", "0", "0.004", "abc", True, "1000000000.00"):
            res = self._pay(invoice, bad)
            self.assertEqual(res.status_code, 400, f"{bad!r}: {res.content!r}")
            self.assertFalse(res.json()["success"])

        res = self._pay(invoice, "10", payment_date="05/01/2025")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Invalid payment_date format. Use YYYY-MM-DD")

        self.assertFalse(Payment.objects.exists())

    def test_payment_and_receipt_are_immutable(self):
        invoice = self._issued()
        result = record_payment(invoice_id=invoice.id, user=self.owner, amount="100.00")

        result.payment.notes = "edited"
        with self.assertRaises(RuntimeError):
            result.payment.save()
        with self.assertRaises(RuntimeError):
            result.payment.delete()

        with self.assertRaises(RuntimeError):
            result.receipt.save()
        with self.assertRaises(RuntimeError):
            result.receipt.delete()

    def test_member_may_record_auditor_may_not(self):
        invoice = self._issued()

        member = self._user("member@example.com", ROLE_MEMBER)
        self.api.force_authenticate(user=member)
        self.assertEqual(self._pay(invoice, "10").status_code, 200)

        auditor = self._user("auditor@example.com", ROLE_AUDITOR)
        self.api.force_authenticate(user=auditor)
        self.assertEqual(self._pay(invoice, "10").status_code, 403)

    def test_other_tenant_sees_not_found(self):
        invoice = self._issued()

        outsider = self._user("outsider@example.com")
        create_business(user=outsider, name="Elsewhere")
        self.api.force_authenticate(user=outsider)

        self.assertEqual(self._pay(invoice, "10").status_code, 404)
        self.assertEqual(self.api.get(f"/api/invoices/{invoice.id}/").status_code, 404)
        self.assertFalse(Payment.objects.exists())
