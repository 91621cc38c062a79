# public/tests/test_public.py

import uuid
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from audit.models import AuditEventType, AuditLog
from backend.settings.base import DEFAULT_CORS_ALLOWED_ORIGINS, with_default_origins
from invoicing.models import Invoice, Receipt
from invoicing.services.payment_service import record_payment
from invoicing.tests.fixtures import InvoiceFixtureMixin


class PublicVerificationTests(InvoiceFixtureMixin, TestCase):
    """
    GUARANTEES:
    - Anonymous access, snapshot data only
    - 400 for missing/malformed ids and drafts, 404 for unknown ids
    - Tampered receipts report integrity_valid = false
    """

    def setUp(self):
        super().setUp()
        self.anon = APIClient()

    def _get(self, path, verification_id=None, **headers):
        url = f"/api/public/{path}/"
        if verification_id is not None:
            url += f"?verification_id={verification_id}"
        return self.anon.get(url, **headers)

    # -------------------------
    # verify-invoice
    # -------------------------
    def test_verify_issued_invoice(self):
        invoice = self._issued()

        res = self._get("verify-invoice", invoice.verification_id)
        self.assertEqual(res.status_code, 200, res.content)
        body = res.json()
        self.assertTrue(body["verified"])
        self.assertEqual(body["issuer_tier"], "starter")

        data = body["invoice"]
        self.assertEqual(data["invoice_number"], "INV-0001")
        self.assertEqual(data["issuer_name"], "Lagos Widgets Ltd")
        self.assertEqual(data["payment_status"], "Issued - Awaiting Payment")
        self.assertEqual(Decimal(data["total_amount"]), Decimal("850000.00"))
        self.assertTrue(data["integrity_valid"])
        self.assertTrue(data["hash_matches"])

        log = AuditLog.objects.get(event_type=AuditEventType.INVOICE_VIEWED, entity_id=invoice.id)
        self.assertIsNone(log.actor_id)
        self.assertEqual(log.metadata["verification_type"], "public_portal")

    def test_snapshot_survives_business_rename(self):
        invoice = self._issued()
        self.business.legal_name = "Renamed Holdings"
        self.business.save()

        body = self._get("verify-invoice", invoice.verification_id).json()
        self.assertEqual(body["invoice"]["issuer_name"], "Lagos Widgets Ltd")

    def test_verify_invoice_errors(self):
        res = self._get("verify-invoice")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json(), {"verified": False, "error": "Verification ID is required"})

        res = self._get("verify-invoice", "not-a-uuid")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Invalid verification ID format")

        self.assertEqual(self._get("verify-invoice", uuid.uuid4()).status_code, 404)

    def test_draft_is_not_verifiable(self):
        draft = self._draft()
        Invoice.objects.filter(pk=draft.pk).update(verification_id=uuid.uuid4())
        draft.refresh_from_db()

        res = self._get("verify-invoice", draft.verification_id)
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.json()["verified"])

    # -------------------------
    # view-invoice
    # -------------------------
    def test_view_moves_sent_to_viewed(self):
        invoice = self._issued()
        Invoice.objects.filter(pk=invoice.pk).update(status=Invoice.STATUS_SENT)

        res = self._get("view-invoice", invoice.verification_id)
        self.assertEqual(res.status_code, 200, res.content)
        body = res.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["invoice"]["status"], "viewed")
        self.assertEqual(len(body["invoice"]["items"]), 1)
        self.assertEqual(body["invoice"]["recipient_snapshot"]["name"], "Dangote Foods")

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_VIEWED)

    def test_view_leaves_other_states(self):
        invoice = self._issued()
        self._get("view-invoice", invoice.verification_id)
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_ISSUED)

    def test_view_error_uses_success_flag(self):
        res = self._get("view-invoice", uuid.uuid4())
        self.assertEqual(res.status_code, 404)
        self.assertFalse(res.json()["success"])

    # -------------------------
    # verify-receipt
    # -------------------------
    def test_verify_receipt(self):
        invoice = self._issued()
        result = record_payment(
            invoice_id=invoice.id,
            user=self.owner,
            amount="350000",
            payment_method="bank_transfer",
        )

        res = self._get("verify-receipt", result.receipt.verification_id)
        self.assertEqual(res.status_code, 200, res.content)
        data = res.json()["receipt"]
        self.assertEqual(data["receipt_number"], "RCP-INV-001")
        self.assertEqual(data["invoice_reference"], "INV-0001")
        self.assertEqual(data["payer_name"], "Dangote Foods")
        self.assertEqual(data["payment_method"], "bank_transfer")
        self.assertTrue(data["integrity_valid"])

    def test_tampered_receipt_fails_integrity(self):
        invoice = self._issued()
        receipt = record_payment(invoice_id=invoice.id, user=self.owner, amount="350000").receipt

        # queryset update bypasses the model's immutability guard
        Receipt.objects.filter(pk=receipt.pk).update(amount=Decimal("1.00"))

        res = self._get("verify-receipt", receipt.verification_id)
        self.assertEqual(res.status_code, 200)
        self.assertFalse(res.json()["receipt"]["integrity_valid"])

    def test_unknown_receipt(self):
        res = self._get("verify-receipt", uuid.uuid4())
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json()["error"], "Receipt not found")


class PublicCorsTests(InvoiceFixtureMixin, TestCase):
    def test_allow_listed_origins_are_echoed(self):
        invoice = self._issued()
        url = f"/api/public/verify-invoice/?verification_id={invoice.verification_id}"
        anon = APIClient()

        for origin in ("https://preview.lovable.app", "http://localhost:5173", "https://app.invoicemonk.com"):
            res = anon.get(url, HTTP_ORIGIN=origin)
            self.assertEqual(res.status_code, 200)
            self.assertEqual(res["Access-Control-Allow-Origin"], origin)

        res = anon.get(url, HTTP_ORIGIN="https://evil.example")
        self.assertNotIn("Access-Control-Allow-Origin", res)


class CorsOriginSettingsTests(SimpleTestCase):
    def test_env_origins_extend_product_domains(self):
        origins = with_default_origins(["https://partner.example/", "https://invoicemonk.com", ""])
        self.assertEqual(
            origins,
            [*DEFAULT_CORS_ALLOWED_ORIGINS, "https://partner.example"],
        )

    def test_no_env_origins_keeps_product_domains(self):
        self.assertEqual(with_default_origins([]), DEFAULT_CORS_ALLOWED_ORIGINS)
