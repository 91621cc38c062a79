# reports/tests/test_exports.py

import hashlib
import json
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from audit.models import AuditEventType, AuditLog
from billing.models import Subscription
from businesses.models import BusinessMember, Client, CurrencyAccount
from businesses.services.business_service import create_business
from invoicing.models import Invoice
from permissions.roles import ROLE_AUDITOR, ROLE_MEMBER
from reports.models import ExportManifest
from reports.services.csv_format import rows_to_csv
from reports.services.export_service import EXPORT_COLUMNS, primary_currency_equivalent

User = get_user_model()


class CsvFormatTests(TestCase):
    COLUMNS = ["name", "amount", "meta"]

    def test_zero_rows_is_header_only(self):
        self.assertEqual(rows_to_csv([], self.COLUMNS), "name,amount,meta")

    def test_header_order_follows_declared_columns(self):
        one = rows_to_csv([{"meta": None, "amount": Decimal("1.50"), "name": "A"}], self.COLUMNS)
        self.assertEqual(one.split("\n"), ["name,amount,meta", "A,1.50,"])

        many = rows_to_csv(
            [{"name": "A", "amount": 1}, {"name": "B", "amount": 2}, {"name": "C"}],
            self.COLUMNS,
        )
        lines = many.split("\n")
        self.assertEqual(len(lines), 4)
        self.assertEqual(lines[0], "name,amount,meta")
        self.assertEqual(lines[3], "C,,")

    def test_header_from_first_row_when_columns_omitted(self):
        self.assertEqual(rows_to_csv([{"b": 1, "a": 2}]).split("\n")[0], "b,a")

    def test_quoting(self):
        out = rows_to_csv(
            [{"name": 'Say "hi", Ltd', "amount": "line1\nline2", "meta": {"k": "v"}}],
            self.COLUMNS,
        )
        self.assertEqual(
            out,
            'name,amount,meta\n"Say ""hi"", Ltd","line1\nline2","{""k"":""v""}"',
        )


class PrimaryCurrencyEquivalentTests(TestCase):
    def test_same_currency_is_unchanged(self):
        self.assertEqual(
            primary_currency_equivalent(amount=Decimal("10"), currency="NGN", rate=Decimal("5"), primary_currency="NGN"),
            Decimal("10"),
        )

    def test_foreign_currency_uses_rate_or_one(self):
        self.assertEqual(
            primary_currency_equivalent(amount=Decimal("10"), currency="USD", rate=Decimal("1500"), primary_currency="NGN"),
            Decimal("15000"),
        )
        self.assertEqual(
            primary_currency_equivalent(amount=Decimal("10"), currency="USD", rate=None, primary_currency="NGN"),
            Decimal("10"),
        )


class ExportRecordsApiTests(TestCase):
    """
    GUARANTEES:
    - Denied exports write no manifest
    - Content hash, manifest and audit event agree
    """

    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.business = create_business(user=self.owner, name="Acme", default_currency="NGN")
        self.client.force_authenticate(user=self.owner)

    def _export(self, **body):
        payload = {"export_type": "invoices", "business_id": str(self.business.id)}
        payload.update(body)
        return self.client.post("/api/reports/export/", payload, format="json", HTTP_USER_AGENT="pytest-agent")

    def test_starter_tier_is_denied_without_manifest(self):
        res = self._export()
        self.assertEqual(res.status_code, 403)
        body = res.json()
        self.assertTrue(body["upgrade_required"])
        self.assertEqual(body["tier"], "starter")
        self.assertEqual(
            body["error"],
            "Data exports require a Professional subscription. Upgrade to export your financial records.",
        )
        self.assertEqual(ExportManifest.objects.count(), 0)

    def test_member_without_export_capability_is_denied(self):
        Subscription.objects.filter(business=self.business).update(tier="professional")
        member = User.objects.create_user(email="member@example.com", password="pass")
        BusinessMember.objects.create(business=self.business, user=member, role=ROLE_MEMBER)
        self.client.force_authenticate(user=member)

        self.assertEqual(self._export().status_code, 403)
        self.assertEqual(ExportManifest.objects.count(), 0)

    def test_invoice_export_writes_manifest_and_audit(self):
        Subscription.objects.filter(business=self.business).update(tier="professional")
        usd = CurrencyAccount.objects.create(business=self.business, currency="USD")
        client = Client.objects.create(business=self.business, name="Globex, Inc", email="ap@globex.example")
        Invoice.objects.create(
            business=self.business,
            currency_account=usd,
            client=client,
            invoice_number="INV-0001",
            currency="USD",
            status=Invoice.STATUS_ISSUED,
            total_amount=Decimal("10.00"),
            exchange_rate_to_primary=Decimal("1500"),
        )

        res = self._export(date_from="2000-01-01", filters={"status": "issued"})
        self.assertEqual(res.status_code, 200, res.content)
        body = res.json()

        lines = body["data"].split("\n")
        self.assertEqual(lines[0], ",".join(EXPORT_COLUMNS["invoices"]))
        self.assertEqual(len(lines), 2)
        self.assertIn('"Globex, Inc"', lines[1])
        self.assertIn("15000.", lines[1])
        self.assertEqual(body["record_count"], 1)
        self.assertTrue(body["filename"].startswith("invoices_export_"))
        self.assertTrue(body["filename"].endswith(".csv"))

        expected_hash = hashlib.sha256(body["data"].encode("utf-8")).hexdigest()
        self.assertEqual(body["integrity_hash"], expected_hash)

        manifest = ExportManifest.objects.get(id=body["manifest_id"])
        self.assertEqual(manifest.integrity_hash, expected_hash)
        self.assertEqual(manifest.actor_email, "owner@example.com")
        self.assertEqual(manifest.actor_role, "owner")
        self.assertEqual(manifest.user_agent, "pytest-agent")
        self.assertEqual(manifest.scope["date_from"], "2000-01-01")
        self.assertEqual(manifest.scope["filters"], {"status": "issued"})

        log = AuditLog.objects.get(event_type=AuditEventType.DATA_EXPORTED, entity_type="invoices")
        self.assertEqual(log.metadata["manifest_id"], body["manifest_id"])

    def test_manifest_ignores_forwarded_value_that_is_not_an_address(self):
        Subscription.objects.filter(business=self.business).update(tier="professional")

        res = self.client.post(
            "/api/reports/export/",
            {"export_type": "clients", "business_id": str(self.business.id)},
            format="json",
            HTTP_X_FORWARDED_FOR="unknown",
            HTTP_X_REAL_IP="203.0.113.7",
        )
        self.assertEqual(res.status_code, 200, res.content)

        manifest = ExportManifest.objects.get(id=res.json()["manifest_id"])
        self.assertEqual(manifest.source_ip, "203.0.113.7")

    def test_json_export_and_empty_csv(self):
        Subscription.objects.filter(business=self.business).update(tier="professional")

        res = self._export(export_type="clients")
        self.assertEqual(res.json()["data"], ",".join(EXPORT_COLUMNS["clients"]))
        self.assertEqual(res.json()["record_count"], 0)

        Client.objects.create(business=self.business, name="Initech")
        res = self._export(export_type="clients", format="json")
        body = res.json()
        self.assertTrue(body["filename"].endswith(".json"))
        self.assertEqual(json.loads(body["data"])[0]["name"], "Initech")

    def test_auditor_may_export(self):
        Subscription.objects.filter(business=self.business).update(tier="professional")
        auditor = User.objects.create_user(email="auditor@example.com", password="pass")
        BusinessMember.objects.create(business=self.business, user=auditor, role=ROLE_AUDITOR)
        self.client.force_authenticate(user=auditor)

        res = self._export(export_type="audit_logs")
        self.assertEqual(res.status_code, 200, res.content)
        self.assertGreaterEqual(res.json()["record_count"], 1)

    def test_invalid_export_type(self):
        Subscription.objects.filter(business=self.business).update(tier="professional")
        res = self._export(export_type="payroll")
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.json()["success"])

    def test_manifest_is_immutable(self):
        manifest = ExportManifest.objects.create(export_type="clients", integrity_hash="0" * 64)
        manifest.record_count = 99
        with self.assertRaises(RuntimeError):
            manifest.save()
        with self.assertRaises(RuntimeError):
            manifest.delete()
