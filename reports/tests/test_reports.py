# reports/tests/test_reports.py

from datetime import date, datetime, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from accounting.models import Expense
from audit.models import AuditEventType, AuditLog
from billing.models import Subscription
from businesses.models import CurrencyAccount
from businesses.services.business_service import create_business
from invoicing.models import CreditNote, Invoice, Payment
from reports.services.report_service import REPORT_TYPES

User = get_user_model()

YEAR = 2025


class ReportFixtureMixin:
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.business = create_business(user=self.owner, name="Acme", default_currency="NGN")
        self.account = CurrencyAccount.objects.get(business=self.business)
        self.client.force_authenticate(user=self.owner)

    def _tier(self, tier):
        Subscription.objects.filter(business=self.business).update(tier=tier)

    def _invoice(self, number, total, issue_date, status=Invoice.STATUS_ISSUED, tax="0.00", paid="0.00", **extra):
        return Invoice.objects.create(
            business=self.business,
            currency_account=self.account,
            invoice_number=number,
            currency="NGN",
            status=status,
            subtotal=Decimal(total) - Decimal(tax),
            tax_amount=Decimal(tax),
            total_amount=Decimal(total),
            amount_paid=Decimal(paid),
            issue_date=issue_date,
            recipient_snapshot={"name": extra.pop("client_name", "Dangote Foods")},
            **extra,
        )

    def _report(self, report_type, **params):
        body = {"report_type": report_type, "year": YEAR, "business_id": str(self.business.id)}
        if "currency_account_id" not in params:
            body["currency_account_id"] = str(self.account.id)
        body.update(params)
        return self.client.post("/api/reports/generate/", body, format="json")


class ReportGatingTests(ReportFixtureMixin, TestCase):
    def test_starter_tier_is_upgrade_required(self):
        res = self._report("revenue-by-period")
        self.assertEqual(res.status_code, 403)
        body = res.json()
        self.assertTrue(body["upgrade_required"])
        self.assertEqual(body["error"], "Reports require a Professional subscription or higher.")

    def test_compliance_reports_need_business_tier(self):
        self._tier("professional")
        res = self._report("tax-report")
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.json()["error"], "Compliance reports require a Business subscription.")

        self._tier("business")
        self.assertEqual(self._report("tax-report").status_code, 200)

    def test_report_type_and_year_required(self):
        self._tier("professional")
        res = self.client.post("/api/reports/generate/", {"report_type": "invoice-register"}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "report_type and year are required")

    def test_financial_report_requires_currency_account(self):
        self._tier("professional")
        res = self._report("invoice-register", currency_account_id="")
        self.assertEqual(res.status_code, 400)
        self.assertIn("currency_account_id is required", res.json()["error"])

    def test_foreign_currency_account_is_403(self):
        self._tier("professional")
        other_owner = User.objects.create_user(email="other@example.com", password="pass")
        other = create_business(user=other_owner, name="Other")
        foreign = CurrencyAccount.objects.get(business=other)

        res = self._report("invoice-register", currency_account_id=str(foreign.id))
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.json()["error"], "Currency account does not belong to this business")

    def test_unknown_report_type(self):
        self._tier("professional")
        res = self._report("profit-forecast")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Unknown report type: profit-forecast")

    def test_non_member_is_forbidden(self):
        self._tier("professional")
        stranger = User.objects.create_user(email="stranger@example.com", password="pass")
        self.client.force_authenticate(user=stranger)
        self.assertEqual(self._report("invoice-register").status_code, 403)

    def test_every_report_type_builds_on_business_tier(self):
        self._tier("business")
        self._invoice("INV-0001", "100.00", date(YEAR, 3, 1))
        for report_type in sorted(REPORT_TYPES):
            res = self._report(report_type)
            self.assertEqual(res.status_code, 200, f"{report_type}: {res.content!r}")
            self.assertEqual(res.json()["report_type"], report_type)


class RevenueReportTests(ReportFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self._tier("professional")

    def test_revenue_by_period_sums_equal_total(self):
        self._invoice("INV-0001", "1000.00", date(YEAR, 1, 15), tax="75.00")
        self._invoice("INV-0002", "250.50", date(YEAR, 1, 20))
        self._invoice("INV-0003", "400.00", date(YEAR, 3, 2), status=Invoice.STATUS_PAID, paid="400.00")
        self._invoice("INV-0004", "999.00", date(YEAR, 2, 1), status=Invoice.STATUS_VOIDED)
        self._invoice("INV-0005", "999.00", date(YEAR, 2, 1), status=Invoice.STATUS_DRAFT)
        self._invoice("INV-0006", "999.00", date(YEAR - 1, 12, 31))

        res = self._report("revenue-by-period")
        self.assertEqual(res.status_code, 200, res.content)
        body = res.json()

        periods = [row["period"] for row in body["data"]]
        self.assertEqual(periods, [f"{YEAR}-01", f"{YEAR}-03"])

        total = sum(Decimal(str(row["revenue"])) for row in body["data"])
        self.assertEqual(total, Decimal(str(body["summary"]["total_revenue"])))
        self.assertEqual(total, Decimal("1650.50"))
        self.assertEqual(body["summary"]["total_invoices"], 3)
        self.assertEqual(body["currency"], "NGN")

    def test_revenue_by_client_sorted_descending(self):
        self._invoice("INV-0001", "100.00", date(YEAR, 1, 1), client_name="Small Co")
        self._invoice("INV-0002", "900.00", date(YEAR, 1, 2), client_name="Big Co")

        res = self._report("revenue-by-client")
        clients = [row["client"] for row in res.json()["data"]]
        self.assertEqual(clients, ["Big Co", "Small Co"])

    def test_outstanding_report_days_overdue(self):
        today = timezone.localdate()
        self._invoice(
            "INV-0001",
            "500.00",
            date(YEAR, 1, 1),
            paid="200.00",
            due_date=today - timedelta(days=10),
        )
        self._invoice("INV-0002", "300.00", date(YEAR, 1, 1), status=Invoice.STATUS_PAID, paid="300.00")

        res = self._report("outstanding-report")
        rows = res.json()["data"]
        self.assertEqual(len(rows), 1)
        self.assertEqual(Decimal(str(rows[0]["outstanding_balance"])), Decimal("300.00"))
        self.assertEqual(rows[0]["days_overdue"], 10)

    def test_cash_flow_has_twelve_months(self):
        invoice = self._invoice("INV-0001", "500.00", date(YEAR, 4, 1))
        Payment.objects.create(
            business=self.business,
            invoice=invoice,
            amount=Decimal("200.00"),
            payment_date=date(YEAR, 4, 5),
        )
        Expense.objects.create(
            business=self.business,
            currency_account=self.account,
            amount=Decimal("50.00"),
            currency="NGN",
            expense_date=date(YEAR, 4, 9),
        )

        res = self._report("cash-flow-summary")
        body = res.json()
        self.assertEqual(len(body["data"]), 12)
        april = body["data"][3]
        self.assertEqual(april["period"], f"{YEAR}-04")
        self.assertEqual(Decimal(str(april["net"])), Decimal("150.00"))
        self.assertEqual(Decimal(str(body["summary"]["net_position"])), Decimal("150.00"))

    def test_expense_by_vendor_groups_blank_vendor(self):
        for vendor in ("", "", "PHCN"):
            Expense.objects.create(
                business=self.business,
                currency_account=self.account,
                amount=Decimal("10.00"),
                currency="NGN",
                vendor=vendor,
                expense_date=date(YEAR, 5, 1),
            )

        rows = self._report("expense-by-vendor").json()["data"]
        by_vendor = {row["vendor"]: row["count"] for row in rows}
        self.assertEqual(by_vendor, {"Unspecified": 2, "PHCN": 1})

    def test_csv_report_download(self):
        self._invoice("INV-0001", "1000.00", date(YEAR, 1, 15))

        res = self._report("revenue-by-period", format="csv")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res["Content-Type"], "text/csv")
        self.assertIn(f'filename="revenue-by-period-NGN-{YEAR}.csv"', res["Content-Disposition"])

        lines = res.content.decode().split("\n")
        self.assertEqual(lines[0], "period,revenue,tax,count")
        self.assertEqual(lines[1], f"{YEAR}-01,1000.00,0.00,1")

    def test_report_is_audited(self):
        self._report("invoice-register")
        log = AuditLog.objects.get(event_type=AuditEventType.DATA_EXPORTED, business=self.business)
        self.assertEqual(log.metadata["report_type"], "invoice-register")
        self.assertEqual(log.metadata["year"], YEAR)


class VoidedInvoiceReportTests(ReportFixtureMixin, TestCase):
    """
    GUARANTEES:
    - A voided invoice and its credit note cancel out exactly once
    - Tax report and income statement agree on the reversal
    """

    def setUp(self):
        super().setUp()
        self._tier("business")
        self._invoice("INV-0001", "1075.00", date(YEAR, 3, 4), tax="75.00")
        voided = self._invoice("INV-0002", "1075.00", date(YEAR, 3, 5), status=Invoice.STATUS_VOIDED, tax="75.00")
        CreditNote.objects.create(
            business=self.business,
            original_invoice=voided,
            credit_note_number="CN-INV-0002",
            reason="Client cancelled the engagement",
            amount=Decimal("1075.00"),
            currency="NGN",
            issued_at=timezone.make_aware(datetime(YEAR, 3, 10, 12, 0)),
            credit_note_hash="0" * 64,
        )
        Expense.objects.create(
            business=self.business,
            currency_account=self.account,
            category="rent",
            amount=Decimal("200.00"),
            currency="NGN",
            expense_date=date(YEAR, 3, 1),
        )

    def test_tax_report_reverses_voided_tax_once(self):
        res = self._report("tax-report")
        self.assertEqual(res.status_code, 200, res.content)
        body = res.json()

        self.assertEqual(len(body["data"]), 1)
        march = body["data"][0]
        self.assertEqual(march["period"], f"{YEAR}-03")
        self.assertEqual(Decimal(str(march["tax_collected"])), Decimal("150.00"))
        self.assertEqual(Decimal(str(march["credit_note_adjustment"])), Decimal("1075.00"))
        self.assertEqual(Decimal(str(march["net_tax"])), Decimal("75.00"))

        summary = body["summary"]
        self.assertEqual(Decimal(str(summary["net_tax"])), Decimal("75.00"))
        self.assertEqual(Decimal(str(summary["total_taxable_amount"])), Decimal("2000.00"))
        self.assertEqual(Decimal(str(summary["net_taxable"])), Decimal("1000.00"))
        self.assertEqual(summary["total_invoices"], 2)

    def test_income_statement_nets_credit_notes(self):
        res = self._report("income-statement")
        self.assertEqual(res.status_code, 200, res.content)
        data = res.json()["data"]

        self.assertEqual(Decimal(str(data["gross_revenue"])), Decimal("2150.00"))
        self.assertEqual(Decimal(str(data["credit_notes"])), Decimal("1075.00"))
        self.assertEqual(Decimal(str(data["net_revenue"])), Decimal("1075.00"))
        self.assertEqual(Decimal(str(data["tax_collected"])), Decimal("150.00"))
        self.assertEqual(Decimal(str(data["expense_breakdown"]["rent"])), Decimal("200.00"))
        self.assertEqual(Decimal(str(data["net_income"])), Decimal("875.00"))
