# accounting/tests/test_expenses.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models import Expense
from accounting.services.exceptions import ExpensePermissionError, ExpenseValidationError
from accounting.services.expense_service import create_expense
from audit.models import AuditEventType, AuditLog
from businesses.models import BusinessMember, CurrencyAccount
from businesses.services.business_service import create_business
from permissions.roles import ROLE_AUDITOR

User = get_user_model()


class ExpenseServiceTests(TestCase):
    """
    GUARANTEES:
    - Expenses take the currency of their currency account
    - Accounts of another business are rejected
    - Only roles with expense.manage may record expenses
    """

    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.business = create_business(user=self.owner, name="Acme Ltd", default_currency="NGN")
        self.account = CurrencyAccount.objects.get(business=self.business, is_default=True)

    def test_expense_uses_account_currency_and_is_audited(self):
        expense = create_expense(
            business=self.business,
            user=self.owner,
            currency_account_id=self.account.id,
            amount="1500.50",
            category="rent",
            vendor="<b>Landlord</b>",
        )

        self.assertEqual(expense.currency, "NGN")
        self.assertEqual(expense.amount, Decimal("1500.50"))
        self.assertEqual(expense.vendor, "Landlord")
        self.assertTrue(
            AuditLog.objects.filter(
                event_type=AuditEventType.EXPENSE_CREATED,
                entity_id=expense.id,
            ).exists()
        )

    def test_negative_amount_rejected(self):
        with self.assertRaises(ExpenseValidationError):
            create_expense(
                business=self.business,
                user=self.owner,
                currency_account_id=self.account.id,
                amount="-1",
            )

    def test_foreign_currency_account_rejected(self):
        other_owner = User.objects.create_user(email="other@example.com", password="pass")
        other = create_business(user=other_owner, name="Other Co")
        other_account = CurrencyAccount.objects.get(business=other)

        with self.assertRaises(ExpensePermissionError):
            create_expense(
                business=self.business,
                user=self.owner,
                currency_account_id=other_account.id,
                amount="10.00",
            )

    def test_auditor_cannot_record_expenses(self):
        auditor = User.objects.create_user(email="auditor@example.com", password="pass")
        BusinessMember.objects.create(business=self.business, user=auditor, role=ROLE_AUDITOR)

        with self.assertRaises(ExpensePermissionError):
            create_expense(
                business=self.business,
                user=auditor,
                currency_account_id=self.account.id,
                amount="10.00",
            )
        self.assertEqual(Expense.objects.count(), 0)


class ExpenseApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.business = create_business(user=self.owner, name="Acme Ltd")
        self.account = CurrencyAccount.objects.get(business=self.business)
        self.client.force_authenticate(user=self.owner)

    def test_create_and_list(self):
        res = self.client.post(
            "/api/accounting/expenses/",
            {
                "business": str(self.business.id),
                "currency_account": str(self.account.id),
                "amount": "250.00",
                "category": "software",
                "vendor": "Cloud Inc",
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.content)
        self.assertTrue(res.json()["success"])

        res = self.client.get(f"/api/accounting/expenses/?business_id={self.business.id}")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["count"], 1)
        self.assertEqual(res.json()["results"][0]["vendor"], "Cloud Inc")

    def test_non_member_gets_403(self):
        stranger = User.objects.create_user(email="stranger@example.com", password="pass")
        self.client.force_authenticate(user=stranger)

        res = self.client.get(f"/api/accounting/expenses/?business_id={self.business.id}")
        self.assertEqual(res.status_code, 403)
        self.assertFalse(res.json()["success"])
