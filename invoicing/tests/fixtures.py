# invoicing/tests/fixtures.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from businesses.models import BusinessMember, Client, CurrencyAccount
from businesses.services.business_service import create_business
from invoicing.services.invoice_service import create_invoice
from invoicing.services.issue_service import issue_invoice

User = get_user_model()


class InvoiceFixtureMixin:
    """
    One NGN business owned by a verified user, one client, an API client
    authenticated as the owner.
    """

    def setUp(self):
        self.api = APIClient()
        self.owner = User.objects.create_user(
            email="owner@example.com",
            password="pass",
            email_verified=True,
        )
        self.business = create_business(
            user=self.owner,
            name="Lagos Widgets",
            legal_name="Lagos Widgets Ltd",
            default_currency="NGN",
            jurisdiction="NG",
        )
        self.account = CurrencyAccount.objects.get(business=self.business)
        self.customer = Client.objects.create(
            business=self.business,
            name="Dangote Foods",
            email="ap@dangote.example",
        )
        self.api.force_authenticate(user=self.owner)

    # -------------------------
    # helpers
    # -------------------------
    def _user(self, email, role=None, business=None, **extra):
        user = User.objects.create_user(email=email, password="pass", **extra)
        if role:
            BusinessMember.objects.create(business=business or self.business, user=user, role=role)
        return user

    def _draft(self, *items, **kwargs):
        items = items or ({"description": "Consulting", "quantity": 1, "unit_price": "850000.00"},)
        return create_invoice(
            business=self.business,
            user=self.owner,
            client=self.customer,
            items=list(items),
            **kwargs,
        )

    def _issued(self, *items, **kwargs):
        return issue_invoice(invoice=self._draft(*items, **kwargs), user=self.owner)

    @staticmethod
    def _d(value) -> Decimal:
        return Decimal(str(value))
