# billing/tests/test_tier_limits.py

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from billing.models import Subscription, TierLimit
from billing.services import tier_catalog as catalog
from billing.services.tier_service import (
    LIMIT_UNDEFINED,
    TierLimitExceeded,
    check_tier_limit,
    get_business_tier,
    require_feature,
)
from businesses.services.business_service import create_business
from invoicing.models import Invoice

User = get_user_model()


class TierSeedTests(TestCase):
    """
    The data migration seeds the catalog; the command is idempotent.
    """

    def test_migration_seeded_every_tier(self):
        expected = len(list(catalog.tier_limit_rows()))
        self.assertEqual(TierLimit.objects.count(), expected)

    def test_seed_command_is_idempotent_and_restores_edits(self):
        row = TierLimit.objects.get(tier="starter", feature=catalog.FEATURE_INVOICES_PER_MONTH)
        row.limit_value = 999
        row.save()

        call_command("seed_tier_limits", "--keep-existing")
        row.refresh_from_db()
        self.assertEqual(row.limit_value, 999)

        call_command("seed_tier_limits")
        row.refresh_from_db()
        self.assertEqual(row.limit_value, 5)
        self.assertEqual(TierLimit.objects.count(), len(list(catalog.tier_limit_rows())))


class CheckTierLimitTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.business = create_business(user=self.owner, name="Acme")

    def _issued_invoices(self, n):
        for i in range(n):
            Invoice.objects.create(
                business=self.business,
                invoice_number=f"INV-{i:04d}",
                status=Invoice.STATUS_ISSUED,
                issued_at=timezone.now(),
            )

    def test_default_tier_is_starter(self):
        self.assertEqual(get_business_tier(self.business), "starter")

    def test_cancelled_subscription_falls_back_to_starter(self):
        Subscription.objects.filter(business=self.business).update(
            tier="business",
            status=Subscription.STATUS_CANCELLED,
        )
        self.assertEqual(get_business_tier(self.business), "starter")

    def test_count_limit_allows_below_limit(self):
        self._issued_invoices(4)
        result = check_tier_limit(business=self.business, feature=catalog.FEATURE_INVOICES_PER_MONTH)
        self.assertTrue(result.allowed)
        self.assertEqual(result.current_count, 4)
        self.assertEqual(result.remaining, 1)

    def test_count_limit_denies_at_limit(self):
        self._issued_invoices(5)
        result = check_tier_limit(business=self.business, feature=catalog.FEATURE_INVOICES_PER_MONTH)
        self.assertFalse(result.allowed)
        self.assertTrue(result.reason)
        self.assertTrue(result.as_dict()["upgrade_required"])

    def test_drafts_do_not_count(self):
        Invoice.objects.create(business=self.business, invoice_number="INV-D", status=Invoice.STATUS_DRAFT)
        result = check_tier_limit(business=self.business, feature=catalog.FEATURE_INVOICES_PER_MONTH)
        self.assertEqual(result.current_count, 0)

    def test_boolean_flag(self):
        self.assertFalse(check_tier_limit(business=self.business, feature=catalog.FEATURE_EXPORTS).allowed)
        Subscription.objects.filter(business=self.business).update(tier="professional")
        self.assertTrue(check_tier_limit(business=self.business, feature=catalog.FEATURE_EXPORTS).allowed)

    def test_unlimited_tier(self):
        Subscription.objects.filter(business=self.business).update(tier="business")
        self._issued_invoices(50)
        result = check_tier_limit(business=self.business, feature=catalog.FEATURE_INVOICES_PER_MONTH)
        self.assertTrue(result.allowed)
        self.assertEqual(result.limit_type, TierLimit.LIMIT_UNLIMITED)

    def test_unknown_feature_is_allowed(self):
        result = check_tier_limit(business=self.business, feature="not_a_feature")
        self.assertTrue(result.allowed)
        self.assertEqual(result.limit_type, LIMIT_UNDEFINED)
        self.assertEqual(result.as_dict()["limit_type"], "undefined")

    def test_count_row_without_value_is_unlimited(self):
        TierLimit.objects.filter(tier="starter", feature=catalog.FEATURE_INVOICES_PER_MONTH).update(
            limit_type=TierLimit.LIMIT_COUNT,
            limit_value=None,
        )
        self._issued_invoices(6)

        result = check_tier_limit(business=self.business, feature=catalog.FEATURE_INVOICES_PER_MONTH)
        self.assertTrue(result.allowed)
        self.assertEqual(result.limit_type, TierLimit.LIMIT_UNLIMITED)
        self.assertEqual(result.reason, "")

    def test_platform_admin_bypasses(self):
        admin = User.objects.create_user(email="admin@example.com", password="pass", role="platform_admin")
        result = check_tier_limit(business=self.business, feature=catalog.FEATURE_EXPORTS, user=admin)
        self.assertTrue(result.allowed)
        self.assertEqual(result.limit_type, TierLimit.LIMIT_UNLIMITED)

    def test_require_feature_raises(self):
        with self.assertRaises(TierLimitExceeded) as ctx:
            require_feature(business=self.business, feature=catalog.FEATURE_REPORTS)
        self.assertFalse(ctx.exception.result.allowed)


class BillingApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.business = create_business(user=self.owner, name="Acme")
        self.client.force_authenticate(user=self.owner)

    def test_tier_check_endpoint(self):
        res = self.client.get(
            f"/api/billing/tier-check/?business_id={self.business.id}&feature={catalog.FEATURE_EXPORTS}"
        )
        self.assertEqual(res.status_code, 200, res.content)
        body = res.json()
        self.assertTrue(body["success"])
        self.assertFalse(body["allowed"])
        self.assertTrue(body["upgrade_required"])
        self.assertEqual(body["tier"], "starter")

    def test_tier_check_requires_feature(self):
        res = self.client.get(f"/api/billing/tier-check/?business_id={self.business.id}")
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.json()["success"])

    def test_subscription_endpoint_lists_limits(self):
        res = self.client.get(f"/api/billing/subscription/?business_id={self.business.id}")
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertEqual(body["tier"], "starter")
        features = {row["feature"] for row in body["limits"]}
        self.assertIn(catalog.FEATURE_INVOICES_PER_MONTH, features)

    def test_non_member_is_forbidden(self):
        stranger = User.objects.create_user(email="stranger@example.com", password="pass")
        self.client.force_authenticate(user=stranger)
        res = self.client.get(f"/api/billing/subscription/?business_id={self.business.id}")
        self.assertEqual(res.status_code, 403)
