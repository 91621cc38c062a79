# audit/tests/test_audit_log.py

import hashlib
from datetime import date

from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from rest_framework.test import APIClient

from audit.models import AuditEventType, AuditLog, RetentionPolicy
from audit.services.audit_service import (
    AuditLogError,
    add_years,
    get_client_ip,
    log_audit_event,
    log_audit_event_safely,
    resolve_retention_years,
)
from billing.models import Subscription
from businesses.models import BusinessMember
from businesses.services.business_service import create_business
from permissions.roles import ROLE_AUDITOR, ROLE_MEMBER

User = get_user_model()


class AuditLogWriteTests(TestCase):
    """
    GUARANTEES:
    - Rows are append-only (update/delete raise)
    - event_hash recomputes from the stored row
    - entity_type is sanitised
    """

    def setUp(self):
        self.user = User.objects.create_user(email="owner@example.com", password="pass")
        self.business = create_business(user=self.user, name="Acme")

    def test_event_hash_and_actor_role(self):
        log = log_audit_event(
            event_type=AuditEventType.INVOICE_CREATED,
            entity_type="invoice",
            entity_id="7d1b7f5e-6c1e-4b7a-9b6f-0b8a2f8f9a11",
            actor=self.user,
            business=self.business,
        )

        payload = f"{log.event_type}{log.entity_type}{log.entity_id}{log.timestamp_utc.isoformat()}"
        self.assertEqual(log.event_hash, hashlib.sha256(payload.encode("utf-8")).hexdigest())
        self.assertEqual(log.actor_role, "owner")

    def test_audit_log_is_append_only(self):
        log = log_audit_event(event_type=AuditEventType.USER_LOGIN, entity_type="user", actor=self.user)

        log.metadata = {"tampered": True}
        with self.assertRaises(RuntimeError):
            log.save()
        with self.assertRaises(RuntimeError):
            log.delete()

        self.assertIsNone(AuditLog.objects.get(id=log.id).metadata)

    def test_entity_type_is_sanitised(self):
        log = log_audit_event(event_type=AuditEventType.USER_LOGIN, entity_type="us<er>;--", actor=self.user)
        self.assertEqual(log.entity_type, "user--")

    def test_unknown_event_type_rejected(self):
        with self.assertRaises(AuditLogError):
            log_audit_event(event_type="NOPE", entity_type="user")

    def test_safe_variant_swallows_errors(self):
        self.assertIsNone(log_audit_event_safely(event_type="NOPE", entity_type="user"))

    def test_client_ip_resolution_order(self):
        rf = RequestFactory()
        request = rf.get("/", HTTP_X_FORWARDED_FOR="203.0.113.5, 10.0.0.1", HTTP_X_REAL_IP="198.51.100.2")
        self.assertEqual(get_client_ip(request), "203.0.113.5")

        request = rf.get("/", HTTP_X_REAL_IP="198.51.100.2")
        self.assertEqual(get_client_ip(request), "198.51.100.2")

        request = rf.get("/", REMOTE_ADDR="192.0.2.9")
        self.assertEqual(get_client_ip(request), "192.0.2.9")

    def test_client_ip_skips_values_that_are_not_addresses(self):
        rf = RequestFactory()
        request = rf.get("/", HTTP_X_FORWARDED_FOR="unknown, 10.0.0.1", HTTP_X_REAL_IP="198.51.100.2")
        self.assertEqual(get_client_ip(request), "198.51.100.2")

        request = rf.get("/", HTTP_X_FORWARDED_FOR="2001:db8::1")
        self.assertEqual(get_client_ip(request), "2001:db8::1")

        request = rf.get("/", HTTP_X_FORWARDED_FOR="unknown", HTTP_X_REAL_IP="-", REMOTE_ADDR="")
        self.assertIsNone(get_client_ip(request))


class RetentionTests(TestCase):
    def test_default_is_seven_years(self):
        self.assertEqual(resolve_retention_years(jurisdiction="GH", entity_type="invoice"), 7)

    def test_policy_lookup_prefers_entity_type(self):
        RetentionPolicy.objects.create(jurisdiction="NG", entity_type=RetentionPolicy.ANY_ENTITY, retention_years=6)
        RetentionPolicy.objects.create(jurisdiction="NG", entity_type="invoice", retention_years=10)

        self.assertEqual(resolve_retention_years(jurisdiction="ng", entity_type="invoice"), 10)
        self.assertEqual(resolve_retention_years(jurisdiction="NG", entity_type="receipt"), 6)

    def test_add_years_handles_leap_day(self):
        self.assertEqual(add_years(date(2024, 2, 29), 7), date(2031, 2, 28))


class AuditLogApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.business = create_business(user=self.owner, name="Acme")

    def _url(self):
        return f"/api/audit/logs/?business_id={self.business.id}"

    def test_starter_tier_is_upgrade_required(self):
        self.client.force_authenticate(user=self.owner)
        res = self.client.get(self._url())
        self.assertEqual(res.status_code, 403)
        self.assertTrue(res.json()["upgrade_required"])

    def test_professional_owner_sees_logs(self):
        Subscription.objects.filter(business=self.business).update(tier="professional")
        self.client.force_authenticate(user=self.owner)

        res = self.client.get(self._url())
        self.assertEqual(res.status_code, 200, res.content)
        events = [row["event_type"] for row in res.json()["results"]]
        self.assertIn(AuditEventType.BUSINESS_CREATED, events)

    def test_auditor_allowed_member_denied(self):
        Subscription.objects.filter(business=self.business).update(tier="professional")
        auditor = User.objects.create_user(email="auditor@example.com", password="pass")
        member = User.objects.create_user(email="member@example.com", password="pass")
        BusinessMember.objects.create(business=self.business, user=auditor, role=ROLE_AUDITOR)
        BusinessMember.objects.create(business=self.business, user=member, role=ROLE_MEMBER)

        self.client.force_authenticate(user=auditor)
        self.assertEqual(self.client.get(self._url()).status_code, 200)

        self.client.force_authenticate(user=member)
        self.assertEqual(self.client.get(self._url()).status_code, 403)
