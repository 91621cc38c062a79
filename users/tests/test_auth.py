# users/tests/test_auth.py

from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from audit.models import AuditEventType, AuditLog
from notifications.services.brevo import EmailDeliveryError
from users.views.auth import make_email_verification_token

User = get_user_model()

SEND = "users.views.auth.send_transactional_email"


class RegisterLoginTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_creates_unverified_user(self):
        res = self.client.post(
            "/api/auth/register/",
            {"email": "Ada@Example.com", "password": "correct-horse-battery", "first_name": "Ada"},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.content)
        body = res.json()
        self.assertTrue(body["success"])
        self.assertFalse(body["user"]["email_verified"])
        self.assertEqual(body["user"]["role"], "user")

        user = User.objects.get(email__iexact="ada@example.com")
        self.assertTrue(AuditLog.objects.filter(event_type=AuditEventType.USER_SIGNUP, entity_id=user.id).exists())

    def test_register_duplicate_email(self):
        User.objects.create_user(email="ada@example.com", password="pass")
        res = self.client.post(
            "/api/auth/register/",
            {"email": "ADA@example.com", "password": "correct-horse-battery"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.json()["success"])

    def test_register_cannot_grant_platform_admin(self):
        self.client.post(
            "/api/auth/register/",
            {"email": "sneaky@example.com", "password": "correct-horse-battery", "role": "platform_admin"},
            format="json",
        )
        self.assertFalse(User.objects.get(email="sneaky@example.com").is_platform_admin)

    def test_login_returns_jwt_pair(self):
        User.objects.create_user(email="ada@example.com", password="pass")

        res = self.client.post("/api/auth/login/", {"email": "ADA@example.com", "password": "pass"}, format="json")
        self.assertEqual(res.status_code, 200, res.content)
        body = res.json()
        self.assertIn("access", body)
        self.assertIn("refresh", body)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {body['access']}")
        me = self.client.get("/api/auth/me/")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["email"], "ada@example.com")

    def test_login_rejects_bad_credentials(self):
        User.objects.create_user(email="ada@example.com", password="pass")
        res = self.client.post("/api/auth/login/", {"email": "ada@example.com", "password": "nope"}, format="json")
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.json()["error"], "Invalid credentials")

    def test_inactive_user_cannot_login(self):
        User.objects.create_user(email="ada@example.com", password="pass", is_active=False)
        res = self.client.post("/api/auth/login/", {"email": "ada@example.com", "password": "pass"}, format="json")
        self.assertEqual(res.status_code, 401)

    def test_me_patch_only_touches_profile_fields(self):
        user = User.objects.create_user(email="ada@example.com", password="pass")
        self.client.force_authenticate(user=user)

        res = self.client.patch(
            "/api/auth/me/",
            {"first_name": "Ada", "email_overdue_alerts": False, "role": "platform_admin", "email_verified": True},
            format="json",
        )
        self.assertEqual(res.status_code, 200)

        user.refresh_from_db()
        self.assertEqual(user.first_name, "Ada")
        self.assertFalse(user.email_overdue_alerts)
        self.assertEqual(user.role, User.ROLE_USER)
        self.assertFalse(user.email_verified)

    def test_me_patch_reminder_preferences(self):
        user = User.objects.create_user(email="ada@example.com", password="pass")
        self.client.force_authenticate(user=user)

        res = self.client.patch(
            "/api/auth/me/",
            {
                "email_payment_reminders": True,
                "reminder_schedule": [1, 7, 3, 7],
                "overdue_reminder_enabled": True,
                "overdue_reminder_schedule": [30, 7],
                "reminder_email_template": "  Thanks for your business.  ",
            },
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["reminder_schedule"], [7, 3, 1])

        user.refresh_from_db()
        self.assertTrue(user.email_payment_reminders)
        self.assertEqual(user.overdue_reminder_schedule, [30, 7])
        self.assertEqual(user.reminder_email_template, "Thanks for your business.")

    def test_me_patch_rejects_bad_reminder_days(self):
        user = User.objects.create_user(email="ada@example.com", password="pass")
        self.client.force_authenticate(user=user)

        for field, value in (
            ("reminder_schedule", [15]),
            ("reminder_schedule", ["3"]),
            ("overdue_reminder_schedule", [0]),
            ("overdue_reminder_schedule", list(range(1, 12))),
            ("reminder_days_before", 30),
        ):
            res = self.client.patch("/api/auth/me/", {field: value}, format="json")
            self.assertEqual(res.status_code, 400, (field, value))
            self.assertIn(field, res.json()["error"])

        user.refresh_from_db()
        self.assertEqual(user.reminder_schedule, [])
        self.assertEqual(user.reminder_days_before, 3)

    def test_superuser_defaults(self):
        admin = User.objects.create_superuser(email="root@example.com", password="pass")
        self.assertTrue(admin.is_platform_admin)
        self.assertTrue(admin.email_verified)


class EmailVerificationTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="ada@example.com", password="pass")

    @patch(SEND, return_value={"messageId": "m-1"})
    def test_request_sends_signed_link(self, send):
        self.client.force_authenticate(user=self.user)

        res = self.client.post("/api/auth/verify-email/request/")
        self.assertEqual(res.status_code, 200)
        kwargs = send.call_args.kwargs
        self.assertEqual(kwargs["to_email"], "ada@example.com")
        self.assertIn("https://app.invoicemonk.test/verify-email?token=", kwargs["html_content"])

    @patch(SEND, side_effect=EmailDeliveryError("Email service not configured"))
    def test_request_reports_delivery_failure(self, _send):
        self.client.force_authenticate(user=self.user)
        res = self.client.post("/api/auth/verify-email/request/")
        self.assertEqual(res.status_code, 500)
        self.assertFalse(res.json()["success"])

    def test_confirm_marks_verified(self):
        token = make_email_verification_token(self.user)

        res = self.client.post("/api/auth/verify-email/confirm/", {"token": token}, format="json")
        self.assertEqual(res.status_code, 200)

        self.user.refresh_from_db()
        self.assertTrue(self.user.email_verified)
        self.assertIsNotNone(self.user.email_verified_at)
        self.assertTrue(AuditLog.objects.filter(event_type=AuditEventType.EMAIL_VERIFIED).exists())

    def test_tampered_or_stale_token_rejected(self):
        res = self.client.post("/api/auth/verify-email/confirm/", {"token": "garbage"}, format="json")
        self.assertEqual(res.status_code, 400)

        token = make_email_verification_token(self.user)
        User.objects.filter(pk=self.user.pk).update(email="changed@example.com")
        res = self.client.post("/api/auth/verify-email/confirm/", {"token": token}, format="json")
        self.assertEqual(res.status_code, 400)

        self.user.refresh_from_db()
        self.assertFalse(self.user.email_verified)

    @patch(SEND)
    def test_already_verified_short_circuits(self, send):
        self.user.mark_email_verified()
        self.client.force_authenticate(user=self.user)

        res = self.client.post("/api/auth/verify-email/request/")
        self.assertEqual(res.json()["message"], "Email already verified")
        send.assert_not_called()
