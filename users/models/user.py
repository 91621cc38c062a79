"""
PATH: users/models/user.py

CUSTOM USER MODEL

Identity:
- Email is the login identifier (USERNAME_FIELD).
- Business access is NOT stored here: it lives on BusinessMember
  (owner/admin/member/auditor per business).

Platform role:
- "user"            normal account
- "platform_admin"  staff operator; bypasses membership + tier checks
  (superusers are treated as platform admins too)

Compliance:
- email_verified gates invoice issuance (issued invoices are legal documents).
"""

from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone


# ---------------- USER MANAGER ----------------
class UserManager(BaseUserManager):
    def create_user(self, email=None, password=None, **extra_fields):
        email = (email or extra_fields.pop("email", None) or "").strip()
        if not email:
            raise ValueError("Users must have an email address")

        email = self.normalize_email(email)
        extra_fields.setdefault("is_active", True)

        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.full_clean(exclude=["password"])
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Superuser must have an email")
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.setdefault("role", User.ROLE_PLATFORM_ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("email_verified", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True")

        return self.create_user(email=email, password=password, **extra_fields)


# ---------------- USER MODEL ----------------
class User(AbstractBaseUser, PermissionsMixin):
    ROLE_USER = "user"
    ROLE_PLATFORM_ADMIN = "platform_admin"

    ROLE_CHOICES = [
        (ROLE_USER, "User"),
        (ROLE_PLATFORM_ADMIN, "Platform Admin"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(unique=True)

    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_USER)

    email_verified = models.BooleanField(default=False)
    email_verified_at = models.DateTimeField(null=True, blank=True)

    # Overdue alerts by email (in-app notifications are always created)
    email_overdue_alerts = models.BooleanField(default=True)

    # Payment reminders emailed to clients (notifications.services.reminder_service)
    email_payment_reminders = models.BooleanField(default=False)
    reminder_days_before = models.PositiveSmallIntegerField(
        default=3,
        validators=[MinValueValidator(1), MaxValueValidator(14)],
    )
    reminder_schedule = models.JSONField(default=list, blank=True)
    overdue_reminder_enabled = models.BooleanField(default=False)
    overdue_reminder_schedule = models.JSONField(default=list, blank=True)
    reminder_email_template = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    @property
    def is_platform_admin(self) -> bool:
        return bool(self.is_superuser or self.role == self.ROLE_PLATFORM_ADMIN)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def mark_email_verified(self):
        if self.email_verified:
            return
        self.email_verified = True
        self.email_verified_at = timezone.now()
        self.save(update_fields=["email_verified", "email_verified_at", "updated_at"])

    def clean(self):
        if self.email:
            self.email = self.__class__.objects.normalize_email(self.email).strip()
        if not self.email:
            raise ValidationError("User must have an email")

    def __str__(self):
        return f"{self.email} ({self.role})"
