# audit/models/audit_log.py

"""
AUDIT LOG (APPEND-ONLY)

Purpose:
- Compliance trail of lifecycle events (issue, send, pay, void, export, ...).
- Captures actor, actor role at the time, tenant, request origin, and
  before/after state snapshots.

Rules:
- Created once. Never updated. Never deleted.
- event_hash = sha256(event_type + entity_type + entity_id + timestamp)
  so any row can be re-hashed during an audit.
"""

import uuid

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class AuditEventType(models.TextChoices):
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    USER_SIGNUP = "USER_SIGNUP"
    EMAIL_VERIFIED = "EMAIL_VERIFIED"
    PASSWORD_RESET = "PASSWORD_RESET"
    INVOICE_CREATED = "INVOICE_CREATED"
    INVOICE_UPDATED = "INVOICE_UPDATED"
    INVOICE_DELETED = "INVOICE_DELETED"
    INVOICE_ISSUED = "INVOICE_ISSUED"
    INVOICE_SENT = "INVOICE_SENT"
    INVOICE_VIEWED = "INVOICE_VIEWED"
    INVOICE_VOIDED = "INVOICE_VOIDED"
    INVOICE_CREDITED = "INVOICE_CREDITED"
    PAYMENT_RECORDED = "PAYMENT_RECORDED"
    RECEIPT_ISSUED = "RECEIPT_ISSUED"
    RECEIPT_VIEWED = "RECEIPT_VIEWED"
    CLIENT_CREATED = "CLIENT_CREATED"
    CLIENT_UPDATED = "CLIENT_UPDATED"
    EXPENSE_CREATED = "EXPENSE_CREATED"
    BUSINESS_CREATED = "BUSINESS_CREATED"
    BUSINESS_UPDATED = "BUSINESS_UPDATED"
    CURRENCY_ACCOUNT_CREATED = "CURRENCY_ACCOUNT_CREATED"
    TEAM_MEMBER_ADDED = "TEAM_MEMBER_ADDED"
    TEAM_MEMBER_REMOVED = "TEAM_MEMBER_REMOVED"
    ROLE_CHANGED = "ROLE_CHANGED"
    DATA_EXPORTED = "DATA_EXPORTED"
    SUBSCRIPTION_CHANGED = "SUBSCRIPTION_CHANGED"
    SETTINGS_UPDATED = "SETTINGS_UPDATED"
    RECORDS_PURGED = "RECORDS_PURGED"


class AuditLog(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    event_type = models.CharField(max_length=50, choices=AuditEventType.choices)
    entity_type = models.CharField(max_length=100)
    entity_id = models.UUIDField(null=True, blank=True)

    actor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_events",
    )
    actor_role = models.CharField(max_length=50, blank=True, default="")

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Account the event is about (may differ from actor).",
    )
    business = models.ForeignKey(
        "businesses.Business",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
    )

    timestamp_utc = models.DateTimeField(default=timezone.now)

    source_ip = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default="")

    previous_state = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    new_state = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    metadata = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)

    event_hash = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        ordering = ["-timestamp_utc"]
        indexes = [
            models.Index(fields=["business", "timestamp_utc"], name="auditlog_business_ts_idx"),
            models.Index(fields=["entity_type", "entity_id"], name="auditlog_entity_idx"),
            models.Index(fields=["event_type"], name="auditlog_event_type_idx"),
        ]

    # ======================================================
    # IMMUTABILITY
    # ======================================================

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("AuditLog records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("AuditLog records cannot be deleted")

    def __str__(self):
        return f"{self.event_type} | {self.entity_type}:{self.entity_id}"
