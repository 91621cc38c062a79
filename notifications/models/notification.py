# notifications/models/notification.py

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Notification(models.Model):
    """
    In-app notification for one user.
    """

    TYPE_INVOICE_ISSUED = "INVOICE_ISSUED"
    TYPE_INVOICE_SENT = "INVOICE_SENT"
    TYPE_INVOICE_VOIDED = "INVOICE_VOIDED"
    TYPE_INVOICE_OVERDUE = "INVOICE_OVERDUE"
    TYPE_PAYMENT_REMINDER = "INVOICE_REMINDER_SENT"
    TYPE_OVERDUE_REMINDER = "INVOICE_OVERDUE_REMINDER"
    TYPE_PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    TYPE_TEAM_INVITE = "TEAM_INVITE"

    TYPE_CHOICES = [
        (TYPE_INVOICE_ISSUED, "Invoice issued"),
        (TYPE_INVOICE_SENT, "Invoice sent"),
        (TYPE_INVOICE_VOIDED, "Invoice voided"),
        (TYPE_INVOICE_OVERDUE, "Invoice overdue"),
        (TYPE_PAYMENT_REMINDER, "Payment reminder sent"),
        (TYPE_OVERDUE_REMINDER, "Overdue reminder sent"),
        (TYPE_PAYMENT_RECEIVED, "Payment received"),
        (TYPE_TEAM_INVITE, "Added to a business"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    business = models.ForeignKey(
        "businesses.Business",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="notifications",
    )

    type = models.CharField(max_length=40, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")

    entity_type = models.CharField(max_length=50, blank=True, default="")
    entity_id = models.UUIDField(null=True, blank=True)

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_read"], name="notification_user_read_idx"),
            models.Index(fields=["entity_type", "entity_id", "type"], name="notification_entity_idx"),
        ]

    def mark_read(self):
        if self.is_read:
            return
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=["is_read", "read_at"])

    def __str__(self):
        return f"{self.type} -> {self.user_id}"
