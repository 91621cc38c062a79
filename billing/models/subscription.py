# billing/models/subscription.py

import uuid

from django.db import models

TIER_STARTER = "starter"
TIER_STARTER_PAID = "starter_paid"
TIER_PROFESSIONAL = "professional"
TIER_BUSINESS = "business"

TIER_CHOICES = [
    (TIER_STARTER, "Starter"),
    (TIER_STARTER_PAID, "Starter (Paid)"),
    (TIER_PROFESSIONAL, "Professional"),
    (TIER_BUSINESS, "Business"),
]

DEFAULT_TIER = TIER_STARTER


class Subscription(models.Model):
    """
    A business's subscription to a tier.

    Only ACTIVE/TRIALING rows grant their tier; anything else falls back
    to the free starter tier. Billing-provider sync is out of scope here;
    rows are maintained by admin or provisioning code.
    """

    STATUS_ACTIVE = "active"
    STATUS_TRIALING = "trialing"
    STATUS_PAST_DUE = "past_due"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_TRIALING, "Trialing"),
        (STATUS_PAST_DUE, "Past due"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    ENTITLED_STATUSES = (STATUS_ACTIVE, STATUS_TRIALING)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    business = models.ForeignKey(
        "businesses.Business",
        on_delete=models.CASCADE,
        related_name="subscriptions",
    )
    tier = models.CharField(max_length=20, choices=TIER_CHOICES, default=DEFAULT_TIER)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    current_period_start = models.DateTimeField(null=True, blank=True)
    current_period_end = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["business", "status"], name="subscription_business_idx"),
        ]

    def __str__(self):
        return f"{self.business_id} | {self.tier} ({self.status})"
