# billing/models/tier_limit.py

import uuid

from django.db import models

from .subscription import TIER_CHOICES


class TierLimit(models.Model):
    """
    Per-tier feature limit.

    limit_type:
    - count:     allowed while current usage < limit_value
    - boolean:   allowed iff limit_value == 1
    - unlimited: always allowed (limit_value is NULL)
    """

    LIMIT_COUNT = "count"
    LIMIT_BOOLEAN = "boolean"
    LIMIT_UNLIMITED = "unlimited"

    LIMIT_TYPE_CHOICES = [
        (LIMIT_COUNT, "Count"),
        (LIMIT_BOOLEAN, "Boolean"),
        (LIMIT_UNLIMITED, "Unlimited"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tier = models.CharField(max_length=20, choices=TIER_CHOICES)
    feature = models.CharField(max_length=64)
    limit_value = models.IntegerField(null=True, blank=True)
    limit_type = models.CharField(max_length=16, choices=LIMIT_TYPE_CHOICES)
    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["tier", "feature"]
        constraints = [
            models.UniqueConstraint(fields=["tier", "feature"], name="uniq_tier_feature"),
        ]

    def __str__(self):
        return f"{self.tier}.{self.feature} = {self.limit_value} ({self.limit_type})"
