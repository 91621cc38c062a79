# businesses/models/membership.py

import uuid

from django.conf import settings
from django.db import models

from permissions.roles import ROLE_ADMIN, ROLE_AUDITOR, ROLE_MEMBER, ROLE_OWNER

from .business import Business

User = settings.AUTH_USER_MODEL


class BusinessMember(models.Model):
    """
    A user's role inside one business.
    """

    ROLE_CHOICES = [
        (ROLE_OWNER, "Owner"),
        (ROLE_ADMIN, "Admin"),
        (ROLE_MEMBER, "Member"),
        (ROLE_AUDITOR, "Auditor"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="members",
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="business_memberships",
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_MEMBER)

    invited_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "user"],
                name="uniq_business_member",
            )
        ]

    def __str__(self):
        return f"{self.user_id} @ {self.business_id} ({self.role})"
