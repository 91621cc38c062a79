# audit/models/retention_policy.py

import uuid

from django.db import models


class RetentionPolicy(models.Model):
    """
    Statutory retention period for issued documents, per jurisdiction.

    Lookup order used by audit_service.resolve_retention_years():
    1) (jurisdiction, entity_type)
    2) (jurisdiction, "*")
    3) settings.COMPLIANCE["DEFAULT_RETENTION_YEARS"]
    """

    ANY_ENTITY = "*"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    jurisdiction = models.CharField(max_length=2)
    entity_type = models.CharField(max_length=50, default=ANY_ENTITY)
    retention_years = models.PositiveSmallIntegerField(default=7)
    legal_basis = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["jurisdiction", "entity_type"]
        verbose_name_plural = "Retention policies"
        constraints = [
            models.UniqueConstraint(
                fields=["jurisdiction", "entity_type"],
                name="uniq_retention_policy",
            )
        ]

    def save(self, *args, **kwargs):
        self.jurisdiction = (self.jurisdiction or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.jurisdiction}/{self.entity_type}: {self.retention_years}y"
