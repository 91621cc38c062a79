# reports/models/export_manifest.py

"""
EXPORT MANIFEST (CHAIN OF CUSTODY)

One row per successful data export: who exported what, from where, and
the sha256 of the exact bytes handed out. Rows are never edited.
"""

import uuid

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class ExportManifest(models.Model):
    FORMAT_CSV = "csv"
    FORMAT_JSON = "json"

    FORMAT_CHOICES = [
        (FORMAT_CSV, "CSV"),
        (FORMAT_JSON, "JSON"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    export_type = models.CharField(max_length=50)

    actor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="export_manifests",
    )
    actor_email = models.EmailField(blank=True, default="")
    actor_role = models.CharField(max_length=50, blank=True, default="")

    business = models.ForeignKey(
        "businesses.Business",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="export_manifests",
    )

    scope = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    record_count = models.PositiveIntegerField(default=0)
    integrity_hash = models.CharField(max_length=64)
    format = models.CharField(max_length=10, choices=FORMAT_CHOICES, default=FORMAT_CSV)

    source_ip = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default="")

    timestamp_utc = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-timestamp_utc"]
        indexes = [
            models.Index(fields=["business", "timestamp_utc"], name="manifest_business_ts_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("Export manifests are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Export manifests cannot be deleted")

    def __str__(self):
        return f"{self.export_type} ({self.format}) x{self.record_count}"
