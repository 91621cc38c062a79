"""
======================================================
PATH: reports/migrations/0001_initial.py
======================================================
MIGRATION: CREATE ExportManifest (immutable)
"""

from __future__ import annotations

import uuid

import django.core.serializers.json
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("businesses", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ExportManifest",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("export_type", models.CharField(max_length=50)),
                ("actor_email", models.EmailField(blank=True, default="", max_length=254)),
                ("actor_role", models.CharField(blank=True, default="", max_length=50)),
                (
                    "scope",
                    models.JSONField(default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder),
                ),
                ("record_count", models.PositiveIntegerField(default=0)),
                ("integrity_hash", models.CharField(max_length=64)),
                (
                    "format",
                    models.CharField(
                        choices=[("csv", "CSV"), ("json", "JSON")],
                        default="csv",
                        max_length=10,
                    ),
                ),
                ("source_ip", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.TextField(blank=True, default="")),
                ("timestamp_utc", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="export_manifests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "business",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="export_manifests",
                        to="businesses.business",
                    ),
                ),
            ],
            options={
                "ordering": ["-timestamp_utc"],
                "indexes": [
                    models.Index(fields=["business", "timestamp_utc"], name="manifest_business_ts_idx"),
                ],
            },
        ),
    ]
