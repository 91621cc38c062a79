"""
======================================================
PATH: audit/migrations/0001_initial.py
======================================================
MIGRATION: CREATE AuditLog (append-only), RetentionPolicy
"""

from __future__ import annotations

import uuid

import django.core.serializers.json
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

from audit.models.audit_log import AuditEventType


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("businesses", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("event_type", models.CharField(choices=AuditEventType.choices, max_length=50)),
                ("entity_type", models.CharField(max_length=100)),
                ("entity_id", models.UUIDField(blank=True, null=True)),
                ("actor_role", models.CharField(blank=True, default="", max_length=50)),
                ("timestamp_utc", models.DateTimeField(default=django.utils.timezone.now)),
                ("source_ip", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.TextField(blank=True, default="")),
                (
                    "previous_state",
                    models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True),
                ),
                (
                    "new_state",
                    models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True),
                ),
                (
                    "metadata",
                    models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True),
                ),
                ("event_hash", models.CharField(blank=True, default="", max_length=64)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "business",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_logs",
                        to="businesses.business",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        help_text="Account the event is about (may differ from actor).",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-timestamp_utc"],
                "indexes": [
                    models.Index(fields=["business", "timestamp_utc"], name="auditlog_business_ts_idx"),
                    models.Index(fields=["entity_type", "entity_id"], name="auditlog_entity_idx"),
                    models.Index(fields=["event_type"], name="auditlog_event_type_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RetentionPolicy",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("jurisdiction", models.CharField(max_length=2)),
                ("entity_type", models.CharField(default="*", max_length=50)),
                ("retention_years", models.PositiveSmallIntegerField(default=7)),
                ("legal_basis", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["jurisdiction", "entity_type"],
                "verbose_name_plural": "Retention policies",
                "constraints": [
                    models.UniqueConstraint(fields=("jurisdiction", "entity_type"), name="uniq_retention_policy"),
                ],
            },
        ),
    ]
