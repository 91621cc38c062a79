"""
======================================================
PATH: billing/migrations/0002_seed_tier_limits.py
======================================================
DATA MIGRATION: default tier limits
"""

from __future__ import annotations

from django.db import migrations

from billing.services.tier_catalog import tier_limit_rows


def seed(apps, schema_editor):
    TierLimit = apps.get_model("billing", "TierLimit")

    for tier, feature, value, limit_type, description in tier_limit_rows():
        TierLimit.objects.update_or_create(
            tier=tier,
            feature=feature,
            defaults={
                "limit_value": value,
                "limit_type": limit_type,
                "description": description,
            },
        )


def unseed(apps, schema_editor):
    apps.get_model("billing", "TierLimit").objects.all().delete()


class Migration(migrations.Migration):
    dependencies = [
        ("billing", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed, unseed),
    ]
