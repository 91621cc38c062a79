# notifications/services/notification_service.py

"""
NOTIFICATION SERVICE

In-app notifications are secondary side effects: a failed insert is
logged and swallowed so it never rolls back the financial operation
that triggered it.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from notifications.models import Notification
from permissions.roles import ROLE_ADMIN, ROLE_OWNER

logger = logging.getLogger(__name__)


def create_notification(
    *,
    user,
    type: str,
    title: str,
    message: str = "",
    business=None,
    entity_type: str = "",
    entity_id=None,
) -> Notification:
    return Notification.objects.create(
        user=user,
        business=business,
        type=type,
        title=title[:255],
        message=message,
        entity_type=entity_type,
        entity_id=entity_id,
    )


def notify_safely(**kwargs) -> Notification | None:
    try:
        with transaction.atomic():
            return create_notification(**kwargs)
    except Exception:
        logger.exception(
            "Notification write failed",
            extra={
                "notification_type": kwargs.get("type"),
                "entity_id": str(kwargs.get("entity_id") or ""),
            },
        )
        return None


def business_managers(business):
    """
    Owners and admins of a business (recipients of business-level alerts).
    """
    from django.contrib.auth import get_user_model

    User = get_user_model()
    return User.objects.filter(
        business_memberships__business=business,
        business_memberships__role__in=[ROLE_OWNER, ROLE_ADMIN],
        is_active=True,
    ).distinct()


def recently_notified(*, entity_id, type: str, within) -> bool:
    return Notification.objects.filter(
        entity_id=entity_id,
        type=type,
        created_at__gte=timezone.now() - within,
    ).exists()


def mark_all_read(*, user) -> int:
    return Notification.objects.filter(user=user, is_read=False).update(
        is_read=True,
        read_at=timezone.now(),
    )
