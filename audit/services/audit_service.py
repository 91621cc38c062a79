# audit/services/audit_service.py

"""
AUDIT SERVICE

Purpose:
- Single write path for AuditLog rows.
- Validates + sanitises input, resolves actor role, captures request origin,
  and computes the event hash.

Two entry points:
- log_audit_event()         strict: raises AuditLogError on bad input
- log_audit_event_safely()  best-effort: never fails the caller's operation;
                            runs in its own savepoint and logs failures
"""

from __future__ import annotations

import hashlib
import logging
import re
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address
from django.db import transaction
from django.utils import timezone

from audit.models import AuditEventType, AuditLog, RetentionPolicy
from permissions.roles import actor_role_for

logger = logging.getLogger(__name__)

ENTITY_TYPE_MAX_LENGTH = 100
_ENTITY_TYPE_STRIP = re.compile(r"[^a-zA-Z0-9_-]")


# ============================================================
# DOMAIN ERRORS
# ============================================================


class AuditLogError(ValueError):
    pass


# ============================================================
# REQUEST CONTEXT
# ============================================================


def _valid_ip(value: str) -> str | None:
    value = (value or "").strip()
    if not value:
        return None
    try:
        validate_ipv46_address(value)
    except ValidationError:
        return None
    return value


def get_client_ip(request) -> str | None:
    """
    First hop of X-Forwarded-For, else X-Real-IP, else REMOTE_ADDR.

    Values that are not IPv4/IPv6 addresses are skipped, so the result
    always fits a GenericIPAddressField.
    """
    if request is None:
        return None

    meta = getattr(request, "META", {}) or {}
    candidates = (
        (meta.get("HTTP_X_FORWARDED_FOR") or "").split(",")[0],
        meta.get("HTTP_X_REAL_IP"),
        meta.get("REMOTE_ADDR"),
    )
    for candidate in candidates:
        ip = _valid_ip(candidate)
        if ip:
            return ip
    return None


def get_user_agent(request) -> str:
    if request is None:
        return ""
    return ((getattr(request, "META", {}) or {}).get("HTTP_USER_AGENT") or "")[:1000]


# ============================================================
# HASHING
# ============================================================


def compute_event_hash(*, event_type: str, entity_type: str, entity_id, timestamp) -> str:
    payload = f"{event_type}{entity_type}{entity_id or ''}{timestamp.isoformat()}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _sanitize_entity_type(entity_type) -> str:
    raw = str(entity_type or "").strip()
    if not raw:
        raise AuditLogError("entity_type is required")
    if len(raw) > ENTITY_TYPE_MAX_LENGTH:
        raise AuditLogError(f"entity_type must be at most {ENTITY_TYPE_MAX_LENGTH} characters")

    cleaned = _ENTITY_TYPE_STRIP.sub("", raw)
    if not cleaned:
        raise AuditLogError("entity_type contains no valid characters")
    return cleaned


def _normalize_entity_id(entity_id):
    if entity_id is None or entity_id == "":
        return None
    if isinstance(entity_id, uuid.UUID):
        return entity_id
    try:
        return uuid.UUID(str(entity_id))
    except ValueError as exc:
        raise AuditLogError("entity_id must be a UUID") from exc


# ============================================================
# WRITE PATH
# ============================================================


def log_audit_event(
    *,
    event_type: str,
    entity_type: str,
    entity_id=None,
    actor=None,
    business=None,
    user=None,
    previous_state: dict | None = None,
    new_state: dict | None = None,
    metadata: dict | None = None,
    request=None,
) -> AuditLog:
    if event_type not in AuditEventType.values:
        raise AuditLogError(f"Unknown audit event type: {event_type}")

    entity_type = _sanitize_entity_type(entity_type)
    entity_id = _normalize_entity_id(entity_id)

    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None

    now = timezone.now()

    return AuditLog.objects.create(
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        actor=actor,
        actor_role=actor_role_for(actor, business) or "",
        user=user or actor,
        business=business,
        timestamp_utc=now,
        source_ip=get_client_ip(request),
        user_agent=get_user_agent(request),
        previous_state=previous_state,
        new_state=new_state,
        metadata=metadata,
        event_hash=compute_event_hash(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            timestamp=now,
        ),
    )


def log_audit_event_safely(**kwargs) -> AuditLog | None:
    """
    Best-effort audit write for secondary side effects.

    The savepoint keeps a failed INSERT from poisoning the caller's
    surrounding transaction.
    """
    try:
        with transaction.atomic():
            return log_audit_event(**kwargs)
    except Exception:
        logger.exception(
            "Audit log write failed",
            extra={
                "event_type": kwargs.get("event_type"),
                "entity_type": kwargs.get("entity_type"),
                "entity_id": str(kwargs.get("entity_id") or ""),
            },
        )
        return None


# ============================================================
# RETENTION
# ============================================================


def resolve_retention_years(*, jurisdiction: str | None, entity_type: str) -> int:
    default_years = int(
        (getattr(settings, "COMPLIANCE", {}) or {}).get("DEFAULT_RETENTION_YEARS", 7)
    )

    code = (jurisdiction or "").strip().upper()
    if not code:
        return default_years

    policies = {
        p.entity_type: p.retention_years
        for p in RetentionPolicy.objects.filter(
            jurisdiction=code,
            entity_type__in=[entity_type, RetentionPolicy.ANY_ENTITY],
        )
    }

    if entity_type in policies:
        return policies[entity_type]
    if RetentionPolicy.ANY_ENTITY in policies:
        return policies[RetentionPolicy.ANY_ENTITY]
    return default_years


def add_years(d, years: int):
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        # 29 Feb -> 28 Feb
        return d.replace(year=d.year + years, day=28)


def retention_locked_until(*, jurisdiction: str | None, entity_type: str, start=None):
    start = start or timezone.localdate()
    return add_years(start, resolve_retention_years(jurisdiction=jurisdiction, entity_type=entity_type))
