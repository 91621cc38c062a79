# businesses/services/business_service.py

"""
BUSINESS SERVICE

Responsibilities:
- Create a business with its owner membership, default currency account
  and starter subscription (one transaction)
- Update business identity fields
- Resolve which business a request targets (explicit id or the caller's
  first membership)
"""

from __future__ import annotations

import logging

from django.db import transaction

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from billing.models import DEFAULT_TIER, Subscription
from businesses.models import Business, BusinessMember, CurrencyAccount
from businesses.services.exceptions import (
    BusinessAccessDenied,
    BusinessNotFoundError,
    BusinessServiceError,
)
from permissions.roles import ROLE_OWNER, is_platform_admin

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "legal_name",
    "tax_id",
    "cac_number",
    "vat_registration_number",
    "is_vat_registered",
    "contact_email",
    "contact_phone",
    "address",
    "logo_url",
    "jurisdiction",
    "default_currency",
    "invoice_prefix",
)


def _snapshot(business: Business) -> dict:
    return {field: getattr(business, field) for field in EDITABLE_FIELDS}


def _normalize(fields: dict) -> dict:
    data = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    if "name" in data:
        data["name"] = (data["name"] or "").strip()
    if "jurisdiction" in data:
        data["jurisdiction"] = (data["jurisdiction"] or "").strip().upper()
    if "default_currency" in data:
        data["default_currency"] = (data["default_currency"] or "").strip().upper()
    if "invoice_prefix" in data:
        data["invoice_prefix"] = (data["invoice_prefix"] or "").strip() or "INV"
    return data


@transaction.atomic
def create_business(*, user, name: str, request=None, **fields) -> Business:
    data = _normalize({"name": name, **fields})
    if not data.get("name"):
        raise BusinessServiceError("Business name is required")

    business = Business.objects.create(created_by=user, **data)

    BusinessMember.objects.create(business=business, user=user, role=ROLE_OWNER)
    CurrencyAccount.objects.create(
        business=business,
        currency=business.default_currency,
        is_default=True,
    )
    Subscription.objects.create(
        business=business,
        tier=DEFAULT_TIER,
        status=Subscription.STATUS_ACTIVE,
    )

    log_audit_event_safely(
        event_type=AuditEventType.BUSINESS_CREATED,
        entity_type="business",
        entity_id=business.id,
        actor=user,
        business=business,
        new_state=_snapshot(business),
        request=request,
    )

    logger.info(
        "Business created",
        extra={"business_id": str(business.id), "user_id": str(user.id)},
    )
    return business


@transaction.atomic
def update_business(*, business: Business, user, data: dict, request=None) -> Business:
    changes = _normalize(data)
    if "name" in changes and not changes["name"]:
        raise BusinessServiceError("Business name cannot be blank")

    previous = _snapshot(business)
    for field, value in changes.items():
        setattr(business, field, value)

    if changes:
        business.save(update_fields=[*changes.keys(), "updated_at"])

    log_audit_event_safely(
        event_type=AuditEventType.BUSINESS_UPDATED,
        entity_type="business",
        entity_id=business.id,
        actor=user,
        business=business,
        previous_state=previous,
        new_state=_snapshot(business),
        request=request,
    )
    return business


def businesses_for_user(user):
    if is_platform_admin(user):
        return Business.objects.all()
    return Business.objects.filter(members__user=user).distinct()


def resolve_business_for_user(*, user, business_id=None) -> Business:
    """
    Explicit business_id (membership required unless platform admin),
    else the caller's first membership.
    """
    if business_id:
        business = Business.objects.filter(id=business_id).first()
        if business is None:
            raise BusinessNotFoundError("Business not found")
        if is_platform_admin(user):
            return business
        if not BusinessMember.objects.filter(business=business, user=user).exists():
            raise BusinessAccessDenied("You do not have access to this business")
        return business

    membership = (
        BusinessMember.objects.filter(user=user)
        .select_related("business")
        .order_by("created_at")
        .first()
    )
    if membership is None:
        raise BusinessNotFoundError("No business found for this user")
    return membership.business
