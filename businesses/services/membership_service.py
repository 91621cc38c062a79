# businesses/services/membership_service.py

"""
TEAM MEMBERSHIP SERVICE

Rules:
- Adding a non-owner member is gated by the team_members_limit tier check.
- A business always keeps at least one owner.
- Every change is audited (TEAM_MEMBER_ADDED / ROLE_CHANGED /
  TEAM_MEMBER_REMOVED).
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import transaction

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from billing.services.tier_catalog import FEATURE_TEAM_MEMBERS_LIMIT
from billing.services.tier_service import require_feature
from businesses.models import Business, BusinessMember
from businesses.services.exceptions import (
    DuplicateMemberError,
    LastOwnerError,
    MembershipError,
)
from notifications.models import Notification
from notifications.services.notification_service import notify_safely
from permissions.roles import BUSINESS_ROLES, ROLE_OWNER

User = get_user_model()


def _validate_role(role: str) -> str:
    role = (role or "").strip().lower()
    if role not in BUSINESS_ROLES:
        raise MembershipError(f"Invalid role '{role}'")
    return role


def _owner_count(business: Business) -> int:
    return BusinessMember.objects.filter(business=business, role=ROLE_OWNER).count()


@transaction.atomic
def add_member(*, business: Business, actor, email: str, role: str, request=None) -> BusinessMember:
    role = _validate_role(role)

    user = User.objects.filter(email__iexact=(email or "").strip()).first()
    if user is None:
        raise MembershipError("No account exists for that email address")

    if BusinessMember.objects.filter(business=business, user=user).exists():
        raise DuplicateMemberError("User is already a member of this business")

    if role != ROLE_OWNER:
        require_feature(
            business=business,
            feature=FEATURE_TEAM_MEMBERS_LIMIT,
            user=actor,
            message="Your plan's team member limit has been reached. Upgrade to add more members.",
        )

    member = BusinessMember.objects.create(
        business=business,
        user=user,
        role=role,
        invited_by=actor,
    )

    log_audit_event_safely(
        event_type=AuditEventType.TEAM_MEMBER_ADDED,
        entity_type="business_member",
        entity_id=member.id,
        actor=actor,
        user=user,
        business=business,
        new_state={"user_id": str(user.id), "email": user.email, "role": role},
        request=request,
    )
    notify_safely(
        user=user,
        business=business,
        type=Notification.TYPE_TEAM_INVITE,
        title=f"You were added to {business.name}",
        message=f"Role: {role}",
        entity_type="business",
        entity_id=business.id,
    )
    return member


@transaction.atomic
def change_member_role(*, member: BusinessMember, actor, role: str, request=None) -> BusinessMember:
    role = _validate_role(role)
    member = BusinessMember.objects.select_for_update().get(id=member.id)
    previous_role = member.role

    if previous_role == role:
        return member

    if previous_role == ROLE_OWNER and _owner_count(member.business) <= 1:
        raise LastOwnerError("A business must keep at least one owner")

    member.role = role
    member.save(update_fields=["role"])

    log_audit_event_safely(
        event_type=AuditEventType.ROLE_CHANGED,
        entity_type="business_member",
        entity_id=member.id,
        actor=actor,
        user=member.user,
        business=member.business,
        previous_state={"role": previous_role},
        new_state={"role": role},
        request=request,
    )
    return member


@transaction.atomic
def remove_member(*, member: BusinessMember, actor, request=None) -> None:
    member = BusinessMember.objects.select_for_update().select_related("business", "user").get(id=member.id)

    if member.role == ROLE_OWNER and _owner_count(member.business) <= 1:
        raise LastOwnerError("The last owner cannot be removed")

    snapshot = {"user_id": str(member.user_id), "email": member.user.email, "role": member.role}
    business = member.business
    member_id = member.id
    removed_user = member.user
    member.delete()

    log_audit_event_safely(
        event_type=AuditEventType.TEAM_MEMBER_REMOVED,
        entity_type="business_member",
        entity_id=member_id,
        actor=actor,
        user=removed_user,
        business=business,
        previous_state=snapshot,
        request=request,
    )
