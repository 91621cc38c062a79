# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (PER-BUSINESS MEMBERSHIP ROLES)
# =========================================================
# These describe what a user may do inside ONE business.
# The same user can be owner of one business and auditor of another.
ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
ROLE_AUDITOR = "auditor"

BUSINESS_ROLES = {
    ROLE_OWNER,
    ROLE_ADMIN,
    ROLE_MEMBER,
    ROLE_AUDITOR,
}

# Platform-level role (stored on User, not on membership)
ROLE_PLATFORM_ADMIN = "platform_admin"


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
CAP_INVOICE_VIEW = "invoice.view"
CAP_INVOICE_EDIT = "invoice.edit"
CAP_INVOICE_ISSUE = "invoice.issue"
CAP_INVOICE_VOID = "invoice.void"

CAP_PAYMENT_RECORD = "payment.record"

CAP_CLIENT_MANAGE = "client.manage"
CAP_EXPENSE_MANAGE = "expense.manage"

CAP_REPORTS_VIEW = "reports.view"
CAP_DATA_EXPORT = "data.export"
CAP_AUDIT_VIEW = "audit.view"

CAP_TEAM_MANAGE = "team.manage"
CAP_BUSINESS_MANAGE = "business.manage"
CAP_CURRENCY_ACCOUNT_MANAGE = "currency_account.manage"

ALL_CAPABILITIES = {
    CAP_INVOICE_VIEW,
    CAP_INVOICE_EDIT,
    CAP_INVOICE_ISSUE,
    CAP_INVOICE_VOID,
    CAP_PAYMENT_RECORD,
    CAP_CLIENT_MANAGE,
    CAP_EXPENSE_MANAGE,
    CAP_REPORTS_VIEW,
    CAP_DATA_EXPORT,
    CAP_AUDIT_VIEW,
    CAP_TEAM_MANAGE,
    CAP_BUSINESS_MANAGE,
    CAP_CURRENCY_ACCOUNT_MANAGE,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_OWNER: {
        *ALL_CAPABILITIES,
    },
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MEMBER: {
        CAP_INVOICE_VIEW,
        CAP_INVOICE_EDIT,
        CAP_INVOICE_ISSUE,
        CAP_PAYMENT_RECORD,
        CAP_CLIENT_MANAGE,
        CAP_EXPENSE_MANAGE,
        CAP_REPORTS_VIEW,
        # deliberately NOT void / export / audit / team
    },
    ROLE_AUDITOR: {
        # read-only compliance access
        CAP_INVOICE_VIEW,
        CAP_REPORTS_VIEW,
        CAP_DATA_EXPORT,
        CAP_AUDIT_VIEW,
    },
}


# =========================================================
# Helpers
# =========================================================
def is_platform_admin(user) -> bool:
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return bool(getattr(user, "is_platform_admin", False))


def get_membership(user, business):
    """
    BusinessMember row for (user, business), or None.
    """
    if not user or not getattr(user, "is_authenticated", False) or business is None:
        return None

    from businesses.models import BusinessMember  # local import to avoid circulars

    return (
        BusinessMember.objects.filter(business=business, user=user)
        .only("id", "role")
        .first()
    )


def get_business_role(user, business) -> Optional[str]:
    membership = get_membership(user, business)
    return membership.role if membership else None


def actor_role_for(user, business=None) -> Optional[str]:
    """
    Role label recorded on audit events.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    if is_platform_admin(user):
        return ROLE_PLATFORM_ADMIN
    if business is not None:
        role = get_business_role(user, business)
        if role:
            return role
    return "user"


def effective_capabilities_for(user, business) -> set[str]:
    """
    Capabilities granted by the user's role in this business.
    Platform admins hold every capability everywhere.
    """
    if is_platform_admin(user):
        return set(ALL_CAPABILITIES)

    role = get_business_role(user, business)
    return set(ROLE_CAPABILITIES.get(role, set()))


def has_capability(user, business, capability: str) -> bool:
    return capability in effective_capabilities_for(user, business)


def _business_of(obj):
    """
    Objects carry their tenant as .business; a Business is its own tenant.
    """
    business = getattr(obj, "business", None)
    if business is not None:
        return business
    from businesses.models import Business

    return obj if isinstance(obj, Business) else None


# =========================================================
# Capability Permissions (object level, business-scoped)
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability on the object's business.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_INVOICE_VOID

    has_permission only requires authentication; the business is known once
    the object is resolved, so the capability check is object-level.
    """

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        required = getattr(view, "required_capability", None)
        if not required:
            # If not set, deny-by-default to avoid accidental open endpoints
            return False

        return has_capability(request.user, _business_of(obj), required)

