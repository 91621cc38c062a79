# billing/services/tier_service.py

"""
TIER SERVICE

Purpose:
- Resolve a business's effective tier.
- Answer "may this business use feature X right now?" for every gate
  in the system (issue, exports, reports, team, currency accounts).

Rules:
- Platform admins are never gated.
- count features compare live usage to the limit (usage < limit).
- boolean features are allowed iff limit_value == 1.
- unlimited rows, and count rows with a NULL limit_value, are allowed.
- A feature with no TierLimit row is allowed with limit_type "undefined"
  (unknown features never lock users out).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.utils import timezone

from billing.models import DEFAULT_TIER, Subscription, TierLimit
from billing.services import tier_catalog as catalog
from permissions.roles import ROLE_OWNER, is_platform_admin

logger = logging.getLogger(__name__)

LIMIT_UNDEFINED = "undefined"


# ============================================================
# RESULT / ERRORS
# ============================================================


@dataclass(frozen=True)
class TierCheckResult:
    allowed: bool
    tier: str
    feature: str
    limit_type: str | None = None
    limit_value: int | None = None
    current_count: int | None = None
    reason: str = ""

    @property
    def remaining(self) -> int | None:
        if self.limit_type != TierLimit.LIMIT_COUNT or self.limit_value is None:
            return None
        return max(self.limit_value - (self.current_count or 0), 0)

    def as_dict(self) -> dict:
        data = {
            "allowed": self.allowed,
            "tier": self.tier,
            "feature": self.feature,
            "limit_type": self.limit_type,
            "limit_value": self.limit_value,
            "current_count": self.current_count,
            "remaining": self.remaining,
        }
        if not self.allowed:
            data["reason"] = self.reason
            data["upgrade_required"] = True
        return data


class TierLimitExceeded(Exception):
    """
    Raised by require_feature(). Views map it to 403 + upgrade_required.
    """

    def __init__(self, result: TierCheckResult, message: str | None = None):
        self.result = result
        super().__init__(message or result.reason or "Upgrade required")


# ============================================================
# TIER RESOLUTION
# ============================================================


def get_active_subscription(business) -> Subscription | None:
    return (
        Subscription.objects.filter(
            business=business,
            status__in=Subscription.ENTITLED_STATUSES,
        )
        .order_by("-created_at")
        .first()
    )


def get_business_tier(business) -> str:
    if business is None:
        return DEFAULT_TIER
    subscription = get_active_subscription(business)
    return subscription.tier if subscription else DEFAULT_TIER


# ============================================================
# USAGE COUNTERS
# ============================================================


def _month_start():
    now = timezone.now()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def count_feature_usage(business, feature: str) -> int | None:
    """
    Live usage for count-type features; None when the feature is not counted.
    """
    # local imports: invoicing/businesses depend on billing, not vice versa
    if feature == catalog.FEATURE_INVOICES_PER_MONTH:
        from invoicing.models import Invoice

        return (
            Invoice.objects.filter(business=business, issued_at__gte=_month_start())
            .exclude(status=Invoice.STATUS_DRAFT)
            .count()
        )

    if feature == catalog.FEATURE_RECEIPTS_LIMIT:
        from invoicing.models import Receipt

        return Receipt.objects.filter(business=business, issued_at__gte=_month_start()).count()

    if feature == catalog.FEATURE_TEAM_MEMBERS_LIMIT:
        from businesses.models import BusinessMember

        return BusinessMember.objects.filter(business=business).exclude(role=ROLE_OWNER).count()

    if feature == catalog.FEATURE_CURRENCY_ACCOUNTS_LIMIT:
        from businesses.models import CurrencyAccount

        return CurrencyAccount.objects.filter(business=business).count()

    return None


# ============================================================
# CHECKS
# ============================================================


def check_tier_limit(*, business, feature: str, user=None) -> TierCheckResult:
    tier = get_business_tier(business)

    if user is not None and is_platform_admin(user):
        return TierCheckResult(
            allowed=True,
            tier=tier,
            feature=feature,
            limit_type=TierLimit.LIMIT_UNLIMITED,
        )

    limit = TierLimit.objects.filter(tier=tier, feature=feature).first()
    if limit is None:
        return TierCheckResult(allowed=True, tier=tier, feature=feature, limit_type=LIMIT_UNDEFINED)

    if limit.limit_type == TierLimit.LIMIT_BOOLEAN:
        allowed = limit.limit_value == 1
        return TierCheckResult(
            allowed=allowed,
            tier=tier,
            feature=feature,
            limit_type=limit.limit_type,
            limit_value=limit.limit_value,
            reason="" if allowed else f"'{feature}' is not available on the {tier} plan",
        )

    if limit.limit_type == TierLimit.LIMIT_UNLIMITED or limit.limit_value is None:
        return TierCheckResult(
            allowed=True,
            tier=tier,
            feature=feature,
            limit_type=TierLimit.LIMIT_UNLIMITED,
        )

    current = count_feature_usage(business, feature) or 0
    limit_value = limit.limit_value
    allowed = current < limit_value

    return TierCheckResult(
        allowed=allowed,
        tier=tier,
        feature=feature,
        limit_type=limit.limit_type,
        limit_value=limit_value,
        current_count=current,
        reason="" if allowed else f"{tier} plan limit reached for '{feature}' ({current}/{limit_value})",
    )


def require_feature(*, business, feature: str, user=None, message: str | None = None) -> TierCheckResult:
    result = check_tier_limit(business=business, feature=feature, user=user)
    if not result.allowed:
        logger.info(
            "Tier limit blocked request",
            extra={
                "business_id": str(getattr(business, "id", "")),
                "feature": feature,
                "tier": result.tier,
            },
        )
        raise TierLimitExceeded(result, message)
    return result


def list_tier_limits(tier: str) -> list[dict]:
    return [
        {
            "feature": row.feature,
            "limit_type": row.limit_type,
            "limit_value": row.limit_value,
            "description": row.description,
        }
        for row in TierLimit.objects.filter(tier=tier).order_by("feature")
    ]


# ============================================================
# SEEDING
# ============================================================


def seed_tier_limits(*, overwrite: bool = True, model=None) -> tuple[int, int]:
    """
    Upsert the catalog rows. Returns (created, updated).

    `model` lets the data migration pass its historical TierLimit.
    """
    model = model or TierLimit
    created = updated = 0

    for tier, feature, value, limit_type, description in catalog.tier_limit_rows():
        row = model.objects.filter(tier=tier, feature=feature).first()
        if row is None:
            model.objects.create(
                tier=tier,
                feature=feature,
                limit_value=value,
                limit_type=limit_type,
                description=description,
            )
            created += 1
        elif overwrite:
            row.limit_value = value
            row.limit_type = limit_type
            row.description = description
            row.save(update_fields=["limit_value", "limit_type", "description"])
            updated += 1

    return created, updated
