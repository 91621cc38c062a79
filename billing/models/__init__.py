# billing/models/__init__.py

from .subscription import (
    DEFAULT_TIER,
    TIER_BUSINESS,
    TIER_CHOICES,
    TIER_PROFESSIONAL,
    TIER_STARTER,
    TIER_STARTER_PAID,
    Subscription,
)
from .tier_limit import TierLimit

__all__ = [
    "Subscription",
    "TierLimit",
    "TIER_CHOICES",
    "TIER_STARTER",
    "TIER_STARTER_PAID",
    "TIER_PROFESSIONAL",
    "TIER_BUSINESS",
    "DEFAULT_TIER",
]
