# businesses/services/currency_account_service.py

from __future__ import annotations

from django.db import transaction

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from billing.services.tier_catalog import FEATURE_CURRENCY_ACCOUNTS_LIMIT
from billing.services.tier_service import require_feature
from businesses.models import Business, CurrencyAccount
from businesses.services.exceptions import (
    CurrencyAccountError,
    DuplicateCurrencyAccountError,
)


@transaction.atomic
def create_currency_account(
    *,
    business: Business,
    actor,
    currency: str,
    name: str = "",
    is_default: bool = False,
    request=None,
) -> CurrencyAccount:
    currency = (currency or "").strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        raise CurrencyAccountError("currency must be a 3-letter ISO code")

    if CurrencyAccount.objects.filter(business=business, currency=currency).exists():
        raise DuplicateCurrencyAccountError(f"A {currency} account already exists for this business")

    require_feature(
        business=business,
        feature=FEATURE_CURRENCY_ACCOUNTS_LIMIT,
        user=actor,
        message="Your plan's currency account limit has been reached. Upgrade to add more currencies.",
    )

    if is_default:
        CurrencyAccount.objects.filter(business=business, is_default=True).update(is_default=False)

    account = CurrencyAccount.objects.create(
        business=business,
        currency=currency,
        name=(name or "").strip(),
        is_default=is_default,
    )

    log_audit_event_safely(
        event_type=AuditEventType.CURRENCY_ACCOUNT_CREATED,
        entity_type="currency_account",
        entity_id=account.id,
        actor=actor,
        business=business,
        new_state={"currency": account.currency, "name": account.name, "is_default": is_default},
        request=request,
    )
    return account
