# reports/services/currency_aggregation.py

"""
MULTI-CURRENCY AGGREGATION

Sums amounts held in several currencies into one primary-currency total
using the exchange rate frozen on each document. There is no live FX
lookup: an amount without a usable rate is reported as unconvertible and
kept out of primary_total.

Item shape: {"amount", "currency", "exchange_rate_to_primary"}
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

TWOPLACES = Decimal("0.01")


def _q2(amount) -> Decimal:
    return (amount or Decimal("0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _dec(value) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def convert_to_primary(*, amount, currency: str, rate, primary_currency: str) -> Decimal | None:
    """
    amount in primary currency, or None when it cannot be converted.
    """
    amount = _dec(amount) or Decimal("0")
    if (currency or "").upper() == (primary_currency or "").upper():
        return amount

    rate = _dec(rate)
    if rate is not None and rate > 0:
        return amount * rate
    return None


def aggregate_amounts(items, primary_currency: str) -> dict:
    primary_currency = (primary_currency or "").upper()

    by_currency: dict[str, dict] = {}
    unconvertible_currencies: list[str] = []

    primary_total = Decimal("0")
    unconvertible_total = Decimal("0")
    converted_count = excluded_count = total_count = 0

    for item in items:
        total_count += 1
        currency = (item.get("currency") or "").upper()
        amount = _dec(item.get("amount")) or Decimal("0")

        bucket = by_currency.setdefault(
            currency,
            {
                "total": Decimal("0"),
                "count": 0,
                "converted_total": Decimal("0"),
                "has_all_rates": True,
                "unconvertible_count": 0,
            },
        )
        bucket["total"] += amount
        bucket["count"] += 1

        converted = convert_to_primary(
            amount=amount,
            currency=currency,
            rate=item.get("exchange_rate_to_primary"),
            primary_currency=primary_currency,
        )

        if converted is None:
            unconvertible_total += amount
            if currency not in unconvertible_currencies:
                unconvertible_currencies.append(currency)
            bucket["has_all_rates"] = False
            bucket["unconvertible_count"] += 1
            excluded_count += 1
            continue

        primary_total += converted
        bucket["converted_total"] += converted
        converted_count += 1

    for bucket in by_currency.values():
        bucket["total"] = _q2(bucket["total"])
        bucket["converted_total"] = _q2(bucket["converted_total"])

    return {
        "primary_currency": primary_currency,
        "primary_total": _q2(primary_total),
        "by_currency": by_currency,
        "has_multiple_currencies": len(by_currency) > 1,
        "has_unconvertible_amounts": excluded_count > 0,
        "unconvertible_total": _q2(unconvertible_total),
        "unconvertible_currencies": unconvertible_currencies,
        "total_count": total_count,
        "converted_count": converted_count,
        "excluded_count": excluded_count,
    }
