# invoicing/services/snapshots.py

"""
Point-in-time copies of issuer / recipient / tax data.

Values are JSON-native (str/bool/None/dict/list) so the frozen copy
compares equal after a database round-trip.
"""

from __future__ import annotations

TAX_SCHEMA_VERSION = "1"


def _s(value) -> str:
    return "" if value is None else str(value)


def issuer_snapshot(business) -> dict:
    return {
        "business_name": _s(business.name),
        "legal_name": _s(business.legal_name),
        "tax_id": _s(business.tax_id),
        "cac_number": _s(business.cac_number),
        "vat_registration_number": _s(business.vat_registration_number),
        "is_vat_registered": bool(business.is_vat_registered),
        "contact_email": _s(business.contact_email),
        "contact_phone": _s(business.contact_phone),
        "address": business.address or {},
        "logo_url": _s(business.logo_url),
        "jurisdiction": _s(business.jurisdiction),
    }


def recipient_snapshot(client) -> dict:
    if client is None:
        return {
            "name": "",
            "email": "",
            "phone": "",
            "address": {},
            "contact_person": "",
            "tax_id": "",
            "cac_number": "",
        }
    return {
        "name": _s(client.name),
        "email": _s(client.email),
        "phone": _s(client.phone),
        "address": client.address or {},
        "contact_person": _s(client.contact_person),
        "tax_id": _s(client.tax_id),
        "cac_number": _s(client.cac_number),
    }


def tax_schema_snapshot(business, items) -> dict:
    return {
        "version": TAX_SCHEMA_VERSION,
        "jurisdiction": _s(business.jurisdiction),
        "is_vat_registered": bool(business.is_vat_registered),
        "rates": sorted({str(item.tax_rate) for item in items}),
    }


def payer_snapshot(invoice) -> dict:
    recipient = invoice.recipient_snapshot or {}
    return {
        "name": recipient.get("name", ""),
        "email": recipient.get("email", ""),
        "client_id": str(invoice.client_id) if invoice.client_id else None,
    }


def issuer_name(invoice) -> str:
    """
    snapshot legal_name -> snapshot business_name -> live business name.
    """
    snapshot = invoice.issuer_snapshot or {}
    name = snapshot.get("legal_name") or snapshot.get("business_name")
    if not name and invoice.business_id:
        name = invoice.business.name
    return name or "Unknown Business"
