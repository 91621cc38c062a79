# businesses/services/client_service.py

from __future__ import annotations

from django.db import transaction

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from businesses.models import Business, Client
from businesses.services.exceptions import ClientError

CLIENT_FIELDS = (
    "name",
    "email",
    "phone",
    "address",
    "contact_person",
    "tax_id",
    "cac_number",
    "notes",
)


def _snapshot(client: Client) -> dict:
    return {field: getattr(client, field) for field in CLIENT_FIELDS}


@transaction.atomic
def create_client(*, business: Business, actor, data: dict, request=None) -> Client:
    fields = {k: v for k, v in data.items() if k in CLIENT_FIELDS}
    fields["name"] = (fields.get("name") or "").strip()
    if not fields["name"]:
        raise ClientError("Client name is required")

    client = Client.objects.create(business=business, **fields)

    log_audit_event_safely(
        event_type=AuditEventType.CLIENT_CREATED,
        entity_type="client",
        entity_id=client.id,
        actor=actor,
        business=business,
        new_state=_snapshot(client),
        request=request,
    )
    return client


@transaction.atomic
def update_client(*, client: Client, actor, data: dict, request=None) -> Client:
    changes = {k: v for k, v in data.items() if k in CLIENT_FIELDS}
    if "name" in changes:
        changes["name"] = (changes["name"] or "").strip()
        if not changes["name"]:
            raise ClientError("Client name cannot be blank")

    previous = _snapshot(client)
    for field, value in changes.items():
        setattr(client, field, value)
    if changes:
        client.save(update_fields=[*changes.keys(), "updated_at"])

    log_audit_event_safely(
        event_type=AuditEventType.CLIENT_UPDATED,
        entity_type="client",
        entity_id=client.id,
        actor=actor,
        business=client.business,
        previous_state=previous,
        new_state=_snapshot(client),
        request=request,
    )
    return client
