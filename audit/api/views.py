# audit/api/views.py

"""
AUDIT LOG API (READ ONLY)

GET /api/audit/logs/?business_id=<uuid>[&event_type=&entity_type=&entity_id=]

Access:
- audit.view capability on the business (owner / admin / auditor)
- audit_logs_visible tier flag (professional and up)
"""

from __future__ import annotations

import uuid

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.permissions import IsAuthenticated

from audit.api.serializers import AuditLogSerializer
from audit.models import AuditLog
from backend.api_errors import error_response, upgrade_required_response
from billing.services import tier_catalog as catalog
from billing.services.tier_service import check_tier_limit
from businesses.api.errors import business_error_response
from businesses.services.business_service import resolve_business_for_user
from businesses.services.exceptions import BusinessServiceError
from permissions.roles import CAP_AUDIT_VIEW, has_capability

FILTER_PARAMS = ("event_type", "entity_type", "entity_id")


class AuditLogListView(ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AuditLogSerializer

    business = None

    def get_queryset(self):
        qs = AuditLog.objects.filter(business=self.business).select_related("actor")
        for param in FILTER_PARAMS:
            value = (self.request.query_params.get(param) or "").strip()
            if not value:
                continue
            if param == "entity_id":
                try:
                    value = uuid.UUID(value)
                except ValueError:
                    return qs.none()
            qs = qs.filter(**{param: value})
        return qs.order_by("-timestamp_utc")

    @extend_schema(
        tags=["audit"],
        parameters=[
            OpenApiParameter(name="business_id", type=str, required=False),
            *(OpenApiParameter(name=p, type=str, required=False) for p in FILTER_PARAMS),
        ],
    )
    def get(self, request, *args, **kwargs):
        try:
            self.business = resolve_business_for_user(
                user=request.user,
                business_id=request.query_params.get("business_id"),
            )
        except BusinessServiceError as exc:
            return business_error_response(exc)

        if not has_capability(request.user, self.business, CAP_AUDIT_VIEW):
            return error_response(
                message="You do not have permission to view audit logs",
                http_status=status.HTTP_403_FORBIDDEN,
            )

        result = check_tier_limit(
            business=self.business,
            feature=catalog.FEATURE_AUDIT_LOGS_VISIBLE,
            user=request.user,
        )
        if not result.allowed:
            return upgrade_required_response(
                result,
                "Audit logs require a Professional subscription or higher.",
            )

        return super().get(request, *args, **kwargs)
