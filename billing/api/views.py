# billing/api/views.py

"""
BILLING API

GET /api/billing/tier-check/?business_id=<uuid>&feature=<name>
    check_tier_limit() for the business (caller must be a member)

GET /api/billing/subscription/?business_id=<uuid>
    current tier, subscription row and the tier's limit table
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from billing.api.serializers import SubscriptionSerializer, TierCheckQuerySerializer
from billing.services.tier_service import (
    check_tier_limit,
    get_active_subscription,
    get_business_tier,
    list_tier_limits,
)
from businesses.api.errors import business_error_response
from businesses.services.business_service import resolve_business_for_user
from businesses.services.exceptions import BusinessServiceError


class TierCheckView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["billing"],
        parameters=[
            OpenApiParameter(name="business_id", type=str, required=False),
            OpenApiParameter(name="feature", type=str, required=True),
        ],
        responses={200: dict, 403: dict, 404: dict},
    )
    def get(self, request):
        query = TierCheckQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        try:
            business = resolve_business_for_user(
                user=request.user,
                business_id=query.validated_data.get("business_id"),
            )
        except BusinessServiceError as exc:
            return business_error_response(exc)

        result = check_tier_limit(
            business=business,
            feature=query.validated_data["feature"].strip(),
            user=request.user,
        )
        return Response({"success": True, "business_id": str(business.id), **result.as_dict()})


class SubscriptionView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["billing"],
        parameters=[OpenApiParameter(name="business_id", type=str, required=False)],
        responses={200: dict, 403: dict, 404: dict},
    )
    def get(self, request):
        try:
            business = resolve_business_for_user(
                user=request.user,
                business_id=request.query_params.get("business_id"),
            )
        except BusinessServiceError as exc:
            return business_error_response(exc)

        subscription = get_active_subscription(business)
        tier = get_business_tier(business)

        return Response(
            {
                "success": True,
                "business_id": str(business.id),
                "tier": tier,
                "subscription": SubscriptionSerializer(subscription).data if subscription else None,
                "limits": list_tier_limits(tier),
            }
        )
