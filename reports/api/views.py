"""
======================================================
PATH: reports/api/views.py
======================================================
REPORTS & EXPORTS API

POST /api/reports/generate/      {report_type, year, format, business_id?, currency_account_id?}
GET  /api/reports/generate/      same fields as query params
POST /api/reports/export/        {export_type, format, business_id?, date_from?, date_to?, filters?}

CSV reports are returned as a text/csv attachment. Exports always return
JSON; the file content travels in `data` alongside its integrity hash.
======================================================
"""

from __future__ import annotations

from django.http import HttpResponse
from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.api_errors import upgrade_required_response
from billing.services.tier_service import TierLimitExceeded
from businesses.api.errors import business_error_response
from businesses.services.exceptions import BusinessServiceError
from reports.api.errors import report_error_response
from reports.api.serializers import ExportRequestSerializer, ReportRequestSerializer
from reports.services.export_service import export_records
from reports.services.report_service import ReportError, generate_report


class GenerateReportView(APIView):
    permission_classes = [IsAuthenticated]

    def _generate(self, request, payload):
        s = ReportRequestSerializer(data=payload)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = generate_report(
                user=request.user,
                report_type=data.get("report_type"),
                year=data.get("year"),
                format=data.get("format") or "json",
                business_id=data.get("business_id"),
                currency_account_id=data.get("currency_account_id") or None,
                request=request,
            )
        except TierLimitExceeded as exc:
            return upgrade_required_response(exc.result, str(exc))
        except BusinessServiceError as exc:
            return business_error_response(exc)
        except ReportError as exc:
            return report_error_response(exc)

        if "csv" in result:
            response = HttpResponse(result["csv"], content_type="text/csv")
            response["Content-Disposition"] = f'attachment; filename="{result["filename"]}"'
            return response

        return Response({"success": True, **result})

    @extend_schema(tags=["reports"], request=ReportRequestSerializer, responses={200: dict})
    def post(self, request):
        return self._generate(request, request.data)

    @extend_schema(tags=["reports"], parameters=[ReportRequestSerializer], responses={200: dict})
    def get(self, request):
        return self._generate(request, request.query_params)


class ExportRecordsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["reports"], request=ExportRequestSerializer, responses={200: dict})
    def post(self, request):
        s = ExportRequestSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        date_from = data.get("date_from")
        date_to = data.get("date_to")

        try:
            result = export_records(
                user=request.user,
                export_type=data["export_type"],
                format=data.get("format") or "csv",
                business_id=data.get("business_id"),
                currency_account_id=data.get("currency_account_id"),
                date_from=date_from.isoformat() if date_from else None,
                date_to=date_to.isoformat() if date_to else None,
                filters=data.get("filters") or {},
                request=request,
            )
        except TierLimitExceeded as exc:
            return upgrade_required_response(exc.result, str(exc))
        except BusinessServiceError as exc:
            return business_error_response(exc)
        except ReportError as exc:
            return report_error_response(exc)

        return Response({"success": True, **result})
