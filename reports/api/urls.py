# reports/api/urls.py

from django.urls import path

from reports.api.views import ExportRecordsView, GenerateReportView

app_name = "reports"

urlpatterns = [
    path("generate/", GenerateReportView.as_view(), name="generate"),
    path("export/", ExportRecordsView.as_view(), name="export"),
]
