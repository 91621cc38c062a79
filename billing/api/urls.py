# billing/api/urls.py

from django.urls import path

from billing.api.views import SubscriptionView, TierCheckView

app_name = "billing"

urlpatterns = [
    path("tier-check/", TierCheckView.as_view(), name="tier-check"),
    path("subscription/", SubscriptionView.as_view(), name="subscription"),
]
