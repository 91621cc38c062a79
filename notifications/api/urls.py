# notifications/api/urls.py

from django.urls import path

from notifications.api.views import (
    NotificationListView,
    NotificationMarkAllReadView,
    NotificationMarkReadView,
)

app_name = "notifications"

urlpatterns = [
    path("", NotificationListView.as_view(), name="list"),
    path("read-all/", NotificationMarkAllReadView.as_view(), name="read-all"),
    path("<uuid:pk>/read/", NotificationMarkReadView.as_view(), name="read"),
]
