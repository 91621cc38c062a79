# notifications/api/views.py

"""
NOTIFICATIONS API

GET  /api/notifications/                 caller's notifications (?unread=true)
POST /api/notifications/<id>/read/       mark one read
POST /api/notifications/read-all/        mark all read
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.api_errors import error_response
from notifications.api.serializers import NotificationSerializer
from notifications.models import Notification
from notifications.services.notification_service import mark_all_read


class NotificationListView(ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer

    def get_queryset(self):
        qs = Notification.objects.filter(user=self.request.user)
        unread = (self.request.query_params.get("unread") or "").strip().lower()
        if unread in ("1", "true", "yes"):
            qs = qs.filter(is_read=False)
        return qs.order_by("-created_at")

    @extend_schema(
        tags=["notifications"],
        parameters=[OpenApiParameter(name="unread", type=bool, required=False)],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class NotificationMarkReadView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["notifications"], request=None, responses={200: NotificationSerializer})
    def post(self, request, pk):
        notification = Notification.objects.filter(id=pk, user=request.user).first()
        if notification is None:
            return error_response(
                message="Notification not found",
                http_status=status.HTTP_404_NOT_FOUND,
            )

        notification.mark_read()
        return Response(
            {"success": True, "notification": NotificationSerializer(notification).data}
        )


class NotificationMarkAllReadView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["notifications"], request=None, responses={200: dict})
    def post(self, request):
        updated = mark_all_read(user=request.user)
        return Response({"success": True, "updated": updated})
