# notifications/views.py
import logging

from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from core.permissions import IsAuthenticatedSession, IsOperator

from . import services
from .serializers import (
    BroadcastSerializer,
    NotificationSerializer,
    NotificationUpdateSerializer,
)
from .tasks import broadcast

logger = logging.getLogger(__name__)


class NotificationViewSet(viewsets.ViewSet):
    """Notifications of the signed-in user, newest first."""

    permission_classes = [IsAuthenticatedSession]

    def get_permissions(self):
        if self.action == "broadcast":
            return [IsOperator()]
        return super().get_permissions()

    def _limit(self, request):
        raw = request.query_params.get("limit")
        if raw in (None, ""):
            return None
        if raw == "page":
            return getattr(settings, "NOTIFICATION_PAGE_SIZE", 10)
        try:
            limit = int(raw)
        except ValueError:
            raise ValidationError({"limit": "Must be a positive integer."})
        if limit <= 0:
            raise ValidationError({"limit": "Must be a positive integer."})
        return limit

    @extend_schema(
        description="List notifications. `limit=page` returns the bell dropdown page.",
        parameters=[OpenApiParameter("limit", str, required=False)],
        responses={200: NotificationSerializer(many=True)},
    )
    def list(self, request):
        notifications = services.list_notifications(request.user.uid, self._limit(request))
        return Response(
            {
                "results": NotificationSerializer(notifications, many=True).data,
                "unread": services.unread_count(notifications),
            }
        )

    @extend_schema(
        description="Mark one notification as read",
        request=NotificationUpdateSerializer,
    )
    def partial_update(self, request, pk=None):
        serializer = NotificationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.mark_read(request.user.uid, pk)
        return Response({"id": pk, "read": True})

    @extend_schema(
        description="Get notification counts for the current user",
        responses={
            200: {
                "type": "object",
                "properties": {
                    "count": {"type": "integer"},
                    "unread": {"type": "integer"},
                },
            }
        },
    )
    @action(detail=False, methods=["get"], url_path="count")
    def count(self, request):
        notifications = services.list_notifications(request.user.uid)
        return Response(
            {"count": len(notifications), "unread": services.unread_count(notifications)}
        )

    @extend_schema(
        description="Mark all unread notifications as read in one batch. "
        "A rejected batch returns 409 with the paths and operation to retry.",
        responses={
            200: {
                "type": "object",
                "properties": {
                    "status": {"type": "string"},
                    "count": {"type": "integer"},
                },
            }
        },
    )
    @action(detail=False, methods=["post"], url_path="mark-all-read")
    def mark_all_read(self, request):
        updated = services.mark_all_read(request.user.uid)
        return Response({"status": "success", "count": updated})

    @extend_schema(
        description="Queue a notification for several fans (admins only)",
        request=BroadcastSerializer,
    )
    @action(detail=False, methods=["post"])
    def broadcast(self, request):
        serializer = BroadcastSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        broadcast.delay(data["recipient_ids"], data["content"], data["link"])
        logger.info(
            "Broadcast to %d fan(s) queued by %s", len(data["recipient_ids"]), request.user.uid
        )
        return Response(
            {"status": "queued", "recipients": len(data["recipient_ids"])},
            status=status.HTTP_202_ACCEPTED,
        )
