# messaging/views.py
import logging

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsAuthenticatedSession, IsOperator

from . import services
from .exceptions import ReplyNotFound
from .models import EntityRef
from .permissions import IsThreadParticipant
from .serializers import (
    CommentCreateSerializer,
    CommentSerializer,
    MessageCreateSerializer,
    ReactionSerializer,
    ReplyCreateSerializer,
    ReplySerializer,
)
from .throttling import ContactFormThrottle, EngagementRateThrottle, MessageRateThrottle

logger = logging.getLogger(__name__)


class EngagementMixin:
    """Like / react / reply endpoints shared by messages and comments."""

    def get_ref(self, request, **kwargs) -> EntityRef:
        raise NotImplementedError

    def get_throttles(self):
        throttles = {
            "like": EngagementRateThrottle,
            "react": EngagementRateThrottle,
            "replies": MessageRateThrottle,
        }
        if self.action in throttles:
            return [throttles[self.action]()]
        return super().get_throttles()

    @extend_schema(
        summary="Toggle Like",
        description="Like the entity, or remove the like if the caller already liked it.",
        request=None,
        responses={200: {"type": "object", "properties": {"likes": {"type": "array"}}}},
    )
    @action(detail=True, methods=["post"])
    def like(self, request, **kwargs):
        likes = services.toggle_like(self.get_ref(request, **kwargs), request.user)
        return Response({"likes": likes, "liked": request.user.uid in likes})

    @extend_schema(
        summary="Toggle Reaction",
        description="Add the caller's emoji reaction, or remove it if already present.",
        request=ReactionSerializer,
        responses={200: {"type": "object", "properties": {"reactions": {"type": "object"}}}},
    )
    @action(detail=True, methods=["post"])
    def react(self, request, **kwargs):
        serializer = ReactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reactions = services.toggle_reaction(
            self.get_ref(request, **kwargs), serializer.validated_data["emoji"], request.user
        )
        return Response({"reactions": reactions})

    @extend_schema(
        summary="Reply",
        request=ReplyCreateSerializer,
        responses={201: ReplySerializer},
    )
    @action(detail=True, methods=["post"])
    def replies(self, request, **kwargs):
        serializer = ReplyCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reply = services.append_reply(
            self.get_ref(request, **kwargs), request.user, serializer.validated_data["text"]
        )
        return Response(ReplySerializer(reply).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Delete Reply", description="Moderation only.", request=None)
    @action(detail=True, methods=["delete"])
    def delete_reply(self, request, reply_id=None, **kwargs):
        if not services.delete_reply(self.get_ref(request, **kwargs), reply_id):
            raise ReplyNotFound()
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema_view(
    list=extend_schema(
        summary="Inbox",
        description="Admins see every thread; fans see their own. Most recent activity first.",
        tags=["Messages"],
    ),
    create=extend_schema(
        summary="Contact Form",
        description="Open a thread. Anonymous senders are allowed.",
        request=MessageCreateSerializer,
        tags=["Messages"],
    ),
    retrieve=extend_schema(
        summary="Thread",
        description="A conversation with its replies and the owner's presence.",
        tags=["Messages"],
    ),
    destroy=extend_schema(summary="Delete Thread", tags=["Messages"]),
)
class MessageViewSet(EngagementMixin, viewsets.ViewSet):
    permission_classes = [IsAuthenticatedSession]

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        if self.action in ("destroy", "tombstone", "delete_reply"):
            return [IsOperator()]
        return [IsAuthenticatedSession(), IsThreadParticipant()]

    def get_throttles(self):
        if self.action == "create" and not self.request.user.is_authenticated:
            return [ContactFormThrottle()]
        return super().get_throttles()

    def get_thread(self, request, pk):
        thread = services.get_thread(pk)
        self.check_object_permissions(request, thread.message)
        return thread

    def get_ref(self, request, pk=None, **kwargs) -> EntityRef:
        return self.get_thread(request, pk).message.ref

    def list(self, request):
        scope = None if request.user.is_admin else request.user.uid
        return Response([summary.as_dict() for summary in services.list_inbox(scope)])

    def create(self, request):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        fan_id = request.user.uid if request.user.is_authenticated else None
        message_id = services.create_message(
            data["name"], data["email"], data["message"], fan_id=fan_id
        )
        return Response({"id": message_id}, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(self.get_thread(request, pk).as_dict())

    def destroy(self, request, pk=None):
        services.delete_thread(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Delete Original Message",
        description="Replace the body with a tombstone. Replies, likes and reactions stay.",
        request=None,
        tags=["Messages"],
    )
    @action(detail=True, methods=["post"])
    def tombstone(self, request, pk=None):
        services.soft_delete_body(pk)
        return Response({"status": "success"})

    @extend_schema(summary="Mark Thread Read", request=None, tags=["Messages"])
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        self.get_thread(request, pk)
        services.mark_thread_read(pk)
        return Response({"status": "success"})


@extend_schema_view(
    list=extend_schema(summary="Track Comments", tags=["Comments"]),
    create=extend_schema(
        summary="Post Comment", request=CommentCreateSerializer, tags=["Comments"]
    ),
    destroy=extend_schema(summary="Delete Comment", tags=["Comments"]),
)
class CommentViewSet(EngagementMixin, viewsets.ViewSet):
    permission_classes = [IsAuthenticatedSession]

    def get_permissions(self):
        if self.action == "list":
            return [permissions.AllowAny()]
        if self.action == "delete_reply":
            return [IsOperator()]
        return super().get_permissions()

    def get_ref(self, request, track_id=None, pk=None, **kwargs) -> EntityRef:
        return EntityRef.comment(track_id, pk)

    def list(self, request, track_id=None):
        comments = services.list_comments(track_id)
        return Response(CommentSerializer(comments, many=True).data)

    def create(self, request, track_id=None):
        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        draft = services.CommentDraft.from_session(
            track_id, request.user, serializer.validated_data["content"]
        )
        staged = services.stage(draft, client_id=serializer.validated_data.get("client_token"))
        comment_id = services.create_comment(staged)
        return Response(
            {"id": comment_id, "client_token": staged.client_token},
            status=status.HTTP_201_CREATED,
        )

    def destroy(self, request, track_id=None, pk=None):
        services.delete_comment(track_id, pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ThankYouView(APIView):
    permission_classes = [IsOperator]

    @extend_schema(
        summary="Send Thank-You",
        description="Start a thread from the artist to the fan and notify them.",
        request=None,
        responses={201: {"type": "object", "properties": {"id": {"type": "string"}}}},
        tags=["Messages"],
    )
    def post(self, request, fan_id):
        message_id = services.send_thank_you(fan_id)
        return Response({"id": message_id}, status=status.HTTP_201_CREATED)


class TrackLikeView(APIView):
    permission_classes = [IsAuthenticatedSession]

    def get_permissions(self):
        if self.request.method == "GET":
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get_throttles(self):
        if self.request.method == "POST":
            return [EngagementRateThrottle()]
        return super().get_throttles()

    @extend_schema(
        summary="Track Likes",
        description="Like count, and whether the caller likes the track when signed in.",
        tags=["Tracks"],
    )
    def get(self, request, track_id):
        uid = request.user.uid if request.user.is_authenticated else None
        return Response(services.track_likes(track_id, uid).as_dict())

    @extend_schema(
        summary="Toggle Track Like",
        description="Like the track, or remove the caller's like if present.",
        request=None,
        tags=["Tracks"],
    )
    def post(self, request, track_id):
        return Response(services.toggle_track_like(track_id, request.user).as_dict())
