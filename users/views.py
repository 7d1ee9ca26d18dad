# users/views.py
import logging

from drf_spectacular.utils import extend_schema
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsAuthenticatedSession, IsOperator
from core.store import get_store

from .presence import presence_for
from .serializers import PresenceSerializer, SessionSerializer

logger = logging.getLogger(__name__)


class SessionView(APIView):
    permission_classes = [IsAuthenticatedSession]

    @extend_schema(
        summary="Current Session",
        description="Identity and admin status resolved from the Firebase ID token.",
        responses={200: SessionSerializer},
        tags=["Users"],
    )
    def get(self, request):
        return Response(SessionSerializer(request.user).data)


class PresenceView(APIView):
    permission_classes = [IsOperator]

    @extend_schema(
        summary="Fan Presence",
        description="Online within the presence window, otherwise when the fan was last seen.",
        responses={200: PresenceSerializer},
        tags=["Users"],
    )
    def get(self, request, uid):
        return Response(PresenceSerializer(presence_for(get_store(), uid)).data)
