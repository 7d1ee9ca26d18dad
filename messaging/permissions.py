# messaging/permissions.py
from rest_framework.permissions import BasePermission


class IsThreadParticipant(BasePermission):
    """
    Only the fan a conversation belongs to, or an admin, may access it
    """

    message = "You are not a participant of this conversation."

    def has_object_permission(self, request, view, obj):
        user = request.user
        if getattr(user, "is_admin", False):
            return True
        return bool(obj.owner_id) and obj.owner_id == getattr(user, "uid", None)
