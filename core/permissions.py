# core/permissions.py
from rest_framework.permissions import BasePermission


class IsAuthenticatedSession(BasePermission):
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)


class IsOperator(BasePermission):
    """Admins of the artist site (the operator side of every conversation)."""

    message = "Only administrators may perform this action."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "is_admin", False))
