# notifications/urls.py
from django.urls import path
from .views import NotificationViewSet

urlpatterns = [
    path("", NotificationViewSet.as_view({"get": "list"}), name="notification-list"),
    path(
        "count/",
        NotificationViewSet.as_view({"get": "count"}),
        name="notification-count",
    ),
    path(
        "mark-all-read/",
        NotificationViewSet.as_view({"post": "mark_all_read"}),
        name="mark-all-read",
    ),
    path(
        "broadcast/",
        NotificationViewSet.as_view({"post": "broadcast"}),
        name="notification-broadcast",
    ),
    path(
        "<str:pk>/",
        NotificationViewSet.as_view({"patch": "partial_update"}),
        name="notification-detail",
    ),
]
