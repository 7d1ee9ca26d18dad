# messaging/urls.py
from django.urls import path
from .views import CommentViewSet, MessageViewSet, ThankYouView, TrackLikeView

urlpatterns = [
    # Conversations
    path(
        "messages/",
        MessageViewSet.as_view({"get": "list", "post": "create"}),
        name="message-list",
    ),
    path(
        "messages/<str:pk>/",
        MessageViewSet.as_view({"get": "retrieve", "delete": "destroy"}),
        name="message-detail",
    ),
    path(
        "messages/<str:pk>/like/",
        MessageViewSet.as_view({"post": "like"}),
        name="message-like",
    ),
    path(
        "messages/<str:pk>/react/",
        MessageViewSet.as_view({"post": "react"}),
        name="message-react",
    ),
    path(
        "messages/<str:pk>/replies/",
        MessageViewSet.as_view({"post": "replies"}),
        name="message-replies",
    ),
    path(
        "messages/<str:pk>/replies/<str:reply_id>/",
        MessageViewSet.as_view({"delete": "delete_reply"}),
        name="message-reply-detail",
    ),
    path(
        "messages/<str:pk>/tombstone/",
        MessageViewSet.as_view({"post": "tombstone"}),
        name="message-tombstone",
    ),
    path(
        "messages/<str:pk>/read/",
        MessageViewSet.as_view({"post": "read"}),
        name="message-read",
    ),
    path(
        "fans/<str:fan_id>/thank-you/",
        ThankYouView.as_view(),
        name="fan-thank-you",
    ),
    # Tracks
    path(
        "tracks/<str:track_id>/like/",
        TrackLikeView.as_view(),
        name="track-like",
    ),
    # Track comments
    path(
        "tracks/<str:track_id>/comments/",
        CommentViewSet.as_view({"get": "list", "post": "create"}),
        name="comment-list",
    ),
    path(
        "tracks/<str:track_id>/comments/<str:pk>/",
        CommentViewSet.as_view({"delete": "destroy"}),
        name="comment-detail",
    ),
    path(
        "tracks/<str:track_id>/comments/<str:pk>/like/",
        CommentViewSet.as_view({"post": "like"}),
        name="comment-like",
    ),
    path(
        "tracks/<str:track_id>/comments/<str:pk>/react/",
        CommentViewSet.as_view({"post": "react"}),
        name="comment-react",
    ),
    path(
        "tracks/<str:track_id>/comments/<str:pk>/replies/",
        CommentViewSet.as_view({"post": "replies"}),
        name="comment-replies",
    ),
    path(
        "tracks/<str:track_id>/comments/<str:pk>/replies/<str:reply_id>/",
        CommentViewSet.as_view({"delete": "delete_reply"}),
        name="comment-reply-detail",
    ),
]
