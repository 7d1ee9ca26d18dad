# messaging/routing.py
from django.urls import path
from .consumers import CommentFeedConsumer, InboxConsumer, ThreadConsumer

websocket_urlpatterns = [
    # Single conversation stream
    path("ws/messages/<str:message_id>/", ThreadConsumer.as_asgi()),
    # Inbox ordered by latest activity
    path("ws/inbox/", InboxConsumer.as_asgi()),
    # Track comments with optimistic posting
    path("ws/tracks/<str:track_id>/comments/", CommentFeedConsumer.as_asgi()),
]

# Export the URL patterns for inclusion in the ASGI application
urlpatterns = websocket_urlpatterns
