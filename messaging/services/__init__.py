from .comments import create_comment, delete_comment, list_comments
from .inbox import ThreadSummary, inbox_order
from .overlay import CommentDraft, CommentFeed, reconcile, stage
from .reactions import toggle_like, toggle_reaction, toggled_likes
from .replies import append_reply, delete_reply
from .threads import (
    Thread,
    create_message,
    delete_thread,
    get_thread,
    list_inbox,
    mark_thread_read,
    send_thank_you,
    soft_delete_body,
    subscribe_inbox,
    subscribe_thread,
)
from .tracks import TrackLikes, toggle_track_like, track_likes

__all__ = [
    "CommentDraft",
    "CommentFeed",
    "Thread",
    "ThreadSummary",
    "TrackLikes",
    "append_reply",
    "create_comment",
    "create_message",
    "delete_comment",
    "delete_reply",
    "delete_thread",
    "get_thread",
    "inbox_order",
    "list_comments",
    "list_inbox",
    "mark_thread_read",
    "reconcile",
    "send_thank_you",
    "soft_delete_body",
    "stage",
    "subscribe_inbox",
    "subscribe_thread",
    "toggle_like",
    "toggle_reaction",
    "toggle_track_like",
    "toggled_likes",
    "track_likes",
]
