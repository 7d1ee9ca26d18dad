# messaging/consumers.py
import logging

from asgiref.sync import sync_to_async

from core.consumers import LiveWatchConsumer
from core.exceptions import PermissionDeniedError

from . import services
from .models import EntityRef
from .serializers import CommentSerializer

logger = logging.getLogger(__name__)


class ThreadConsumer(LiveWatchConsumer):
    """
    Live view of one conversation at ``ws/messages/<id>/``.

    Besides the stream, the socket accepts ``like``, ``react`` and ``reply``
    frames so the thread page needs no extra HTTP round trips.
    """

    def open_watches(self):
        self.thread_id = self.scope["url_route"]["kwargs"]["message_id"]
        thread = services.get_thread(self.thread_id)
        if not self.user.is_admin and thread.message.owner_id != self.user.uid:
            logger.warning(
                "User %s tried to access unauthorized thread %s", self.user.uid, self.thread_id
            )
            return False
        self.own(
            services.subscribe_thread(
                self.thread_id, self.push_thread, on_error=self.relay_error
            )
        )
        return True

    def push_thread(self, thread):
        self.relay("thread.update", thread=thread.as_dict() if thread else None)

    async def thread_update(self, event):
        await self.send_json({"type": "thread", "thread": event["thread"]})

    async def handle_frame(self, msg_type, content):
        ref = EntityRef.message(self.thread_id)
        if msg_type == "like":
            likes = await sync_to_async(services.toggle_like)(ref, self.user)
            await self.send_json({"type": "liked", "likes": likes})
        elif msg_type == "react":
            reactions = await sync_to_async(services.toggle_reaction)(
                ref, content.get("emoji"), self.user
            )
            await self.send_json({"type": "reacted", "reactions": reactions})
        elif msg_type == "reply":
            reply = await sync_to_async(services.append_reply)(ref, self.user, content.get("text"))
            await self.send_json({"type": "replied", "id": reply.id})
        elif msg_type == "delete_reply":
            if not self.user.is_admin:
                raise PermissionDeniedError(ref.path, "update")
            removed = await sync_to_async(services.delete_reply)(ref, content.get("id"))
            await self.send_json({"type": "reply_deleted", "id": content.get("id"), "removed": removed})
        else:
            return False


class InboxConsumer(LiveWatchConsumer):
    """Activity-ordered inbox at ``ws/inbox/``; admins see every thread."""

    def open_watches(self):
        scope = None if self.user.is_admin else self.user.uid
        self.own(services.subscribe_inbox(scope, self.push_inbox, on_error=self.relay_error))

    def push_inbox(self, summaries):
        self.relay("inbox.update", threads=[s.as_dict() for s in summaries])

    async def inbox_update(self, event):
        await self.send_json({"type": "inbox", "threads": event["threads"]})


class CommentFeedConsumer(LiveWatchConsumer):
    """
    Comments of one track at ``ws/tracks/<track_id>/comments/``.

    Anyone may watch; posting requires a signed-in fan. A posted comment is
    echoed at once as a provisional entry and swapped for the stored one
    when it arrives.
    """

    allow_anonymous = True

    def open_watches(self):
        self.track_id = self.scope["url_route"]["kwargs"]["track_id"]
        self.feed = services.CommentFeed(
            self.track_id, self.push_comments, on_error=self.relay_error
        )
        self.own(self.feed.start())

    def push_comments(self, comments):
        self.relay("comments.update", comments=CommentSerializer(comments, many=True).data)

    async def comments_update(self, event):
        await self.send_json({"type": "comments", "comments": event["comments"]})

    async def handle_frame(self, msg_type, content):
        if msg_type == "comment.post":
            if self.user.is_anonymous:
                await self.send_json({"type": "error", "error": "not_authenticated"})
                return
            draft = services.CommentDraft.from_session(
                self.track_id, self.user, content.get("content") or ""
            )
            staged = await sync_to_async(self.feed.post)(draft)
            await self.send_json({"type": "comment_staged", "client_token": staged.client_token})
        elif msg_type == "comment.delete":
            if self.user.is_anonymous:
                await self.send_json({"type": "error", "error": "not_authenticated"})
                return
            await sync_to_async(self.feed.delete)(content.get("id"), actor=self.user)
        else:
            return False
