# tests/test_consumers.py
from asgiref.sync import sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator

from core.exceptions import PermissionDeniedError
from core.session import AnonymousSession
from messaging.routing import websocket_urlpatterns as messaging_urls
from notifications.routing import websocket_urlpatterns as notification_urls
from notifications.services import notify
from tests.conftest import FAN_UID

router = URLRouter(messaging_urls + notification_urls)


class WithSession:
    """Stand-in for the token middleware: puts a fixed session on the scope."""

    def __init__(self, app, user):
        self.app = app
        self.user = user

    async def __call__(self, scope, receive, send):
        return await self.app({**scope, "user": self.user}, receive, send)


def communicator_for(user, path):
    return WebsocketCommunicator(WithSession(router, user), path)


async def test_notifications_stream_live(store, fan):
    communicator = communicator_for(fan, "/ws/notifications/")
    connected, _ = await communicator.connect()
    assert connected

    initial = await communicator.receive_json_from()
    assert initial == {"type": "notifications", "notifications": [], "unread": 0}

    await sync_to_async(notify)(FAN_UID, "An admin liked your message", "/messages/m1")
    update = await communicator.receive_json_from()
    assert update["unread"] == 1
    assert update["notifications"][0]["content"] == "An admin liked your message"

    await communicator.send_json_to({"type": "mark_all_read"})
    frames = [await communicator.receive_json_from() for _ in range(2)]
    assert {"type": "marked_all_read", "count": 1} in frames

    await communicator.send_json_to({"type": "ping"})
    assert await communicator.receive_json_from() == {"type": "pong"}
    assert store.active_watches == 1
    assert not fan.closed

    await communicator.disconnect()
    assert store.active_watches == 0
    assert fan.closed


async def test_anonymous_is_refused(store):
    communicator = communicator_for(AnonymousSession(), "/ws/notifications/")
    connected, _ = await communicator.connect()
    assert not connected


async def test_thread_reply_frame(store, message, admin):
    communicator = communicator_for(admin, "/ws/messages/m1/")
    connected, _ = await communicator.connect()
    assert connected
    initial = await communicator.receive_json_from()
    assert initial["type"] == "thread"
    assert initial["thread"]["id"] == "m1"

    await communicator.send_json_to({"type": "reply", "text": "Thanks for listening"})
    frames = [await communicator.receive_json_from() for _ in range(2)]

    assert {f["type"] for f in frames} == {"replied", "thread"}
    thread = next(f["thread"] for f in frames if f["type"] == "thread")
    assert [r["text"] for r in thread["replies"]] == ["Thanks for listening"]
    await communicator.disconnect()


async def test_thread_of_another_fan_is_refused(store, message, other_fan):
    communicator = communicator_for(other_fan, "/ws/messages/m1/")
    connected, _ = await communicator.connect()
    assert connected
    closed = await communicator.receive_output()
    assert closed["type"] == "websocket.close"
    assert closed["code"] == 4403
    assert store.active_watches == 0


async def test_denied_frame_becomes_error(store, message, fan):
    communicator = communicator_for(fan, "/ws/messages/m1/")
    await communicator.connect()
    await communicator.receive_json_from()

    await communicator.send_json_to({"type": "delete_reply", "id": "r1"})
    error = await communicator.receive_json_from()
    assert error["type"] == "error"
    assert error["error"] == "permission_denied"

    await communicator.send_json_to({"type": "dance"})
    unknown = await communicator.receive_json_from()
    assert unknown == {"type": "error", "error": "unknown_type", "detail": "dance"}
    await communicator.disconnect()


async def test_comment_feed_is_public_but_posting_is_not(store, comment, fan):
    anonymous = communicator_for(AnonymousSession(), "/ws/tracks/t1/comments/")
    connected, _ = await anonymous.connect()
    assert connected
    initial = await anonymous.receive_json_from()
    assert [c["id"] for c in initial["comments"]] == ["c1"]

    await anonymous.send_json_to({"type": "comment.post", "content": "hi"})
    assert await anonymous.receive_json_from() == {
        "type": "error",
        "error": "not_authenticated",
    }
    await anonymous.disconnect()
    assert store.active_watches == 0


async def test_denied_watch_closes_with_context(store, fan):
    store.inject("watch", PermissionDeniedError(f"fans/{FAN_UID}/notifications", "listen"))
    communicator = communicator_for(fan, "/ws/notifications/")
    await communicator.connect()

    error = await communicator.receive_json_from()
    assert error["error"] == "permission_denied"
    await communicator.disconnect()
