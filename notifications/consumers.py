# notifications/consumers.py
import logging

from asgiref.sync import sync_to_async

from core.consumers import LiveWatchConsumer

from . import services

logger = logging.getLogger(__name__)


class NotificationConsumer(LiveWatchConsumer):
    """Streams the signed-in user's notifications and unread count."""

    def open_watches(self):
        self.own(
            services.subscribe_notifications(
                self.user.uid, self.push_notifications, on_error=self.relay_error
            )
        )

    def push_notifications(self, notifications):
        self.relay(
            "notifications.update",
            notifications=[n.as_dict() for n in notifications],
            unread=services.unread_count(notifications),
        )

    async def notifications_update(self, event):
        await self.send_json(
            {
                "type": "notifications",
                "notifications": event["notifications"],
                "unread": event["unread"],
            }
        )

    async def handle_frame(self, msg_type, content):
        if msg_type == "mark_read":
            await sync_to_async(services.mark_read)(self.user.uid, content.get("id"))
        elif msg_type == "mark_all_read":
            count = await sync_to_async(services.mark_all_read)(self.user.uid)
            await self.send_json({"type": "marked_all_read", "count": count})
        else:
            return False
