# core/consumers.py
import asyncio
import logging

from asgiref.sync import async_to_sync, sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings
from django.utils import timezone

from core.exceptions import BatchWriteError, PermissionDeniedError, StoreError

logger = logging.getLogger(__name__)


class LiveWatchConsumer(AsyncJsonWebsocketConsumer):
    """
    Base consumer that streams document store watches to a websocket.

    Watch callbacks run outside the event loop (on the store's listener
    thread), so updates are relayed through the channel layer to this
    consumer's own channel and sent from the matching ``*_update`` handler.
    Every watch opened by ``open_watches`` must be registered with ``own``.
    A signed-in connection hands its watches to its session, which is closed
    on disconnect; anonymous connections keep them on the consumer.
    """

    allow_anonymous = False

    async def connect(self):
        self.user = self.scope["user"]
        self.watches = []
        self.heartbeat_task = None

        if self.user.is_anonymous and not self.allow_anonymous:
            logger.warning("Anonymous user attempted to connect to %s", self.scope["path"])
            await self.close()
            return

        self.last_ping = timezone.now()
        self.heartbeat_interval = getattr(settings, "WEBSOCKET_HEARTBEAT_INTERVAL", 30)

        await self.accept()
        try:
            allowed = await sync_to_async(self.open_watches)()
        except StoreError as e:
            await self.send_error(e)
            await self.close(code=4403 if isinstance(e, PermissionDeniedError) else 4400)
            return
        if allowed is False:
            await self.close(code=4403)
            return

        self.heartbeat_task = asyncio.create_task(self.send_heartbeat())
        logger.info("User %s connected to %s", self.user, self.scope["path"])

    async def disconnect(self, close_code):
        if getattr(self, "heartbeat_task", None):
            self.heartbeat_task.cancel()
        await sync_to_async(self.release_watches)()
        logger.info("User %s disconnected from %s", getattr(self, "user", "?"), self.scope["path"])

    def open_watches(self):
        """Open the watches this connection streams; return False to refuse it."""
        raise NotImplementedError

    def own(self, subscription):
        if self.user.is_anonymous:
            self.watches.append(subscription)
            return subscription
        return self.user.own(subscription)

    def release_watches(self):
        while getattr(self, "watches", None):
            self.watches.pop().unsubscribe()
        user = getattr(self, "user", None)
        if user is not None:
            user.close()

    def relay(self, handler: str, **payload):
        """Forward a watch update to this connection; safe from any thread."""
        async_to_sync(self.channel_layer.send)(
            self.channel_name, {"type": handler, **payload}
        )

    def relay_error(self, error: Exception):
        logger.warning("Watch failed on %s: %s", self.scope["path"], error)
        self.relay("watch.error", error=self.describe_error(error))

    async def receive_json(self, content, **kwargs):
        msg_type = content.get("type")
        self.last_ping = timezone.now()

        if msg_type == "ping":
            await self.send_json({"type": "pong"})
            return
        if msg_type in ("pong", "heartbeat"):
            return
        if msg_type == "reconnect":
            await self.send_json({"type": "reconnect_ack", "success": True})
            return

        try:
            handled = await self.handle_frame(msg_type, content)
        except (StoreError, ValueError) as e:
            await self.send_error(e)
            return
        if handled is False:
            logger.warning("Unknown message type received: %s", msg_type)
            await self.send_json({"type": "error", "error": "unknown_type", "detail": msg_type})

    async def handle_frame(self, msg_type, content):
        return False

    @staticmethod
    def describe_error(error: Exception) -> dict:
        if isinstance(error, PermissionDeniedError):
            return {"error": "permission_denied", "detail": str(error), "context": error.as_context()}
        if isinstance(error, BatchWriteError):
            return {"error": "batch_failed", "detail": str(error), "retry": error.as_context()}
        if isinstance(error, ValueError):
            return {"error": "invalid", "detail": str(error)}
        return {"error": "store_error", "detail": str(error)}

    async def send_error(self, error: Exception):
        await self.send_json({"type": "error", **self.describe_error(error)})

    async def watch_error(self, event):
        await self.send_json({"type": "error", **event["error"]})

    async def send_heartbeat(self):
        """Send periodic heartbeats; stale connections are closed."""
        try:
            while True:
                await asyncio.sleep(self.heartbeat_interval)
                idle = (timezone.now() - self.last_ping).total_seconds()
                if idle > self.heartbeat_interval * 3:
                    logger.warning("Connection stale for user %s, closing", self.user)
                    await self.close(code=4000)
                    break
                await self.send_json({"type": "heartbeat"})
        except asyncio.CancelledError:
            pass
