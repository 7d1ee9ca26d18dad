# notifications/services.py
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from django.conf import settings

from core.exceptions import BatchWriteError, StoreError
from core.store import (
    DESCENDING,
    SERVER_TIMESTAMP,
    Query,
    Snapshot,
    Subscription,
    collection_path,
    document_path,
    get_store,
)
from messaging.models import Entity, EntityKind

logger = logging.getLogger(__name__)

FANS_COLLECTION = "fans"
NOTIFICATIONS_COLLECTION = "notifications"

LIKE = "like"
REACTION = "reaction"
REPLY = "reply"

# Firestore rejects a write batch of more than 500 operations
MAX_BATCH_WRITES = 500


def notifications_collection(recipient_id: str) -> str:
    return collection_path(FANS_COLLECTION, recipient_id, NOTIFICATIONS_COLLECTION)


def notification_path(recipient_id: str, notification_id: str) -> str:
    return document_path(
        FANS_COLLECTION, recipient_id, NOTIFICATIONS_COLLECTION, notification_id
    )


@dataclass
class Notification:
    id: str
    content: str
    link: str
    read: bool = False
    timestamp: Optional[datetime] = None

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "Notification":
        data = snapshot.data or {}
        return cls(
            id=snapshot.id,
            content=data.get("content", ""),
            link=data.get("link", ""),
            read=bool(data.get("read", False)),
            timestamp=data.get("timestamp"),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "link": self.link,
            "read": self.read,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


def notify(recipient_id: Optional[str], content: str, link: str, store=None) -> Optional[str]:
    """Append a notification to the recipient's own sub-collection.

    Best-effort: a failed write is logged and swallowed so that the
    triggering action is never rolled back because of it.

    Returns:
        The new notification id, or ``None`` when nothing was written.
    """
    if not recipient_id:
        return None
    store = store or get_store()
    try:
        notification_id = store.add(
            notifications_collection(recipient_id),
            {
                "content": content,
                "link": link,
                "read": False,
                "timestamp": SERVER_TIMESTAMP,
            },
        )
    except Exception:
        logger.exception("Failed to notify %s (%s)", recipient_id, link)
        return None
    logger.debug("Notified %s: %s", recipient_id, content)
    return notification_id


def snippet_length() -> int:
    return getattr(settings, "NOTIFICATION_SNIPPET_LENGTH", 30)


def describe(entity: Entity, verb: str, detail: Optional[str] = None) -> str:
    """Render notification text for an engagement event on ``entity``."""
    if entity.kind is EntityKind.MESSAGE:
        snippet = entity.snippet(snippet_length())
        if verb == LIKE:
            return f'An admin liked your message: "{snippet}..."'
        if verb == REACTION:
            return f'An admin reacted with {detail} to your message: "{snippet}..."'
        if verb == REPLY:
            return f'An admin replied to your message: "{snippet}..."'
    else:
        track = entity.track_id
        if verb == LIKE:
            return f'Someone liked your comment on the track "{track}".'
        if verb == REACTION:
            return f'Someone reacted with {detail} to your comment on "{track}".'
        if verb == REPLY:
            return f'Someone replied to your comment on "{track}".'
    raise ValueError(f"Unknown notification verb: {verb}")


def notify_entity_owner(
    entity: Entity,
    actor_id: Optional[str],
    verb: str,
    detail: Optional[str] = None,
    store=None,
) -> Optional[str]:
    # Nobody is told about their own action, and ownerless entities have no inbox
    if not entity.owner_id or entity.owner_id == actor_id:
        return None
    return notify(entity.owner_id, describe(entity, verb, detail), entity.ref.link, store=store)


def mark_read(recipient_id: str, notification_id: str, store=None) -> None:
    store = store or get_store()
    store.update(notification_path(recipient_id, notification_id), {"read": True})


def mark_all_read(recipient_id: str, store=None) -> int:
    """Mark unread notifications of ``recipient_id`` read in one atomic batch.

    A batch holds at most ``MAX_BATCH_WRITES`` updates, so one call marks at
    most that many. Callers that must clear everything repeat until the
    returned count is below the cap.

    Raises:
        BatchWriteError: the batch was rejected; nothing was marked.
    """
    store = store or get_store()
    unread = store.query(
        Query(notifications_collection(recipient_id))
        .where("read", "==", False)
        .take(MAX_BATCH_WRITES)
    )
    if not unread:
        return 0
    paths = [snapshot.path for snapshot in unread]
    try:
        store.batch_update(paths, {"read": True})
    except BatchWriteError:
        raise
    except StoreError as exc:
        raise BatchWriteError(paths, "update", {"read": True}, cause=exc) from exc
    logger.info("Marked %d notification(s) read for %s", len(paths), recipient_id)
    return len(paths)


def notifications_query(recipient_id: str, limit: Optional[int] = None) -> Query:
    return (
        Query(notifications_collection(recipient_id))
        .order("timestamp", DESCENDING)
        .take(limit)
    )


def list_notifications(
    recipient_id: str, limit: Optional[int] = None, store=None
) -> List[Notification]:
    store = store or get_store()
    return [
        Notification.from_snapshot(s)
        for s in store.query(notifications_query(recipient_id, limit))
    ]


def subscribe_notifications(
    recipient_id: str,
    callback: Callable[[List[Notification]], None],
    limit: Optional[int] = None,
    on_error: Optional[Callable[[Exception], None]] = None,
    store=None,
) -> Subscription:
    store = store or get_store()

    def deliver(snapshots):
        callback([Notification.from_snapshot(s) for s in snapshots])

    return store.watch_query(notifications_query(recipient_id, limit), deliver, on_error)


def unread_count(notifications: Iterable[Notification]) -> int:
    return sum(1 for n in notifications if not n.read)
