# users/presence.py
"""Online / last-seen presence derived from the ``lastActive`` profile field."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Optional

from django.conf import settings
from django.utils import timezone
from django.utils.timesince import timesince

from core.exceptions import StoreError
from core.store import SERVER_TIMESTAMP, DocumentStore, document_path

logger = logging.getLogger(__name__)

FANS_COLLECTION = "fans"


def presence_window() -> timedelta:
    return timedelta(minutes=getattr(settings, "PRESENCE_WINDOW_MINUTES", 5))


@dataclass(frozen=True)
class Presence:
    is_online: bool
    last_seen: str
    last_active: Optional[datetime] = None

    def as_dict(self):
        return {
            "is_online": self.is_online,
            "last_seen": self.last_seen,
            "last_active": self.last_active.isoformat() if self.last_active else None,
        }


OFFLINE = Presence(is_online=False, last_seen="never")


def presence(
    last_active: Optional[datetime],
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> Presence:
    """Online while ``now - last_active`` is inside the window, else "Last seen ... ago"."""
    if last_active is None:
        return OFFLINE
    now = now or timezone.now()
    window = window or presence_window()
    if timezone.is_naive(last_active):
        last_active = timezone.make_aware(last_active, dt_timezone.utc)
    if now - last_active < window:
        return Presence(is_online=True, last_seen="Online", last_active=last_active)
    return Presence(
        is_online=False,
        last_seen=f"Last seen {timesince(last_active, now)} ago",
        last_active=last_active,
    )


def touch(store: DocumentStore, uid: str) -> None:
    """Record session start; failures never block sign-in."""
    try:
        store.set(
            document_path(FANS_COLLECTION, uid),
            {"lastActive": SERVER_TIMESTAMP},
            merge=True,
        )
    except StoreError:
        logger.warning("Could not update lastActive for %s", uid, exc_info=True)


def presence_for(store: DocumentStore, uid: Optional[str], now: Optional[datetime] = None) -> Presence:
    if not uid:
        return OFFLINE
    snapshot = store.get(document_path(FANS_COLLECTION, uid))
    return presence(snapshot.get("lastActive"), now=now)
