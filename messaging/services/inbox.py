# messaging/services/inbox.py
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings

from messaging.models import Message
from users.presence import Presence

_NEVER = datetime.min.replace(tzinfo=dt_timezone.utc)


def preview_length() -> int:
    return getattr(settings, "INBOX_PREVIEW_LENGTH", 100)


@dataclass
class ThreadSummary:
    id: str
    name: str
    preview: str
    last_activity: Optional[datetime]
    owner_id: Optional[str] = None
    presence: Optional[Presence] = None
    read: bool = False
    reply_count: int = 0
    is_deleted: bool = False

    @classmethod
    def from_message(cls, message: Message, presence: Optional[Presence] = None) -> "ThreadSummary":
        latest = message.replies[-1].text if message.replies else message.body
        return cls(
            id=message.id,
            name=message.name,
            preview=latest.strip()[: preview_length()],
            last_activity=message.last_activity,
            owner_id=message.owner_id,
            presence=presence,
            read=message.read,
            reply_count=len(message.replies),
            is_deleted=message.is_deleted,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "preview": self.preview,
            "last_activity": self.last_activity.isoformat() if self.last_activity else None,
            "owner_id": self.owner_id,
            "presence": self.presence.as_dict() if self.presence else None,
            "read": self.read,
            "reply_count": self.reply_count,
            "is_deleted": self.is_deleted,
        }


def inbox_order(threads: Iterable[Any]) -> List[Any]:
    """Most recent activity first; equal activity falls back to id order.

    Works on anything with ``id`` and ``last_activity`` (messages or summaries).
    """
    by_id = sorted(threads, key=lambda t: t.id)
    return sorted(by_id, key=lambda t: t.last_activity or _NEVER, reverse=True)
