# messaging/models/message.py
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from django.conf import settings

from core.store import SERVER_TIMESTAMP, Snapshot

from .base import Entity, EntityKind, EntityRef
from .identifiers import ConfirmedId

DEFAULT_TOMBSTONE = "[This message has been deleted]"


def tombstone_text() -> str:
    return getattr(settings, "MESSAGE_TOMBSTONE", DEFAULT_TOMBSTONE)


@dataclass
class Message(Entity):
    """Top-level conversation anchor stored at ``messages/{id}``.

    ``owner_id`` is the fan the conversation belongs to (``fanId``); anonymous
    contact-form senders have none.
    """

    name: str = ""
    email: str = ""
    read: bool = False
    last_replied_at: Optional[datetime] = None

    kind = EntityKind.MESSAGE

    @property
    def ref(self) -> EntityRef:
        return EntityRef.message(self._require_confirmed())

    @property
    def is_deleted(self) -> bool:
        return self.body == tombstone_text()

    @property
    def last_activity(self) -> Optional[datetime]:
        candidates = [t for t in (self.created_at, self.last_replied_at) if t is not None]
        return max(candidates) if candidates else None

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "Message":
        data = snapshot.data or {}
        return cls(
            ident=ConfirmedId(snapshot.id),
            owner_id=data.get("fanId") or None,
            body=data.get("message", ""),
            created_at=data.get("submittedAt"),
            name=data.get("name", ""),
            email=data.get("email", ""),
            read=bool(data.get("read", False)),
            last_replied_at=data.get("lastRepliedAt"),
            client_token=data.get("clientToken"),
            **Entity.parse_engagement(data),
        )

    @staticmethod
    def new_document(
        name: str,
        email: str,
        body: str,
        fan_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        document = {
            "name": name,
            "email": email,
            "message": body,
            "submittedAt": SERVER_TIMESTAMP,
            "read": False,
            "likes": [],
            "reactions": {},
            "replies": [],
        }
        if fan_id:
            document["fanId"] = fan_id
        return document
