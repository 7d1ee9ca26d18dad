# messaging/models/reply.py
import hashlib
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class SenderRole(str, Enum):
    """Which side of the conversation sent a reply.

    Stored values keep the artist-site vocabulary: the operator side is "admin",
    the subject side is "fan".
    """

    OPERATOR = "admin"
    SUBJECT = "fan"

    @classmethod
    def for_sender(cls, is_admin: bool) -> "SenderRole":
        return cls.OPERATOR if is_admin else cls.SUBJECT


def _legacy_reply_id(data: Dict[str, Any]) -> str:
    # Early replies were stored without an id
    basis = "|".join(
        str(data.get(key, "")) for key in ("senderId", "timestamp", "text")
    )
    return "legacy-" + hashlib.sha1(basis.encode("utf-8")).hexdigest()[:16]


@dataclass
class Reply:
    id: str
    sender_id: str
    sender_name: str
    text: str
    timestamp: Optional[datetime]
    sender_role: SenderRole = SenderRole.SUBJECT
    sender_photo_url: str = ""

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "senderId": self.sender_id,
            "senderName": self.sender_name,
            "senderPhotoUrl": self.sender_photo_url,
            "text": self.text,
            "timestamp": self.timestamp,
            "senderType": self.sender_role.value,
        }

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "Reply":
        try:
            role = SenderRole(data.get("senderType") or SenderRole.SUBJECT.value)
        except ValueError:
            role = SenderRole.SUBJECT
        return cls(
            id=data.get("id") or _legacy_reply_id(data),
            sender_id=data.get("senderId", ""),
            sender_name=data.get("senderName", ""),
            text=data.get("text", ""),
            timestamp=data.get("timestamp"),
            sender_role=role,
            sender_photo_url=data.get("senderPhotoUrl", "") or "",
        )

    @property
    def display_name(self) -> str:
        if self.sender_name:
            return self.sender_name
        return "Admin" if self.sender_role is SenderRole.OPERATOR else "Fan"
