# messaging/models/comment.py
from dataclasses import dataclass
from typing import Any, Dict

from core.store import SERVER_TIMESTAMP, Snapshot

from .base import Entity, EntityKind, EntityRef
from .identifiers import ConfirmedId


@dataclass
class Comment(Entity):
    """Comment on a track, stored at ``music/{track}/comments/{id}``."""

    track_id: str = ""
    username: str = ""
    photo_url: str = ""

    kind = EntityKind.COMMENT

    @property
    def ref(self) -> EntityRef:
        return EntityRef.comment(self.track_id, self._require_confirmed())

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "Comment":
        data = snapshot.data or {}
        track_id = data.get("musicId") or snapshot.path.split("/")[1]
        return cls(
            ident=ConfirmedId(snapshot.id),
            owner_id=data.get("fanId") or None,
            body=data.get("content", ""),
            created_at=data.get("commentDate"),
            track_id=track_id,
            username=data.get("username", ""),
            photo_url=data.get("photoURL", "") or "",
            client_token=data.get("clientToken"),
            **Entity.parse_engagement(data),
        )

    def new_document(self) -> Dict[str, Any]:
        document = {
            "fanId": self.owner_id,
            "username": self.username,
            "photoURL": self.photo_url,
            "content": self.body,
            "commentDate": SERVER_TIMESTAMP,
            "musicId": self.track_id,
            "likes": [],
            "reactions": {},
            "replies": [],
        }
        if self.client_token:
            document["clientToken"] = self.client_token
        return document
