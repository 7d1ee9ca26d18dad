# messaging/models/base.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from core.exceptions import InvalidReferenceError
from core.store import document_path

from .identifiers import ConfirmedId, EntityId
from .reply import Reply

MESSAGES_COLLECTION = "messages"
TRACKS_COLLECTION = "music"
COMMENTS_COLLECTION = "comments"


class EntityKind(str, Enum):
    MESSAGE = "message"
    COMMENT = "comment"


@dataclass(frozen=True)
class EntityRef:
    """Location of a likable / reactable / reply-able document."""

    kind: EntityKind
    path: str

    @classmethod
    def message(cls, message_id: str) -> "EntityRef":
        return cls(EntityKind.MESSAGE, document_path(MESSAGES_COLLECTION, message_id))

    @classmethod
    def comment(cls, track_id: str, comment_id: str) -> "EntityRef":
        return cls(
            EntityKind.COMMENT,
            document_path(TRACKS_COLLECTION, track_id, COMMENTS_COLLECTION, comment_id),
        )

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def track_id(self) -> Optional[str]:
        if self.kind is EntityKind.COMMENT:
            return self.path.split("/")[1]
        return None

    @property
    def link(self) -> str:
        """Deep link used by notifications pointing back at this entity."""
        if self.kind is EntityKind.MESSAGE:
            return f"/messages/{self.id}"
        return f"/music#{self.track_id}"


def unique(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class ReactionMap:
    """Emoji -> reactor ids.

    A reactor appears at most once per emoji and an emoji never maps to an
    empty bucket: removing the last reactor drops the key.
    """

    def __init__(self, buckets: Optional[Dict[str, Iterable[str]]] = None):
        self._buckets: Dict[str, List[str]] = {}
        for emoji, reactors in (buckets or {}).items():
            for reactor in reactors or ():
                self.add(emoji, reactor)

    def reactors(self, emoji: str) -> List[str]:
        return list(self._buckets.get(emoji, ()))

    def has(self, emoji: str, reactor: str) -> bool:
        return reactor in self._buckets.get(emoji, ())

    def add(self, emoji: str, reactor: str) -> bool:
        if not emoji:
            raise ValueError("Reaction emoji must not be empty")
        if not reactor:
            return False
        bucket = self._buckets.setdefault(emoji, [])
        if reactor in bucket:
            return False
        bucket.append(reactor)
        return True

    def remove(self, emoji: str, reactor: str) -> bool:
        bucket = self._buckets.get(emoji)
        if not bucket or reactor not in bucket:
            return False
        bucket.remove(reactor)
        if not bucket:
            del self._buckets[emoji]
        return True

    def toggle(self, emoji: str, reactor: str) -> bool:
        """Flip membership; returns True when the reaction was added."""
        if self.has(emoji, reactor):
            self.remove(emoji, reactor)
            return False
        return self.add(emoji, reactor)

    def copy(self) -> "ReactionMap":
        return ReactionMap(self._buckets)

    def as_dict(self) -> Dict[str, List[str]]:
        return {emoji: list(reactors) for emoji, reactors in self._buckets.items()}

    def __contains__(self, emoji: str) -> bool:
        return emoji in self._buckets

    def __iter__(self):
        return iter(list(self._buckets))

    def __len__(self):
        return len(self._buckets)

    def __eq__(self, other):
        if isinstance(other, ReactionMap):
            return {k: set(v) for k, v in self._buckets.items()} == {
                k: set(v) for k, v in other._buckets.items()
            }
        if isinstance(other, dict):
            return self == ReactionMap(other)
        return NotImplemented

    def __repr__(self):
        return f"ReactionMap({self.as_dict()!r})"


@dataclass
class Entity:
    """Fields shared by messages and comments."""

    ident: EntityId
    owner_id: Optional[str] = None
    body: str = ""
    created_at: Optional[datetime] = None
    likes: List[str] = field(default_factory=list)
    reactions: ReactionMap = field(default_factory=ReactionMap)
    replies: List[Reply] = field(default_factory=list)
    client_token: Optional[str] = None

    kind = None

    @property
    def id(self) -> str:
        return self.ident.wire

    @property
    def is_confirmed(self) -> bool:
        return isinstance(self.ident, ConfirmedId)

    @property
    def ref(self) -> EntityRef:
        raise NotImplementedError

    def liked_by(self, actor: str) -> bool:
        return actor in self.likes

    def snippet(self, length: int) -> str:
        return self.body[:length]

    def is_owned_by(self, actor: Optional[str]) -> bool:
        return bool(self.owner_id) and self.owner_id == actor

    def _require_confirmed(self) -> str:
        if not self.is_confirmed:
            raise InvalidReferenceError(
                self.id, "entity has not been confirmed by the store yet"
            )
        return self.ident.server_id

    @staticmethod
    def parse_engagement(data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "likes": unique(data.get("likes") or []),
            "reactions": ReactionMap(data.get("reactions") or {}),
            "replies": [Reply.from_document(r) for r in data.get("replies") or []],
        }
