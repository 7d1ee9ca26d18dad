from .base import (
    COMMENTS_COLLECTION,
    MESSAGES_COLLECTION,
    TRACKS_COLLECTION,
    Entity,
    EntityKind,
    EntityRef,
    ReactionMap,
)
from .comment import Comment
from .identifiers import ConfirmedId, EntityId, ProvisionalId
from .message import Message, tombstone_text
from .reply import Reply, SenderRole

__all__ = [
    "COMMENTS_COLLECTION",
    "MESSAGES_COLLECTION",
    "TRACKS_COLLECTION",
    "Comment",
    "ConfirmedId",
    "Entity",
    "EntityId",
    "EntityKind",
    "EntityRef",
    "Message",
    "ProvisionalId",
    "ReactionMap",
    "Reply",
    "SenderRole",
    "tombstone_text",
]
