# messaging/services/entities.py
from core.exceptions import EntityNotFoundError
from core.store import Snapshot
from messaging.models import Comment, Entity, EntityKind, EntityRef, Message


def entity_from_snapshot(ref: EntityRef, snapshot: Snapshot) -> Entity:
    if ref.kind is EntityKind.MESSAGE:
        return Message.from_snapshot(snapshot)
    return Comment.from_snapshot(snapshot)


def load_entity(store, ref: EntityRef) -> Entity:
    """Read the latest state of ``ref``; missing documents raise."""
    snapshot = store.get(ref.path)
    if not snapshot.exists:
        raise EntityNotFoundError(ref.path)
    return entity_from_snapshot(ref, snapshot)
