# messaging/services/replies.py
import logging
from typing import Optional

from django.utils import timezone

from core.exceptions import EntityNotFoundError
from core.store import ArrayRemove, ArrayUnion, get_store
from messaging.models import EntityKind, EntityRef, Reply, SenderRole
from notifications.services import REPLY, notify_entity_owner

from .entities import entity_from_snapshot

logger = logging.getLogger(__name__)


def _latest(now, previous):
    if previous is None:
        return now
    return max(now, previous)


def append_reply(ref: EntityRef, sender, text: str, store=None) -> Reply:
    """Append a reply to the entity's thread.

    The reply and the thread's ``lastRepliedAt`` are written in one
    transaction; ``lastRepliedAt`` never moves backwards even if this
    process's clock lags behind a concurrent writer.

    Args:
        ref: message or comment receiving the reply.
        sender: session of the author; admins reply as the operator side.
        text: reply body, trimmed. Blank text is rejected.

    Returns:
        The stored ``Reply``.
    """
    text = (text or "").strip()
    if not text:
        raise ValueError("Reply text must not be empty")
    store = store or get_store()
    reply_id = store.new_id()
    role = SenderRole.for_sender(sender.is_admin)

    def write(transaction):
        snapshot = transaction.get(ref.path)
        if not snapshot.exists:
            raise EntityNotFoundError(ref.path)
        replied_at = timezone.now()
        changes = {}
        if ref.kind is EntityKind.MESSAGE:
            replied_at = _latest(replied_at, snapshot.get("lastRepliedAt"))
            changes["lastRepliedAt"] = replied_at
        reply = Reply(
            id=reply_id,
            sender_id=sender.uid,
            sender_name=sender.name_or("Admin" if sender.is_admin else "Fan"),
            text=text,
            timestamp=replied_at,
            sender_role=role,
            sender_photo_url=sender.photo_url or "",
        )
        changes["replies"] = ArrayUnion([reply.to_document()])
        transaction.update(ref.path, changes)
        return reply, entity_from_snapshot(ref, snapshot)

    reply, entity = store.run_transaction(write)
    logger.info("Reply %s appended to %s by %s", reply.id, ref.path, sender.uid)
    notify_entity_owner(entity, sender.uid, REPLY, store=store)
    return reply


def delete_reply(ref: EntityRef, reply_id: str, store=None) -> bool:
    """Remove the reply with ``reply_id``; returns False if it was not found."""
    store = store or get_store()

    def remove(transaction) -> Optional[dict]:
        snapshot = transaction.get(ref.path)
        if not snapshot.exists:
            raise EntityNotFoundError(ref.path)
        for stored in snapshot.get("replies") or []:
            if Reply.from_document(stored).id == reply_id:
                # The stored value itself, so the removal matches byte for byte
                transaction.update(ref.path, {"replies": ArrayRemove([stored])})
                return stored
        return None

    removed = store.run_transaction(remove)
    if removed is None:
        logger.info("Reply %s not found on %s", reply_id, ref.path)
        return False
    logger.info("Reply %s deleted from %s", reply_id, ref.path)
    return True
