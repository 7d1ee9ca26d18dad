# messaging/services/reactions.py
"""
Likes and emoji reactions on messages and comments.

Writes are always field-level array operations so concurrent likers never
clobber each other; the value returned to the caller is computed from the
latest read and is only meant for optimistic display until the next live
update arrives.
"""
import logging
from typing import Dict, Iterable, List

from core.exceptions import EntityNotFoundError
from core.store import DELETE_FIELD, ArrayRemove, ArrayUnion, FieldPath, get_store
from messaging.models import EntityRef, ReactionMap
from notifications.services import LIKE, REACTION, notify_entity_owner

from .entities import load_entity

logger = logging.getLogger(__name__)


def toggled_likes(likes: Iterable[str], actor: str) -> List[str]:
    likes = list(likes)
    if actor in likes:
        return [uid for uid in likes if uid != actor]
    return likes + [actor]


def toggle_like(ref: EntityRef, actor, store=None) -> List[str]:
    """Flip ``actor``'s like on the entity and return the resulting likes."""
    store = store or get_store()
    entity = load_entity(store, ref)
    likes = toggled_likes(entity.likes, actor.uid)

    if entity.liked_by(actor.uid):
        store.update(ref.path, {"likes": ArrayRemove([actor.uid])})
        logger.debug("%s unliked %s", actor.uid, ref.path)
    else:
        store.update(ref.path, {"likes": ArrayUnion([actor.uid])})
        logger.debug("%s liked %s", actor.uid, ref.path)
        notify_entity_owner(entity, actor.uid, LIKE, store=store)
    return likes


def _validate_emoji(emoji: str) -> str:
    if not isinstance(emoji, str) or not emoji.strip():
        raise ValueError("Reaction emoji must be a non-empty string")
    return emoji.strip()


def toggle_reaction(ref: EntityRef, emoji: str, actor, store=None) -> Dict[str, List[str]]:
    """Flip ``actor``'s ``emoji`` reaction and return the resulting reaction map."""
    emoji = _validate_emoji(emoji)
    store = store or get_store()
    entity = load_entity(store, ref)
    key = FieldPath("reactions", emoji)

    reactions = entity.reactions.copy()
    added = reactions.toggle(emoji, actor.uid)

    if added:
        store.update(ref.path, {key: ArrayUnion([actor.uid])})
        notify_entity_owner(entity, actor.uid, REACTION, emoji, store=store)
    else:

        def remove(transaction):
            snapshot = transaction.get(ref.path)
            if not snapshot.exists:
                raise EntityNotFoundError(ref.path)
            current = ReactionMap(snapshot.get("reactions") or {})
            if not current.has(emoji, actor.uid):
                return
            if current.reactors(emoji) == [actor.uid]:
                transaction.update(ref.path, {key: DELETE_FIELD})
            else:
                transaction.update(ref.path, {key: ArrayRemove([actor.uid])})

        store.run_transaction(remove)
    return reactions.as_dict()
