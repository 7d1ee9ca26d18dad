# messaging/services/tracks.py
"""
Track likes.

A like is its own document under ``music/{track}/likes`` keyed by the fan's
uid, so a fan can hold at most one like per track however often the toggle
is replayed.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.store import SERVER_TIMESTAMP, Query, collection_path, document_path, get_store
from messaging.models import TRACKS_COLLECTION

logger = logging.getLogger(__name__)

LIKES_COLLECTION = "likes"


def track_likes_collection(track_id: str) -> str:
    return collection_path(TRACKS_COLLECTION, track_id, LIKES_COLLECTION)


def track_like_path(track_id: str, fan_id: str) -> str:
    return document_path(TRACKS_COLLECTION, track_id, LIKES_COLLECTION, fan_id)


@dataclass
class TrackLikes:
    track_id: str
    count: int
    liked: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {"track_id": self.track_id, "count": self.count, "liked": self.liked}


def track_likes(track_id: str, uid: Optional[str] = None, store=None) -> TrackLikes:
    """Like count for the track and whether ``uid`` is among the likers."""
    store = store or get_store()
    likers = {
        snapshot.get("fanId") or snapshot.id
        for snapshot in store.query(Query(track_likes_collection(track_id)))
    }
    return TrackLikes(track_id, len(likers), liked=bool(uid) and uid in likers)


def toggle_track_like(track_id: str, actor, store=None) -> TrackLikes:
    """Flip ``actor``'s like on the track and return the resulting tally."""
    store = store or get_store()
    path = track_like_path(track_id, actor.uid)
    if store.get(path).exists:
        store.delete(path)
        logger.debug("%s unliked track %s", actor.uid, track_id)
    else:
        store.set(
            path,
            {"fanId": actor.uid, "musicId": track_id, "likeDate": SERVER_TIMESTAMP},
        )
        logger.debug("%s liked track %s", actor.uid, track_id)
    return track_likes(track_id, actor.uid, store=store)
