# messaging/services/comments.py
import logging
from typing import List

from core.exceptions import EntityNotFoundError, PermissionDeniedError
from core.store import DESCENDING, Query, collection_path, get_store
from messaging.models import COMMENTS_COLLECTION, TRACKS_COLLECTION, Comment, EntityRef

logger = logging.getLogger(__name__)


def comments_collection(track_id: str) -> str:
    return collection_path(TRACKS_COLLECTION, track_id, COMMENTS_COLLECTION)


def comments_query(track_id: str) -> Query:
    return Query(comments_collection(track_id)).order("commentDate", DESCENDING)


def list_comments(track_id: str, store=None) -> List[Comment]:
    store = store or get_store()
    return [Comment.from_snapshot(s) for s in store.query(comments_query(track_id))]


def create_comment(comment: Comment, store=None) -> str:
    """Persist a staged comment and return its server id."""
    if not comment.body.strip():
        raise ValueError("Comment text must not be empty")
    if not comment.owner_id:
        raise ValueError("Comments need an author")
    store = store or get_store()
    comment_id = store.add(comments_collection(comment.track_id), comment.new_document())
    logger.info("Comment %s added to track %s", comment_id, comment.track_id)
    return comment_id


def delete_comment(track_id: str, comment_id: str, actor=None, store=None) -> None:
    """Remove a comment. Fans may only remove their own; admins any."""
    store = store or get_store()
    ref = EntityRef.comment(track_id, comment_id)
    snapshot = store.get(ref.path)
    if not snapshot.exists:
        raise EntityNotFoundError(ref.path)
    if actor is not None and not actor.is_admin and snapshot.get("fanId") != actor.uid:
        raise PermissionDeniedError(ref.path, "delete")
    store.delete(ref.path)
    logger.info("Comment %s deleted from track %s", comment_id, track_id)
