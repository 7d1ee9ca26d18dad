# messaging/services/overlay.py
"""
Optimistic comment feed.

A posted comment shows up immediately as a provisional entry and is replaced
by the confirmed document once the live watch delivers it. The durable write
carries the provisional id as ``clientToken``; that is how a confirmed
comment is matched back to the entry it replaces.
"""
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Callable, Dict, Iterable, List, Optional

from django.utils import timezone

from core.exceptions import StoreError
from core.store import Snapshot, Subscription, get_store
from messaging.models import Comment, ProvisionalId

from .comments import comments_query, create_comment, delete_comment

logger = logging.getLogger(__name__)

_PENDING = datetime.max.replace(tzinfo=dt_timezone.utc)


@dataclass
class CommentDraft:
    track_id: str
    body: str
    owner_id: str
    username: str = ""
    photo_url: str = ""

    @classmethod
    def from_session(cls, track_id: str, session, body: str) -> "CommentDraft":
        return cls(
            track_id=track_id,
            body=body,
            owner_id=session.uid,
            username=session.name_or("Anonymous"),
            photo_url=session.photo_url or "",
        )


def stage(draft: CommentDraft, now: Optional[datetime] = None, client_id: Optional[str] = None) -> Comment:
    client_id = client_id or uuid.uuid4().hex
    return Comment(
        ident=ProvisionalId(client_id),
        owner_id=draft.owner_id,
        body=draft.body.strip(),
        created_at=now or timezone.now(),
        track_id=draft.track_id,
        username=draft.username,
        photo_url=draft.photo_url,
        client_token=client_id,
    )


def _matches(local: Comment, remote: Comment) -> bool:
    if local.id == remote.id:
        return True
    return bool(local.client_token) and remote.client_token == local.client_token


def reconcile(local: Iterable[Comment], remote: Iterable[Comment]) -> List[Comment]:
    """Merge staged comments into the confirmed list without duplicates.

    Confirmed comments win; a provisional one survives only until a confirmed
    comment carrying its token (or id) arrives. Newest first.
    """
    remote = list(remote)
    merged = {comment.id: comment for comment in remote}
    for comment in local:
        if comment.is_confirmed:
            # Confirmed entries come from the remote list or not at all
            continue
        if any(_matches(comment, r) for r in remote):
            continue
        merged.setdefault(comment.id, comment)
    ordered = sorted(merged.values(), key=lambda c: c.id)
    return sorted(ordered, key=lambda c: c.created_at or _PENDING, reverse=True)


class CommentFeed:
    """Live comment list of one track with optimistic posting."""

    def __init__(
        self,
        track_id: str,
        on_change: Callable[[List[Comment]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        store=None,
    ):
        self.track_id = track_id
        self.on_change = on_change
        self.on_error = on_error
        self.store = store or get_store()
        self.items: List[Comment] = []
        self._remote: List[Comment] = []
        self._pending: Dict[str, Comment] = {}
        self._lock = threading.RLock()
        self._subscription: Optional[Subscription] = None

    def start(self) -> Subscription:
        if self._subscription is None:
            self._subscription = self.store.watch_query(
                comments_query(self.track_id), self._on_remote, self.on_error
            )
        return self._subscription

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()

    def post(self, draft: CommentDraft, now: Optional[datetime] = None) -> Comment:
        """Show ``draft`` immediately, then write it.

        A failed write removes the provisional entry again and re-raises.
        """
        provisional = stage(draft, now=now)
        with self._lock:
            self._pending[provisional.client_token] = provisional
            self._publish()
        try:
            create_comment(provisional, store=self.store)
        except (StoreError, ValueError):
            with self._lock:
                self._pending.pop(provisional.client_token, None)
                self._publish()
            logger.warning("Comment on %s was not saved", self.track_id, exc_info=True)
            raise
        return provisional

    def delete(self, comment_id: str, actor=None) -> None:
        with self._lock:
            for token, comment in list(self._pending.items()):
                if comment.id == comment_id:
                    del self._pending[token]
                    self._publish()
                    return
        delete_comment(self.track_id, comment_id, actor=actor, store=self.store)

    def _on_remote(self, snapshots: List[Snapshot]) -> None:
        with self._lock:
            self._remote = [Comment.from_snapshot(s) for s in snapshots]
            for token, comment in list(self._pending.items()):
                if any(_matches(comment, r) for r in self._remote):
                    del self._pending[token]
            self._publish()

    def _publish(self) -> None:
        self.items = reconcile(self._pending.values(), self._remote)
        try:
            self.on_change(list(self.items))
        except Exception:
            logger.exception("Comment feed listener failed for %s", self.track_id)
