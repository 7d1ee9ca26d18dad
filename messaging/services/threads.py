# messaging/services/threads.py
"""
Conversation threads: the per-thread live view and the live inbox.

A thread is a ``messages/{id}`` document plus the presence of the fan who
owns it. Both are watched; every change to either re-emits a fresh view.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings

from core.exceptions import EntityNotFoundError
from core.store import (
    CompositeSubscription,
    Query,
    Snapshot,
    Subscription,
    collection_path,
    document_path,
    get_store,
)
from messaging.models import MESSAGES_COLLECTION, EntityRef, Message, tombstone_text
from notifications.services import notify
from users.presence import FANS_COLLECTION, Presence, presence

from .inbox import ThreadSummary, inbox_order

logger = logging.getLogger(__name__)

DEFAULT_THANK_YOU = "Thank you for your incredible support! It means the world to me."
THANK_YOU_SNIPPET_LENGTH = 50


@dataclass
class Thread:
    message: Message
    owner_presence: Optional[Presence] = None

    @property
    def id(self) -> str:
        return self.message.id

    def as_dict(self) -> Dict[str, Any]:
        message = self.message
        return {
            "id": message.id,
            "name": message.name,
            "email": message.email,
            "fan_id": message.owner_id,
            "message": message.body,
            "submitted_at": message.created_at.isoformat() if message.created_at else None,
            "last_replied_at": (
                message.last_replied_at.isoformat() if message.last_replied_at else None
            ),
            "read": message.read,
            "is_deleted": message.is_deleted,
            "likes": list(message.likes),
            "reactions": message.reactions.as_dict(),
            "replies": [
                {
                    "id": r.id,
                    "sender_id": r.sender_id,
                    "sender_name": r.display_name,
                    "sender_photo_url": r.sender_photo_url,
                    "sender_type": r.sender_role.value,
                    "text": r.text,
                    "timestamp": r.timestamp.isoformat() if r.timestamp else None,
                }
                for r in message.replies
            ],
            "owner_presence": self.owner_presence.as_dict() if self.owner_presence else None,
        }


def message_path(thread_id: str) -> str:
    return document_path(MESSAGES_COLLECTION, thread_id)


def get_thread(thread_id: str, store=None) -> Thread:
    store = store or get_store()
    snapshot = store.get(message_path(thread_id))
    if not snapshot.exists:
        raise EntityNotFoundError(snapshot.path)
    message = Message.from_snapshot(snapshot)
    owner_presence = None
    if message.owner_id:
        profile = store.get(document_path(FANS_COLLECTION, message.owner_id))
        owner_presence = presence(profile.get("lastActive"))
    return Thread(message, owner_presence)


def subscribe_thread(
    thread_id: str,
    callback: Callable[[Optional[Thread]], None],
    on_error: Optional[Callable[[Exception], None]] = None,
    store=None,
) -> Subscription:
    """Live view of one conversation.

    ``callback`` receives a new ``Thread`` whenever the message or its owner's
    profile changes, and ``None`` if the message is deleted. The owner's
    profile watch follows ``fanId`` if it changes.
    """
    store = store or get_store()
    path = message_path(thread_id)
    subscription = CompositeSubscription(f"thread:{thread_id}")
    state = {"message": None, "owner_id": None, "last_active": None}
    # Message and profile watches deliver on their own listener threads
    lock = threading.RLock()

    def emit():
        if not subscription.active:
            return
        message = state["message"]
        if message is None:
            callback(None)
            return
        owner_presence = presence(state["last_active"]) if state["owner_id"] else None
        callback(Thread(message, owner_presence))

    def on_profile(snapshot: Snapshot):
        with lock:
            # Late delivery from the profile of a previous owner
            if snapshot.id != state["owner_id"]:
                return
            state["last_active"] = snapshot.get("lastActive")
            emit()

    def on_message(snapshot: Snapshot):
        with lock:
            apply_message(snapshot)

    def apply_message(snapshot: Snapshot):
        if not snapshot.exists:
            state["message"] = None
            emit()
            return
        message = Message.from_snapshot(snapshot)
        state["message"] = message
        if message.owner_id != state["owner_id"]:
            state["owner_id"] = message.owner_id
            state["last_active"] = None
            if message.owner_id:
                subscription.attach(
                    "owner",
                    store.watch_document(
                        document_path(FANS_COLLECTION, message.owner_id),
                        on_profile,
                        on_error,
                    ),
                )
                # The profile watch delivers its own first snapshot
                return
            subscription.detach("owner")
        emit()

    subscription.attach("message", store.watch_document(path, on_message, on_error))
    return subscription


def inbox_query(owner_scope: Optional[str]) -> Query:
    query = Query(collection_path(MESSAGES_COLLECTION))
    if owner_scope is not None:
        query = query.where("fanId", "==", owner_scope)
    return query


def subscribe_inbox(
    owner_scope: Optional[str],
    callback: Callable[[List[ThreadSummary]], None],
    on_error: Optional[Callable[[Exception], None]] = None,
    store=None,
) -> Subscription:
    """Live, activity-ordered inbox.

    ``owner_scope=None`` is the operator view over every thread, with owner
    presence fed by a watch on the fan profiles. A uid limits the inbox to
    that fan's own threads.
    """
    store = store or get_store()
    subscription = CompositeSubscription(f"inbox:{owner_scope or '*'}")
    state = {"messages": None, "last_active": {}}
    lock = threading.RLock()

    def emit():
        if not subscription.active or state["messages"] is None:
            return
        summaries = []
        for message in state["messages"]:
            owner_presence = None
            if owner_scope is None and message.owner_id:
                owner_presence = presence(state["last_active"].get(message.owner_id))
            summaries.append(ThreadSummary.from_message(message, owner_presence))
        callback(inbox_order(summaries))

    def on_messages(snapshots: List[Snapshot]):
        messages = [Message.from_snapshot(s) for s in snapshots]
        with lock:
            state["messages"] = messages
            emit()

    def on_profiles(snapshots: List[Snapshot]):
        last_active = {s.id: s.get("lastActive") for s in snapshots}
        with lock:
            state["last_active"] = last_active
            emit()

    if owner_scope is None:
        subscription.attach(
            "fans",
            store.watch_query(Query(collection_path(FANS_COLLECTION)), on_profiles, on_error),
        )
    subscription.attach(
        "messages", store.watch_query(inbox_query(owner_scope), on_messages, on_error)
    )
    return subscription


def list_inbox(owner_scope: Optional[str], store=None) -> List[ThreadSummary]:
    store = store or get_store()
    messages = [Message.from_snapshot(s) for s in store.query(inbox_query(owner_scope))]
    last_active = {}
    if owner_scope is None:
        last_active = {
            s.id: s.get("lastActive")
            for s in store.query(Query(collection_path(FANS_COLLECTION)))
        }
    summaries = [
        ThreadSummary.from_message(
            m,
            presence(last_active.get(m.owner_id)) if owner_scope is None and m.owner_id else None,
        )
        for m in messages
    ]
    return inbox_order(summaries)


def create_message(
    name: str,
    email: str,
    body: str,
    fan_id: Optional[str] = None,
    store=None,
) -> str:
    """Open a new thread from the contact form; anonymous senders have no fan_id."""
    name, email, body = (name or "").strip(), (email or "").strip(), (body or "").strip()
    if not name or not email or not body:
        raise ValueError("Name, email and message are all required")
    store = store or get_store()
    message_id = store.add(
        collection_path(MESSAGES_COLLECTION),
        Message.new_document(name, email, body, fan_id=fan_id),
    )
    logger.info("Message %s created (fan=%s)", message_id, fan_id or "anonymous")
    return message_id


def send_thank_you(fan_id: str, store=None) -> str:
    """Start a thread from the artist to ``fan_id`` and tell the fan about it."""
    if not fan_id:
        raise ValueError("A fan id is required")
    store = store or get_store()
    content = getattr(settings, "THANK_YOU_MESSAGE", DEFAULT_THANK_YOU)
    message_id = store.add(
        collection_path(MESSAGES_COLLECTION),
        Message.new_document(
            getattr(settings, "ARTIST_NAME", "Yung Chaf"),
            getattr(settings, "ARTIST_EMAIL", ""),
            content,
            fan_id=fan_id,
        ),
    )
    notify(
        fan_id,
        f'The artist sent you a message: "{content[:THANK_YOU_SNIPPET_LENGTH]}..."',
        EntityRef.message(message_id).link,
        store=store,
    )
    logger.info("Thank-you message %s sent to %s", message_id, fan_id)
    return message_id


def soft_delete_body(thread_id: str, store=None) -> None:
    """Replace the body with the tombstone; replies, likes and reactions stay."""
    store = store or get_store()
    store.update(message_path(thread_id), {"message": tombstone_text()})


def delete_thread(thread_id: str, store=None) -> None:
    store = store or get_store()
    path = message_path(thread_id)
    if not store.get(path).exists:
        raise EntityNotFoundError(path)
    store.delete(path)
    logger.info("Thread %s deleted", thread_id)


def mark_thread_read(thread_id: str, store=None) -> None:
    store = store or get_store()
    store.update(message_path(thread_id), {"read": True})
