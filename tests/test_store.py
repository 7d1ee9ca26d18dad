# tests/test_store.py
import threading

import pytest

from core.exceptions import BatchWriteError, EntityNotFoundError, InvalidReferenceError, TransientStoreError
from core.store import (
    DELETE_FIELD,
    DESCENDING,
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    CompositeSubscription,
    FieldPath,
    Query,
    Subscription,
    collection_path,
    document_path,
)
from core.store.firestore import to_firestore_changes


class TestPaths:
    def test_document_path_joins_segments(self):
        assert document_path("music", "t1", "comments", "c1") == "music/t1/comments/c1"

    @pytest.mark.parametrize(
        "segments",
        [
            ("messages", None),
            ("messages", ""),
            ("messages", "undefined"),
            ("messages", "a/b"),
            ("messages",),
        ],
    )
    def test_malformed_document_paths_fail_before_any_call(self, segments):
        with pytest.raises(InvalidReferenceError):
            document_path(*segments)

    def test_collection_path_needs_odd_segments(self):
        assert collection_path("fans", "u1", "notifications") == "fans/u1/notifications"
        with pytest.raises(InvalidReferenceError):
            collection_path("fans", "u1")

    def test_invalid_reference_is_a_value_error(self):
        with pytest.raises(ValueError):
            document_path("messages", "null")


class TestSubscription:
    def test_unsubscribe_is_idempotent_and_stops_delivery(self):
        released = []
        received = []
        subscription = Subscription("messages/m1")
        deliver = subscription.guard(received.append)
        subscription.bind(lambda: released.append(True))

        deliver(1)
        subscription.unsubscribe()
        subscription.unsubscribe()
        deliver(2)

        assert received == [1]
        assert released == [True]
        assert not subscription.active

    def test_context_manager_releases(self):
        released = []
        with Subscription("q").bind(lambda: released.append(True)):
            pass
        assert released == [True]

    def test_composite_swaps_and_releases_children(self):
        parent = CompositeSubscription("thread")
        first, second = Subscription("a"), Subscription("b")
        parent.attach("owner", first)
        parent.attach("owner", second)
        assert not first.active and second.active

        parent.unsubscribe()
        assert not second.active

        late = Subscription("late")
        parent.attach("owner", late)
        assert not late.active

    def test_attach_racing_release_never_leaks(self):
        parent = CompositeSubscription("inbox")
        attached = []
        start = threading.Barrier(5)

        def attach_many(worker):
            start.wait()
            for i in range(200):
                child = Subscription(f"{worker}-{i}")
                attached.append(child)
                parent.attach(f"{worker}-{i}", child)

        workers = [threading.Thread(target=attach_many, args=(n,)) for n in range(4)]
        for worker in workers:
            worker.start()
        start.wait()
        parent.unsubscribe()
        for worker in workers:
            worker.join()

        assert parent.children == {}
        assert not any(child.active for child in attached)


class TestMemoryStore:
    def test_field_operations(self, store):
        store.seed("messages/m1", {"likes": ["a"], "reactions": {"🔥": ["a"]}})

        store.update(
            "messages/m1",
            {
                "likes": ArrayUnion(["a", "b"]),
                FieldPath("reactions", "🔥"): DELETE_FIELD,
                FieldPath("reactions", "👏"): ArrayUnion(["b"]),
                "lastRepliedAt": SERVER_TIMESTAMP,
            },
        )

        data = store.data("messages/m1")
        assert data["likes"] == ["a", "b"]
        assert data["reactions"] == {"👏": ["b"]}
        assert data["lastRepliedAt"] == store.now

        store.update("messages/m1", {"likes": ArrayRemove(["a"])})
        assert store.data("messages/m1")["likes"] == ["b"]

    def test_update_of_missing_document_raises(self, store):
        with pytest.raises(EntityNotFoundError):
            store.update("messages/missing", {"read": True})

    def test_merge_set_keeps_other_fields(self, store):
        store.seed("fans/u1", {"displayName": "Amina"})
        store.set("fans/u1", {"lastActive": SERVER_TIMESTAMP}, merge=True)
        assert store.data("fans/u1") == {"displayName": "Amina", "lastActive": store.now}

    def test_query_filters_orders_and_limits(self, store):
        for i, read in enumerate([False, True, False]):
            store.seed(f"fans/u1/notifications/n{i}", {"read": read, "timestamp": i})
        store.seed("fans/u2/notifications/x", {"read": False, "timestamp": 9})

        query = (
            Query("fans/u1/notifications")
            .where("read", "==", False)
            .order("timestamp", DESCENDING)
            .take(1)
        )
        assert [s.id for s in store.query(query)] == ["n2"]

    def test_batch_is_all_or_nothing(self, store):
        store.seed("fans/u1/notifications/a", {"read": False})
        store.seed("fans/u1/notifications/b", {"read": False})
        store.inject("batch", TransientStoreError("offline"))

        with pytest.raises(BatchWriteError):
            store.batch_update(
                ["fans/u1/notifications/a", "fans/u1/notifications/b"], {"read": True}
            )
        assert store.data("fans/u1/notifications/a")["read"] is False
        assert store.data("fans/u1/notifications/b")["read"] is False

    def test_transaction_retries_after_concurrent_write(self, store):
        store.seed("messages/m1", {"count": 0})
        store.interleave = lambda s: s.update("messages/m1", {"count": 10})

        def increment(transaction):
            current = transaction.get("messages/m1").get("count")
            transaction.update("messages/m1", {"count": current + 1})

        store.run_transaction(increment)
        assert store.data("messages/m1")["count"] == 11
        assert store.transaction_attempts == 2

    def test_watch_delivers_until_unsubscribed(self, store):
        seen = []
        subscription = store.watch_document("messages/m1", lambda s: seen.append(s.exists))
        store.seed("messages/other", {})
        store.set("messages/m1", {"message": "hi"})
        subscription.unsubscribe()
        store.update("messages/m1", {"read": True})

        assert seen == [False, True]
        assert store.active_watches == 0


def test_firestore_changes_quote_emoji_keys():
    changes = to_firestore_changes({FieldPath("reactions", "🔥"): ArrayUnion(["u1"]), "read": True})
    keys = list(changes)
    assert keys[1] == "read"
    assert keys[0].startswith("reactions.")
    assert "🔥" in keys[0]
