# tests/test_overlay.py
from datetime import datetime, timedelta, timezone as dt_timezone

import pytest

from core.exceptions import InvalidReferenceError, PermissionDeniedError, TransientStoreError
from messaging.models import Comment, ConfirmedId
from messaging.services import CommentDraft, CommentFeed, reconcile, stage
from tests.conftest import FAN_UID

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=dt_timezone.utc)


def confirmed(comment_id, created_at, client_token=None, body="hi"):
    return Comment(
        ident=ConfirmedId(comment_id),
        owner_id=FAN_UID,
        body=body,
        created_at=created_at,
        track_id="t1",
        client_token=client_token,
    )


def draft(body="Love this one"):
    return CommentDraft(track_id="t1", body=body, owner_id=FAN_UID, username="Amina")


class TestReconcile:
    def test_confirmed_replaces_provisional_without_duplicates(self):
        local = stage(draft(), now=NOW, client_id="123")
        remote = confirmed("R456", NOW, client_token="123")

        assert local.id == "T123"
        assert not local.is_confirmed

        merged = reconcile([local], [remote])

        assert [c.id for c in merged] == ["R456"]

    def test_unmatched_provisional_stays_until_confirmed(self):
        local = stage(draft(), now=NOW + timedelta(minutes=1), client_id="123")
        older = confirmed("R1", NOW)

        assert [c.id for c in reconcile([local], [older])] == ["T123", "R1"]

    def test_confirmed_local_entries_are_not_resurrected(self):
        deleted_remotely = confirmed("R1", NOW)
        assert reconcile([deleted_remotely], []) == []

    def test_newest_first(self):
        remote = [confirmed("a", NOW), confirmed("b", NOW + timedelta(hours=1))]
        assert [c.id for c in reconcile([], remote)] == ["b", "a"]

    def test_provisional_entity_has_no_reference(self):
        with pytest.raises(InvalidReferenceError):
            stage(draft(), now=NOW).ref


class TestCommentFeed:
    def test_post_shows_provisional_then_confirmed(self, store):
        emissions = []
        feed = CommentFeed("t1", emissions.append)
        feed.start()

        staged = feed.post(draft())

        provisional_views = [v for v in emissions if any(not c.is_confirmed for c in v)]
        assert provisional_views
        assert provisional_views[0][0].id == f"T{staged.client_token}"

        assert len(feed.items) == 1
        posted = feed.items[0]
        assert posted.is_confirmed
        assert posted.client_token == staged.client_token
        assert posted.body == "Love this one"
        feed.close()
        assert store.active_watches == 0

    def test_failed_write_drops_the_provisional_entry(self, store):
        emissions = []
        feed = CommentFeed("t1", emissions.append)
        feed.start()
        store.inject("add", TransientStoreError("offline"))

        with pytest.raises(TransientStoreError):
            feed.post(draft())

        assert feed.items == []
        assert emissions[-1] == []
        assert store.docs == {}

    def test_blank_comment_is_rejected(self, store):
        feed = CommentFeed("t1", lambda items: None)
        feed.start()
        with pytest.raises(ValueError):
            feed.post(draft(body="   "))
        assert feed.items == []

    def test_delete_own_comment(self, store, comment, fan):
        feed = CommentFeed("t1", lambda items: None)
        feed.start()
        assert [c.id for c in feed.items] == ["c1"]

        feed.delete("c1", actor=fan)

        assert feed.items == []

    def test_fans_cannot_delete_other_comments(self, store, comment, other_fan, admin):
        feed = CommentFeed("t1", lambda items: None)
        feed.start()

        with pytest.raises(PermissionDeniedError):
            feed.delete("c1", actor=other_fan)
        feed.delete("c1", actor=admin)
        assert feed.items == []

    def test_listener_errors_do_not_break_the_feed(self, store, comment):
        def explode(items):
            raise RuntimeError("listener bug")

        feed = CommentFeed("t1", explode)
        feed.start()
        assert [c.id for c in feed.items] == ["c1"]
