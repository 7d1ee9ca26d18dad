# tests/test_models.py
from datetime import datetime, timezone as dt_timezone

import pytest

from core.exceptions import InvalidReferenceError
from core.store import Snapshot
from messaging.models import (
    Comment,
    EntityKind,
    EntityRef,
    Message,
    ProvisionalId,
    Reply,
    SenderRole,
    tombstone_text,
)


class TestEntityRef:
    def test_message_ref(self):
        ref = EntityRef.message("m1")
        assert ref.kind is EntityKind.MESSAGE
        assert ref.path == "messages/m1"
        assert ref.link == "/messages/m1"
        assert ref.track_id is None

    def test_comment_ref(self):
        ref = EntityRef.comment("t1", "c1")
        assert ref.path == "music/t1/comments/c1"
        assert ref.track_id == "t1"
        assert ref.link == "/music#t1"

    @pytest.mark.parametrize("track_id,comment_id", [("", "c1"), ("t1", None), ("a/b", "c1")])
    def test_malformed_comment_ref(self, track_id, comment_id):
        with pytest.raises(InvalidReferenceError):
            EntityRef.comment(track_id, comment_id)


class TestMessage:
    def test_from_snapshot(self):
        submitted = datetime(2024, 1, 1, tzinfo=dt_timezone.utc)
        replied = datetime(2024, 1, 2, tzinfo=dt_timezone.utc)
        message = Message.from_snapshot(
            Snapshot(
                "messages/m1",
                {
                    "name": "Amina",
                    "fanId": "fan-1",
                    "message": "hello",
                    "submittedAt": submitted,
                    "lastRepliedAt": replied,
                    "likes": ["a", "a", "b"],
                    "reactions": {"🔥": ["a"]},
                },
            )
        )
        assert message.id == "m1"
        assert message.owner_id == "fan-1"
        assert message.likes == ["a", "b"]
        assert message.last_activity == replied
        assert message.ref == EntityRef.message("m1")
        assert not message.is_deleted

    def test_missing_optional_fields(self):
        message = Message.from_snapshot(Snapshot("messages/m1", {"message": "hi"}))
        assert message.owner_id is None
        assert message.last_activity is None
        assert message.replies == []

    def test_tombstone_detection(self):
        message = Message.from_snapshot(Snapshot("messages/m1", {"message": tombstone_text()}))
        assert message.is_deleted


class TestComment:
    def test_track_falls_back_to_path(self):
        comment = Comment.from_snapshot(Snapshot("music/t9/comments/c1", {"content": "x"}))
        assert comment.track_id == "t9"
        assert comment.ref.link == "/music#t9"

    def test_provisional_comment_cannot_be_addressed(self):
        comment = Comment(ident=ProvisionalId("abc"), track_id="t1", body="x")
        assert comment.id == "Tabc"
        with pytest.raises(InvalidReferenceError):
            comment.ref


class TestReply:
    def test_document_round_trip_keeps_role(self):
        reply = Reply(
            id="r1",
            sender_id="admin-1",
            sender_name="",
            text="hey",
            timestamp=None,
            sender_role=SenderRole.OPERATOR,
        )
        restored = Reply.from_document(reply.to_document())
        assert restored == reply
        assert restored.display_name == "Admin"

    def test_legacy_reply_gets_stable_id(self):
        legacy = {"senderId": "u1", "text": "old", "senderType": "fan"}
        assert Reply.from_document(legacy).id == Reply.from_document(dict(legacy)).id

    def test_unknown_role_reads_as_fan(self):
        assert Reply.from_document({"senderType": "robot"}).sender_role is SenderRole.SUBJECT
