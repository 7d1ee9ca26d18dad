# tests/test_firestore_store.py
from datetime import datetime, timezone as dt_timezone

import pytest
from google.api_core import exceptions as google_exceptions

from core.exceptions import StoreError, TransientStoreError
from core.store.firestore import FirestoreDocumentStore, translate_errors
from messaging.models import EntityRef
from messaging.services import toggle_like
from notifications.services import notify
from tests.conftest import ADMIN_UID, FAN_UID


class _Reference:
    def __init__(self, path):
        self.path = path


class _Document:
    def __init__(self, path, data):
        self.reference = _Reference(path)
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class _DocumentRef:
    def __init__(self, client, path):
        self._client = client
        self.path = path

    def get(self, transaction=None):
        return _Document(self.path, self._client.docs.get(self.path))

    def update(self, changes):
        self._client.updates.append((self.path, changes))


class _CollectionRef:
    def __init__(self, client, path):
        self._client = client
        self.path = path

    def add(self, data):
        raise self._client.add_error


class QuotaExhaustedClient:
    """Firestore client double whose collection writes run out of quota."""

    def __init__(self, docs=None):
        self.docs = dict(docs or {})
        self.updates = []
        self.add_error = google_exceptions.ResourceExhausted("quota exceeded")

    def document(self, path):
        return _DocumentRef(self, path)

    def collection(self, path):
        return _CollectionRef(self, path)


@pytest.fixture
def firestore_store():
    return FirestoreDocumentStore(
        client=QuotaExhaustedClient(
            {
                "messages/m1": {
                    "name": "Amina",
                    "fanId": FAN_UID,
                    "message": "Your last single has been on repeat all week!",
                    "submittedAt": datetime(2024, 1, 1, 9, 0, tzinfo=dt_timezone.utc),
                    "likes": [],
                    "reactions": {},
                    "replies": [],
                }
            }
        )
    )


class TestTranslateErrors:
    @pytest.mark.parametrize(
        "error",
        [
            google_exceptions.ResourceExhausted("quota exceeded"),
            google_exceptions.Aborted("contention"),
            google_exceptions.ServiceUnavailable("down"),
        ],
    )
    def test_retryable_api_errors_are_transient(self, error):
        with pytest.raises(TransientStoreError):
            with translate_errors("fans/u1/notifications", "create"):
                raise error

    def test_other_api_errors_become_store_errors(self):
        with pytest.raises(StoreError) as excinfo:
            with translate_errors("messages/m1", "update"):
                raise google_exceptions.Unauthenticated("expired token")
        assert not isinstance(excinfo.value, TransientStoreError)
        assert "messages/m1" in str(excinfo.value)

    def test_unrelated_errors_pass_through(self):
        with pytest.raises(KeyError):
            with translate_errors("messages/m1", "get"):
                raise KeyError("likes")


def test_add_out_of_quota_raises_transient_error(firestore_store):
    with pytest.raises(TransientStoreError):
        firestore_store.add("fans/u1/notifications", {"content": "hi"})


def test_notify_swallows_quota_errors(firestore_store):
    assert notify(FAN_UID, "hello", "/fan-messages/m1", store=firestore_store) is None


def test_like_survives_failed_notification(firestore_store, admin):
    likes = toggle_like(EntityRef.message("m1"), admin, store=firestore_store)

    assert likes == [ADMIN_UID]
    [(path, changes)] = firestore_store.client.updates
    assert path == "messages/m1"
    assert list(changes) == ["likes"]
