# tests/conftest.py
from datetime import datetime, timezone as dt_timezone

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from core.session import SessionContext
from core.store import set_store
from tests.fakes.memory_store import MemoryDocumentStore

ADMIN_UID = "admin-1"
FAN_UID = "fan-1"
OTHER_FAN_UID = "fan-2"


@pytest.fixture(autouse=True)
def clear_throttles():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def store():
    store = MemoryDocumentStore()
    set_store(store)
    yield store
    set_store(None)


@pytest.fixture
def admin():
    return SessionContext(uid=ADMIN_UID, display_name="Chaf", is_admin=True)


@pytest.fixture
def fan():
    return SessionContext(uid=FAN_UID, display_name="Amina", photo_url="https://img/amina.png")


@pytest.fixture
def other_fan():
    return SessionContext(uid=OTHER_FAN_UID, display_name="Brian")


@pytest.fixture
def message(store):
    """A fan's message thread at messages/m1."""
    store.seed(
        "messages/m1",
        {
            "name": "Amina",
            "email": "amina@example.com",
            "fanId": FAN_UID,
            "message": "Your last single has been on repeat all week!",
            "submittedAt": datetime(2024, 1, 1, 9, 0, tzinfo=dt_timezone.utc),
            "read": False,
            "likes": [],
            "reactions": {},
            "replies": [],
        },
    )
    return "m1"


@pytest.fixture
def comment(store):
    """A fan's comment on track t1 at music/t1/comments/c1."""
    store.seed(
        "music/t1/comments/c1",
        {
            "fanId": FAN_UID,
            "username": "Amina",
            "photoURL": "",
            "content": "Best track on the album",
            "commentDate": datetime(2024, 1, 1, 10, 0, tzinfo=dt_timezone.utc),
            "musicId": "t1",
            "likes": [],
            "reactions": {},
            "replies": [],
        },
    )
    return "c1"


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def fan_client(api_client, fan):
    api_client.force_authenticate(user=fan)
    return api_client


@pytest.fixture
def admin_client(admin):
    client = APIClient()
    client.force_authenticate(user=admin)
    return client

