# messaging/models/identifiers.py
from dataclasses import dataclass
from typing import Union

from django.conf import settings


def provisional_prefix() -> str:
    return getattr(settings, "PROVISIONAL_ID_PREFIX", "T")


@dataclass(frozen=True)
class ProvisionalId:
    """Client-chosen id of an entity staged locally and not yet confirmed."""

    client_id: str

    confirmed = False

    @property
    def wire(self) -> str:
        return f"{provisional_prefix()}{self.client_id}"

    def __str__(self):
        return self.wire


@dataclass(frozen=True)
class ConfirmedId:
    """Server-assigned document id."""

    server_id: str

    confirmed = True

    @property
    def wire(self) -> str:
        return self.server_id

    def __str__(self):
        return self.server_id


EntityId = Union[ProvisionalId, ConfirmedId]
