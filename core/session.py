# core/session.py
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from core.store import Subscription

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    """Identity of the signed-in user for one request or websocket connection.

    Built explicitly by the authentication layer and handed to services. Live
    watches opened on behalf of the session are registered with ``own`` and
    released by ``close`` at sign-out / disconnect.
    """

    uid: str
    display_name: str = ""
    email: str = ""
    photo_url: str = ""
    is_admin: bool = False
    is_super_admin: bool = False
    _subscriptions: List[Subscription] = field(default_factory=list, repr=False)
    _closed: bool = field(default=False, repr=False)

    # DRF / channels treat request.user as a django user-like object
    is_authenticated = True
    is_anonymous = False

    @property
    def id(self) -> str:
        return self.uid

    @property
    def pk(self) -> str:
        return self.uid

    @property
    def username(self) -> str:
        return self.display_name or self.email or self.uid

    def name_or(self, fallback: str) -> str:
        return self.display_name or fallback

    @property
    def closed(self) -> bool:
        return self._closed

    def own(self, subscription: Subscription) -> Subscription:
        if self._closed:
            subscription.unsubscribe()
        else:
            self._subscriptions.append(subscription)
        return subscription

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        while self._subscriptions:
            self._subscriptions.pop().unsubscribe()
        logger.debug("Closed session for %s", self.uid)

    def __str__(self):
        return self.username


class AnonymousSession:
    uid: Optional[str] = None
    id = None
    pk = None
    display_name = ""
    email = ""
    photo_url = ""
    is_admin = False
    is_super_admin = False
    is_authenticated = False
    is_anonymous = True
    username = "anonymous"

    def close(self) -> None:
        pass

    def __str__(self):
        return self.username
