# core/authentication.py
import logging
from typing import Optional, Tuple
from urllib.parse import parse_qs

from asgiref.sync import sync_to_async
from channels.middleware import BaseMiddleware
from firebase_admin import auth as firebase_auth
from rest_framework import authentication, exceptions

from core.exceptions import PermissionDeniedError, StoreError
from core.firebase import get_app
from core.session import AnonymousSession, SessionContext
from core.store import DocumentStore, document_path, get_store
from users import presence

logger = logging.getLogger(__name__)

_TOKEN_ERRORS = (
    firebase_auth.InvalidIdTokenError,
    firebase_auth.RevokedIdTokenError,
    firebase_auth.CertificateFetchError,
    ValueError,
)


def verify_token(id_token: str) -> dict:
    return firebase_auth.verify_id_token(id_token, app=get_app())


def admin_status(store: DocumentStore, uid: str) -> Tuple[bool, bool]:
    """Admins are listed in ``admins/{uid}``; role 'super-admin' escalates."""
    try:
        snapshot = store.get(document_path("admins", uid))
    except PermissionDeniedError:
        # Non-admins are not allowed to read the admins collection
        return False, False
    except StoreError:
        logger.warning("Could not resolve admin status for %s", uid, exc_info=True)
        return False, False
    if not snapshot.exists:
        return False, False
    return True, snapshot.get("role") == "super-admin"


def resolve_session(id_token: str, store: Optional[DocumentStore] = None) -> SessionContext:
    """Start a session: verify the token, resolve admin status, record presence."""
    store = store or get_store()
    try:
        claims = verify_token(id_token)
    except _TOKEN_ERRORS as e:
        logger.info("Rejected Firebase ID token: %s", e)
        raise exceptions.AuthenticationFailed("Invalid or expired token.")

    uid = claims.get("uid") or claims.get("sub")
    if not uid:
        raise exceptions.AuthenticationFailed("Token carries no user id.")

    is_admin, is_super_admin = admin_status(store, uid)
    presence.touch(store, uid)

    return SessionContext(
        uid=uid,
        display_name=claims.get("name", "") or "",
        email=claims.get("email", "") or "",
        photo_url=claims.get("picture", "") or "",
        is_admin=is_admin,
        is_super_admin=is_super_admin,
    )


class FirebaseAuthentication(authentication.BaseAuthentication):
    keyword = "Bearer"

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].lower() != self.keyword.lower().encode():
            return None
        if len(header) != 2:
            raise exceptions.AuthenticationFailed("Invalid Authorization header.")
        try:
            token = header[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed("Invalid token encoding.")
        session = resolve_session(token)
        return session, token

    def authenticate_header(self, request):
        return self.keyword


class FirebaseAuthMiddleware(BaseMiddleware):
    """Resolve the websocket session from a ``?token=`` query parameter."""

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        query = parse_qs(scope.get("query_string", b"").decode())
        token = (query.get("token") or [None])[0]
        scope["user"] = AnonymousSession()
        if token:
            try:
                scope["user"] = await sync_to_async(resolve_session)(token)
            except exceptions.AuthenticationFailed:
                logger.warning("Websocket connection with invalid token")
        return await super().__call__(scope, receive, send)
