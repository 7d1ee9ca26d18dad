# core/store/firestore.py
"""Firestore implementation of the document store port (firebase_admin)."""
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Sequence

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.field_path import FieldPath as FirestoreFieldPath

from core.exceptions import (
    BatchWriteError,
    EntityNotFoundError,
    InvalidReferenceError,
    PermissionDeniedError,
    StoreError,
    TransientStoreError,
)
from core.firebase import get_app
from core.store.base import (
    DELETE_FIELD,
    DESCENDING,
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    Changes,
    DocumentCallback,
    DocumentStore,
    ErrorCallback,
    FieldPath,
    Query,
    QueryCallback,
    Snapshot,
    Subscription,
    Transaction,
)
from core.store.paths import validate_collection_path, validate_document_path

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.RetryError,
    google_exceptions.ResourceExhausted,
    google_exceptions.Aborted,
)


@contextmanager
def translate_errors(path: str, operation: str, data: Optional[Dict[str, Any]] = None):
    """Re-raise google.api_core errors as store errors with path context."""
    try:
        yield
    except StoreError:
        raise
    except google_exceptions.PermissionDenied as e:
        raise PermissionDeniedError(path, operation, data, cause=e) from e
    except google_exceptions.NotFound as e:
        raise EntityNotFoundError(path) from e
    except google_exceptions.InvalidArgument as e:
        raise InvalidReferenceError(path, str(e)) from e
    except _TRANSIENT_ERRORS as e:
        raise TransientStoreError(f"{operation} on '{path}' failed: {e}") from e
    except google_exceptions.GoogleAPICallError as e:
        raise StoreError(f"{operation} on '{path}' failed: {e}") from e


def _to_firestore_value(value: Any) -> Any:
    if value is DELETE_FIELD:
        return firestore.DELETE_FIELD
    if value is SERVER_TIMESTAMP:
        return firestore.SERVER_TIMESTAMP
    if isinstance(value, ArrayUnion):
        return firestore.ArrayUnion(list(value.values))
    if isinstance(value, ArrayRemove):
        return firestore.ArrayRemove(list(value.values))
    if isinstance(value, dict):
        return {k: _to_firestore_value(v) for k, v in value.items()}
    return value


def _to_firestore_key(key: Any) -> str:
    if isinstance(key, FieldPath):
        return FirestoreFieldPath(*key.parts).to_api_repr()
    return key


def to_firestore_changes(changes: Changes) -> Dict[str, Any]:
    return {_to_firestore_key(k): _to_firestore_value(v) for k, v in changes.items()}


def _snapshot(doc) -> Snapshot:
    return Snapshot(path=doc.reference.path, data=doc.to_dict() if doc.exists else None)


class _FirestoreTransaction(Transaction):
    def __init__(self, store: "FirestoreDocumentStore", transaction):
        self._store = store
        self._transaction = transaction

    def get(self, path: str) -> Snapshot:
        ref = self._store.document(path)
        with translate_errors(path, "get"):
            return _snapshot(ref.get(transaction=self._transaction))

    def update(self, path: str, changes: Changes) -> None:
        self._transaction.update(self._store.document(path), to_firestore_changes(changes))

    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        self._transaction.set(
            self._store.document(path), to_firestore_changes(data), merge=merge
        )


class FirestoreDocumentStore(DocumentStore):
    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = firestore.client(app=get_app())
        return self._client

    def document(self, path: str):
        return self.client.document(validate_document_path(path))

    def collection(self, path: str):
        return self.client.collection(validate_collection_path(path))

    def get(self, path: str) -> Snapshot:
        ref = self.document(path)
        with translate_errors(path, "get"):
            return _snapshot(ref.get())

    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        ref = self.document(path)
        with translate_errors(path, "update" if merge else "create", data):
            ref.set(to_firestore_changes(data), merge=merge)

    def update(self, path: str, changes: Changes) -> None:
        ref = self.document(path)
        with translate_errors(path, "update"):
            ref.update(to_firestore_changes(changes))

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        ref = self.collection(collection)
        with translate_errors(collection, "create", data):
            _, doc_ref = ref.add(to_firestore_changes(data))
        return doc_ref.id

    def delete(self, path: str) -> None:
        ref = self.document(path)
        with translate_errors(path, "delete"):
            ref.delete()

    def new_id(self) -> str:
        return self.client.collection("_").document().id

    def _build_query(self, query: Query):
        target = self.collection(query.collection)
        for field_name, op, value in query.filters:
            target = target.where(filter=firestore.FieldFilter(field_name, op, value))
        for field_name, direction in query.order_by:
            target = target.order_by(
                field_name,
                direction=firestore.Query.DESCENDING
                if direction == DESCENDING
                else firestore.Query.ASCENDING,
            )
        if query.limit:
            target = target.limit(query.limit)
        return target

    def query(self, query: Query) -> List[Snapshot]:
        target = self._build_query(query)
        with translate_errors(query.collection, "list"):
            return [_snapshot(doc) for doc in target.stream()]

    def batch_update(self, paths: Sequence[str], changes: Changes) -> None:
        batch = self.client.batch()
        payload = to_firestore_changes(changes)
        for path in paths:
            batch.update(self.document(path), payload)
        try:
            batch.commit()
        except google_exceptions.GoogleAPICallError as e:
            raise BatchWriteError(paths, "update", dict(changes), cause=e) from e

    def run_transaction(self, fn: Callable[[Transaction], Any]) -> Any:
        transaction = self.client.transaction()

        @firestore.transactional
        def _apply(txn):
            return fn(_FirestoreTransaction(self, txn))

        with translate_errors("<transaction>", "write"):
            return _apply(transaction)

    def _deliver(self, subscription, on_error, deliver, payload):
        try:
            deliver(payload)
        except Exception as e:
            logger.exception("Watch callback failed for %s", subscription.description)
            if on_error is not None:
                on_error(e)

    def watch_document(
        self,
        path: str,
        on_change: DocumentCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        ref = self.document(path)
        subscription = Subscription(description=path)
        deliver = subscription.guard(on_change)

        def on_snapshot(docs, changes, read_time):
            snapshot = _snapshot(docs[0]) if docs else Snapshot(path=path)
            self._deliver(subscription, on_error, deliver, snapshot)

        with translate_errors(path, "get"):
            watch = ref.on_snapshot(on_snapshot)
        return subscription.bind(watch.unsubscribe)

    def watch_query(
        self,
        query: Query,
        on_change: QueryCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        target = self._build_query(query)
        subscription = Subscription(description=query.collection)
        deliver = subscription.guard(on_change)

        def on_snapshot(docs, changes, read_time):
            self._deliver(subscription, on_error, deliver, [_snapshot(d) for d in docs])

        with translate_errors(query.collection, "list"):
            watch = target.on_snapshot(on_snapshot)
        return subscription.bind(watch.unsubscribe)
