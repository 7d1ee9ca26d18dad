# core/store/__init__.py
import threading

from django.conf import settings
from django.utils.module_loading import import_string

from .base import (
    ASCENDING,
    DELETE_FIELD,
    DESCENDING,
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    CompositeSubscription,
    DocumentStore,
    FieldPath,
    Query,
    Snapshot,
    Subscription,
    Transaction,
)
from .paths import collection_path, document_path

DEFAULT_BACKEND = "core.store.firestore.FirestoreDocumentStore"

_store = None
_lock = threading.Lock()


def get_store() -> DocumentStore:
    """Return the process-wide document store named by DOCUMENT_STORE_BACKEND."""
    global _store
    if _store is None:
        with _lock:
            if _store is None:
                backend = import_string(
                    getattr(settings, "DOCUMENT_STORE_BACKEND", DEFAULT_BACKEND)
                )
                _store = backend()
    return _store


def set_store(store) -> None:
    global _store
    with _lock:
        _store = store


__all__ = [
    "ASCENDING",
    "DESCENDING",
    "DELETE_FIELD",
    "SERVER_TIMESTAMP",
    "ArrayRemove",
    "ArrayUnion",
    "CompositeSubscription",
    "DocumentStore",
    "FieldPath",
    "Query",
    "Snapshot",
    "Subscription",
    "Transaction",
    "collection_path",
    "document_path",
    "get_store",
    "set_store",
]
