# core/store/base.py
"""
Document store port.

Services talk to the shared document store only through ``DocumentStore``.
Mutations are expressed with field operations (``ArrayUnion``, ``ArrayRemove``,
``DELETE_FIELD``, ``SERVER_TIMESTAMP``) so that concurrent writers merge at the
field level instead of overwriting each other's documents.
"""
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


class _Sentinel:
    def __init__(self, name: str):
        self.name = name

    def __repr__(self):
        return self.name


DELETE_FIELD = _Sentinel("DELETE_FIELD")
SERVER_TIMESTAMP = _Sentinel("SERVER_TIMESTAMP")

ASCENDING = "ASCENDING"
DESCENDING = "DESCENDING"


@dataclass(frozen=True)
class ArrayUnion:
    """Append values not already present in the stored array."""

    values: Tuple[Any, ...]

    def __init__(self, values: Sequence[Any]):
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class ArrayRemove:
    """Remove every stored element equal to one of ``values``."""

    values: Tuple[Any, ...]

    def __init__(self, values: Sequence[Any]):
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class FieldPath:
    """Nested field reference whose parts may hold any character (emoji keys)."""

    parts: Tuple[str, ...]

    def __init__(self, *parts: str):
        if not parts or any(not isinstance(p, str) or not p for p in parts):
            raise ValueError(f"Invalid field path parts: {parts!r}")
        object.__setattr__(self, "parts", tuple(parts))


FieldKey = Union[str, FieldPath]
Changes = Dict[FieldKey, Any]


def split_field(key: FieldKey) -> Tuple[str, ...]:
    if isinstance(key, FieldPath):
        return key.parts
    return tuple(key.split("."))


@dataclass
class Snapshot:
    path: str
    data: Optional[Dict[str, Any]] = None

    @property
    def exists(self) -> bool:
        return self.data is not None

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def get(self, key: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(key, default)


@dataclass(frozen=True)
class Query:
    """Immutable description of a collection query."""

    collection: str
    filters: Tuple[Tuple[str, str, Any], ...] = ()
    order_by: Tuple[Tuple[str, str], ...] = ()
    limit: Optional[int] = None

    def where(self, field_name: str, op: str, value: Any) -> "Query":
        return replace(self, filters=self.filters + ((field_name, op, value),))

    def order(self, field_name: str, direction: str = ASCENDING) -> "Query":
        return replace(self, order_by=self.order_by + ((field_name, direction),))

    def take(self, limit: Optional[int]) -> "Query":
        return replace(self, limit=limit)


class Subscription:
    """Handle for a live watch.

    Delivery stops as soon as ``unsubscribe`` returns. Unsubscribing twice is
    harmless. Listeners are never released implicitly; owners must call
    ``unsubscribe`` (or use the handle as a context manager).
    """

    def __init__(self, description: str = ""):
        self.description = description
        self._cancel: Optional[Callable[[], None]] = None
        self._active = True
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._active

    def bind(self, cancel: Callable[[], None]) -> "Subscription":
        with self._lock:
            self._cancel = cancel
            already_closed = not self._active
        if already_closed:
            cancel()
        return self

    def guard(self, callback: Callable[..., Any]) -> Callable[..., Any]:
        def deliver(*args, **kwargs):
            if not self._active:
                return None
            return callback(*args, **kwargs)

        return deliver

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            cancel = self._cancel
        if cancel is not None:
            try:
                cancel()
            except Exception:
                logger.exception("Error releasing watch %s", self.description)
        logger.debug("Released watch %s", self.description)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()
        return False

    def __repr__(self):
        state = "active" if self._active else "closed"
        return f"<Subscription {self.description} {state}>"


class CompositeSubscription(Subscription):
    """Owns several child subscriptions and releases them together.

    Children may be attached from watch callbacks on other threads; a child
    attached after (or while) the composite is released is released too.
    """

    def __init__(self, description: str = ""):
        super().__init__(description)
        self.children: Dict[str, Subscription] = {}
        self._children_lock = threading.Lock()
        self.bind(self._release_children)

    def attach(self, key: str, child: Subscription) -> None:
        with self._children_lock:
            previous = self.children.pop(key, None)
            rejected = None
            if self.active:
                self.children[key] = child
            else:
                rejected = child
        if previous is not None:
            previous.unsubscribe()
        if rejected is not None:
            rejected.unsubscribe()

    def detach(self, key: str) -> None:
        with self._children_lock:
            child = self.children.pop(key, None)
        if child is not None:
            child.unsubscribe()

    def _release_children(self) -> None:
        with self._children_lock:
            released = list(self.children.values())
            self.children.clear()
        for child in released:
            child.unsubscribe()


DocumentCallback = Callable[[Snapshot], None]
QueryCallback = Callable[[List[Snapshot]], None]
ErrorCallback = Callable[[Exception], None]


class Transaction(ABC):
    @abstractmethod
    def get(self, path: str) -> Snapshot:
        ...

    @abstractmethod
    def update(self, path: str, changes: Changes) -> None:
        ...

    @abstractmethod
    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        ...


class DocumentStore(ABC):
    """Port for the hosted document database with live-watch."""

    @abstractmethod
    def get(self, path: str) -> Snapshot:
        ...

    @abstractmethod
    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        ...

    @abstractmethod
    def update(self, path: str, changes: Changes) -> None:
        ...

    @abstractmethod
    def add(self, collection: str, data: Dict[str, Any]) -> str:
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        ...

    @abstractmethod
    def new_id(self) -> str:
        ...

    @abstractmethod
    def query(self, query: Query) -> List[Snapshot]:
        ...

    @abstractmethod
    def batch_update(self, paths: Sequence[str], changes: Changes) -> None:
        """Apply ``changes`` to every path atomically or not at all."""

    @abstractmethod
    def run_transaction(self, fn: Callable[[Transaction], Any]) -> Any:
        ...

    @abstractmethod
    def watch_document(
        self,
        path: str,
        on_change: DocumentCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        ...

    @abstractmethod
    def watch_query(
        self,
        query: Query,
        on_change: QueryCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        ...
