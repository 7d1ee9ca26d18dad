# core/exceptions.py
from typing import Any, Dict, Iterable, Optional


class StoreError(Exception):
    """Base class for document store failures."""

    pass


class PermissionDeniedError(StoreError):
    """Raised when the store's access policy rejects a read, write or watch."""

    def __init__(
        self,
        path: str,
        operation: str,
        request_data: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.path = path
        self.operation = operation
        self.request_data = request_data
        self.cause = cause
        super().__init__(
            f"Missing or insufficient permissions: {operation} on '{path}'"
        )

    def as_context(self) -> Dict[str, Any]:
        context = {"path": self.path, "operation": self.operation}
        if self.request_data is not None:
            context["request_data"] = self.request_data
        return context


class InvalidReferenceError(StoreError, ValueError):
    """Raised locally, before any remote call, for a malformed document path."""

    def __init__(self, path: Any, reason: str = "malformed reference"):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid document reference '{path}': {reason}")


class TransientStoreError(StoreError):
    """Network or availability failure. Callers decide whether to retry."""

    pass


class EntityNotFoundError(StoreError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No document at '{path}'")


class BatchWriteError(StoreError):
    """A multi-document batch was rejected as a whole.

    Carries every path in the batch and the attempted operation so the caller
    can report exactly what failed and retry it.
    """

    def __init__(
        self,
        paths: Iterable[str],
        operation: str,
        data: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.paths = list(paths)
        self.operation = operation
        self.data = data or {}
        self.cause = cause
        first = self.paths[0] if self.paths else "<empty batch>"
        super().__init__(
            f"Batch {operation} of {len(self.paths)} document(s) failed "
            f"(first: '{first}'): {cause}"
        )

    def as_context(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "paths": self.paths,
            "data": self.data,
            "reason": str(self.cause) if self.cause else None,
        }
