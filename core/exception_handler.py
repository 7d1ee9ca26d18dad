# core/exception_handler.py
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import (
    BatchWriteError,
    EntityNotFoundError,
    InvalidReferenceError,
    PermissionDeniedError,
    TransientStoreError,
)

logger = logging.getLogger(__name__)


def store_exception_handler(exc, context):
    """Map document store errors to contextual, non-fatal API responses."""
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, PermissionDeniedError):
        logger.warning("Permission denied: %s", exc)
        return Response(
            {"error": "permission_denied", "detail": str(exc), "context": exc.as_context()},
            status=status.HTTP_403_FORBIDDEN,
        )
    if isinstance(exc, InvalidReferenceError):
        return Response(
            {"error": "invalid_reference", "detail": str(exc)},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, EntityNotFoundError):
        return Response(
            {"error": "not_found", "detail": str(exc)},
            status=status.HTTP_404_NOT_FOUND,
        )
    if isinstance(exc, BatchWriteError):
        logger.error("Batch write failed: %s", exc)
        return Response(
            {"error": "batch_failed", "detail": str(exc), "retry": exc.as_context()},
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, TransientStoreError):
        logger.warning("Transient store failure: %s", exc)
        return Response(
            {"error": "unavailable", "detail": "The data store is temporarily unavailable."},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if isinstance(exc, ValueError):
        return Response({"error": "invalid", "detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return None
