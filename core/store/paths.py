# core/store/paths.py
from typing import Any, Tuple

from core.exceptions import InvalidReferenceError

_PLACEHOLDER_SEGMENTS = {"undefined", "null", "None"}


def _check_segment(segment: Any, whole: str) -> str:
    if segment is None:
        raise InvalidReferenceError(whole, "missing path segment")
    if not isinstance(segment, str):
        segment = str(segment)
    segment = segment.strip()
    if not segment:
        raise InvalidReferenceError(whole, "empty path segment")
    if "/" in segment:
        raise InvalidReferenceError(whole, f"segment '{segment}' contains '/'")
    if segment in _PLACEHOLDER_SEGMENTS:
        raise InvalidReferenceError(whole, f"placeholder segment '{segment}'")
    return segment


def _join(segments: Tuple[Any, ...]) -> str:
    whole = "/".join("" if s is None else str(s) for s in segments)
    return "/".join(_check_segment(s, whole) for s in segments)


def document_path(*segments: Any) -> str:
    """Build a validated document path, e.g. ``document_path("messages", mid)``."""
    path = _join(segments)
    if len(segments) % 2 != 0:
        raise InvalidReferenceError(path, "document paths need an even number of segments")
    return path


def collection_path(*segments: Any) -> str:
    path = _join(segments)
    if len(segments) % 2 != 1:
        raise InvalidReferenceError(path, "collection paths need an odd number of segments")
    return path


def validate_document_path(path: Any) -> str:
    if not isinstance(path, str) or not path:
        raise InvalidReferenceError(path, "document path must be a non-empty string")
    return document_path(*path.split("/"))


def validate_collection_path(path: Any) -> str:
    if not isinstance(path, str) or not path:
        raise InvalidReferenceError(path, "collection path must be a non-empty string")
    return collection_path(*path.split("/"))


def parent_collection(path: str) -> str:
    return path.rsplit("/", 1)[0]
