"""MIME helpers for uploaded media."""

from __future__ import annotations

from ..models import MediaType

ALLOWED_UPLOAD_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

_PREFIXES = {
    "image": MediaType.IMAGE,
    "video": MediaType.VIDEO,
    "application": MediaType.DOCUMENT,
}


def to_media_type(mime_type: str | None) -> MediaType:
    """Map a MIME type such as ``image/png`` onto a :class:`MediaType`."""

    if not mime_type:
        return MediaType.OTHER
    prefix = mime_type.split("/", 1)[0].strip().lower()
    return _PREFIXES.get(prefix, MediaType.OTHER)
