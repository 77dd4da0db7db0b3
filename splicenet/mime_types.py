"""Mapping of file extensions to MIME types."""

from __future__ import annotations

_MAPPINGS = {
    "gif": "image/gif",
    "htm": "text/html",
    "html": "text/html",
    "jpg": "image/jpeg",
    "png": "image/png",
}

DEFAULT_TYPE = "text/plain"


def extension_to_type(extension: str) -> str:
    """The MIME type for a file extension, ``text/plain`` when unknown."""
    return _MAPPINGS.get(extension, DEFAULT_TYPE)