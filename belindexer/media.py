"""Media kinds of inscription content types."""

from __future__ import annotations

import enum
from typing import Tuple


class Media(enum.Enum):
    """How a piece of content is presented."""

    AUDIO = "audio"
    IFRAME = "iframe"
    IMAGE = "image"
    PDF = "pdf"
    TEXT = "text"
    UNKNOWN = "unknown"
    VIDEO = "video"


_TABLE: Tuple[Tuple[str, Media, Tuple[str, ...]], ...] = (
    ("application/json", Media.TEXT, ("json",)),
    ("application/json; charset=utf-8", Media.TEXT, ("json",)),
    ("application/json;charset=utf-8", Media.TEXT, ("json",)),
    ("application/pdf", Media.PDF, ("pdf",)),
    ("application/pgp-signature", Media.TEXT, ("asc",)),
    ("application/yaml", Media.TEXT, ("yaml", "yml")),
    ("audio/flac", Media.AUDIO, ("flac",)),
    ("audio/mpeg", Media.AUDIO, ("mp3",)),
    ("audio/wav", Media.AUDIO, ("wav",)),
    ("image/apng", Media.IMAGE, ("apng",)),
    ("image/avif", Media.IMAGE, ()),
    ("image/gif", Media.IMAGE, ("gif",)),
    ("image/jpeg", Media.IMAGE, ("jpg", "jpeg")),
    ("image/png", Media.IMAGE, ("png",)),
    ("image/svg+xml", Media.IFRAME, ("svg",)),
    ("image/webp", Media.IMAGE, ("webp",)),
    ("model/gltf-binary", Media.UNKNOWN, ("glb",)),
    ("model/stl", Media.UNKNOWN, ("stl",)),
    ("text/html;charset=utf-8", Media.IFRAME, ("html",)),
    ("text/html; charset=utf-8", Media.IFRAME, ("html",)),
    ("text/plain;charset=utf-8", Media.TEXT, ("txt",)),
    ("text/plain; charset=utf-8", Media.TEXT, ("txt",)),
    ("text/plain", Media.TEXT, ("txt",)),
    ("video/mp4", Media.VIDEO, ("mp4",)),
    ("video/webm", Media.VIDEO, ("webm",)),
)

_BY_TYPE = {content_type: (media, exts) for content_type, media, exts in _TABLE}


def media_from_content_type(content_type: str) -> Media:
    """Return the media kind of an exact content type string."""
    try:
        return _BY_TYPE[content_type][0]
    except KeyError:
        raise ValueError(f"unknown content type: {content_type}") from None


def content_type_extensions(content_type: str) -> Tuple[str, ...]:
    """Return the file extensions known for a content type."""
    try:
        return _BY_TYPE[content_type][1]
    except KeyError:
        raise ValueError(f"unknown content type: {content_type}") from None