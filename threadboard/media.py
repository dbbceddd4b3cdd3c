"""Attachment classification – decide how a stored file is rendered."""

from __future__ import annotations

from enum import Enum


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    OTHER = "other"


# Case-sensitive: "photo.JPG" is OTHER, as the renderer only embeds these.
_SUFFIXES: tuple[tuple[str, MediaKind], ...] = (
    (".jpg", MediaKind.IMAGE),
    (".jpeg", MediaKind.IMAGE),
    (".png", MediaKind.IMAGE),
    (".gif", MediaKind.IMAGE),
    (".webp", MediaKind.IMAGE),
    (".mp4", MediaKind.VIDEO),
    (".webm", MediaKind.VIDEO),
    (".mp3", MediaKind.AUDIO),
)

# Matches the upload form's accept list
ACCEPTED_EXTENSIONS: tuple[str, ...] = (".jpg", ".gif", ".png", ".mp3", ".mp4", ".webm", ".webp")

MIME_MAP: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mp3": "audio/mpeg",
}


def classify(filename: str) -> MediaKind:
    """Map a stored filename to exactly one MediaKind."""
    for suffix, kind in _SUFFIXES:
        if filename.endswith(suffix):
            return kind
    return MediaKind.OTHER


def extension(filename: str) -> str:
    """Return the dotted extension of ``filename`` or "" when it has none."""
    base = filename.rsplit("/", 1)[-1]
    if "." not in base.lstrip("."):
        return ""
    return "." + base.rsplit(".", 1)[-1]


def mime_type(filename: str) -> str:
    return MIME_MAP.get(extension(filename), "application/octet-stream")
