"""Post entity and its on-disk serialization."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, replace
from typing import Any

from .media import MediaKind, classify

SCHEMA_VERSION = 1


class PostDecodeError(ValueError):
    """A stored record could not be turned back into a Post."""


@dataclass(frozen=True)
class Post:
    id: str
    title: str
    message: str
    parent_id: str | None = None
    file: str | None = None
    timestamp: int = 0  # bump time for OPs, creation time for replies

    @property
    def is_op(self) -> bool:
        return self.parent_id is None

    @property
    def media_kind(self) -> MediaKind | None:
        return classify(self.file) if self.file else None

    def bumped(self, timestamp: int) -> Post:
        return replace(self, timestamp=timestamp)


def new_post_id() -> str:
    return str(uuid.uuid4())


def encode_post(post: Post) -> bytes:
    return json.dumps(
        {
            "v": SCHEMA_VERSION,
            "id": post.id,
            "parent_id": post.parent_id,
            "title": post.title,
            "message": post.message,
            "file": post.file,
            "timestamp": post.timestamp,
        },
        separators=(",", ":"),
    ).encode("utf-8")


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise PostDecodeError(f"{key} must be a string, got {type(value).__name__}")
    return value


def decode_post(raw: bytes) -> Post:
    """Decode a stored record.

    Unknown keys are ignored and missing ones default, so records written
    before a field existed (notably ``timestamp``) still load.
    """
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PostDecodeError(str(exc)) from exc
    if not isinstance(data, dict):
        raise PostDecodeError("record is not a JSON object")

    post_id = _optional_str(data, "id")
    if not post_id:
        raise PostDecodeError("record has no id")

    timestamp = data.get("timestamp", 0)
    if isinstance(timestamp, bool) or not isinstance(timestamp, int) or timestamp < 0:
        raise PostDecodeError(f"invalid timestamp: {timestamp!r}")

    return Post(
        id=post_id,
        parent_id=_optional_str(data, "parent_id"),
        title=_optional_str(data, "title") or "",
        message=_optional_str(data, "message") or "",
        file=_optional_str(data, "file"),
        timestamp=timestamp,
    )
