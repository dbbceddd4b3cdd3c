"""Submission fields – validation applied before a post reaches the repository."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .config import BoardConfig


class SubmissionError(ValueError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


@dataclass(frozen=True)
class Submission:
    title: str
    message: str
    parent_id: str | None = None
    filename: str | None = None  # name of the uploaded file as sent by the client


def validate_submission(sub: Submission, cfg: BoardConfig) -> Submission:
    """Return a cleaned copy of ``sub`` or raise SubmissionError."""
    title = sub.title.strip()
    message = sub.message.strip()
    if not title:
        raise SubmissionError("title", "is required")
    if len(title) > cfg.title_max_length:
        raise SubmissionError("title", f"must be at most {cfg.title_max_length} characters")
    if not message:
        raise SubmissionError("message", "is required")
    if len(message) > cfg.message_max_length:
        raise SubmissionError("message", f"must be at most {cfg.message_max_length} characters")
    return replace(
        sub,
        title=title,
        message=message,
        parent_id=(sub.parent_id or "").strip() or None,
        filename=(sub.filename or "").strip() or None,
    )
