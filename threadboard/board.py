"""Board service – wires config, store, repository and attachment storage."""

from __future__ import annotations

import logging
import time

from .config import BoardConfig
from .forms import Submission, validate_submission
from .repository import Page, PostRepository, Thread
from .store import KeyValueStore, open_store
from .uploads import MediaStorage, StoredMedia, open_media_storage, public_url

logger = logging.getLogger("threadboard.board")


class Board:
    """Entry point used by request handlers and the CLI."""

    def __init__(
        self,
        cfg: BoardConfig | None = None,
        *,
        store: KeyValueStore | None = None,
        media: MediaStorage | None = None,
    ) -> None:
        self.cfg = cfg or BoardConfig.from_env()
        self.store = store if store is not None else open_store(self.cfg)
        self.repo = PostRepository(self.store)
        self._media = media
        self.images = 0

    @property
    def media(self) -> MediaStorage:
        # Opened lazily: only uploads and thumbnail lookups need a storage client
        if self._media is None:
            self._media = open_media_storage(self.cfg)
        return self._media

    @property
    def stats(self) -> dict[str, int]:
        return {**self.repo.stats, "images": self.images}

    # ── writes ───────────────────────────────────────────────────

    def submit(
        self,
        submission: Submission,
        upload: bytes | None = None,
        *,
        now: int | None = None,
    ) -> str:
        """Validate and store a post. Returns the id to redirect to."""
        sub = validate_submission(submission, self.cfg)
        stored: StoredMedia | None = None
        if upload is not None and sub.filename:
            stored = self.media.save(sub.filename, upload)
            self.images += 1
        return self.repo.create(
            sub.title,
            sub.message,
            sub.parent_id,
            stored.filename if stored else None,
            now=int(time.time()) if now is None else now,
        )

    # ── reads ────────────────────────────────────────────────────

    def thread(self, post_id: str) -> Thread | None:
        return self.repo.get_thread(post_id)

    def page(self, page: int = 0) -> Page:
        return self.repo.list_top_level(max(page, 0), self.cfg.page_size)

    def media_url(self, filename: str) -> str:
        if self._media is not None:
            return self._media.url_for(filename)
        return public_url(self.cfg, filename)

    def thumb_url(self, filename: str) -> str | None:
        """URL of the thumbnail made for ``filename``, or None if there is none."""
        thumb = self.media.thumbnail_for(filename)
        return self.media_url(thumb) if thumb else None

    # ── lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        if self._media is not None:
            self._media.close()
        self.store.close()

    def __enter__(self) -> Board:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
