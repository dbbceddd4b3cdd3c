"""Post repository – creation, reply bumping and the two read queries."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterator

from .index import ThreadIndex
from .models import Post, PostDecodeError, decode_post, encode_post, new_post_id
from .pagination import Window
from .store import KeyValueStore

logger = logging.getLogger("threadboard.repo")


@dataclass(frozen=True)
class Thread:
    op: Post
    replies: list[Post] = field(default_factory=list)


@dataclass(frozen=True)
class Page:
    posts: list[Post]
    window: Window

    @property
    def page(self) -> int:
        return self.window.page

    @property
    def has_prev(self) -> bool:
        return self.window.has_prev

    @property
    def has_next(self) -> bool:
        return self.window.has_next

    @property
    def prev_page(self) -> int | None:
        return self.window.prev_page

    @property
    def next_page(self) -> int | None:
        return self.window.next_page


class PostRepository:
    """Reads and writes posts through a KeyValueStore.

    Threading is flat: a reply attaches to the post named by its
    ``parent_id`` and only bumps that post when it is an OP. Replying to a
    reply stores the record without bumping anything.
    """

    def __init__(self, store: KeyValueStore, *, index: ThreadIndex | None = None) -> None:
        self.store = store
        self._index = index or ThreadIndex()
        self._indexed = False
        self._index_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self.stats = {"posts": 0, "replies": 0, "bumps": 0, "dangling": 0, "skipped": 0}

    def _count(self, key: str, n: int = 1) -> None:
        with self._stats_lock:
            self.stats[key] += n

    # ── scanning ─────────────────────────────────────────────────

    def scan(self) -> Iterator[Post]:
        """Yield every decodable post. Undecodable records are skipped and counted."""
        for raw in self.store.scan():
            try:
                yield decode_post(raw)
            except PostDecodeError as exc:
                logger.warning("Skipping unreadable record (%d bytes): %s", len(raw), exc)
                self._count("skipped")

    def reindex(self) -> int:
        """Rebuild the thread index with one full scan. Returns posts indexed."""
        with self._index_lock:
            self._index.clear()
            count = 0
            for post in self.scan():
                self._index.add(post)
                count += 1
            self._indexed = True
        logger.info("Indexed %d posts (%d threads)", count, len(self._index))
        return count

    def _ensure_index(self) -> ThreadIndex:
        if not self._indexed:
            self.reindex()
        return self._index

    def _invalidate_index(self) -> None:
        with self._index_lock:
            self._indexed = False

    def _load(self, post_ids: list[str]) -> list[Post]:
        posts = []
        for post_id in post_ids:
            post = self.get(post_id)
            if post is not None:
                posts.append(post)
        return posts

    # ── writes ───────────────────────────────────────────────────

    def create(
        self,
        title: str,
        message: str,
        parent_id: str | None = None,
        file: str | None = None,
        *,
        now: int,
    ) -> str:
        """Store a new post and bump its parent.

        Returns the id the caller should redirect to: the parent for a
        reply, the new post itself for an OP.
        """
        # timestamps are unsigned; the decoder refuses anything else
        if isinstance(now, bool) or not isinstance(now, int) or now < 0:
            raise ValueError(f"now must be a non-negative integer, got {now!r}")
        index = self._ensure_index()
        post = Post(
            id=new_post_id(),
            parent_id=parent_id,
            title=title,
            message=message,
            file=file,
            timestamp=now,
        )
        try:
            self.store.put(post.id, encode_post(post))
            if parent_id is not None:
                self._bump(parent_id, now)
            self.store.flush()
        except Exception:
            # The index may now disagree with what was persisted
            self._invalidate_index()
            raise
        index.add(post)

        self._count("posts")
        if parent_id is None:
            logger.debug("Created thread %s", post.id)
            return post.id
        self._count("replies")
        logger.debug("Created reply %s in %s", post.id, parent_id)
        return parent_id

    def _bump(self, parent_id: str, now: int) -> None:
        state = {"found": False, "op": False}

        def apply(raw: bytes) -> bytes | None:
            state["found"] = True
            try:
                parent = decode_post(raw)
            except PostDecodeError as exc:
                logger.warning("Parent %s is unreadable, not bumping: %s", parent_id, exc)
                return None
            if not parent.is_op:
                return None
            state["op"] = True
            self._index.bump(parent.id, now)
            return encode_post(parent.bumped(now))

        self.store.update(parent_id, apply)
        if not state["found"]:
            logger.info("Reply to missing post %s stored without bump", parent_id)
            self._count("dangling")
        elif state["op"]:
            self._count("bumps")
        else:
            logger.info("Reply to non-OP %s stored without bump", parent_id)

    # ── reads ────────────────────────────────────────────────────

    def get(self, post_id: str) -> Post | None:
        raw = self.store.get(post_id)
        if raw is None:
            return None
        try:
            return decode_post(raw)
        except PostDecodeError as exc:
            logger.warning("Skipping unreadable record %s: %s", post_id, exc)
            self._count("skipped")
            return None

    def get_thread(self, post_id: str) -> Thread | None:
        """Return the post and its direct replies (oldest first), or None if unknown."""
        op = self.get(post_id)
        if op is None:
            return None
        replies = self._load(self._ensure_index().reply_ids(post_id))
        replies.sort(key=lambda p: (p.timestamp, p.id))
        return Thread(op=op, replies=replies)

    def list_top_level(self, page: int, page_size: int) -> Page:
        """Return one page of OPs, most recently bumped first."""
        post_ids, win = self._ensure_index().op_page(page, page_size)
        return Page(posts=self._load(post_ids), window=win)
