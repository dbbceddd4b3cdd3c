"""In-memory thread indexes kept alongside the store.

The store has no secondary indexes, so answering "replies of X" or "OPs in
bump order" would otherwise need a full scan per request. ``ThreadIndex``
holds both answers and is updated incrementally as posts are written.
"""

from __future__ import annotations

import bisect
import threading
from collections import defaultdict

from .models import Post
from .pagination import Window, window

# (-timestamp, id): ascending order is newest bump first, ties by id
BumpKey = tuple[int, str]


class ThreadIndex:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._children: defaultdict[str, list[tuple[int, str]]] = defaultdict(list)
        self._bump_order: list[BumpKey] = []
        self._op_keys: dict[str, BumpKey] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._bump_order)

    def add(self, post: Post) -> None:
        """Record a post. Adding the same post twice is a no-op."""
        with self._lock:
            if post.is_op:
                if post.id not in self._op_keys:
                    self._set_bump(post.id, post.timestamp)
                return
            siblings = self._children[post.parent_id]
            key = (post.timestamp, post.id)
            i = bisect.bisect_left(siblings, key)
            if i == len(siblings) or siblings[i] != key:
                siblings.insert(i, key)

    def bump(self, op_id: str, timestamp: int) -> None:
        with self._lock:
            if op_id in self._op_keys:
                self._set_bump(op_id, timestamp)

    def _set_bump(self, op_id: str, timestamp: int) -> None:
        old = self._op_keys.get(op_id)
        if old is not None:
            i = bisect.bisect_left(self._bump_order, old)
            if i < len(self._bump_order) and self._bump_order[i] == old:
                del self._bump_order[i]
        key = (-timestamp, op_id)
        bisect.insort(self._bump_order, key)
        self._op_keys[op_id] = key

    def reply_ids(self, parent_id: str) -> list[str]:
        """Ids of direct replies, oldest first."""
        with self._lock:
            return [post_id for _, post_id in self._children.get(parent_id, ())]

    def op_page(self, page: int, page_size: int) -> tuple[list[str], Window]:
        """Ids of the OPs shown on ``page``, newest bump first."""
        with self._lock:
            win = window(len(self._bump_order), page, page_size)
            return [post_id for _, post_id in self._bump_order[win.start:win.end]], win

    def clear(self) -> None:
        with self._lock:
            self._children.clear()
            self._bump_order.clear()
            self._op_keys.clear()
