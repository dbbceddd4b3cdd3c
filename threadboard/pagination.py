"""Page windows over the bump-ordered thread list."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Window:
    page: int
    start: int
    end: int  # exclusive, already clamped to the total
    has_prev: bool
    has_next: bool

    @property
    def prev_page(self) -> int | None:
        return self.page - 1 if self.has_prev else None

    @property
    def next_page(self) -> int | None:
        return self.page + 1 if self.has_next else None

    def __len__(self) -> int:
        return max(self.end - self.start, 0)


def window(total: int, page: int, page_size: int) -> Window:
    """Compute the slice of ``total`` items shown on ``page``.

    Pages past the last one yield an empty window rather than an error.
    ``page`` is expected to be clamped to >= 0 by the caller; a negative
    page still yields an empty, in-bounds window.
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    start = page * page_size
    end = start + page_size
    lo = min(max(start, 0), total)
    return Window(
        page=page,
        start=lo,
        end=min(max(end, lo), total),
        has_prev=page > 0,
        has_next=end < total,
    )
