"""Pagination window boundaries."""
import pytest

from threadboard.pagination import window


class TestWindow:
    def test_empty_total(self):
        win = window(0, 0, 10)
        assert (win.start, win.end) == (0, 0)
        assert len(win) == 0
        assert not win.has_prev
        assert not win.has_next

    def test_exactly_one_page(self):
        win = window(10, 0, 10)
        assert (win.start, win.end) == (0, 10)
        assert not win.has_next

    def test_one_over_a_page(self):
        first = window(11, 0, 10)
        assert len(first) == 10
        assert first.has_next
        assert not first.has_prev

        second = window(11, 1, 10)
        assert (second.start, second.end) == (10, 11)
        assert second.has_prev
        assert not second.has_next

    def test_page_past_the_end_is_empty(self):
        win = window(5, 3, 10)
        assert len(win) == 0
        assert win.has_prev
        assert not win.has_next

    def test_navigation_tokens(self):
        win = window(25, 1, 10)
        assert win.prev_page == 0
        assert win.next_page == 2
        assert window(25, 0, 10).prev_page is None
        assert window(25, 2, 10).next_page is None

    @pytest.mark.parametrize("page_size", [0, -1])
    def test_rejects_non_positive_page_size(self, page_size):
        with pytest.raises(ValueError):
            window(10, 0, page_size)

    @pytest.mark.parametrize("page", [-1, -3])
    def test_negative_page_is_empty_and_in_bounds(self, page):
        win = window(25, page, 10)
        assert len(win) == 0
        assert 0 <= win.start <= win.end <= 25
        assert not win.has_prev
