from __future__ import annotations

import unittest

from newsreader.errors import ServerError, TransportError
from newsreader.models import ListingMode, SearchMode
from newsreader.pagination import PagedListSession


class _FakePages:
    """Serves `total` numbered items in pages; optionally fails a given page once."""

    def __init__(self, total: int) -> None:
        self.total = total
        self.calls: list[tuple[int, int, str | None]] = []
        self.fail_pages: dict[int, Exception] = {}

    def __call__(self, page: int, page_size: int, query: str | None) -> list[int]:
        self.calls.append((page, page_size, query))
        err = self.fail_pages.pop(page, None)
        if err is not None:
            raise err
        start = (page - 1) * page_size
        return list(range(start, min(start + page_size, self.total)))


class TestPagedListSession(unittest.TestCase):
    def test_short_second_page_ends_pagination(self) -> None:
        pages = _FakePages(17)
        session = PagedListSession(pages, page_size=12)

        session.reload()
        self.assertEqual(len(session.items), 12)
        self.assertTrue(session.has_more)

        self.assertTrue(session.load_more())
        self.assertEqual(len(session.items), 17)
        self.assertFalse(session.has_more)
        self.assertEqual(session.cursor.page, 2)

        self.assertFalse(session.load_more())
        self.assertEqual(len(pages.calls), 2)

    def test_empty_first_page_then_load_more_is_noop(self) -> None:
        pages = _FakePages(0)
        session = PagedListSession(pages, page_size=12)
        session.reload()
        self.assertEqual(session.items, ())
        self.assertFalse(session.has_more)
        self.assertFalse(session.load_more())
        self.assertEqual(len(pages.calls), 1)

    def test_load_more_before_first_reload_is_noop(self) -> None:
        pages = _FakePages(40)
        session = PagedListSession(pages, page_size=12)
        self.assertFalse(session.has_more)
        self.assertFalse(session.load_more())
        self.assertEqual(pages.calls, [])

        session.reload()
        self.assertEqual([c[0] for c in pages.calls], [1])
        self.assertEqual(session.items[0], 0)

    def test_empty_load_more_page_ends_pagination(self) -> None:
        pages = _FakePages(24)
        session = PagedListSession(pages, page_size=12)
        session.reload()

        self.assertTrue(session.load_more())
        self.assertTrue(session.has_more)
        self.assertEqual(len(session.items), 24)

        self.assertTrue(session.load_more())
        self.assertFalse(session.has_more)
        self.assertEqual(len(session.items), 24)
        self.assertEqual(session.cursor.page, 3)

        self.assertFalse(session.load_more())
        self.assertEqual([c[0] for c in pages.calls], [1, 2, 3])

    def test_failed_load_more_rolls_back_and_keeps_items(self) -> None:
        pages = _FakePages(40)
        session = PagedListSession(pages, page_size=12)
        session.reload()

        pages.fail_pages[2] = TransportError("timeout")
        self.assertTrue(session.load_more())
        self.assertEqual(len(session.items), 12)
        self.assertEqual(session.cursor.page, 1)
        self.assertFalse(session.has_more)
        self.assertIsInstance(session.error, TransportError)

        # Only a reload revives the cursor.
        self.assertFalse(session.load_more())
        session.reload()
        self.assertTrue(session.has_more)
        self.assertIsNone(session.error)

    def test_failed_reload_clears_items(self) -> None:
        pages = _FakePages(40)
        session = PagedListSession(pages, page_size=12)
        session.reload()
        pages.fail_pages[1] = ServerError("down", status_code=500)
        session.reload()
        self.assertEqual(session.items, ())
        self.assertFalse(session.has_more)
        self.assertFalse(session.is_loading)

    def test_load_more_refused_while_loading(self) -> None:
        session = PagedListSession(_FakePages(40), page_size=12)
        session.begin_reload()
        self.assertIsNone(session.begin_load_more())

        session = PagedListSession(_FakePages(40), page_size=12)
        session.reload()
        first = session.begin_load_more()
        self.assertIsNotNone(first)
        self.assertTrue(session.is_loading_more)
        self.assertIsNone(session.begin_load_more())

    def test_stale_page_after_mode_switch_is_discarded(self) -> None:
        session = PagedListSession(_FakePages(40), page_size=12)
        old = session.begin_reload(ListingMode())
        new = session.begin_reload(SearchMode(query="ali"))

        self.assertFalse(session.complete(old, list(range(12))))
        self.assertTrue(session.complete(new, [1, 2]))
        self.assertEqual(session.items, (1, 2))
        self.assertEqual(session.cursor.mode, SearchMode(query="ali"))
        self.assertFalse(session.has_more)

    def test_search_passes_query_and_blank_search_reloads(self) -> None:
        pages = _FakePages(5)
        session = PagedListSession(pages, page_size=12)
        session.search(" ali ")
        session.search("   ")
        self.assertEqual([c[2] for c in pages.calls], ["ali", None])
        self.assertEqual(session.cursor.mode, ListingMode())

    def test_rejects_non_positive_page_size(self) -> None:
        with self.assertRaises(ValueError):
            PagedListSession(_FakePages(1), page_size=0)


if __name__ == "__main__":
    unittest.main()
