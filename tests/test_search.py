from __future__ import annotations

import unittest

from newsreader.errors import TransportError
from newsreader.search import SearchController, SearchState


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _FakeSearch:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.fail_next: Exception | None = None

    def __call__(self, query: str) -> list[str]:
        self.queries.append(query)
        if self.fail_next is not None:
            err, self.fail_next = self.fail_next, None
            raise err
        return [f"{query}-1", f"{query}-2"]


def _controller() -> tuple[SearchController[str], _FakeSearch, _FakeClock]:
    fetch = _FakeSearch()
    clock = _FakeClock()
    return SearchController(fetch, debounce_seconds=0.5, clock=clock), fetch, clock


class TestSearchDebounce(unittest.TestCase):
    def test_typing_within_window_fetches_once(self) -> None:
        c, fetch, clock = _controller()
        c.submit("a")
        clock.advance(0.2)
        c.submit("ab")
        self.assertFalse(c.run_due())

        clock.advance(0.6)
        self.assertTrue(c.run_due())
        self.assertEqual(fetch.queries, ["ab"])
        self.assertEqual(c.results, ("ab-1", "ab-2"))
        self.assertIs(c.state, SearchState.APPLIED)

    def test_empty_query_clears(self) -> None:
        c, fetch, _ = _controller()
        c.search_now("kar")
        self.assertTrue(c.results)
        self.assertIsNone(c.submit("   "))
        self.assertEqual(c.results, ())
        self.assertIs(c.state, SearchState.IDLE)


class TestSearchOrdering(unittest.TestCase):
    def test_late_response_for_old_query_is_dropped(self) -> None:
        c, _, clock = _controller()
        c.submit("old")
        clock.advance(1)
        old = c.poll()
        assert old is not None

        c.submit("new")
        clock.advance(1)
        new = c.poll()
        assert new is not None

        self.assertTrue(c.complete(new, ["new result"]))
        self.assertFalse(c.complete(old, ["old result"]))
        self.assertEqual(c.results, ("new result",))

    def test_cancel_discards_in_flight_result(self) -> None:
        c, _, clock = _controller()
        c.submit("kar")
        clock.advance(1)
        ticket = c.poll()
        assert ticket is not None

        c.cancel()
        self.assertFalse(c.complete(ticket, ["x"]))
        self.assertIs(c.state, SearchState.CANCELLED)
        self.assertEqual(c.results, ())

    def test_failure_clears_previous_results(self) -> None:
        c, fetch, _ = _controller()
        c.search_now("kar")
        self.assertEqual(len(c.results), 2)

        fetch.fail_next = TransportError("offline")
        c.search_now("yağmur")
        self.assertTrue(c.failed)
        self.assertEqual(c.results, ())
        self.assertIsInstance(c.error, TransportError)

    def test_stale_failure_is_ignored(self) -> None:
        c, _, clock = _controller()
        c.submit("a")
        clock.advance(1)
        stale = c.poll()
        assert stale is not None
        c.search_now("b")

        self.assertFalse(c.fail(stale, TransportError("late")))
        self.assertIs(c.state, SearchState.APPLIED)
        self.assertIsNone(c.error)


if __name__ == "__main__":
    unittest.main()
