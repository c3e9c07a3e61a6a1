from __future__ import annotations

import time
from dataclasses import replace
from enum import Enum
from typing import Callable, Generic, Sequence, TypeVar

from .errors import FetchError
from .models import SearchSession
from .run_log import EventLogger, NullLogger

T = TypeVar("T")

Clock = Callable[[], float]

DEFAULT_DEBOUNCE_SECONDS = 0.5


class SearchState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    IN_FLIGHT = "in_flight"
    APPLIED = "applied"
    CANCELLED = "cancelled"
    FAILED = "failed"


class SearchController(Generic[T]):
    """
    Debounced, cancelable full-text search for one search box.

    Every submitted query bumps a generation counter. A fetch result is applied
    only when its ticket still carries the current generation and was not
    cancelled, so a slow response for an older query can never replace the
    results of a newer one. Cancellation is logical: a request already sent is
    allowed to finish, its result is just dropped.

    The controller owns no timer. Callers drive it with `poll()` / `run_due()`,
    and time comes from the injected clock.
    """

    def __init__(
        self,
        fetch: Callable[[str], Sequence[T]],
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Clock | None = None,
        logger: EventLogger | None = None,
    ) -> None:
        if debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")
        self._fetch = fetch
        self._debounce = float(debounce_seconds)
        self._clock = clock or time.monotonic
        self._log = logger or NullLogger()

        self._generation = 0
        self._session: SearchSession | None = None
        self._deadline: float | None = None
        self._state = SearchState.IDLE
        self._results: tuple[T, ...] = ()
        self._error: FetchError | None = None

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def session(self) -> SearchSession | None:
        return self._session

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def results(self) -> tuple[T, ...]:
        return self._results

    @property
    def error(self) -> FetchError | None:
        return self._error

    @property
    def failed(self) -> bool:
        return self._state is SearchState.FAILED

    def submit(self, query: str) -> SearchSession | None:
        """
        Register new input and restart the debounce window.

        Any request still in flight for an earlier query becomes stale. An empty
        query clears the visible results and returns to idle.
        """
        q = (query or "").strip()
        self._generation += 1

        if not q:
            self._session = None
            self._deadline = None
            self._results = ()
            self._error = None
            self._state = SearchState.IDLE
            return None

        self._session = SearchSession(query=q, generation=self._generation)
        self._deadline = self._clock() + self._debounce
        self._state = SearchState.DEBOUNCING
        return self._session

    def cancel(self) -> None:
        if self._session is None or self._session.cancelled:
            return
        self._session = replace(self._session, cancelled=True)
        self._deadline = None
        self._state = SearchState.CANCELLED

    def poll(self) -> SearchSession | None:
        """Return the session to fetch once its debounce window has elapsed, else None."""
        if self._state is not SearchState.DEBOUNCING or self._session is None:
            return None
        if self._deadline is not None and self._clock() < self._deadline:
            return None
        self._deadline = None
        self._state = SearchState.IN_FLIGHT
        return self._session

    def is_current(self, ticket: SearchSession) -> bool:
        s = self._session
        return s is not None and not s.cancelled and ticket.generation == s.generation

    def complete(self, ticket: SearchSession, results: Sequence[T]) -> bool:
        if not self._accepts(ticket):
            return False
        self._results = tuple(results)
        self._error = None
        self._state = SearchState.APPLIED
        return True

    def fail(self, ticket: SearchSession, error: FetchError) -> bool:
        if not self._accepts(ticket):
            return False
        # Any failure clears to empty; stale results are never left on screen.
        self._results = ()
        self._error = error
        self._state = SearchState.FAILED
        self._log.warning(
            "search_failed",
            query=ticket.query,
            generation=ticket.generation,
            error_type=type(error).__name__,
        )
        return True

    def run_due(self) -> bool:
        """Fetch and apply the pending query if its debounce window elapsed."""
        ticket = self.poll()
        if ticket is None:
            return False
        try:
            found = self._fetch(ticket.query)
        except FetchError as e:
            return self.fail(ticket, e)
        return self.complete(ticket, found)

    def search_now(self, query: str) -> bool:
        """Submit and fetch immediately, skipping the debounce window (explicit submit)."""
        if self.submit(query) is None:
            return False
        self._deadline = None
        return self.run_due()

    def _accepts(self, ticket: SearchSession) -> bool:
        if self.is_current(ticket) and self._state is SearchState.IN_FLIGHT:
            return True
        self._log.info(
            "search_result_discarded",
            query=ticket.query,
            generation=ticket.generation,
            current_generation=self._generation,
        )
        return False
