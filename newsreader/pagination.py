from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, Generic, Optional, Sequence, TypeVar

from .errors import FetchError
from .models import (
    AuthorArticle,
    AuthorProfile,
    CommentNode,
    ListingMode,
    PaginationCursor,
    SearchMode,
)
from .run_log import EventLogger, NullLogger

if TYPE_CHECKING:
    from .gateway import ContentGateway

T = TypeVar("T")

# (page, page_size, search query or None) -> one page of items
PageFetcher = Callable[[int, int, Optional[str]], Sequence[T]]


@dataclass(frozen=True)
class PageRequest:
    page: int
    page_size: int
    mode: ListingMode | SearchMode
    generation: int
    append: bool

    @property
    def query(self) -> str | None:
        return self.mode.query if isinstance(self.mode, SearchMode) else None


class PagedListSession(Generic[T]):
    """
    Incremental ("load more") pagination over one list surface.

    A reload, or a switch between plain listing and search, starts a new
    generation at page 1. `load_more` runs only while the cursor has more pages
    and no page fetch is in flight. A short or empty page ends the cursor, and a
    failed page fetch rolls the page back and ends it as well, so a broken page
    boundary is never retried in a loop. Only a reload revives the cursor.
    """

    def __init__(
        self,
        fetch_page: PageFetcher[T],
        *,
        page_size: int = 12,
        logger: EventLogger | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._fetch_page = fetch_page
        self._page_size = int(page_size)
        self._log = logger or NullLogger()

        self._generation = 0
        # Nothing is loadable until the first reload fetches page 1.
        self._cursor = PaginationCursor(page=1, page_size=self._page_size, has_more=False)
        self._items: tuple[T, ...] = ()
        self._error: FetchError | None = None
        self._loading = False
        self._loading_more = False

    @property
    def cursor(self) -> PaginationCursor:
        return self._cursor

    @property
    def items(self) -> tuple[T, ...]:
        return self._items

    @property
    def error(self) -> FetchError | None:
        return self._error

    @property
    def has_more(self) -> bool:
        return self._cursor.has_more

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def is_loading_more(self) -> bool:
        return self._loading_more

    def begin_reload(self, mode: ListingMode | SearchMode | None = None) -> PageRequest:
        mode = mode or ListingMode()
        self._generation += 1
        self._cursor = PaginationCursor(page=1, page_size=self._page_size, has_more=True, mode=mode)
        self._error = None
        self._loading = True
        self._loading_more = False
        return PageRequest(
            page=1,
            page_size=self._page_size,
            mode=mode,
            generation=self._generation,
            append=False,
        )

    def begin_load_more(self) -> PageRequest | None:
        if not self._cursor.has_more or self._loading or self._loading_more:
            return None
        self._cursor = replace(self._cursor, page=self._cursor.page + 1)
        self._loading_more = True
        return PageRequest(
            page=self._cursor.page,
            page_size=self._page_size,
            mode=self._cursor.mode,
            generation=self._generation,
            append=True,
        )

    def complete(self, request: PageRequest, page_items: Sequence[T]) -> bool:
        if not self._accepts(request):
            return False

        received = tuple(page_items)
        if request.append:
            self._items = self._items + received
            self._loading_more = False
        else:
            self._items = received
            self._loading = False

        if len(received) < request.page_size:
            self._cursor = replace(self._cursor, has_more=False)
            self._log.info(
                "pagination_exhausted",
                page=request.page,
                received=len(received),
                total=len(self._items),
            )
        return True

    def fail(self, request: PageRequest, error: FetchError) -> bool:
        if not self._accepts(request):
            return False

        self._error = error
        if request.append:
            self._cursor = replace(self._cursor, page=self._cursor.page - 1, has_more=False)
            self._loading_more = False
        else:
            self._items = ()
            self._cursor = replace(self._cursor, has_more=False)
            self._loading = False

        self._log.warning(
            "page_fetch_failed",
            page=request.page,
            append=request.append,
            error_type=type(error).__name__,
        )
        return True

    def reload(self) -> bool:
        return self._run(self.begin_reload(ListingMode()))

    def search(self, query: str) -> bool:
        q = (query or "").strip()
        if not q:
            return self.reload()
        return self._run(self.begin_reload(SearchMode(query=q)))

    def load_more(self) -> bool:
        """Fetch the next page; returns False without fetching when not eligible."""
        request = self.begin_load_more()
        if request is None:
            return False
        return self._run(request)

    def _run(self, request: PageRequest) -> bool:
        try:
            page_items = self._fetch_page(request.page, request.page_size, request.query)
        except FetchError as e:
            return self.fail(request, e)
        return self.complete(request, page_items)

    def _accepts(self, request: PageRequest) -> bool:
        if request.generation == self._generation:
            return True
        self._log.info(
            "page_result_discarded",
            page=request.page,
            generation=request.generation,
            current_generation=self._generation,
        )
        return False


def author_listing(
    gateway: "ContentGateway", *, page_size: int = 12, logger: EventLogger | None = None
) -> PagedListSession[AuthorProfile]:
    def _fetch(page: int, size: int, query: str | None) -> Sequence[AuthorProfile]:
        return gateway.fetch_authors(page=page, per_page=size, search=query)

    return PagedListSession(_fetch, page_size=page_size, logger=logger)


def author_articles(
    gateway: "ContentGateway",
    author_id: int,
    *,
    limit: int = 10,
    logger: EventLogger | None = None,
) -> PagedListSession[AuthorArticle]:
    def _fetch(page: int, size: int, query: str | None) -> Sequence[AuthorArticle]:
        return gateway.fetch_author_articles(author_id, page=page, limit=size)

    return PagedListSession(_fetch, page_size=limit, logger=logger)


def comment_thread(
    gateway: "ContentGateway",
    reference_id: int,
    reference_type: str,
    *,
    per_page: int = 20,
    logger: EventLogger | None = None,
) -> PagedListSession[CommentNode]:
    def _fetch(page: int, size: int, query: str | None) -> Sequence[CommentNode]:
        return gateway.fetch_comments(reference_id, reference_type, page=page, per_page=size)

    return PagedListSession(_fetch, page_size=per_page, logger=logger)
