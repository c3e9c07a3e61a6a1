from __future__ import annotations

import re
from threading import Lock
from typing import Any, Mapping, Protocol, Sequence
from urllib.parse import unquote, urlsplit

from .errors import FetchError, ResolutionError
from .models import ContentKind, ContentRef, ContentReference
from .run_log import EventLogger, NullLogger

DEFAULT_WINDOW_SIZE = 100

_KIND_BY_SEGMENT: dict[str, ContentKind] = {
    "videos": ContentKind.VIDEO,
    "video": ContentKind.VIDEO,
    "galleries": ContentKind.GALLERY,
    "gallery": ContentKind.GALLERY,
}

_NUMERIC_RE = re.compile(r"[0-9]+")


class LatestContentSource(Protocol):
    def fetch_latest(self, kind: ContentKind, limit: int) -> Sequence[ContentReference]: ...


def classify_path(url: str) -> tuple[ContentKind, str]:
    """
    Split a deep-link URL into (content kind, slug).

    The first non-empty path segment picks the kind (anything unrecognized is a
    post); the last segment is the slug or numeric id.
    """
    raw = (url or "").strip()
    try:
        path = urlsplit(raw).path
    except ValueError as e:
        raise ResolutionError("invalid_url", f"cannot parse deep link: {raw}", url=raw) from e

    segments = [seg for seg in path.split("/") if seg]
    if not segments:
        raise ResolutionError("empty_path", f"deep link has no path: {raw}", url=raw)

    kind = _KIND_BY_SEGMENT.get(segments[0].lower(), ContentKind.POST)
    return kind, unquote(segments[-1])


def numeric_id(slug: str) -> int | None:
    s = (slug or "").strip()
    if _NUMERIC_RE.fullmatch(s):
        return int(s)
    return None


def url_from_notification(payload: Mapping[str, Any]) -> str | None:
    """
    Find the link carried by a push-notification payload.

    Checked in order: `custom.a.url`, top-level `url`, `additionalData.url`.
    The first non-empty string wins.
    """
    if not isinstance(payload, Mapping):
        return None

    candidates: list[Any] = []

    custom = payload.get("custom")
    if isinstance(custom, Mapping):
        a = custom.get("a")
        if isinstance(a, Mapping):
            candidates.append(a.get("url"))

    candidates.append(payload.get("url"))

    additional = payload.get("additionalData")
    if isinstance(additional, Mapping):
        candidates.append(additional.get("url"))

    for value in candidates:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class DeepLinkResolver:
    """
    Turns shared links and notification payloads into a ContentRef.

    When the link carries no numeric id, only the most recent `window_size`
    items of the link's kind are searched for the slug: the API has no slug
    lookup, and older items are reported as not found rather than paged for.
    Resolutions run one at a time.
    """

    def __init__(
        self,
        source: LatestContentSource,
        *,
        window_size: int = DEFAULT_WINDOW_SIZE,
        logger: EventLogger | None = None,
    ) -> None:
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        self._source = source
        self._window_size = int(window_size)
        self._log = logger or NullLogger()
        self._lock = Lock()

    @property
    def window_size(self) -> int:
        return self._window_size

    def resolve(self, url: str) -> ContentRef:
        with self._lock:
            return self._resolve(url)

    def resolve_notification(self, payload: Mapping[str, Any]) -> ContentRef:
        url = url_from_notification(payload)
        if url is None:
            self._log.warning("notification_without_url")
            raise ResolutionError("no_url", "notification payload carries no URL")
        return self.resolve(url)

    def _resolve(self, url: str) -> ContentRef:
        kind, slug = classify_path(url)

        direct = numeric_id(slug)
        if direct is not None:
            self._log.info("deeplink_resolved", url=url, kind=kind.value, id=direct, via="numeric")
            return ContentRef(kind=kind, id=direct)

        try:
            window = self._source.fetch_latest(kind, self._window_size)
        except FetchError as e:
            self._log.warning(
                "deeplink_not_found",
                url=url,
                kind=kind.value,
                slug=slug,
                cause=type(e).__name__,
            )
            raise ResolutionError("not_found", f"could not search recent {kind.value}s", url=url) from e

        for item in window:
            if item.slug == slug:
                self._log.info("deeplink_resolved", url=url, kind=kind.value, id=item.id, via="window")
                return ContentRef(kind=kind, id=item.id)

        self._log.warning(
            "deeplink_not_found",
            url=url,
            kind=kind.value,
            slug=slug,
            window_size=self._window_size,
            searched=len(window),
        )
        raise ResolutionError(
            "not_found",
            f"{kind.value} '{slug}' is not among the {self._window_size} most recent items",
            url=url,
        )
