from __future__ import annotations

import json
from typing import Any, Callable, Mapping, TypeVar

from . import endpoints
from .endpoints import Endpoint
from .errors import (
    ClientError,
    DecodeError,
    FetchError,
    ServerError,
    TransportError,
    UnexpectedFormat,
)
from .models import (
    ArticleDetail,
    AuthorArticle,
    AuthorProfile,
    CommentCount,
    CommentNode,
    ContentKind,
    ContentReference,
    CurrencyRate,
    Gallery,
    GalleryDetail,
    LeagueStandings,
    NewComment,
    Pharmacy,
    Post,
    PostDetail,
    PrayerTimes,
    SiteSettings,
    Video,
    VideoDetail,
    WeatherReport,
)
from .normalize import (
    article_detail_from_payload,
    author_article_from_payload,
    author_profile_from_payload,
    comment_count_from_payload,
    comment_from_payload,
    currency_from_payload,
    gallery_detail_from_payload,
    gallery_from_payload,
    leagues_from_payload,
    list_of,
    optional_comment_from_payload,
    pharmacy_from_payload,
    post_detail_from_payload,
    post_from_payload,
    prayer_times_from_payload,
    settings_from_payload,
    standings_from_payload,
    unwrap_envelope,
    video_detail_from_payload,
    video_from_payload,
    weather_from_payload,
)
from .run_log import EventLogger, NullLogger
from .transport import HttpResponse, Transport

T = TypeVar("T")

_TEXT_CONTENT_TYPES = ("text/html", "text/plain")


def _data(decode: Callable[[Any], T]) -> Callable[[Any], T]:
    def _decode_envelope(payload: Any) -> T:
        return decode(unwrap_envelope(payload))

    return _decode_envelope


def _optional_data(decode: Callable[[Any], T]) -> Callable[[Any], T]:
    def _decode_envelope(payload: Any) -> T:
        if not isinstance(payload, Mapping):
            raise DecodeError("<root>", "expected an object")
        return decode(payload.get("data"))

    return _decode_envelope


def _body_text(resp: HttpResponse) -> str:
    return (resp.body or b"").decode("utf-8", errors="replace")


def extract_error_message(body: bytes) -> str | None:
    """Best-effort `message` from a JSON error body; None when the body is not such JSON."""
    try:
        parsed = json.loads(body or b"")
    except ValueError:
        return None
    if isinstance(parsed, Mapping):
        msg = parsed.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return None


def classify_response(resp: HttpResponse, *, url: str | None = None) -> None:
    """
    Raise the FetchError matching a failed response; return None on success.

    Success needs a 2xx status and a body that is not HTML or plain text. The
    backend sometimes serves an HTML error page with status 200, so the content
    type and the body's first character are both checked.
    """
    status = int(resp.status_code)
    content_type = resp.content_type.lower()
    is_text = any(t in content_type for t in _TEXT_CONTENT_TYPES)
    looks_html = _body_text(resp).lstrip().startswith("<")

    if 200 <= status < 300 and not is_text and not looks_html:
        return

    message = extract_error_message(resp.body)

    if status >= 500:
        raise ServerError(
            message or f"Server error ({status}). Please try again later.",
            status_code=status,
            url=url,
        )
    if 400 <= status < 500:
        raise ClientError(message or f"HTTP {status}", status_code=status, url=url)
    if is_text or looks_html:
        raise UnexpectedFormat(
            f"Server returned HTML instead of JSON (HTTP {status})",
            status_code=status,
            url=url,
        )
    raise UnexpectedFormat(f"Unexpected HTTP status {status}", status_code=status, url=url)


class ContentGateway:
    """
    Performs one logical content request and returns the normalized result.

    Failures surface as classified FetchError subclasses. No retries happen here.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        base_url: str,
        api_key: str | None = None,
        default_city: str = "istanbul",
        default_district: str | None = None,
        default_league: str = "super-lig",
        logger: EventLogger | None = None,
    ) -> None:
        self._transport = transport
        self._base_url = (base_url or "").rstrip("/")
        self._api_key = api_key
        self._default_city = default_city
        self._default_district = default_district
        self._default_league = default_league
        self._log = logger or NullLogger()

    def url_for(self, endpoint: Endpoint) -> str:
        return endpoint.url(self._base_url, api_key=self._api_key)

    def fetch(self, endpoint: Endpoint, decode: Callable[[Any], T]) -> T:
        url = self.url_for(endpoint)
        log_url = endpoint.url(self._base_url)

        try:
            if endpoint.method == "POST":
                resp = self._transport.post_json(url, endpoint.json_body or {})
            else:
                resp = self._transport.get(url)
        except TransportError as e:
            # Rebuilt from the key-free URL; the transport saw the authenticated one.
            cause = e.__cause__ if e.__cause__ is not None else e
            safe = TransportError(
                f"{endpoint.method} {log_url} failed: {type(cause).__name__}", url=log_url
            )
            self._log.error(
                "fetch_failed", url=log_url, error_type="TransportError", message=str(safe)
            )
            raise safe from e
        except FetchError as e:
            self._log.error("fetch_failed", url=log_url, error_type=type(e).__name__)
            raise

        try:
            classify_response(resp, url=log_url)
        except FetchError as e:
            self._log.error(
                "fetch_failed",
                url=log_url,
                error_type=type(e).__name__,
                status_code=resp.status_code,
                message=str(e),
            )
            raise

        try:
            payload = json.loads(resp.body)
        except ValueError as e:
            self._log.error("fetch_failed", url=log_url, error_type="UnexpectedFormat")
            raise UnexpectedFormat(
                f"Response body is not valid JSON: {e}",
                status_code=resp.status_code,
                url=log_url,
            ) from e

        try:
            return decode(payload)
        except DecodeError as e:
            e.url = log_url
            self._log.error("decode_failed", url=log_url, field=e.field, message=str(e))
            raise

    # Posts

    def fetch_posts(self) -> list[Post]:
        return self.fetch(endpoints.posts(), _data(list_of(post_from_payload)))

    def fetch_headlines(self) -> list[Post]:
        return self.fetch(endpoints.headlines(), _data(list_of(post_from_payload)))

    def fetch_top_headlines(self) -> list[Post]:
        return self.fetch(endpoints.top_headlines(), _data(list_of(post_from_payload)))

    def fetch_breaking_news(self) -> list[Post]:
        return self.fetch(endpoints.breaking_news(), _data(list_of(post_from_payload)))

    def fetch_latest_posts(self, limit: int | None = None) -> list[Post]:
        return self.fetch(endpoints.latest_posts(limit), _data(list_of(post_from_payload)))

    def fetch_featured_posts(self) -> list[Post]:
        return self.fetch(endpoints.featured_posts(), _data(list_of(post_from_payload)))

    def fetch_popular_posts(self) -> list[Post]:
        return self.fetch(endpoints.popular_posts(), _data(list_of(post_from_payload)))

    def fetch_post_detail(self, post_id: int) -> PostDetail:
        return self.fetch(endpoints.post_detail(post_id), _data(post_detail_from_payload))

    def search_posts(self, query: str) -> list[Post]:
        return self.fetch(endpoints.search_posts(query), _data(list_of(post_from_payload)))

    # Galleries

    def fetch_galleries(self) -> list[Gallery]:
        return self.fetch(endpoints.galleries(), _data(list_of(gallery_from_payload)))

    def fetch_latest_galleries(self, limit: int | None = None) -> list[Gallery]:
        return self.fetch(endpoints.latest_galleries(limit), _data(list_of(gallery_from_payload)))

    def fetch_featured_galleries(self) -> list[Gallery]:
        return self.fetch(endpoints.featured_galleries(), _data(list_of(gallery_from_payload)))

    def fetch_gallery_detail(self, gallery_id: int) -> GalleryDetail:
        return self.fetch(endpoints.gallery_detail(gallery_id), _data(gallery_detail_from_payload))

    # Videos

    def fetch_videos(self) -> list[Video]:
        return self.fetch(endpoints.videos(), _data(list_of(video_from_payload)))

    def fetch_latest_videos(self, limit: int | None = None) -> list[Video]:
        return self.fetch(endpoints.latest_videos(limit), _data(list_of(video_from_payload)))

    def fetch_featured_videos(self) -> list[Video]:
        return self.fetch(endpoints.featured_videos(), _data(list_of(video_from_payload)))

    def fetch_trend_videos(self) -> list[Video]:
        return self.fetch(endpoints.trend_videos(), _data(list_of(video_from_payload)))

    def fetch_video_detail(self, video_id: int) -> VideoDetail:
        return self.fetch(endpoints.video_detail(video_id), _data(video_detail_from_payload))

    def search_videos(self, query: str) -> list[Video]:
        return self.fetch(endpoints.search_videos(query), _data(list_of(video_from_payload)))

    def fetch_latest(self, kind: ContentKind, limit: int) -> list[ContentReference]:
        """Most recent items of one content kind; the resolver's bounded search window."""
        if kind is ContentKind.VIDEO:
            return list(self.fetch_latest_videos(limit))
        if kind is ContentKind.GALLERY:
            return list(self.fetch_latest_galleries(limit))
        if kind is ContentKind.POST:
            return list(self.fetch_latest_posts(limit))
        raise ValueError(f"no latest listing for content kind: {kind.value}")

    # Services

    def fetch_weather(self, city: str | None = None) -> list[WeatherReport]:
        ep = endpoints.weather(city or self._default_city)
        return self.fetch(ep, _data(list_of(weather_from_payload)))

    def fetch_prayer_times(self, city: str | None = None, district: str | None = None) -> PrayerTimes:
        ep = endpoints.prayer_times(city or self._default_city, district or self._default_district)
        return self.fetch(ep, _data(prayer_times_from_payload))

    def fetch_currency(self, currency_type: str | None = None) -> list[CurrencyRate]:
        return self.fetch(endpoints.currency(currency_type), _data(list_of(currency_from_payload)))

    def fetch_pharmacy(self, city: str | None = None, district: str | None = None) -> list[Pharmacy]:
        ep = endpoints.pharmacy(city or self._default_city, district or self._default_district)
        return self.fetch(ep, _data(list_of(pharmacy_from_payload)))

    def fetch_standings(self, league: str | None = None) -> LeagueStandings:
        ep = endpoints.standings(league or self._default_league)
        return self.fetch(ep, _data(standings_from_payload))

    def fetch_leagues(self) -> dict[str, LeagueStandings]:
        return self.fetch(endpoints.leagues(), _data(leagues_from_payload))

    def fetch_settings(self) -> SiteSettings:
        return self.fetch(endpoints.settings(), _data(settings_from_payload))

    # Authors and articles

    def fetch_authors(
        self, page: int = 1, per_page: int = 12, search: str | None = None
    ) -> list[AuthorProfile]:
        ep = endpoints.authors(page=page, per_page=per_page, search=search)
        return self.fetch(ep, _data(list_of(author_profile_from_payload)))

    def fetch_author_detail(self, author_id: int) -> AuthorProfile:
        return self.fetch(endpoints.author_detail(author_id), _data(author_profile_from_payload))

    def fetch_author_articles(
        self, author_id: int, page: int = 1, limit: int = 10
    ) -> list[AuthorArticle]:
        ep = endpoints.author_articles(author_id, page=page, limit=limit)
        return self.fetch(ep, _data(list_of(author_article_from_payload)))

    def fetch_article_detail(self, article_id: int) -> ArticleDetail:
        return self.fetch(endpoints.article_detail(article_id), _data(article_detail_from_payload))

    # Comments

    def fetch_comments(
        self, reference_id: int, reference_type: str, page: int = 1, per_page: int = 20
    ) -> list[CommentNode]:
        ep = endpoints.comments(reference_id, reference_type, page=page, per_page=per_page)
        return self.fetch(ep, _data(list_of(comment_from_payload)))

    def fetch_comment_count(self, reference_id: int, reference_type: str) -> CommentCount:
        ep = endpoints.comment_count(reference_id, reference_type)
        return self.fetch(ep, _data(comment_count_from_payload))

    def add_comment(self, comment: NewComment) -> CommentNode | None:
        body: dict[str, Any] = {
            "body": comment.body,
            "name": comment.name,
            "reference_id": int(comment.reference_id),
            "reference_type": comment.reference_type.strip().lower(),
            "parent_id": comment.parent_id,
        }
        return self.fetch(endpoints.add_comment(body), _optional_data(optional_comment_from_payload))

    def like_comment(self, comment_id: int, field_name: str) -> CommentNode | None:
        ep = endpoints.like_comment(comment_id, field_name)
        return self.fetch(ep, _optional_data(optional_comment_from_payload))
