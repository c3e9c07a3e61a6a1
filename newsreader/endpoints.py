from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import quote, urlencode

API_PREFIX = "api/v2"

ParamValue = str | int


@dataclass(frozen=True)
class Endpoint:
    """
    Describes one content request: target collection path, id/slug segments and
    plain query parameters. Path segments are percent-encoded when the URL is built.
    """

    path: tuple[str, ...]
    params: Mapping[str, ParamValue] = field(default_factory=dict)
    method: str = "GET"
    json_body: Mapping[str, Any] | None = None

    def url(self, base_url: str, *, api_key: str | None = None) -> str:
        base = (base_url or "").rstrip("/")
        segments = "/".join(quote(str(seg), safe="") for seg in self.path)

        query: list[tuple[str, str]] = [
            (k, str(v)) for k, v in self.params.items() if v is not None and str(v) != ""
        ]
        if api_key:
            query.append(("apiKey", api_key))

        url = f"{base}/{API_PREFIX}/{segments}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return url


def _clean(value: str) -> str:
    return (value or "").strip()


def _with_limit(collection: str, name: str, limit: int | None) -> Endpoint:
    if limit is None:
        return Endpoint((collection, name))
    if limit <= 0:
        raise ValueError("limit must be positive")
    return Endpoint((collection, name, str(int(limit))))


# Posts

def posts() -> Endpoint:
    return Endpoint(("posts",))


def headlines() -> Endpoint:
    return Endpoint(("posts", "headlines"))


def top_headlines() -> Endpoint:
    return Endpoint(("posts", "topheadlines"))


def breaking_news() -> Endpoint:
    return Endpoint(("posts", "breaking"))


def latest_posts(limit: int | None = None) -> Endpoint:
    return _with_limit("posts", "latest", limit)


def featured_posts() -> Endpoint:
    return Endpoint(("posts", "featured"))


def popular_posts() -> Endpoint:
    return Endpoint(("posts", "popular"))


def post_detail(post_id: int) -> Endpoint:
    return Endpoint(("posts", str(int(post_id))))


def search_posts(query: str) -> Endpoint:
    q = _clean(query)
    if not q:
        raise ValueError("search query must be non-empty")
    return Endpoint(("posts", "search", q))


# Galleries

def galleries() -> Endpoint:
    return Endpoint(("galleries",))


def latest_galleries(limit: int | None = None) -> Endpoint:
    return _with_limit("galleries", "latest", limit)


def featured_galleries() -> Endpoint:
    return Endpoint(("galleries", "featured"))


def gallery_detail(gallery_id: int) -> Endpoint:
    return Endpoint(("galleries", str(int(gallery_id))))


# Videos

def videos() -> Endpoint:
    return Endpoint(("videos",))


def latest_videos(limit: int | None = None) -> Endpoint:
    return _with_limit("videos", "latest", limit)


def featured_videos() -> Endpoint:
    return Endpoint(("videos", "featured"))


def trend_videos() -> Endpoint:
    return Endpoint(("videos", "trend"))


def video_detail(video_id: int) -> Endpoint:
    return Endpoint(("videos", str(int(video_id))))


def search_videos(query: str) -> Endpoint:
    q = _clean(query)
    if not q:
        raise ValueError("search query must be non-empty")
    return Endpoint(("videos",), {"search": q})


# Location-scoped services

def weather(city: str) -> Endpoint:
    return Endpoint(("services", "weather"), {"city": _clean(city)})


def prayer_times(city: str, district: str | None = None) -> Endpoint:
    params: dict[str, ParamValue] = {"city": _clean(city)}
    if district:
        params["district"] = _clean(district)
    return Endpoint(("services", "prayer-times"), params)


def currency(currency_type: str | None = None) -> Endpoint:
    params: dict[str, ParamValue] = {}
    if currency_type:
        params["type"] = _clean(currency_type)
    return Endpoint(("services", "currency"), params)


def pharmacy(city: str, district: str | None = None) -> Endpoint:
    params: dict[str, ParamValue] = {"city": _clean(city)}
    if district:
        params["district"] = _clean(district)
    return Endpoint(("services", "pharmacy"), params)


def standings(league: str) -> Endpoint:
    return Endpoint(("services", "standings"), {"league": _clean(league)})


def leagues() -> Endpoint:
    return Endpoint(("services", "standings"))


def settings() -> Endpoint:
    return Endpoint(("settings",))


# Authors and articles

def authors(page: int = 1, per_page: int = 12, search: str | None = None) -> Endpoint:
    if page < 1:
        raise ValueError("page is 1-based")
    params: dict[str, ParamValue] = {"page": int(page), "per_page": int(per_page)}
    q = _clean(search or "")
    if q:
        params["search"] = q
    return Endpoint(("authors",), params)


def author_detail(author_id: int) -> Endpoint:
    return Endpoint(("authors", str(int(author_id))))


def author_articles(author_id: int, page: int = 1, limit: int = 10) -> Endpoint:
    if page < 1:
        raise ValueError("page is 1-based")
    return Endpoint(
        ("authors", str(int(author_id)), "articles"),
        {"page": int(page), "limit": int(limit)},
    )


def article_detail(article_id: int) -> Endpoint:
    return Endpoint(("articles", str(int(article_id))))


# Comments

def content_type_for(reference_type: str) -> str:
    """`article` -> `Article`: the capitalized spelling the API also accepts."""
    ref = _clean(reference_type).lower()
    return ref[:1].upper() + ref[1:]


def _comment_filters(reference_id: int, reference_type: str) -> dict[str, ParamValue]:
    ref = _clean(reference_type).lower()
    return {
        "reference_id": int(reference_id),
        "reference_type": ref,
        "content_type": content_type_for(ref),
    }


def comments(
    reference_id: int, reference_type: str, page: int = 1, per_page: int = 20
) -> Endpoint:
    params = _comment_filters(reference_id, reference_type)
    params["page"] = int(page)
    params["per_page"] = int(per_page)
    return Endpoint(("comments",), params)


def comment_count(reference_id: int, reference_type: str) -> Endpoint:
    return Endpoint(("comments", "count"), _comment_filters(reference_id, reference_type))


def add_comment(body: Mapping[str, Any]) -> Endpoint:
    return Endpoint(("comments",), method="POST", json_body=dict(body))


def like_comment(comment_id: int, field_name: str) -> Endpoint:
    f = _clean(field_name).lower()
    if f not in ("like", "dislike"):
        raise ValueError("field must be 'like' or 'dislike'")
    return Endpoint(("comments", str(int(comment_id)), "like"), method="POST", json_body={"field": f})
