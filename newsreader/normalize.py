from __future__ import annotations

from typing import Any, Callable, Mapping, TypeVar

from .errors import DecodeError
from .models import (
    Article,
    ArticleDetail,
    AuthorArticle,
    AuthorProfile,
    CommentCount,
    CommentNode,
    ContentAuthor,
    CurrencyRate,
    Gallery,
    GalleryDetail,
    GalleryPhoto,
    Headline,
    HeadlineImage,
    HeadlineObjectImage,
    HeadlineStringImage,
    ImageSet,
    LeagueStandings,
    Pharmacy,
    Post,
    PostDetail,
    PrayerTimes,
    SiteSettings,
    TeamStanding,
    Video,
    VideoDetail,
    WeatherReport,
)

T = TypeVar("T")

DEFAULT_REFERENCE_TYPE = "post"

# Replies nested deeper than this are dropped while decoding.
MAX_REPLY_DECODE_DEPTH = 64

# Wire crop key -> ImageSet attribute. The API names some crops differently.
_CROP_KEYS: dict[str, tuple[str, ...]] = {
    "thumbnail": ("thumb", "thumbnail"),
    "medium": ("medium",),
    "large": ("large",),
    "square": ("square",),
    "vertical": ("vertical",),
    "wide": ("fives", "wide"),
}


def _coerce_str(value: Any) -> str | None:
    if isinstance(value, str):
        s = value.strip()
        return s if s else None
    return None


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        s = value.strip()
        if s.lstrip("-").isdigit():
            return int(s)
    return None


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().replace(",", "."))
        except ValueError:
            return None
    return None


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    n = _coerce_int(value)
    return bool(n)


def _coerce_categories(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    out: dict[str, str] = {}
    for key, name in value.items():
        label = _coerce_str(name)
        if label is not None:
            out[str(key)] = label
    return out


def _coerce_str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(s for s in (_coerce_str(v) for v in value) if s)


def _require_mapping(value: Any, field: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise DecodeError(field, f"expected an object for {field}")
    return value


def _require_int(item: Mapping[str, Any], key: str, *, prefix: str = "") -> int:
    value = _coerce_int(item.get(key))
    if value is None:
        raise DecodeError(prefix + key)
    return value


def _require_str(item: Mapping[str, Any], key: str, *, prefix: str = "") -> str:
    value = _coerce_str(item.get(key))
    if value is None:
        raise DecodeError(prefix + key)
    return value


def normalize_image(raw: Any, *, required: bool = True, field: str = "image") -> ImageSet | None:
    """
    Normalize an image that may arrive as a bare URL string or as a crop object.

    A string aliases every crop variant. An object is taken verbatim, with any
    missing crop falling back to `original`. Absent or unusable values raise
    DecodeError when the image is required and return None otherwise.
    """
    if isinstance(raw, ImageSet):
        return raw

    if isinstance(raw, str) and raw.strip():
        return ImageSet.aliased(raw)

    if isinstance(raw, Mapping):
        crops = raw.get("cropped")
        if not isinstance(crops, Mapping):
            crops = raw

        variants: dict[str, str | None] = {}
        for attr, keys in _CROP_KEYS.items():
            variants[attr] = next(
                (v for v in (_coerce_str(crops.get(k)) for k in keys) if v), None
            )

        original = _coerce_str(raw.get("original"))
        if original is None:
            original = variants["large"] or next((v for v in variants.values() if v), None)

        if original is not None:
            return ImageSet(
                original=original,
                **{attr: (url or original) for attr, url in variants.items()},
            )

    if required:
        raise DecodeError(field)
    return None


def normalize_author(raw: Any) -> ContentAuthor | None:
    """Return the author, tolerating an absent id; a present author must have a name."""
    if raw is None or not isinstance(raw, Mapping):
        return None
    name = _coerce_str(raw.get("name"))
    if name is None:
        raise DecodeError("author.name")
    return ContentAuthor(name=name, id=_coerce_int(raw.get("id")))


def normalize_comment_reference_type(raw: Mapping[str, Any]) -> str:
    """
    Reconcile the two field spellings the API uses for a comment's target type.

    `reference_type` carries the lowercase tag, `content_type` the capitalized
    class name. Never raises; defaults to "post".
    """
    if not isinstance(raw, Mapping):
        return DEFAULT_REFERENCE_TYPE
    ref = _coerce_str(raw.get("reference_type"))
    if ref is not None:
        return ref.lower()
    content_type = _coerce_str(raw.get("content_type"))
    if content_type is not None:
        return content_type.lower()
    return DEFAULT_REFERENCE_TYPE


def normalize_headline(raw: Any) -> HeadlineImage | None:
    if isinstance(raw, str) and raw.strip():
        return HeadlineStringImage(url=raw)
    if isinstance(raw, Mapping):
        try:
            image = normalize_image(raw, required=True, field="headline.image")
        except DecodeError:
            return None
        if image is not None:
            return HeadlineObjectImage(image=image)
    return None


def headline_from_payload(raw: Any) -> Headline | None:
    # Decorative; never fails the enclosing item.
    if not isinstance(raw, Mapping):
        return None
    name = _coerce_str(raw.get("name"))
    if name is None:
        return None
    return Headline(name=name, image=normalize_headline(raw.get("image")))


def unwrap_envelope(payload: Any) -> Any:
    """Return `data` from the API's `{data, error, message}` envelope."""
    body = _require_mapping(payload, "<root>")
    if body.get("data") is None:
        message = _coerce_str(body.get("message"))
        raise DecodeError("data", message)
    return body["data"]


def list_of(decode: Callable[[Any], T]) -> Callable[[Any], list[T]]:
    """Lift a single-item decoder to a list decoder; one bad item fails the list."""

    def _decode_list(data: Any) -> list[T]:
        if not isinstance(data, list):
            raise DecodeError("data", "expected a list")
        return [decode(item) for item in data]

    return _decode_list


def post_from_payload(raw: Any) -> Post:
    item = _require_mapping(raw, "post")
    return Post(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        slug=_require_str(item, "slug"),
        image=normalize_image(item.get("image")),  # type: ignore[arg-type]
        created_at=_require_str(item, "created_at"),
        author=normalize_author(item.get("author")),
        url=_coerce_str(item.get("url")),
        description=_coerce_str(item.get("description")),
        categories=_coerce_categories(item.get("categories")),
        headline=headline_from_payload(item.get("headline")),
        direct_link=_coerce_str(item.get("direct_link")),
        updated_at=_coerce_str(item.get("updated_at")),
    )


def video_from_payload(raw: Any) -> Video:
    item = _require_mapping(raw, "video")
    return Video(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        slug=_require_str(item, "slug"),
        image=normalize_image(item.get("image")),  # type: ignore[arg-type]
        created_at=_require_str(item, "created_at"),
        author=normalize_author(item.get("author")),
        description=_coerce_str(item.get("description")),
        categories=_coerce_categories(item.get("categories")),
        headline_image=normalize_headline(item.get("headline_image")),
        updated_at=_coerce_str(item.get("updated_at")),
    )


def gallery_from_payload(raw: Any) -> Gallery:
    item = _require_mapping(raw, "gallery")
    return Gallery(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        slug=_require_str(item, "slug"),
        image=normalize_image(item.get("image")),  # type: ignore[arg-type]
        created_at=_require_str(item, "created_at"),
        author=normalize_author(item.get("author")),
        url=_coerce_str(item.get("url")),
        description=_coerce_str(item.get("description")),
        categories=_coerce_categories(item.get("categories")),
        updated_at=_coerce_str(item.get("updated_at")),
    )


def article_from_payload(raw: Any) -> Article:
    item = _require_mapping(raw, "article")
    return Article(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        created_at=_require_str(item, "created_at"),
        slug=_coerce_str(item.get("slug")),
        image=normalize_image(item.get("image"), required=False),
        author=normalize_author(item.get("author")),
        description=_coerce_str(item.get("description")),
    )


def post_detail_from_payload(raw: Any) -> PostDetail:
    item = _require_mapping(raw, "post")
    additional = item.get("additional")
    comments_off = (
        _coerce_flag(additional.get("comments_off")) if isinstance(additional, Mapping) else False
    )
    return PostDetail(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        slug=_require_str(item, "slug"),
        content=_require_str(item, "content"),
        image=normalize_image(item.get("image")),  # type: ignore[arg-type]
        created_at=_require_str(item, "created_at"),
        url=_coerce_str(item.get("url")),
        description=_coerce_str(item.get("description")),
        author=normalize_author(item.get("author")),
        categories=_coerce_categories(item.get("categories")),
        headline=headline_from_payload(item.get("headline")),
        tags=_coerce_str_tuple(item.get("tags")),
        hit=_coerce_int(item.get("hit")) or 0,
        direct_link=_coerce_str(item.get("direct_link")),
        agency=_coerce_str(item.get("agency")),
        source=_coerce_str(item.get("source")),
        reporter=_coerce_str(item.get("reporter")),
        embed=_coerce_str(item.get("embed")),
        video=_coerce_str(item.get("video")),
        comments_off=comments_off,
        previous_id=_coerce_int(item.get("previous_id")),
        next_id=_coerce_int(item.get("next_id")),
        updated_at=_coerce_str(item.get("updated_at")),
    )


def video_detail_from_payload(raw: Any) -> VideoDetail:
    item = _require_mapping(raw, "video")
    return VideoDetail(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        slug=_require_str(item, "slug"),
        image=normalize_image(item.get("image")),  # type: ignore[arg-type]
        created_at=_require_str(item, "created_at"),
        url=_coerce_str(item.get("url")),
        description=_coerce_str(item.get("description")),
        content=_coerce_str(item.get("content")),
        author=normalize_author(item.get("author")),
        categories=_coerce_categories(item.get("categories")),
        tags=_coerce_str_tuple(item.get("tags")),
        hit=_coerce_int(item.get("hit")) or 0,
        embed=_coerce_str(item.get("embed")),
        media_url=_coerce_str(item.get("media_url")),
        source=_coerce_str(item.get("source")),
        reporter=_coerce_str(item.get("reporter")),
        updated_at=_coerce_str(item.get("updated_at")),
    )


def _gallery_photo(raw: Any) -> GalleryPhoto:
    item = _require_mapping(raw, "photos")
    return GalleryPhoto(
        url=_require_str(item, "img", prefix="photos."),
        description=_coerce_str(item.get("description")),
    )


def gallery_detail_from_payload(raw: Any) -> GalleryDetail:
    item = _require_mapping(raw, "gallery")
    photos = item.get("photos")
    return GalleryDetail(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        slug=_require_str(item, "slug"),
        image=normalize_image(item.get("image")),  # type: ignore[arg-type]
        created_at=_require_str(item, "created_at"),
        url=_coerce_str(item.get("url")),
        description=_coerce_str(item.get("description")),
        content=_coerce_str(item.get("content")),
        author=normalize_author(item.get("author")),
        categories=_coerce_categories(item.get("categories")),
        tags=_coerce_str_tuple(item.get("tags")),
        hit=_coerce_int(item.get("hit")) or 0,
        photos=tuple(_gallery_photo(p) for p in photos) if isinstance(photos, list) else (),
        source=_coerce_str(item.get("source")),
        reporter=_coerce_str(item.get("reporter")),
        updated_at=_coerce_str(item.get("updated_at")),
    )


def article_detail_from_payload(raw: Any) -> ArticleDetail:
    item = _require_mapping(raw, "article")
    return ArticleDetail(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        content=_require_str(item, "content"),
        created_at=_require_str(item, "created_at"),
        slug=_coerce_str(item.get("slug")),
        url=_coerce_str(item.get("url")),
        description=_coerce_str(item.get("description")),
        image=normalize_image(item.get("image"), required=False),
        author=normalize_author(item.get("author")),
        categories=_coerce_categories(item.get("categories")),
        tags=_coerce_str_tuple(item.get("tags")),
        hit=_coerce_int(item.get("hit")) or 0,
        updated_at=_coerce_str(item.get("updated_at")),
    )


def _optional_image(raw: Any) -> ImageSet | None:
    # Author images are decorative: a malformed one is dropped, not fatal.
    try:
        return normalize_image(raw, required=False)
    except DecodeError:
        return None


def author_profile_from_payload(raw: Any) -> AuthorProfile:
    item = _require_mapping(raw, "author")
    return AuthorProfile(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        image=_optional_image(item.get("image")),
        slug=_coerce_str(item.get("slug")),
        description=_coerce_str(item.get("description")),
        bio=_coerce_str(item.get("bio")),
    )


def author_article_from_payload(raw: Any) -> AuthorArticle:
    item = _require_mapping(raw, "article")
    return AuthorArticle(
        id=_require_int(item, "id"),
        name=_require_str(item, "name"),
        image=_optional_image(item.get("image")),
    )


def comment_from_payload(raw: Any, *, _depth: int = 0) -> CommentNode:
    item = _require_mapping(raw, "comment")

    replies: tuple[CommentNode, ...] | None = None
    raw_replies = item.get("replies")
    if isinstance(raw_replies, list):
        if _depth >= MAX_REPLY_DECODE_DEPTH:
            replies = ()
        else:
            replies = tuple(comment_from_payload(r, _depth=_depth + 1) for r in raw_replies)

    return CommentNode(
        id=_require_int(item, "id"),
        body=_require_str(item, "body"),
        author_name=_require_str(item, "name"),
        reference_id=_require_int(item, "reference_id"),
        reference_type=normalize_comment_reference_type(item),
        created_at=_require_str(item, "created_at"),
        parent_id=_coerce_int(item.get("parent_id")),
        like_count=_coerce_int(item.get("like")) or 0,
        dislike_count=_coerce_int(item.get("dislike")) or 0,
        replies=replies,
        updated_at=_coerce_str(item.get("updated_at")),
    )


def optional_comment_from_payload(raw: Any) -> CommentNode | None:
    if raw is None:
        return None
    return comment_from_payload(raw)


def comment_count_from_payload(raw: Any) -> CommentCount:
    item = _require_mapping(raw, "count")
    return CommentCount(count=_require_int(item, "count"))


def weather_from_payload(raw: Any) -> WeatherReport:
    item = _require_mapping(raw, "weather")
    degree = _coerce_int(item.get("degree"))
    if degree is None:
        raise DecodeError("degree")
    return WeatherReport(
        date=_require_str(item, "dt"),
        degree=degree,
        description=_coerce_str(item.get("desc")) or "",
        city=_coerce_str(item.get("city")) or "",
        low=_coerce_int(item.get("low")),
        high=_coerce_int(item.get("high")),
        humidity=_coerce_int(item.get("humidity")),
        wind=_coerce_str(item.get("wind")),
        icon=_coerce_str(item.get("icon")),
    )


def prayer_times_from_payload(raw: Any) -> PrayerTimes:
    item = _require_mapping(raw, "prayer_times")
    return PrayerTimes(
        date=_require_str(item, "tarih"),
        imsak=_require_str(item, "imsak"),
        gunes=_require_str(item, "gunes"),
        ogle=_require_str(item, "ogle"),
        ikindi=_require_str(item, "ikindi"),
        aksam=_require_str(item, "aksam"),
        yatsi=_require_str(item, "yatsi"),
        long_date=_coerce_str(item.get("tarih_uzun")),
        hijri_date=_coerce_str(item.get("hicri_tarih")),
    )


def currency_from_payload(raw: Any) -> CurrencyRate:
    item = _require_mapping(raw, "currency")
    buying = _coerce_float(item.get("buying"))
    selling = _coerce_float(item.get("selling"))
    if buying is None:
        raise DecodeError("buying")
    if selling is None:
        raise DecodeError("selling")
    return CurrencyRate(
        code=_require_str(item, "code"),
        name=_require_str(item, "name"),
        buying=buying,
        selling=selling,
        rate=_coerce_float(item.get("rate")) or 0.0,
        datetime=_coerce_str(item.get("datetime")),
    )


def pharmacy_from_payload(raw: Any) -> Pharmacy:
    item = _require_mapping(raw, "pharmacy")
    return Pharmacy(
        name=_require_str(item, "name"),
        address=_require_str(item, "address"),
        phone=_coerce_str(item.get("phone")) or "",
        district=_coerce_str(item.get("dist")),
        location=_coerce_str(item.get("loc")),
    )


def _team_standing(raw: Any) -> TeamStanding:
    item = _require_mapping(raw, "standings")
    p = "standings."
    return TeamStanding(
        rank=_require_int(item, "rank", prefix=p),
        team=_require_str(item, "team", prefix=p),
        played=_require_int(item, "played", prefix=p),
        won=_require_int(item, "win", prefix=p),
        drawn=_require_int(item, "draw", prefix=p),
        lost=_require_int(item, "lose", prefix=p),
        goals_for=_require_int(item, "goalsFor", prefix=p),
        goals_against=_require_int(item, "goalsagainst", prefix=p),
        goal_difference=_require_int(item, "goalsDiff", prefix=p),
        points=_require_int(item, "points", prefix=p),
        logo=_coerce_str(item.get("logo")),
        form=_coerce_str(item.get("form")),
    )


def standings_from_payload(raw: Any) -> LeagueStandings:
    item = _require_mapping(raw, "standings")
    league = _require_mapping(item.get("league"), "league")
    rows = item.get("standings")
    if not isinstance(rows, list):
        raise DecodeError("standings")
    return LeagueStandings(
        name=_require_str(league, "name", prefix="league."),
        country=_require_str(league, "country", prefix="league."),
        standings=tuple(_team_standing(r) for r in rows),
        logo=_coerce_str(league.get("logo")),
    )


def leagues_from_payload(raw: Any) -> dict[str, LeagueStandings]:
    item = _require_mapping(raw, "leagues")
    return {str(slug): standings_from_payload(value) for slug, value in item.items()}


def settings_from_payload(raw: Any) -> SiteSettings:
    item = _require_mapping(raw, "settings")
    return SiteSettings(mobile_logo=_coerce_str(item.get("logo_mobil")))
