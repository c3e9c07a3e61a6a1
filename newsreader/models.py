from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Mapping, Sequence, Union


class ContentKind(str, Enum):
    POST = "post"
    VIDEO = "video"
    GALLERY = "gallery"
    ARTICLE = "article"


@dataclass(frozen=True)
class ImageSet:
    """
    An image with its pre-cropped variants.

    Always carries at least one usable URL. When the API only sent a bare string,
    every variant aliases that single URL.
    """

    original: str
    thumbnail: str
    medium: str
    large: str
    square: str
    vertical: str
    wide: str

    @classmethod
    def aliased(cls, url: str) -> "ImageSet":
        return cls(
            original=url,
            thumbnail=url,
            medium=url,
            large=url,
            square=url,
            vertical=url,
            wide=url,
        )

    def best_url(self) -> str:
        return self.large or self.original

    def variants(self) -> dict[str, str]:
        return {
            "thumbnail": self.thumbnail,
            "medium": self.medium,
            "large": self.large,
            "square": self.square,
            "vertical": self.vertical,
            "wide": self.wide,
        }


@dataclass(frozen=True)
class ContentAuthor:
    name: str
    id: int | None = None


@dataclass(frozen=True)
class HeadlineStringImage:
    url: str

    @property
    def image_set(self) -> ImageSet:
        return ImageSet.aliased(self.url)


@dataclass(frozen=True)
class HeadlineObjectImage:
    image: ImageSet

    @property
    def image_set(self) -> ImageSet:
        return self.image


HeadlineImage = Union[HeadlineStringImage, HeadlineObjectImage]


@dataclass(frozen=True)
class Headline:
    name: str
    image: HeadlineImage | None = None


@dataclass(frozen=True)
class Post:
    id: int
    name: str
    slug: str
    image: ImageSet
    created_at: str
    author: ContentAuthor | None = None
    url: str | None = None
    description: str | None = None
    categories: Mapping[str, str] = field(default_factory=dict)
    headline: Headline | None = None
    direct_link: str | None = None
    updated_at: str | None = None

    kind = ContentKind.POST


@dataclass(frozen=True)
class Video:
    id: int
    name: str
    slug: str
    image: ImageSet
    created_at: str
    author: ContentAuthor | None = None
    description: str | None = None
    categories: Mapping[str, str] = field(default_factory=dict)
    headline_image: HeadlineImage | None = None
    updated_at: str | None = None

    kind = ContentKind.VIDEO


@dataclass(frozen=True)
class Gallery:
    id: int
    name: str
    slug: str
    image: ImageSet
    created_at: str
    author: ContentAuthor | None = None
    url: str | None = None
    description: str | None = None
    categories: Mapping[str, str] = field(default_factory=dict)
    updated_at: str | None = None

    kind = ContentKind.GALLERY


@dataclass(frozen=True)
class Article:
    id: int
    name: str
    created_at: str
    slug: str | None = None
    image: ImageSet | None = None
    author: ContentAuthor | None = None
    description: str | None = None

    kind = ContentKind.ARTICLE


ContentReference = Union[Post, Video, Gallery, Article]


@dataclass(frozen=True)
class PostDetail:
    id: int
    name: str
    slug: str
    content: str
    image: ImageSet
    created_at: str
    url: str | None = None
    description: str | None = None
    author: ContentAuthor | None = None
    categories: Mapping[str, str] = field(default_factory=dict)
    headline: Headline | None = None
    tags: Sequence[str] = ()
    hit: int = 0
    direct_link: str | None = None
    agency: str | None = None
    source: str | None = None
    reporter: str | None = None
    embed: str | None = None
    video: str | None = None
    comments_off: bool = False
    previous_id: int | None = None
    next_id: int | None = None
    updated_at: str | None = None

    kind = ContentKind.POST


_YOUTUBE_EMBED_RE = re.compile(r"youtube\.com/embed/([A-Za-z0-9_-]+)")


@dataclass(frozen=True)
class VideoDetail:
    id: int
    name: str
    slug: str
    image: ImageSet
    created_at: str
    url: str | None = None
    description: str | None = None
    content: str | None = None
    author: ContentAuthor | None = None
    categories: Mapping[str, str] = field(default_factory=dict)
    tags: Sequence[str] = ()
    hit: int = 0
    embed: str | None = None
    media_url: str | None = None
    source: str | None = None
    reporter: str | None = None
    updated_at: str | None = None

    kind = ContentKind.VIDEO

    @property
    def youtube_id(self) -> str | None:
        if not self.embed:
            return None
        m = _YOUTUBE_EMBED_RE.search(self.embed)
        return m.group(1) if m else None


@dataclass(frozen=True)
class GalleryPhoto:
    url: str
    description: str | None = None


@dataclass(frozen=True)
class GalleryDetail:
    id: int
    name: str
    slug: str
    image: ImageSet
    created_at: str
    url: str | None = None
    description: str | None = None
    content: str | None = None
    author: ContentAuthor | None = None
    categories: Mapping[str, str] = field(default_factory=dict)
    tags: Sequence[str] = ()
    hit: int = 0
    photos: Sequence[GalleryPhoto] = ()
    source: str | None = None
    reporter: str | None = None
    updated_at: str | None = None

    kind = ContentKind.GALLERY


@dataclass(frozen=True)
class ArticleDetail:
    id: int
    name: str
    content: str
    created_at: str
    slug: str | None = None
    url: str | None = None
    description: str | None = None
    image: ImageSet | None = None
    author: ContentAuthor | None = None
    categories: Mapping[str, str] = field(default_factory=dict)
    tags: Sequence[str] = ()
    hit: int = 0
    updated_at: str | None = None

    kind = ContentKind.ARTICLE


@dataclass(frozen=True)
class AuthorProfile:
    id: int
    name: str
    image: ImageSet | None = None
    slug: str | None = None
    description: str | None = None
    bio: str | None = None


@dataclass(frozen=True)
class AuthorArticle:
    id: int
    name: str
    image: ImageSet | None = None


@dataclass(frozen=True)
class CommentNode:
    id: int
    body: str
    author_name: str
    reference_id: int
    reference_type: str
    created_at: str
    parent_id: int | None = None
    like_count: int = 0
    dislike_count: int = 0
    replies: Sequence["CommentNode"] | None = None
    updated_at: str | None = None

    def flatten(self, max_depth: int) -> Iterator[tuple[int, "CommentNode"]]:
        """
        Yield (depth, node) pairs depth-first, starting with this node at depth 0.

        Replies deeper than max_depth are not yielded.
        """
        stack: list[tuple[int, CommentNode]] = [(0, self)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            if depth >= max_depth or not node.replies:
                continue
            for child in reversed(node.replies):
                stack.append((depth + 1, child))


@dataclass(frozen=True)
class CommentCount:
    count: int


@dataclass(frozen=True)
class NewComment:
    body: str
    name: str
    reference_id: int
    reference_type: str
    parent_id: int | None = None


@dataclass(frozen=True)
class WeatherReport:
    date: str
    degree: int
    description: str
    city: str
    low: int | None = None
    high: int | None = None
    humidity: int | None = None
    wind: str | None = None
    icon: str | None = None


@dataclass(frozen=True)
class PrayerTimes:
    date: str
    imsak: str
    gunes: str
    ogle: str
    ikindi: str
    aksam: str
    yatsi: str
    long_date: str | None = None
    hijri_date: str | None = None


@dataclass(frozen=True)
class CurrencyRate:
    code: str
    name: str
    buying: float
    selling: float
    rate: float = 0.0
    datetime: str | None = None

    @property
    def direction(self) -> str:
        if self.rate > 0:
            return "up"
        if self.rate < 0:
            return "down"
        return "stable"


@dataclass(frozen=True)
class Pharmacy:
    name: str
    address: str
    phone: str
    district: str | None = None
    location: str | None = None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if not self.location:
            return None
        parts = self.location.split(",")
        if len(parts) != 2:
            return None
        try:
            return float(parts[0]), float(parts[1])
        except ValueError:
            return None


@dataclass(frozen=True)
class TeamStanding:
    rank: int
    team: str
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int
    logo: str | None = None
    form: str | None = None


@dataclass(frozen=True)
class LeagueStandings:
    name: str
    country: str
    standings: Sequence[TeamStanding] = ()
    logo: str | None = None


@dataclass(frozen=True)
class SiteSettings:
    mobile_logo: str | None = None


@dataclass(frozen=True)
class ContentRef:
    """Canonical navigation target: what kind of content, and which id."""

    kind: ContentKind
    id: int


@dataclass(frozen=True)
class ListingMode:
    pass


@dataclass(frozen=True)
class SearchMode:
    query: str


@dataclass(frozen=True)
class SearchSession:
    query: str
    generation: int
    cancelled: bool = False


@dataclass(frozen=True)
class PaginationCursor:
    page: int = 1
    page_size: int = 12
    has_more: bool = True
    mode: ListingMode | SearchMode = field(default_factory=ListingMode)
