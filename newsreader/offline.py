from __future__ import annotations

import json
from typing import Any, Mapping
from urllib.parse import parse_qs, unquote, urlsplit

from .endpoints import API_PREFIX
from .transport import HttpResponse

_JSON_HEADERS = {"Content-Type": "application/json; charset=utf-8"}


def _image(seed: int) -> dict[str, Any]:
    base = f"https://cdn.example.com/img/{seed}"
    return {
        "original": f"{base}.jpg",
        "cropped": {
            "thumb": f"{base}_thumb.jpg",
            "medium": f"{base}_medium.jpg",
            "large": f"{base}_large.jpg",
            "square": f"{base}_square.jpg",
            "vertical": f"{base}_vertical.jpg",
            "fives": f"{base}_fives.jpg",
        },
    }


def _offline_posts(n: int = 100) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for i in range(n):
        out.append(
            {
                "id": 1000 + i,
                "name": f"Haber {i}",
                "slug": f"haber-{i}",
                "categories": {"1": "Gündem"},
                # The API mixes both image shapes in one list.
                "image": _image(1000 + i) if i % 2 else f"https://cdn.example.com/img/{1000 + i}.jpg",
                "author": {"id": None, "name": "Editör"},
                "created_at": f"2025-01-{(i % 28) + 1:02d} 08:00:00",
            }
        )
    return out


def _offline_videos(n: int = 100) -> list[dict[str, Any]]:
    return [
        {
            "id": 5000 + i,
            "name": f"Video {i}",
            "slug": f"video-{i}",
            "image": _image(5000 + i),
            "headline_image": f"https://cdn.example.com/img/{5000 + i}_wide.jpg",
            "created_at": f"2025-02-{(i % 28) + 1:02d} 09:30:00",
        }
        for i in range(n)
    ]


def _offline_galleries(n: int = 40) -> list[dict[str, Any]]:
    return [
        {
            "id": 7000 + i,
            "name": f"Galeri {i}",
            "slug": f"galeri-{i}",
            "image": _image(7000 + i),
            "created_at": f"2025-03-{(i % 28) + 1:02d} 12:00:00",
        }
        for i in range(n)
    ]


def _offline_authors(n: int = 17) -> list[dict[str, Any]]:
    return [
        {
            "id": 300 + i,
            "name": f"Yazar {i}",
            "slug": f"yazar-{i}",
            "image": f"https://cdn.example.com/authors/{300 + i}.jpg",
        }
        for i in range(n)
    ]


def _as_int(values: Mapping[str, list[str]], key: str, default: int) -> int:
    raw = (values.get(key) or [""])[0]
    try:
        return int(raw)
    except ValueError:
        return default


class OfflineTransport:
    """
    Serves canned payloads in the content API's envelope format.

    Covers the endpoints the CLI exercises (latest listings, post search, the
    paginated author listing) so commands can run without network access.
    Unknown paths answer 404 with a JSON error body.
    """

    def __init__(
        self,
        *,
        posts: list[dict[str, Any]] | None = None,
        videos: list[dict[str, Any]] | None = None,
        galleries: list[dict[str, Any]] | None = None,
        authors: list[dict[str, Any]] | None = None,
    ) -> None:
        self._posts = posts if posts is not None else _offline_posts()
        self._videos = videos if videos is not None else _offline_videos()
        self._galleries = galleries if galleries is not None else _offline_galleries()
        self._authors = authors if authors is not None else _offline_authors()
        self.requested: list[str] = []

    def get(self, url: str) -> HttpResponse:
        self.requested.append(url)
        parts = urlsplit(url)
        prefix = f"/{API_PREFIX}/"
        path = parts.path
        if not path.startswith(prefix):
            return self._not_found()

        segments = [unquote(s) for s in path[len(prefix) :].split("/") if s]
        query = parse_qs(parts.query)

        if len(segments) == 3 and segments[1] == "latest":
            limit = int(segments[2]) if segments[2].isdigit() else 0
            source = {
                "posts": self._posts,
                "videos": self._videos,
                "galleries": self._galleries,
            }.get(segments[0])
            if source is not None:
                return self._ok(source[:limit])

        if len(segments) == 3 and segments[:2] == ["posts", "search"]:
            needle = segments[2].casefold()
            return self._ok([p for p in self._posts if needle in p["name"].casefold()])

        if segments == ["authors"]:
            page = max(1, _as_int(query, "page", 1))
            per_page = max(1, _as_int(query, "per_page", 12))
            needle = (query.get("search") or [""])[0].casefold()
            matches = [a for a in self._authors if needle in a["name"].casefold()]
            start = (page - 1) * per_page
            return self._ok(matches[start : start + per_page])

        return self._not_found()

    def post_json(self, url: str, body: Mapping[str, Any]) -> HttpResponse:
        self.requested.append(url)
        return HttpResponse(
            status_code=405,
            headers=_JSON_HEADERS,
            body=json.dumps({"error": True, "message": "read-only offline API"}).encode("utf-8"),
        )

    def _ok(self, data: Any) -> HttpResponse:
        payload = {"data": data, "error": False, "message": None}
        return HttpResponse(
            status_code=200,
            headers=_JSON_HEADERS,
            body=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
        )

    def _not_found(self) -> HttpResponse:
        return HttpResponse(
            status_code=404,
            headers=_JSON_HEADERS,
            body=json.dumps({"error": True, "message": "Not found"}).encode("utf-8"),
        )
