from __future__ import annotations

import unittest
from typing import Sequence

from newsreader.deeplink import DeepLinkResolver, classify_path, url_from_notification
from newsreader.errors import ResolutionError, ServerError
from newsreader.models import ContentKind, ContentRef, ImageSet, Video

_IMG = ImageSet.aliased("https://cdn.example.com/x.jpg")


def _videos(n: int) -> list[Video]:
    return [
        Video(id=9000 + i, name=f"Video {i}", slug=f"video-{i}", image=_IMG, created_at="2025")
        for i in range(n)
    ]


class _FakeSource:
    def __init__(self, items: Sequence[Video] = (), error: Exception | None = None) -> None:
        self._items = list(items)
        self._error = error
        self.calls: list[tuple[ContentKind, int]] = []

    def fetch_latest(self, kind: ContentKind, limit: int) -> list[Video]:
        self.calls.append((kind, limit))
        if self._error is not None:
            raise self._error
        return self._items[:limit]


class TestClassifyPath(unittest.TestCase):
    def test_kind_from_first_segment(self) -> None:
        self.assertEqual(classify_path("https://h/videos/abc"), (ContentKind.VIDEO, "abc"))
        self.assertEqual(classify_path("https://h/Galleries/x/y"), (ContentKind.GALLERY, "y"))
        self.assertEqual(classify_path("https://h/gundem/haber-basligi"), (ContentKind.POST, "haber-basligi"))

    def test_empty_path(self) -> None:
        with self.assertRaises(ResolutionError) as ctx:
            classify_path("https://h/")
        self.assertEqual(ctx.exception.reason, "empty_path")


class TestDeepLinkResolver(unittest.TestCase):
    def test_numeric_id_skips_network(self) -> None:
        source = _FakeSource(_videos(3))
        ref = DeepLinkResolver(source).resolve("https://h/videos/999")
        self.assertEqual(ref, ContentRef(kind=ContentKind.VIDEO, id=999))
        self.assertEqual(source.calls, [])

    def test_slug_found_in_window(self) -> None:
        source = _FakeSource(_videos(100))
        ref = DeepLinkResolver(source).resolve("https://h/videos/video-42")
        self.assertEqual(ref, ContentRef(kind=ContentKind.VIDEO, id=9042))
        self.assertEqual(source.calls, [(ContentKind.VIDEO, 100)])

    def test_slug_outside_window_is_not_found(self) -> None:
        source = _FakeSource(_videos(100))
        with self.assertRaises(ResolutionError) as ctx:
            DeepLinkResolver(source).resolve("https://h/videos/video-150")
        self.assertEqual(ctx.exception.reason, "not_found")
        self.assertEqual(len(source.calls), 1)

    def test_fetch_failure_becomes_not_found(self) -> None:
        err = ServerError("down", status_code=503)
        source = _FakeSource(error=err)
        with self.assertRaises(ResolutionError) as ctx:
            DeepLinkResolver(source).resolve("https://h/galleries/some-gallery")
        self.assertEqual(ctx.exception.reason, "not_found")
        self.assertIs(ctx.exception.__cause__, err)

    def test_window_size_is_configurable(self) -> None:
        source = _FakeSource(_videos(100))
        with self.assertRaises(ResolutionError):
            DeepLinkResolver(source, window_size=10).resolve("https://h/videos/video-42")
        self.assertEqual(source.calls, [(ContentKind.VIDEO, 10)])


class TestNotificationPayload(unittest.TestCase):
    def test_priority_order(self) -> None:
        payload = {
            "custom": {"a": {"url": "https://h/videos/1"}},
            "url": "https://h/videos/2",
            "additionalData": {"url": "https://h/videos/3"},
        }
        self.assertEqual(url_from_notification(payload), "https://h/videos/1")
        del payload["custom"]
        self.assertEqual(url_from_notification(payload), "https://h/videos/2")
        payload["url"] = ""
        self.assertEqual(url_from_notification(payload), "https://h/videos/3")

    def test_payload_without_url(self) -> None:
        resolver = DeepLinkResolver(_FakeSource())
        with self.assertRaises(ResolutionError) as ctx:
            resolver.resolve_notification({"custom": {"a": {}}})
        self.assertEqual(ctx.exception.reason, "no_url")

    def test_notification_resolves_like_a_link(self) -> None:
        ref = DeepLinkResolver(_FakeSource()).resolve_notification({"url": "https://h/haber/77"})
        self.assertEqual(ref, ContentRef(kind=ContentKind.POST, id=77))


if __name__ == "__main__":
    unittest.main()
