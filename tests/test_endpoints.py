from __future__ import annotations

import unittest
from urllib.parse import parse_qs, urlsplit

from newsreader import endpoints

_BASE = "https://news.example.com/"


class TestEndpointUrl(unittest.TestCase):
    def test_api_key_is_appended_last(self) -> None:
        url = endpoints.authors(page=2, per_page=12).url(_BASE, api_key="k1")
        parts = urlsplit(url)
        self.assertEqual(parts.path, "/api/v2/authors")
        self.assertTrue(parts.query.endswith("apiKey=k1"))
        self.assertEqual(parse_qs(parts.query)["per_page"], ["12"])

    def test_no_query_string_without_params_or_key(self) -> None:
        self.assertEqual(
            endpoints.latest_videos(100).url(_BASE),
            "https://news.example.com/api/v2/videos/latest/100",
        )

    def test_search_query_is_path_encoded(self) -> None:
        url = endpoints.search_posts("  kar yağışı/ilçe ").url(_BASE)
        self.assertEqual(
            url,
            "https://news.example.com/api/v2/posts/search/kar%20ya%C4%9F%C4%B1%C5%9F%C4%B1%2Fil%C3%A7e",
        )

    def test_empty_search_rejected(self) -> None:
        with self.assertRaises(ValueError):
            endpoints.search_posts("   ")
        with self.assertRaises(ValueError):
            endpoints.search_videos("")

    def test_video_search_uses_query_param(self) -> None:
        ep = endpoints.search_videos("maç")
        self.assertEqual(ep.path, ("videos",))
        self.assertEqual(dict(ep.params), {"search": "maç"})

    def test_latest_without_limit(self) -> None:
        self.assertEqual(endpoints.latest_posts().path, ("posts", "latest"))
        with self.assertRaises(ValueError):
            endpoints.latest_posts(0)


class TestCommentEndpoints(unittest.TestCase):
    def test_comment_filters_send_both_spellings(self) -> None:
        params = dict(endpoints.comments(42, "Article", page=3, per_page=20).params)
        self.assertEqual(params["reference_type"], "article")
        self.assertEqual(params["content_type"], "Article")
        self.assertEqual((params["page"], params["per_page"]), (3, 20))

    def test_like_is_post_and_validates_field(self) -> None:
        ep = endpoints.like_comment(9, " Dislike ")
        self.assertEqual(ep.method, "POST")
        self.assertEqual(ep.path, ("comments", "9", "like"))
        self.assertEqual(dict(ep.json_body or {}), {"field": "dislike"})
        with self.assertRaises(ValueError):
            endpoints.like_comment(9, "love")


class TestServiceEndpoints(unittest.TestCase):
    def test_optional_district_is_omitted(self) -> None:
        self.assertEqual(dict(endpoints.pharmacy("yozgat").params), {"city": "yozgat"})
        self.assertEqual(
            dict(endpoints.prayer_times("yozgat", "sorgun").params),
            {"city": "yozgat", "district": "sorgun"},
        )

    def test_author_search_only_when_non_blank(self) -> None:
        self.assertNotIn("search", endpoints.authors(search="  ").params)
        self.assertEqual(endpoints.authors(search="ali").params["search"], "ali")
        with self.assertRaises(ValueError):
            endpoints.authors(page=0)


if __name__ == "__main__":
    unittest.main()
