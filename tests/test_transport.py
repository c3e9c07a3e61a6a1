from __future__ import annotations

import unittest

import httpx

from newsreader.config_schema import RetryConfig
from newsreader.errors import TransportError
from newsreader.transport import HttpxTransport, RetryEvent, _backoff_seconds


def _transport(handler, *, max_attempts: int = 3):
    sleeps: list[float] = []
    events: list[RetryEvent] = []
    client = httpx.Client(transport=httpx.MockTransport(handler))
    t = HttpxTransport(
        retry=RetryConfig(
            max_attempts=max_attempts,
            base_delay_seconds=0.5,
            max_delay_seconds=8.0,
            jitter_ratio=0.0,
        ),
        client=client,
        on_retry=events.append,
        sleep_fn=sleeps.append,
    )
    return t, sleeps, events


class TestHttpxTransport(unittest.TestCase):
    def test_retries_connect_errors_then_succeeds(self) -> None:
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if calls["n"] < 3:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"data": []})

        t, sleeps, events = _transport(handler)
        resp = t.get("https://news.example.com/api/v2/posts")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(calls["n"], 3)
        self.assertEqual(sleeps, [0.5, 1.0])
        self.assertEqual([e.next_attempt for e in events], [2, 3])
        self.assertEqual(events[0].error_type, "ConnectError")

    def test_gives_up_with_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        t, sleeps, _ = _transport(handler, max_attempts=2)
        with self.assertRaises(TransportError) as ctx:
            t.get("https://news.example.com/api/v2/posts")
        self.assertEqual(ctx.exception.url, "https://news.example.com/api/v2/posts")
        self.assertEqual(len(sleeps), 1)

    def test_http_errors_are_not_retried(self) -> None:
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            return httpx.Response(500, text="<html>error</html>", headers={"Content-Type": "text/html"})

        t, sleeps, _ = _transport(handler)
        resp = t.get("https://news.example.com/api/v2/posts")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.content_type, "text/html")
        self.assertEqual(calls["n"], 1)
        self.assertEqual(sleeps, [])

    def test_post_is_not_resent_after_read_timeout(self) -> None:
        bodies: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.content)
            raise httpx.ReadTimeout("no response", request=request)

        t, sleeps, events = _transport(handler)
        with self.assertRaises(TransportError):
            t.post_json("https://news.example.com/api/v2/comments", {"body": "Tebrikler"})
        self.assertEqual(len(bodies), 1)
        self.assertEqual(sleeps, [])
        self.assertEqual(events, [])

    def test_post_is_retried_when_connection_failed(self) -> None:
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if calls["n"] == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"data": None})

        t, sleeps, _ = _transport(handler)
        resp = t.post_json("https://news.example.com/api/v2/comments/1/like", {"field": "like"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(calls["n"], 2)
        self.assertEqual(sleeps, [0.5])

    def test_failure_message_omits_api_key(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        t, _, events = _transport(handler, max_attempts=2)
        with self.assertRaises(TransportError) as ctx:
            t.get("https://news.example.com/api/v2/posts?page=2&apiKey=SECRET")
        self.assertNotIn("SECRET", str(ctx.exception))
        self.assertEqual(ctx.exception.url, "https://news.example.com/api/v2/posts?page=2")
        self.assertNotIn("SECRET", events[0].context_url or "")

    def test_post_sends_json(self) -> None:
        seen: dict[str, bytes] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method.encode()
            seen["body"] = request.content
            return httpx.Response(200, json={"data": None})

        t, _, _ = _transport(handler)
        t.post_json("https://news.example.com/api/v2/comments/1/like", {"field": "like"})
        self.assertEqual(seen["method"], b"POST")
        self.assertIn(b'"field"', seen["body"])


class TestBackoff(unittest.TestCase):
    def test_exponential_and_capped(self) -> None:
        cfg = RetryConfig(max_attempts=10, base_delay_seconds=1.0, max_delay_seconds=4.0, jitter_ratio=0.0)
        self.assertEqual([_backoff_seconds(n, cfg) for n in (1, 2, 3, 4)], [1.0, 2.0, 4.0, 4.0])

    def test_jitter_stays_in_band(self) -> None:
        cfg = RetryConfig(base_delay_seconds=1.0, max_delay_seconds=1.0, jitter_ratio=0.25)
        for _ in range(20):
            self.assertTrue(0.75 <= _backoff_seconds(1, cfg) <= 1.25)


if __name__ == "__main__":
    unittest.main()
