from __future__ import annotations

import io
import json
import unittest

from newsreader.config import RuntimeSecrets
from newsreader.config_schema import AppConfig
from newsreader.models import CommentNode
from newsreader.offline import OfflineTransport
from newsreader.run_log import RunLogger
from newsreader.services import build_services


def _chain(depth: int) -> CommentNode:
    node = CommentNode(id=depth, body="b", author_name="n", reference_id=1, reference_type="post", created_at="t")
    for i in range(depth - 1, -1, -1):
        node = CommentNode(
            id=i,
            body="b",
            author_name="n",
            reference_id=1,
            reference_type="post",
            created_at="t",
            replies=(node,),
        )
    return node


class TestServices(unittest.TestCase):
    def _services(self, **cfg):
        config = AppConfig.model_validate(cfg)
        buf = io.StringIO()
        log = RunLogger(stream=buf, session_id="s")
        transport = OfflineTransport()
        services = build_services(
            config, RuntimeSecrets(api_key="k"), transport=transport, logger=log
        )
        return services, transport, buf

    def test_resolver_uses_configured_window(self) -> None:
        services, transport, buf = self._services(resolver={"window_size": 30})
        ref = services.resolver.resolve("https://h/haber/haber-12")
        self.assertEqual(ref.id, 1012)
        self.assertIn("/api/v2/posts/latest/30?apiKey=k", transport.requested[0])

        record = json.loads(buf.getvalue().splitlines()[-1])
        self.assertEqual(record["surface"], "deeplink")
        self.assertEqual(record["event"], "deeplink_resolved")

    def test_author_listing_uses_configured_page_size(self) -> None:
        services, transport, _ = self._services(pagination={"authors_page_size": 5})
        listing = services.author_listing()
        listing.reload()
        self.assertEqual(len(listing.items), 5)
        self.assertIn("per_page=5", transport.requested[0])

    def test_post_search_is_wired_to_gateway(self) -> None:
        services, _, _ = self._services()
        controller = services.post_search()
        controller.search_now("Haber 99")
        self.assertEqual([p.id for p in controller.results], [1099])

    def test_thread_lines_respect_max_reply_depth(self) -> None:
        services, _, _ = self._services(comments={"max_reply_depth": 3})
        rows = services.thread_lines(_chain(10))
        self.assertEqual([d for d, _ in rows], [0, 1, 2, 3])


if __name__ == "__main__":
    unittest.main()
