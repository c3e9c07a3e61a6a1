from __future__ import annotations

from dataclasses import dataclass

from .config import RuntimeSecrets
from .config_schema import AppConfig
from .deeplink import DeepLinkResolver
from .gateway import ContentGateway
from .models import AuthorArticle, AuthorProfile, CommentNode, Post
from .pagination import PagedListSession, author_articles, author_listing, comment_thread
from .run_log import NullLogger, RunLogger
from .search import Clock, SearchController
from .transport import HttpxTransport, Transport


@dataclass(frozen=True)
class Services:
    """
    Everything the view layer needs, built once from config and passed around
    explicitly. Sessions are created per surface through the factory methods.
    """

    config: AppConfig
    gateway: ContentGateway
    resolver: DeepLinkResolver
    logger: RunLogger | None = None
    clock: Clock | None = None

    def _surface_logger(self, surface: str) -> RunLogger | NullLogger:
        if self.logger is None:
            return NullLogger()
        return self.logger.for_surface(surface)

    def post_search(self) -> SearchController[Post]:
        return SearchController(
            self.gateway.search_posts,
            debounce_seconds=self.config.search.debounce_seconds,
            clock=self.clock,
            logger=self._surface_logger("post_search"),
        )

    def author_listing(self) -> PagedListSession[AuthorProfile]:
        return author_listing(
            self.gateway,
            page_size=self.config.pagination.authors_page_size,
            logger=self._surface_logger("authors"),
        )

    def author_articles(self, author_id: int) -> PagedListSession[AuthorArticle]:
        return author_articles(
            self.gateway,
            author_id,
            limit=self.config.pagination.author_articles_limit,
            logger=self._surface_logger(f"author_articles:{author_id}"),
        )

    def comment_thread(self, reference_id: int, reference_type: str) -> PagedListSession[CommentNode]:
        return comment_thread(
            self.gateway,
            reference_id,
            reference_type,
            per_page=self.config.pagination.comments_per_page,
            logger=self._surface_logger(f"comments:{reference_type}:{reference_id}"),
        )

    def thread_lines(self, root: CommentNode) -> list[tuple[int, CommentNode]]:
        """(indent depth, comment) rows for one top-level comment, capped at the configured depth."""
        return list(root.flatten(self.config.comments.max_reply_depth))


def _default_transport(config: AppConfig) -> Transport:
    return HttpxTransport(
        timeout_seconds=config.api.timeout_seconds,
        user_agent=config.api.user_agent,
        retry=config.transport.retry,
    )


def build_services(
    config: AppConfig,
    secrets: RuntimeSecrets,
    *,
    transport: Transport | None = None,
    logger: RunLogger | None = None,
    clock: Clock | None = None,
) -> Services:
    gateway = ContentGateway(
        transport if transport is not None else _default_transport(config),
        base_url=config.api.base_url,
        api_key=secrets.api_key,
        default_city=config.services.default_city,
        default_district=config.services.default_district,
        default_league=config.services.default_league,
        logger=logger.for_surface("gateway") if logger is not None else None,
    )
    resolver = DeepLinkResolver(
        gateway,
        window_size=config.resolver.window_size,
        logger=logger.for_surface("deeplink") if logger is not None else None,
    )
    return Services(
        config=config,
        gateway=gateway,
        resolver=resolver,
        logger=logger,
        clock=clock,
    )
