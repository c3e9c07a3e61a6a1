from __future__ import annotations

import argparse
import json
import sys
from typing import Sequence

from .config import config_sha256, load_config, resolve_runtime_secrets
from .errors import ConfigError, FetchError, ResolutionError
from .run_log import RunLogger
from .services import Services, build_services


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        required=True,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Serve canned payloads instead of calling the content API.",
    )
    parser.add_argument(
        "--log",
        default=None,
        help="Write a JSONL event log to this path.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="newsreader")

    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser(
        "resolve",
        help="Resolve a shared link into a content kind and id.",
    )
    _add_common(resolve)
    resolve.add_argument("url", help="Deep-link URL, e.g. https://host/videos/some-slug")
    resolve.set_defaults(_handler=_cmd_resolve)

    notification = subparsers.add_parser(
        "notification",
        help="Resolve the link carried by a push-notification payload (JSON).",
    )
    _add_common(notification)
    notification.add_argument("payload", help="Notification payload as a JSON object.")
    notification.set_defaults(_handler=_cmd_notification)

    search = subparsers.add_parser(
        "search",
        help="Run one full-text post search.",
    )
    _add_common(search)
    search.add_argument("query", help="Search text.")
    search.set_defaults(_handler=_cmd_search)

    authors = subparsers.add_parser(
        "authors",
        help="List authors page by page.",
    )
    _add_common(authors)
    authors.add_argument("--search", default=None, help="Filter authors by name.")
    authors.add_argument(
        "--pages",
        type=int,
        default=1,
        help="Maximum number of pages to load (default: 1).",
    )
    authors.set_defaults(_handler=_cmd_authors)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _services(args: argparse.Namespace, log: RunLogger | None) -> Services:
    cfg = load_config(args.config)
    secrets = resolve_runtime_secrets(cfg)

    transport = None
    if bool(getattr(args, "offline", False)):
        from .offline import OfflineTransport

        transport = OfflineTransport()

    if log is not None:
        log.info(
            "config_loaded",
            config_path=str(args.config),
            config_sha256=config_sha256(cfg),
            base_url=cfg.api.base_url,
            offline=transport is not None,
        )
    return build_services(cfg, secrets, transport=transport, logger=log)


def _cmd_resolve(args: argparse.Namespace, log: RunLogger | None) -> int:
    services = _services(args, log)
    ref = services.resolver.resolve(args.url)
    print(f"kind={ref.kind.value}")
    print(f"id={ref.id}")
    return 0


def _cmd_notification(args: argparse.Namespace, log: RunLogger | None) -> int:
    try:
        payload = json.loads(args.payload)
    except ValueError as e:
        raise ConfigError(f"Notification payload is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ConfigError("Notification payload must be a JSON object")

    services = _services(args, log)
    ref = services.resolver.resolve_notification(payload)
    print(f"kind={ref.kind.value}")
    print(f"id={ref.id}")
    return 0


def _cmd_search(args: argparse.Namespace, log: RunLogger | None) -> int:
    services = _services(args, log)
    controller = services.post_search()
    controller.search_now(args.query)

    if controller.error is not None:
        raise controller.error

    print(f"state={controller.state.value}")
    print(f"result_count={len(controller.results)}")
    for post in controller.results:
        print(f"result={post.id}\t{post.slug}\t{post.name}")
    return 0


def _cmd_authors(args: argparse.Namespace, log: RunLogger | None) -> int:
    if args.pages < 1:
        raise ConfigError("--pages must be >= 1")

    services = _services(args, log)
    listing = services.author_listing()

    if args.search:
        listing.search(args.search)
    else:
        listing.reload()

    pages = 1
    while pages < args.pages and listing.load_more():
        pages += 1

    if listing.error is not None and not listing.items:
        raise listing.error

    print(f"author_count={len(listing.items)}")
    print(f"page={listing.cursor.page}")
    print(f"has_more={str(listing.has_more).lower()}")
    for author in listing.items:
        print(f"author={author.id}\t{author.name}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    log = RunLogger.open(args.log, overwrite=True) if args.log else None
    try:
        handler = getattr(args, "_handler")
        return int(handler(args, log))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except ResolutionError as e:
        _eprint(f"Could not resolve link ({e.reason}): {e}")
        return 3
    except FetchError as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        if log is not None:
            log.exception("command_failed", exc=e, command=args.command)
        _eprint(f"Unexpected error: {e}")
        return 1
    finally:
        if log is not None:
            log.close()
