from __future__ import annotations

from .config import config_sha256, load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .deeplink import DeepLinkResolver, url_from_notification
from .errors import (
    ClientError,
    ConfigError,
    DecodeError,
    FetchError,
    ResolutionError,
    ServerError,
    TransportError,
    UnexpectedFormat,
)
from .gateway import ContentGateway
from .models import ContentKind, ContentRef
from .pagination import PagedListSession
from .search import SearchController
from .services import Services, build_services

__all__ = [
    "AppConfig",
    "ClientError",
    "ConfigError",
    "ContentGateway",
    "ContentKind",
    "ContentRef",
    "DecodeError",
    "DeepLinkResolver",
    "FetchError",
    "PagedListSession",
    "ResolutionError",
    "SearchController",
    "ServerError",
    "Services",
    "TransportError",
    "UnexpectedFormat",
    "build_services",
    "config_sha256",
    "load_config",
    "resolve_runtime_secrets",
    "url_from_notification",
]
