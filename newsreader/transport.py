from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from .config_schema import RetryConfig
from .errors import TransportError


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value or ""
        return ""


class Transport(Protocol):
    """The HTTP collaborator the gateway consumes. Retries, if any, live behind it."""

    def get(self, url: str) -> HttpResponse: ...

    def post_json(self, url: str, body: Mapping[str, Any]) -> HttpResponse: ...


@dataclass(frozen=True)
class RetryEvent:
    operation: str
    failure_attempt: int
    next_attempt: int
    max_attempts: int
    delay_seconds: float
    error_type: str
    error_message: str
    context_url: str | None


OnRetryFn = Callable[[RetryEvent], None]
SleepFn = Callable[[float], None]

# Failures where the request never reached the server; safe to resend a POST.
_CONNECT_FAILURES = (httpx.ConnectError, httpx.ConnectTimeout)

_SECRET_PARAMS = frozenset({"apikey"})


def redact_url(url: str) -> str:
    """Drop credential query parameters so the URL can be logged or shown."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    kept = [
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if k.lower() not in _SECRET_PARAMS
    ]
    return urlunsplit(parts._replace(query=urlencode(kept)))


def _retryable(method: str, exc: httpx.TransportError) -> bool:
    if method == "GET":
        return True
    return isinstance(exc, _CONNECT_FAILURES)


def _backoff_seconds(failure_attempt: int, cfg: RetryConfig) -> float:
    # failure_attempt=1 => base delay.
    exponent = max(0, int(failure_attempt) - 1)
    delay = cfg.base_delay_seconds * (2**exponent)
    delay = min(cfg.max_delay_seconds, max(0.0, float(delay)))
    if delay == 0.0 or cfg.jitter_ratio <= 0:
        return delay
    return max(0.0, delay * random.uniform(1.0 - cfg.jitter_ratio, 1.0 + cfg.jitter_ratio))


class HttpxTransport:
    """
    Synchronous transport on top of httpx.Client.

    Only network-level failures are retried, and a POST only when the connection
    was never established, so a comment or like is not delivered twice. Any HTTP
    status, including 5xx, is returned as-is for the gateway to classify.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        user_agent: str | None = None,
        retry: RetryConfig | None = None,
        client: httpx.Client | None = None,
        on_retry: OnRetryFn | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self._retry = retry or RetryConfig()
        self._on_retry = on_retry
        self._sleep_fn = sleep_fn or time.sleep

        if client is not None:
            self._client = client
        else:
            headers = {"Accept": "application/json"}
            if user_agent:
                headers["User-Agent"] = user_agent
            self._client = httpx.Client(
                headers=headers,
                timeout=timeout_seconds,
                follow_redirects=True,
            )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def get(self, url: str) -> HttpResponse:
        return self._send("GET", url, None)

    def post_json(self, url: str, body: Mapping[str, Any]) -> HttpResponse:
        return self._send("POST", url, dict(body))

    def _send(self, method: str, url: str, body: dict[str, Any] | None) -> HttpResponse:
        max_attempts = int(self._retry.max_attempts)

        for attempt in range(1, max_attempts + 1):
            try:
                if body is None:
                    resp = self._client.request(method, url)
                else:
                    resp = self._client.request(method, url, json=body)
            except httpx.TransportError as exc:
                safe_url = redact_url(url)
                if attempt >= max_attempts or not _retryable(method, exc):
                    raise TransportError(
                        f"{method} {safe_url} failed: {type(exc).__name__}", url=safe_url
                    ) from exc

                delay = _backoff_seconds(attempt, self._retry)
                if self._on_retry is not None:
                    self._on_retry(
                        RetryEvent(
                            operation=f"http.{method.lower()}",
                            failure_attempt=attempt,
                            next_attempt=attempt + 1,
                            max_attempts=max_attempts,
                            delay_seconds=delay,
                            error_type=type(exc).__name__,
                            error_message=(str(exc) or "").strip(),
                            context_url=safe_url,
                        )
                    )
                if delay > 0:
                    self._sleep_fn(delay)
                continue

            return HttpResponse(
                status_code=resp.status_code,
                headers=dict(resp.headers),
                body=resp.content,
            )

        raise RuntimeError(f"Retry loop exited unexpectedly for {method} {url}")
