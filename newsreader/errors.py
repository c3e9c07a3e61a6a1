from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class FetchError(RuntimeError):
    """Base class for every failure of a single content request."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.url = url


class TransportError(FetchError):
    """Raised when the request never produced an HTTP response (network, timeout)."""


class ServerError(FetchError):
    """Raised for HTTP 5xx responses."""

    def __init__(self, message: str, *, status_code: int, url: str | None = None) -> None:
        super().__init__(message, url=url)
        self.status_code = int(status_code)


class ClientError(FetchError):
    """Raised for HTTP 4xx responses."""

    def __init__(self, message: str, *, status_code: int, url: str | None = None) -> None:
        super().__init__(message, url=url)
        self.status_code = int(status_code)


class UnexpectedFormat(FetchError):
    """Raised when a response body is HTML, plain text or otherwise not JSON."""

    def __init__(
        self, message: str, *, status_code: int | None = None, url: str | None = None
    ) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class DecodeError(FetchError):
    """Raised when JSON parsed but a required field is missing or has the wrong shape."""

    def __init__(self, field: str, message: str | None = None, *, url: str | None = None) -> None:
        super().__init__(message or f"missing or malformed required field: {field}", url=url)
        self.field = field


class ResolutionError(RuntimeError):
    """Raised when a deep link cannot be turned into a navigable content reference."""

    def __init__(self, reason: str, message: str | None = None, *, url: str | None = None) -> None:
        super().__init__(message or f"deep link resolution failed ({reason})")
        self.reason = reason
        self.url = url
