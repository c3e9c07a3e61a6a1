from __future__ import annotations

import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ENV_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _validate_env_var_name(value: str) -> str:
    name = (value or "").strip()
    if not _ENV_NAME_RE.fullmatch(name):
        raise ValueError("must be a valid environment variable name")
    return name


PositiveInt = Annotated[int, Field(ge=1)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]


class ApiConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str = "https://www.yozgathakimiyet.com.tr"
    api_key_env: str = "NEWSREADER_API_KEY"
    timeout_seconds: float = Field(10.0, gt=0.0)
    user_agent: str = "newsreader-core"

    @field_validator("base_url")
    @classmethod
    def _base_url_must_be_http(cls, v: str) -> str:
        url = (v or "").strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return url

    @field_validator("api_key_env")
    @classmethod
    def _api_key_env_must_be_valid(cls, v: str) -> str:
        return _validate_env_var_name(v)


class RetryConfig(BaseModel):
    """
    Exponential backoff for network-level transport failures.

    - max_attempts counts the initial attempt (max_attempts=3 => 1 try + 2 retries).
    - base_delay_seconds is the first delay after the first failure.
    - jitter_ratio adds multiplicative jitter in [1-jitter, 1+jitter].
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_attempts: PositiveInt = 3
    base_delay_seconds: NonNegativeFloat = 0.5
    max_delay_seconds: NonNegativeFloat = 8.0
    jitter_ratio: float = Field(0.25, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _max_delay_must_cover_base(self) -> "RetryConfig":
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        return self


class TransportConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    retry: RetryConfig = Field(default_factory=RetryConfig)


class ResolverConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    window_size: PositiveInt = 100


class SearchConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    debounce_seconds: NonNegativeFloat = 0.5


class PaginationConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    authors_page_size: PositiveInt = 12
    author_articles_limit: PositiveInt = 10
    comments_per_page: PositiveInt = 20


class ServicesConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    default_city: str = "istanbul"
    default_district: str | None = None
    default_league: str = "super-lig"

    @field_validator("default_city", "default_league")
    @classmethod
    def _must_be_non_empty(cls, v: str) -> str:
        value = (v or "").strip()
        if not value:
            raise ValueError("must be non-empty")
        return value


class CommentsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_reply_depth: PositiveInt = 8


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    api: ApiConfig = Field(default_factory=ApiConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    services: ServicesConfig = Field(default_factory=ServicesConfig)
    comments: CommentsConfig = Field(default_factory=CommentsConfig)
