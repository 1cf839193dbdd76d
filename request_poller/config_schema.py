from __future__ import annotations

import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ENV_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# The feed API refuses larger pages.
MAX_PAGE_SIZE = 100


def _validate_env_var_name(value: str) -> str:
    name = (value or "").strip()
    if not _ENV_NAME_RE.fullmatch(name):
        raise ValueError("must be a valid environment variable name")
    return name


def _validate_base_url(value: str) -> str:
    url = (value or "").strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        raise ValueError("must be an http(s) URL")
    return url


PositiveInt = Annotated[int, Field(ge=1)]
PositiveFloat = Annotated[float, Field(gt=0)]
NonNegativeFloat = Annotated[float, Field(ge=0)]


class FeedConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str = "https://api.pnut.io"
    tag: str = "mondaynightdanceparty"
    page_size: Annotated[int, Field(ge=1, le=MAX_PAGE_SIZE)] = MAX_PAGE_SIZE
    token_env: str = "PNUT_TOKEN"
    timeout_seconds: PositiveFloat = 15.0

    @field_validator("base_url")
    @classmethod
    def _base_url_must_be_http(cls, v: str) -> str:
        return _validate_base_url(v)

    @field_validator("tag")
    @classmethod
    def _normalize_tag(cls, v: str) -> str:
        tag = (v or "").strip()
        if tag.startswith("#"):
            tag = tag[1:].strip()
        if not tag:
            raise ValueError("must be a non-empty tag")
        return tag

    @field_validator("token_env")
    @classmethod
    def _token_env_must_be_valid(cls, v: str) -> str:
        return _validate_env_var_name(v)


class MetadataConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str = "https://www.googleapis.com"
    api_key_env: str = "YOUTUBE_API_KEY"
    timeout_seconds: PositiveFloat = 15.0
    max_workers: PositiveInt | None = None  # None: one worker per request

    @field_validator("base_url")
    @classmethod
    def _base_url_must_be_http(cls, v: str) -> str:
        return _validate_base_url(v)

    @field_validator("api_key_env")
    @classmethod
    def _api_key_env_must_be_valid(cls, v: str) -> str:
        return _validate_env_var_name(v)


class RequestsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    source: str = "poller"
    now_playing_tag: str = "nowplaying"

    @field_validator("source", "now_playing_tag")
    @classmethod
    def _must_be_non_empty(cls, v: str) -> str:
        value = (v or "").strip()
        if not value:
            raise ValueError("must be non-empty")
        return value


class RetrySettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_attempts: PositiveInt = 3
    base_delay_seconds: NonNegativeFloat = 0.5
    max_delay_seconds: NonNegativeFloat = 10.0

    @model_validator(mode="after")
    def _max_must_cover_base(self) -> "RetrySettings":
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        return self


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    feed: FeedConfig = Field(default_factory=FeedConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    requests: RequestsConfig = Field(default_factory=RequestsConfig)
    retry: RetrySettings = Field(default_factory=RetrySettings)
