from __future__ import annotations

from typing import Any

import httpx

from .config_schema import MetadataConfig
from .errors import MetadataError
from .http_retry import is_retryable_http_exception
from .retry import OnRetryFn, RetryConfig, SleepFn, call_with_retries


def _first_title(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        return None

    first = items[0]
    if not isinstance(first, dict):
        return None

    snippet = first.get("snippet")
    if not isinstance(snippet, dict):
        return None

    title = snippet.get("title")
    return title if isinstance(title, str) else None


class YouTubeMetadataClient:
    """
    Looks up video titles through the YouTube Data API.

    The API key travels as a query parameter; no Authorization header is sent.
    """

    def __init__(
        self,
        api_key: str,
        *,
        metadata: MetadataConfig,
        client: httpx.Client | None = None,
        retry: RetryConfig | None = None,
        on_retry: OnRetryFn | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self._api_key = api_key
        self._retry = retry or RetryConfig()
        self._on_retry = on_retry
        self._sleep_fn = sleep_fn
        self._owns_client = client is None

        if client is not None:
            self._client = client
        else:
            self._client = httpx.Client(
                base_url=metadata.base_url,
                timeout=metadata.timeout_seconds,
            )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "YouTubeMetadataClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def video_title(self, video_id: str) -> str | None:
        """
        Return the title of `video_id`, or None when the API has no such video.

        Transport and HTTP failures raise MetadataError.
        """
        vid = (video_id or "").strip()
        if not vid:
            raise MetadataError("video_id must be a non-empty string")

        params = {"id": vid, "part": "snippet", "key": self._api_key}

        def _do_get() -> Any:
            response = self._client.get("/youtube/v3/videos", params=params)
            response.raise_for_status()
            return response.json()

        try:
            payload = call_with_retries(
                _do_get,
                cfg=self._retry,
                is_retryable=is_retryable_http_exception,
                operation=f"youtube.videos:{vid}",
                on_retry=self._on_retry,
                sleep_fn=self._sleep_fn,
            )
        except httpx.HTTPError as e:
            # The request URL carries the API key, so it stays out of the message.
            raise MetadataError(f"Video lookup failed ({vid}): {type(e).__name__}") from e
        except ValueError as e:
            raise MetadataError(f"Video lookup ({vid}) returned invalid JSON: {e}") from e

        return _first_title(payload)
