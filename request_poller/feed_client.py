from __future__ import annotations

from typing import Any

import httpx

from .config_schema import MAX_PAGE_SIZE, FeedConfig
from .errors import FeedError
from .http_retry import is_retryable_http_exception
from .retry import OnRetryFn, RetryConfig, SleepFn, call_with_retries


class PnutFeedClient:
    """
    Thin wrapper around the pnut.io tag stream.

    Fetches exactly one bounded page per call; draining a larger backlog is
    left to later invocations.
    """

    def __init__(
        self,
        token: str,
        *,
        feed: FeedConfig,
        client: httpx.Client | None = None,
        retry: RetryConfig | None = None,
        on_retry: OnRetryFn | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self._feed = feed
        self._retry = retry or RetryConfig()
        self._on_retry = on_retry
        self._sleep_fn = sleep_fn
        self._owns_client = client is None

        if client is not None:
            self._client = client
        else:
            self._client = httpx.Client(
                base_url=feed.base_url,
                headers={"Authorization": f"Bearer {token}"},
                timeout=feed.timeout_seconds,
            )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "PnutFeedClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def fetch_posts(self, tag: str, *, since_id: int, count: int | None = None) -> list[dict[str, Any]]:
        """Return the page of posts for `tag` newer than `since_id`."""
        t = (tag or "").strip()
        if not t:
            raise FeedError("tag must be a non-empty string")

        page_size = int(count if count is not None else self._feed.page_size)
        page_size = max(1, min(MAX_PAGE_SIZE, page_size))

        params = {"since_id": max(0, int(since_id)), "count": page_size}
        path = f"/v0/posts/tag/{t}"

        def _do_get() -> Any:
            response = self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()

        try:
            payload = call_with_retries(
                _do_get,
                cfg=self._retry,
                is_retryable=is_retryable_http_exception,
                operation=f"feed.posts_by_tag:{t}",
                on_retry=self._on_retry,
                sleep_fn=self._sleep_fn,
            )
        except httpx.HTTPError as e:
            raise FeedError(f"Feed request failed for tag {t}: {e}") from e
        except ValueError as e:
            raise FeedError(f"Feed response for tag {t} was not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise FeedError(f"Unexpected feed response for tag {t}: {type(payload).__name__}")

        data = payload.get("data")
        if not isinstance(data, list):
            return []

        return [item for item in data if isinstance(item, dict)]
