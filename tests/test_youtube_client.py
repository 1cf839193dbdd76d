from __future__ import annotations

import unittest
from typing import Callable

import httpx

from request_poller.config_schema import MetadataConfig
from request_poller.errors import MetadataError
from request_poller.retry import RetryConfig
from request_poller.youtube_client import YouTubeMetadataClient

_NO_WAIT = RetryConfig(max_attempts=2, base_delay_seconds=0.0, max_delay_seconds=0.0, jitter_ratio=0.0)


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    return httpx.Client(base_url="https://www.googleapis.com", transport=httpx.MockTransport(handler))


class TestYouTubeMetadataClient(unittest.TestCase):
    def test_returns_first_item_title(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"items": [{"snippet": {"title": "Never Gonna Give You Up"}}, {"snippet": {"title": "x"}}]},
            )

        with _client(handler) as http:
            client = YouTubeMetadataClient("key123", metadata=MetadataConfig(), client=http, retry=_NO_WAIT)
            title = client.video_title("dQw4w9WgXcQ")

        self.assertEqual(title, "Never Gonna Give You Up")
        self.assertEqual(seen[0].url.path, "/youtube/v3/videos")
        self.assertEqual(seen[0].url.params["id"], "dQw4w9WgXcQ")
        self.assertEqual(seen[0].url.params["part"], "snippet")
        self.assertEqual(seen[0].url.params["key"], "key123")
        self.assertNotIn("Authorization", seen[0].headers)

    def test_empty_or_missing_items_is_not_found(self) -> None:
        for body in [{"items": []}, {}, {"items": [{"id": "x"}]}]:
            with self.subTest(body=body):
                with _client(lambda request, body=body: httpx.Response(200, json=body)) as http:
                    client = YouTubeMetadataClient("k", metadata=MetadataConfig(), client=http, retry=_NO_WAIT)
                    self.assertIsNone(client.video_title("dQw4w9WgXcQ"))

    def test_http_failure_raises_metadata_error_without_key(self) -> None:
        with _client(lambda request: httpx.Response(403, json={"error": {"code": 403}})) as http:
            client = YouTubeMetadataClient("secret-key", metadata=MetadataConfig(), client=http, retry=_NO_WAIT)
            with self.assertRaises(MetadataError) as ctx:
                client.video_title("dQw4w9WgXcQ")

        self.assertNotIn("secret-key", str(ctx.exception))

    def test_rejects_empty_video_id(self) -> None:
        with _client(lambda request: httpx.Response(200, json={})) as http:
            client = YouTubeMetadataClient("k", metadata=MetadataConfig(), client=http, retry=_NO_WAIT)
            with self.assertRaises(MetadataError):
                client.video_title("  ")


if __name__ == "__main__":
    unittest.main()
