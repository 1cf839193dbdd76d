from __future__ import annotations

import threading
import unittest
from typing import Any

from request_poller.batch import reduce_batch
from request_poller.enrich import enrich_requests
from request_poller.errors import MetadataError
from request_poller.normalize import raw_post_from_feed_item


def feed_post(post_id: str, *, tags: list[str], links: list[str], user: dict[str, Any] | None = None) -> dict[str, Any]:
    item: dict[str, Any] = {
        "id": post_id,
        "content": {
            "entities": {
                "tags": [{"text": t} for t in tags],
                "links": [{"link": link} for link in links],
            }
        },
    }
    if user is not None:
        item["user"] = user
    return item


class FakeMetadata:
    def __init__(self, titles: dict[str, str], *, failing: set[str] | None = None) -> None:
        self.titles = dict(titles)
        self.failing = set(failing or ())
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def video_title(self, video_id: str) -> str | None:
        with self._lock:
            self.calls.append(video_id)
        if video_id in self.failing:
            raise MetadataError(f"lookup failed for {video_id}")
        return self.titles.get(video_id)


def _requests(items: list[dict]) -> list:
    posts = [raw_post_from_feed_item(i) for i in items]
    return reduce_batch(posts, queue_key="show").valid_requests


class TestEnrichRequests(unittest.TestCase):
    def test_merges_titles_and_author_fields(self) -> None:
        requests = _requests(
            [
                feed_post(
                    "1",
                    tags=["a"],
                    links=["https://youtu.be/dQw4w9WgXcQ"],
                    user={
                        "id": "9",
                        "username": "dancer",
                        "content": {"avatar_image": {"link": "https://example.com/a.png"}},
                    },
                ),
                feed_post(
                    "2",
                    tags=["a"],
                    links=["https://youtu.be/kJQP7kiw5Fk"],
                    user={"id": "10", "username": "quiet", "content": {}},
                ),
                feed_post("3", tags=["a"], links=["https://youtu.be/dQw4w9WgXcQ"]),
            ]
        )
        lookup = FakeMetadata({"dQw4w9WgXcQ": "Never Gonna Give You Up", "kJQP7kiw5Fk": "Despacito"})

        queued = enrich_requests(requests, lookup=lookup, source="poller")

        self.assertEqual(
            [q.to_record() for q in queued],
            [
                {
                    "postId": "1",
                    "videoId": "dQw4w9WgXcQ",
                    "videoEmbedLink": "https://www.youtube.com/embed/dQw4w9WgXcQ?autoplay=1&enablejsapi=1",
                    "title": "Never Gonna Give You Up",
                    "source": "poller",
                    "user": "dancer",
                    "userId": "9",
                    "avatarLink": "https://example.com/a.png",
                },
                {
                    "postId": "2",
                    "videoId": "kJQP7kiw5Fk",
                    "videoEmbedLink": "https://www.youtube.com/embed/kJQP7kiw5Fk?autoplay=1&enablejsapi=1",
                    "title": "Despacito",
                    "source": "poller",
                    "user": "quiet",
                    "userId": "10",
                    "avatarLink": "",
                },
                {
                    "postId": "3",
                    "videoId": "dQw4w9WgXcQ",
                    "videoEmbedLink": "https://www.youtube.com/embed/dQw4w9WgXcQ?autoplay=1&enablejsapi=1",
                    "title": "Never Gonna Give You Up",
                    "source": "poller",
                },
            ],
        )

    def test_drops_not_found_and_failed_lookups_only(self) -> None:
        requests = _requests(
            [
                feed_post("1", tags=["a"], links=["https://youtu.be/dQw4w9WgXcQ"]),
                feed_post("2", tags=["a"], links=["https://youtu.be/kJQP7kiw5Fk"]),
                feed_post("3", tags=["a"], links=["https://youtu.be/MISSINGVID1"]),
                feed_post("4", tags=["a"], links=["https://youtu.be/9bZkp7q19f0"]),
            ]
        )
        lookup = FakeMetadata(
            {"dQw4w9WgXcQ": "A", "kJQP7kiw5Fk": "B", "9bZkp7q19f0": "D"},
            failing={"kJQP7kiw5Fk"},
        )

        queued = enrich_requests(requests, lookup=lookup, source="poller", max_workers=2)

        self.assertEqual([q.post_id for q in queued], ["1", "4"])
        self.assertEqual(sorted(lookup.calls), sorted(["dQw4w9WgXcQ", "kJQP7kiw5Fk", "MISSINGVID1", "9bZkp7q19f0"]))

    def test_empty_input_makes_no_calls(self) -> None:
        lookup = FakeMetadata({})
        self.assertEqual(enrich_requests([], lookup=lookup, source="poller"), [])
        self.assertEqual(lookup.calls, [])


if __name__ == "__main__":
    unittest.main()
