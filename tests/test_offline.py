from __future__ import annotations

import unittest

from request_poller.config_schema import AppConfig
from request_poller.cursor import WatermarkCursor
from request_poller.offline import OfflineFeedClient, OfflineMetadataClient
from request_poller.pipeline import STATUS_NO_NEW_POSTS, run_poll
from request_poller.storage import SQLiteShowStore


class TestOfflineFixtures(unittest.TestCase):
    def test_feed_honors_since_id_and_count(self) -> None:
        feed = OfflineFeedClient()

        self.assertEqual(len(feed.fetch_posts("t", since_id=0)), 5)
        self.assertEqual([p["id"] for p in feed.fetch_posts("t", since_id=103)], ["105", "104"])
        self.assertEqual(len(feed.fetch_posts("t", since_id=0, count=2)), 2)
        self.assertEqual(feed.fetch_posts("t", since_id=105), [])

    def test_metadata_knows_only_sample_titles(self) -> None:
        metadata = OfflineMetadataClient()
        self.assertIsNotNone(metadata.video_title("dQw4w9WgXcQ"))
        self.assertIsNone(metadata.video_title("MISSINGVID1"))

    def test_repeated_offline_polls_queue_each_request_once(self) -> None:
        cfg = AppConfig()
        with SQLiteShowStore.open(":memory:") as store:
            first = run_poll(
                cfg,
                cursor=WatermarkCursor(store),
                feed=OfflineFeedClient(),
                metadata=OfflineMetadataClient(),
                queue=store,
            )
            second = run_poll(
                cfg,
                cursor=WatermarkCursor(store),
                feed=OfflineFeedClient(),
                metadata=OfflineMetadataClient(),
                queue=store,
            )

            records = [r.record for r in store.list_requests(cfg.feed.tag)]

        self.assertEqual((first.valid, first.queued, first.watermark), (3, 2, 105))
        self.assertEqual(second.status, STATUS_NO_NEW_POSTS)
        self.assertEqual(sorted(r["videoId"] for r in records), ["dQw4w9WgXcQ", "kJQP7kiw5Fk"])
        by_post = {r["postId"]: r for r in records}
        self.assertEqual(by_post["102"]["avatarLink"], "https://example.com/avatars/2.png")
        self.assertEqual(by_post["101"]["avatarLink"], "")


if __name__ == "__main__":
    unittest.main()
