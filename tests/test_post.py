from __future__ import annotations

import unittest

from request_poller.links import extract_link_info
from request_poller.post import PostAuthor, QueuedRequest, RawPost, ValidRequest

_EMBED = "https://www.youtube.com/embed/dQw4w9WgXcQ?autoplay=1&enablejsapi=1"


def _valid_request(author: PostAuthor | None) -> ValidRequest:
    link = extract_link_info("https://youtu.be/dQw4w9WgXcQ")
    assert link is not None
    post = RawPost(id="5", numeric_id=5, has_content=True, tags=("a",), links=(link.embed_url,), author=author)
    return ValidRequest(post=post, link=link, queue_key="show")


class TestQueuedRequestRecord(unittest.TestCase):
    def test_post_without_author_has_no_user_fields(self) -> None:
        queued = QueuedRequest.from_valid_request(_valid_request(None), title="T", source="poller")

        self.assertEqual(
            queued.to_record(),
            {
                "postId": "5",
                "videoId": "dQw4w9WgXcQ",
                "videoEmbedLink": _EMBED,
                "title": "T",
                "source": "poller",
            },
        )

    def test_author_fields_survive_without_avatar(self) -> None:
        author = PostAuthor(username=None, user_id=None, avatar_link=None)
        record = QueuedRequest.from_valid_request(
            _valid_request(author), title="T", source="poller"
        ).to_record()

        self.assertIsNone(record["user"])
        self.assertIsNone(record["userId"])
        self.assertEqual(record["avatarLink"], "")

    def test_directly_built_request_keeps_user_without_avatar(self) -> None:
        queued = QueuedRequest(
            post_id="5",
            video_id="dQw4w9WgXcQ",
            video_embed_link=_EMBED,
            title="T",
            source="poller",
            user="dancer",
            user_id="9",
        )

        record = queued.to_record()

        self.assertEqual(record["user"], "dancer")
        self.assertEqual(record["userId"], "9")
        self.assertEqual(record["avatarLink"], "")


if __name__ == "__main__":
    unittest.main()
