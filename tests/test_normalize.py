from __future__ import annotations

import unittest

from request_poller.normalize import parse_post_id, raw_post_from_feed_item


class TestParsePostId(unittest.TestCase):
    def test_parses_strings_and_numbers(self) -> None:
        self.assertEqual(parse_post_id("5"), 5)
        self.assertEqual(parse_post_id(" 42 "), 42)
        self.assertEqual(parse_post_id(7), 7)
        self.assertEqual(parse_post_id(7.9), 7)
        self.assertEqual(parse_post_id("12.0"), 12)

    def test_unparsable_values_are_none(self) -> None:
        for value in [None, "", "abc", True, float("nan"), float("inf"), "-3", -1, [], {}]:
            with self.subTest(value=value):
                self.assertIsNone(parse_post_id(value))


class TestRawPostFromFeedItem(unittest.TestCase):
    def test_extracts_tags_links_and_author(self) -> None:
        item = {
            "id": "5",
            "content": {
                "text": "#dance https://youtu.be/dQw4w9WgXcQ",
                "entities": {
                    "tags": [{"text": "dance"}, {"len": 3}],
                    "links": [{"link": "https://youtu.be/dQw4w9WgXcQ", "text": "link"}],
                },
            },
            "user": {
                "id": "17",
                "username": "dancer",
                "content": {"avatar_image": {"link": "https://example.com/a.png"}},
            },
        }

        post = raw_post_from_feed_item(item)

        self.assertEqual(post.id, "5")
        self.assertEqual(post.numeric_id, 5)
        self.assertTrue(post.has_content)
        self.assertEqual(post.tags, ("dance",))
        self.assertEqual(post.links, ("https://youtu.be/dQw4w9WgXcQ",))
        assert post.author is not None
        self.assertEqual(post.author.username, "dancer")
        self.assertEqual(post.author.user_id, "17")
        self.assertEqual(post.author.avatar_link, "https://example.com/a.png")

    def test_tolerates_missing_sections(self) -> None:
        post = raw_post_from_feed_item({"id": "x", "is_deleted": True})

        self.assertEqual(post.id, "x")
        self.assertIsNone(post.numeric_id)
        self.assertFalse(post.has_content)
        self.assertEqual(post.tags, ())
        self.assertEqual(post.links, ())
        self.assertIsNone(post.author)

    def test_reads_tags_and_links_placed_directly_on_content(self) -> None:
        post = raw_post_from_feed_item(
            {
                "id": "5",
                "content": {
                    "tags": [{"text": "dance"}],
                    "links": [{"link": "https://youtu.be/dQw4w9WgXcQ"}],
                },
            }
        )

        self.assertEqual(post.tags, ("dance",))
        self.assertEqual(post.links, ("https://youtu.be/dQw4w9WgXcQ",))

    def test_entities_take_precedence_over_flat_content(self) -> None:
        post = raw_post_from_feed_item(
            {
                "id": "5",
                "content": {
                    "tags": [{"text": "flat"}],
                    "entities": {"tags": [{"text": "nested"}]},
                },
            }
        )

        self.assertEqual(post.tags, ("nested",))

    def test_numeric_float_id_keeps_a_post_id(self) -> None:
        post = raw_post_from_feed_item({"id": 5.0, "content": {}})

        self.assertEqual(post.numeric_id, 5)
        self.assertEqual(post.id, "5")

    def test_author_without_avatar(self) -> None:
        post = raw_post_from_feed_item({"id": 3, "content": {}, "user": {"id": 9, "username": "u"}})
        assert post.author is not None
        self.assertEqual(post.author.user_id, "9")
        self.assertIsNone(post.author.avatar_link)


if __name__ == "__main__":
    unittest.main()
