from __future__ import annotations

from .links import first_link_info
from .post import RawPost, ValidRequest

NOW_PLAYING_TAG = "nowplaying"


def is_now_playing_post(post: RawPost, *, now_playing_tag: str = NOW_PLAYING_TAG) -> bool:
    key = now_playing_tag.casefold()
    return any(tag.casefold() == key for tag in post.tags)


def classify_post(
    post: RawPost,
    *,
    queue_key: str,
    now_playing_tag: str = NOW_PLAYING_TAG,
) -> ValidRequest | None:
    """
    Return a ValidRequest when the post is a media request, otherwise None.

    A post qualifies only if ALL are true:
    - it has content
    - the content carries at least one link
    - the content carries at least one tag
    - no tag is the "now playing" tag (those posts are status announcements)
    - one of the links resolves to an embeddable video (first match wins)
    """
    if not post.has_content:
        return None
    if not post.links:
        return None
    if not post.tags:
        return None
    if is_now_playing_post(post, now_playing_tag=now_playing_tag):
        return None

    link = first_link_info(post.links)
    if link is None:
        return None

    return ValidRequest(post=post, link=link, queue_key=queue_key)
