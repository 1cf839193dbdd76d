from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .classify import NOW_PLAYING_TAG, classify_post
from .post import RawPost, ValidRequest


@dataclass
class BatchResult:
    max_post_id: int = 0
    valid_requests: list[ValidRequest] = field(default_factory=list)


def reduce_batch(
    posts: Iterable[RawPost],
    *,
    queue_key: str,
    initial_watermark: int = 0,
    now_playing_tag: str = NOW_PLAYING_TAG,
) -> BatchResult:
    """
    Fold a page of posts into the new watermark and the accepted requests.

    The watermark tracks every parsable post id, valid or not, so filtered
    posts are never fetched again. Posts without a parsable id do not move it.
    """
    result = BatchResult(max_post_id=max(0, int(initial_watermark)))

    for post in posts:
        if post.numeric_id is not None and post.numeric_id > result.max_post_id:
            result.max_post_id = post.numeric_id

        request = classify_post(post, queue_key=queue_key, now_playing_tag=now_playing_tag)
        if request is not None:
            result.valid_requests.append(request)

    return result
