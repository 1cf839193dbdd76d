from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from .batch import reduce_batch
from .config_schema import AppConfig
from .cursor import WatermarkCursor
from .enrich import TitleLookup, enrich_requests
from .normalize import raw_post_from_feed_item
from .queue_writer import RequestQueue, write_requests
from .run_log import NullRunLogger, RunLogger

STATUS_NO_NEW_POSTS = "no_new_posts"
STATUS_NO_VALID_REQUESTS = "no_valid_requests"
STATUS_COMPLETED = "completed"


class FeedFetcher(Protocol):
    def fetch_posts(self, tag: str, *, since_id: int, count: int | None = None) -> list[dict[str, Any]]: ...


@dataclass(frozen=True)
class PollResult:
    tag: str
    status: str
    previous_watermark: int
    watermark: int
    fetched: int
    valid: int
    enriched: int
    queued: int
    queue_keys: tuple[str, ...] = ()


def run_poll(
    config: AppConfig,
    *,
    cursor: WatermarkCursor,
    feed: FeedFetcher,
    metadata: TitleLookup,
    queue: RequestQueue,
    logger: RunLogger | None = None,
) -> PollResult:
    """
    Run one poll invocation for the configured tag.

    Order matters: the new watermark is written before enrichment starts, so
    a post is never fetched twice even if its lookup or queue write fails
    afterwards. Feed and cursor-read failures propagate to the caller.
    """
    log = logger or NullRunLogger()
    tag = config.feed.tag

    log.info("poll_started", tag=tag, page_size=config.feed.page_size)

    watermark, healed = cursor.read(tag)
    if healed:
        log.warning("watermark_reset", tag=tag, watermark=watermark)
    log.info("watermark_read", tag=tag, watermark=watermark)

    items = feed.fetch_posts(tag, since_id=watermark, count=config.feed.page_size)
    if not items:
        log.info("no_new_posts", tag=tag, watermark=watermark)
        return PollResult(
            tag=tag,
            status=STATUS_NO_NEW_POSTS,
            previous_watermark=watermark,
            watermark=watermark,
            fetched=0,
            valid=0,
            enriched=0,
            queued=0,
        )

    posts = [raw_post_from_feed_item(item) for item in items]
    batch = reduce_batch(
        posts,
        queue_key=tag,
        initial_watermark=watermark,
        now_playing_tag=config.requests.now_playing_tag,
    )
    log.info(
        "batch_reduced",
        tag=tag,
        fetched=len(posts),
        valid=len(batch.valid_requests),
        max_post_id=batch.max_post_id,
    )

    cursor.write(tag, batch.max_post_id)
    log.info("watermark_written", tag=tag, previous=watermark, watermark=batch.max_post_id)

    if not batch.valid_requests:
        log.info("no_valid_requests", tag=tag, fetched=len(posts))
        return PollResult(
            tag=tag,
            status=STATUS_NO_VALID_REQUESTS,
            previous_watermark=watermark,
            watermark=batch.max_post_id,
            fetched=len(posts),
            valid=0,
            enriched=0,
            queued=0,
        )

    enriched = enrich_requests(
        batch.valid_requests,
        lookup=metadata,
        source=config.requests.source,
        logger=log,
        max_workers=config.metadata.max_workers,
    )
    keys = write_requests(queue, tag, enriched, logger=log)

    log.info(
        "poll_completed",
        tag=tag,
        watermark=batch.max_post_id,
        valid=len(batch.valid_requests),
        enriched=len(enriched),
        queued=len(keys),
    )

    return PollResult(
        tag=tag,
        status=STATUS_COMPLETED,
        previous_watermark=watermark,
        watermark=batch.max_post_id,
        fetched=len(posts),
        valid=len(batch.valid_requests),
        enriched=len(enriched),
        queued=len(keys),
        queue_keys=tuple(keys),
    )
