from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Protocol, Sequence

from .post import QueuedRequest, ValidRequest
from .run_log import NullRunLogger, RunLogger


class TitleLookup(Protocol):
    def video_title(self, video_id: str) -> str | None: ...


def enrich_requests(
    requests: Sequence[ValidRequest],
    *,
    lookup: TitleLookup,
    source: str,
    logger: RunLogger | None = None,
    max_workers: int | None = None,
) -> list[QueuedRequest]:
    """
    Look up every request's video title in parallel and build queue records.

    Each lookup stands alone: a video the API does not know, or a lookup that
    fails, drops only that request. Output keeps the input order.
    """
    if not requests:
        return []

    log = logger or NullRunLogger()

    def _enrich_one(request: ValidRequest) -> QueuedRequest | None:
        video_id = request.link.video_id
        try:
            title = lookup.video_title(video_id)
        except Exception as e:
            log.exception(
                "metadata_lookup_failed",
                exc=e,
                tag=request.queue_key,
                post_id=request.post.id,
                video_id=video_id,
            )
            return None

        if title is None:
            log.info(
                "metadata_not_found",
                tag=request.queue_key,
                post_id=request.post.id,
                video_id=video_id,
            )
            return None

        return QueuedRequest.from_valid_request(request, title=title, source=source)

    workers = len(requests) if max_workers is None else max(1, min(int(max_workers), len(requests)))

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="enrich") as ex:
        results = list(ex.map(_enrich_one, requests))

    return [r for r in results if r is not None]
