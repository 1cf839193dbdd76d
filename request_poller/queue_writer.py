from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Mapping, Protocol, Sequence

from .post import QueuedRequest
from .run_log import NullRunLogger, RunLogger


class RequestQueue(Protocol):
    def push_request(self, tag: str, record: Mapping[str, Any]) -> str: ...


def write_requests(
    queue: RequestQueue,
    tag: str,
    requests: Sequence[QueuedRequest],
    *,
    logger: RunLogger | None = None,
) -> list[str]:
    """
    Append each request to the tag's queue with one independent write apiece.

    A failed write is logged and skipped; the keys of the writes that
    succeeded are returned in input order.
    """
    if not requests:
        return []

    log = logger or NullRunLogger()

    def _write_one(request: QueuedRequest) -> str | None:
        try:
            key = queue.push_request(tag, request.to_record())
        except Exception as e:
            log.exception(
                "queue_write_failed",
                exc=e,
                tag=tag,
                post_id=request.post_id,
                video_id=request.video_id,
            )
            return None

        log.info(
            "request_queued",
            tag=tag,
            key=key,
            post_id=request.post_id,
            video_id=request.video_id,
            title=request.title,
        )
        return key

    with ThreadPoolExecutor(max_workers=len(requests), thread_name_prefix="queue") as ex:
        keys = list(ex.map(_write_one, requests))

    return [k for k in keys if k is not None]
