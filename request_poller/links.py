from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

VIDEO_ID_LENGTH = 11

EMBED_URL_TEMPLATE = "https://www.youtube.com/embed/{video_id}?autoplay=1&enablejsapi=1"

# Greedy prefix: when several markers appear, the last one wins.
_VIDEO_LINK_RE = re.compile(
    r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=|\?v=)([^#&?]*).*"
)


@dataclass(frozen=True)
class LinkInfo:
    video_id: str
    embed_url: str


def extract_link_info(url: object) -> LinkInfo | None:
    """
    Resolve a URL to an embeddable video, or None when it is not one.

    Malformed input is not an error: anything that is not a string or does
    not match a known link form simply yields None.
    """
    if not isinstance(url, str):
        return None

    match = _VIDEO_LINK_RE.match(url)
    if match is None:
        return None

    video_id = match.group(2)
    if len(video_id) != VIDEO_ID_LENGTH:
        return None

    return LinkInfo(
        video_id=video_id,
        embed_url=EMBED_URL_TEMPLATE.format(video_id=video_id),
    )


def first_link_info(urls: Sequence[str]) -> LinkInfo | None:
    for url in urls:
        info = extract_link_info(url)
        if info is not None:
            return info
    return None
