from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .normalize import parse_post_id


def _post(
    post_id: str,
    *,
    tags: Sequence[str],
    links: Sequence[str],
    username: str | None = None,
    avatar: str | None = None,
) -> dict[str, Any]:
    item: dict[str, Any] = {
        "id": post_id,
        "content": {
            "text": " ".join(f"#{t}" for t in tags) + " " + " ".join(links),
            "entities": {
                "tags": [{"text": t} for t in tags],
                "links": [{"link": link, "text": link} for link in links],
            },
        },
    }
    if username is not None:
        user: dict[str, Any] = {"id": f"u{post_id}", "username": username, "content": {}}
        if avatar:
            user["content"]["avatar_image"] = {"link": avatar}
        item["user"] = user
    return item


# Newest first, as the feed returns them.
_DEFAULT_OFFLINE_POSTS: list[dict[str, Any]] = [
    _post(
        "105",
        tags=["mondaynightdanceparty"],
        links=["https://www.youtube.com/watch?v=MISSINGVID1"],
        username="dj_late",
    ),
    _post(
        "104",
        tags=["mondaynightdanceparty", "nowplaying"],
        links=["https://youtu.be/dQw4w9WgXcQ"],
        username="host",
    ),
    _post(
        "103",
        tags=["mondaynightdanceparty"],
        links=["https://example.com/not-a-video"],
        username="lost_link",
    ),
    _post(
        "102",
        tags=["mondaynightdanceparty"],
        links=["https://example.com/blog", "https://www.youtube.com/embed/kJQP7kiw5Fk"],
        username="dancer_two",
        avatar="https://example.com/avatars/2.png",
    ),
    _post(
        "101",
        tags=["MondayNightDanceParty"],
        links=["https://youtu.be/dQw4w9WgXcQ"],
        username="dancer_one",
    ),
]

_DEFAULT_OFFLINE_TITLES: dict[str, str] = {
    "dQw4w9WgXcQ": "Rick Astley - Never Gonna Give You Up",
    "kJQP7kiw5Fk": "Luis Fonsi - Despacito ft. Daddy Yankee",
}


@dataclass
class OfflineFeedClient:
    """
    Network-free stand-in for the tag feed.

    Serves a fixed set of posts and honors since_id, so a second poll over
    the same store sees nothing new.
    """

    posts: Sequence[Mapping[str, Any]] = tuple(_DEFAULT_OFFLINE_POSTS)

    def fetch_posts(self, tag: str, *, since_id: int, count: int | None = None) -> list[dict[str, Any]]:
        _ = tag
        out = [
            dict(p)
            for p in self.posts
            if (parse_post_id(p.get("id")) or 0) > int(since_id)
        ]
        if count is not None:
            out = out[: max(0, int(count))]
        return out


@dataclass
class OfflineMetadataClient:
    """Title lookup backed by a dict; unknown ids read as "not found"."""

    titles: Mapping[str, str] = field(default_factory=lambda: dict(_DEFAULT_OFFLINE_TITLES))

    def video_title(self, video_id: str) -> str | None:
        return self.titles.get(video_id)
