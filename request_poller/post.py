from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .links import LinkInfo


@dataclass(frozen=True)
class PostAuthor:
    username: str | None = None
    user_id: str | None = None
    avatar_link: str | None = None


@dataclass(frozen=True)
class RawPost:
    """A feed post reduced to the fields the poller looks at."""

    id: str | None
    numeric_id: int | None = None

    has_content: bool = False
    text: str | None = None
    tags: Sequence[str] = ()
    links: Sequence[str] = ()

    author: PostAuthor | None = None


@dataclass(frozen=True)
class ValidRequest:
    post: RawPost
    link: LinkInfo
    queue_key: str


@dataclass(frozen=True)
class QueuedRequest:
    """A finalized request as appended to the show's request queue."""

    post_id: str | None
    video_id: str
    video_embed_link: str
    title: str
    source: str

    has_author: bool = False
    user: str | None = None
    user_id: str | None = None
    avatar_link: str | None = None

    @classmethod
    def from_valid_request(
        cls, request: ValidRequest, *, title: str, source: str
    ) -> "QueuedRequest":
        author = request.post.author
        if author is None:
            return cls(
                post_id=request.post.id,
                video_id=request.link.video_id,
                video_embed_link=request.link.embed_url,
                title=title,
                source=source,
            )

        return cls(
            post_id=request.post.id,
            video_id=request.link.video_id,
            video_embed_link=request.link.embed_url,
            title=title,
            source=source,
            has_author=True,
            user=author.username,
            user_id=author.user_id,
            avatar_link=author.avatar_link,
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "postId": self.post_id,
            "videoId": self.video_id,
            "videoEmbedLink": self.video_embed_link,
            "title": self.title,
            "source": self.source,
        }
        # Author fields travel together.
        if self.has_author or self.user is not None or self.user_id is not None:
            record["user"] = self.user
            record["userId"] = self.user_id
            record["avatarLink"] = self.avatar_link or ""
        return record
