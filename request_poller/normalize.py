from __future__ import annotations

import math
from typing import Any, Mapping

from .post import PostAuthor, RawPost

_MAX_SAFE_ID = 2**53 - 1


def _coerce_str(value: Any) -> str | None:
    if isinstance(value, str):
        s = value.strip()
        return s if s else None
    return None


def _coerce_id(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        v = value.strip()
        return v if v else None
    if isinstance(value, int):
        return str(value)
    return None


def parse_post_id(value: Any) -> int | None:
    """
    Parse a feed identifier into a non-negative integer.

    Identifiers arrive as strings or numbers. Anything that does not parse
    to a finite, non-negative integer is treated as "no id".
    """
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        number = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = int(text)
        except ValueError:
            try:
                as_float = float(text)
            except ValueError:
                return None
            if not math.isfinite(as_float):
                return None
            number = int(as_float)
    else:
        return None

    if number < 0:
        return None
    return min(number, _MAX_SAFE_ID)


def _entity_texts(entities: Any, kind: str, field: str) -> tuple[str, ...]:
    if not isinstance(entities, Mapping):
        return ()

    raw = entities.get(kind)
    if not isinstance(raw, list):
        return ()

    out: list[str] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        value = item.get(field)
        if isinstance(value, str) and value:
            out.append(value)
    return tuple(out)


def _content_texts(content: Mapping[str, Any], kind: str, field: str) -> tuple[str, ...]:
    # pnut nests entities under content.entities; flatter payloads carry them on content.
    found = _entity_texts(content.get("entities"), kind, field)
    if found:
        return found
    return _entity_texts(content, kind, field)


def _author_from_user(user: Any) -> PostAuthor | None:
    if not isinstance(user, Mapping):
        return None

    avatar_link = None
    content = user.get("content")
    if isinstance(content, Mapping):
        avatar = content.get("avatar_image")
        if isinstance(avatar, Mapping):
            avatar_link = _coerce_str(avatar.get("link"))

    return PostAuthor(
        username=_coerce_str(user.get("username")),
        user_id=_coerce_id(user.get("id")),
        avatar_link=avatar_link,
    )


def raw_post_from_feed_item(item: Mapping[str, Any]) -> RawPost:
    """
    Best-effort extraction of a RawPost from one feed API item.

    Missing or malformed sections produce empty fields rather than errors,
    so classification can reject the post on its own terms.
    """
    raw_id = item.get("id")
    numeric_id = parse_post_id(raw_id)

    post_id = _coerce_id(raw_id)
    if post_id is None and numeric_id is not None:
        post_id = str(numeric_id)

    content = item.get("content")
    has_content = isinstance(content, Mapping)

    text = None
    tags: tuple[str, ...] = ()
    links: tuple[str, ...] = ()
    if isinstance(content, Mapping):
        text = _coerce_str(content.get("text"))
        tags = _content_texts(content, "tags", "text")
        links = _content_texts(content, "links", "link")

    return RawPost(
        id=post_id,
        numeric_id=numeric_id,
        has_content=has_content,
        text=text,
        tags=tags,
        links=links,
        author=_author_from_user(item.get("user")),
    )
