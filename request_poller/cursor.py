from __future__ import annotations

import math
from typing import Any, Mapping, Protocol

WATERMARK_FIELD = "lastRequestPostId"


class MetaStore(Protocol):
    def get_meta(self, tag: str) -> dict[str, Any] | None: ...

    def update_meta(self, tag: str, fields: Mapping[str, Any]) -> None: ...


def coerce_watermark(value: Any) -> int | None:
    """Return the stored watermark as an int, or None when it is missing or unusable."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    number = int(value)
    if number <= 0:
        return None
    return number


class WatermarkCursor:
    """Reads and writes the per-tag "last seen post id" watermark."""

    def __init__(self, store: MetaStore, *, field: str = WATERMARK_FIELD) -> None:
        self._store = store
        self._field = field

    def read(self, tag: str) -> tuple[int, bool]:
        """
        Return (watermark, healed).

        A missing, zero or non-numeric watermark reads as 0 and is written
        back as 0 so the meta document is valid for the next invocation.
        """
        meta = self._store.get_meta(tag) or {}
        watermark = coerce_watermark(meta.get(self._field))
        if watermark is not None:
            return watermark, False

        self.write(tag, 0)
        return 0, True

    def write(self, tag: str, watermark: int) -> None:
        self._store.update_meta(tag, {self._field: int(watermark)})
