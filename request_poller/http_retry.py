from __future__ import annotations

import httpx


def _parse_retry_after(response: httpx.Response) -> float | None:
    raw = (response.headers.get("Retry-After") or "").strip()
    if not raw:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        # HTTP-date form is not worth parsing for our short backoffs.
        return None
    if seconds < 0:
        return None
    return seconds


def is_retryable_http_exception(exc: BaseException) -> tuple[bool, float | None, str | None]:
    """
    Retry policy for the feed and metadata APIs:
    - connection errors and timeouts
    - HTTP 429 (honoring Retry-After)
    - HTTP 500+
    """
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        if code == 429:
            return True, _parse_retry_after(exc.response), "http_429"
        if code >= 500:
            return True, _parse_retry_after(exc.response), f"http_{code}"
        return False, None, f"http_{code}"

    if isinstance(exc, httpx.TimeoutException):
        return True, None, "timeout"

    if isinstance(exc, httpx.TransportError):
        return True, None, "network_error"

    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True, None, "network_error"

    return False, None, None
