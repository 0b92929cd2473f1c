"""Bounded reads from HTTP response streams."""

import time

import httpx

from src.features.fetch.errors import FetchTimeoutError
from src.features.fetch.models import BoundedBody


def declared_content_length(response: httpx.Response) -> int | None:
    """Get the Content-Length the server declared, if usable.

    Args:
        response: HTTP response.

    Returns:
        Declared length, or None if absent, malformed or negative. Also None
        when the body is content-encoded, since the declared length then
        counts encoded bytes.
    """
    value = response.headers.get("content-length")
    if value is None:
        return None
    encoding = response.headers.get("content-encoding", "identity").strip().lower()
    if encoding not in ("", "identity"):
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


def _check_deadline(deadline: float | None, buffer: bytearray) -> None:
    if deadline is not None and time.monotonic() > deadline:
        msg = f"Total timeout exceeded after reading {len(buffer)} bytes"
        raise FetchTimeoutError(msg)


def read_bounded(
    response: httpx.Response,
    limit: int,
    deadline: float | None = None,
    chunk_size: int | None = None,
) -> BoundedBody:
    """Read at most ``limit`` bytes of a response body.

    The buffer is sized to the declared Content-Length when the server
    sends one below the limit, otherwise to the limit itself. Reading stops
    when the buffer is full or the stream ends. The deadline is checked
    before, during and after reading, so a late response fails even when it
    has no body. The response is always closed before returning.

    Args:
        response: Streaming HTTP response.
        limit: Hard cap on bytes kept.
        deadline: time.monotonic() value after which reading is aborted.
        chunk_size: Re-chunk the stream to this size; None yields data as it arrives.

    Returns:
        Bytes actually read, and whether the body may extend beyond them.

    Raises:
        FetchTimeoutError: If the deadline passes while reading.
    """
    declared = declared_content_length(response)
    buffer_size = min(limit, declared) if declared is not None else limit
    truncated = declared is not None and declared > limit
    buffer = bytearray()

    try:
        _check_deadline(deadline, buffer)
        if buffer_size > 0:
            for chunk in response.iter_bytes(chunk_size=chunk_size):
                _check_deadline(deadline, buffer)
                room = buffer_size - len(buffer)
                if len(chunk) > room:
                    buffer += chunk[:room]
                    truncated = True
                    break
                buffer += chunk
                if len(buffer) >= buffer_size:
                    break
        _check_deadline(deadline, buffer)
    finally:
        response.close()

    # Without a declared length a full buffer cannot rule out more data.
    if declared is None and len(buffer) >= limit:
        truncated = True

    return BoundedBody(data=bytes(buffer), truncated=truncated)
