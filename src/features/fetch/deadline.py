"""Whole-exchange deadline for a single logical request."""

import contextlib
import socket
import threading
import time
from types import TracebackType
from typing import Any

import httpx

from src.features.fetch.errors import FetchTimeoutError


# httpcore trace event emitted once a TCP connection is open.
CONNECT_TCP_COMPLETE = "connection.connect_tcp.complete"


class ExchangeDeadline:
    """Bounds the wall-clock time of one request, its redirects and retry.

    Per-read timeouts alone cannot stop a server that drips bytes just fast
    enough. While the deadline is armed, a watchdog shuts down every socket
    the exchange opened once the total time is used up, which unblocks any
    pending read.

    Usage:
        with ExchangeDeadline(total, read_write) as deadline:
            client = httpx.Client(
                timeout=deadline.timeout(),
                event_hooks={"request": [deadline.prepare_request]},
            )
    """

    def __init__(self, total_seconds: float, read_write_seconds: float) -> None:
        """Initialize the deadline.

        Args:
            total_seconds: Time budget for the whole exchange.
            read_write_seconds: Per-operation timeout, clamped to what is left.
        """
        self._total_seconds = total_seconds
        self._read_write_seconds = read_write_seconds
        self.expires_at = time.monotonic() + total_seconds
        self._expired = threading.Event()
        self._sockets: list[socket.socket] = []
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def __enter__(self) -> "ExchangeDeadline":
        self._timer = threading.Timer(self.remaining(), self._expire)
        self._timer.daemon = True
        self._timer.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._timer is not None:
            self._timer.cancel()
        with self._lock:
            self._sockets.clear()

    @property
    def expired(self) -> bool:
        """Check if the deadline has passed."""
        return self._expired.is_set() or self.remaining() <= 0

    def remaining(self) -> float:
        """Get the seconds left before the deadline."""
        return max(self.expires_at - time.monotonic(), 0.0)

    def check(self) -> None:
        """Raise if the deadline has passed.

        Raises:
            FetchTimeoutError: If no time is left.
        """
        if self.expired:
            raise FetchTimeoutError(self.timeout_message())

    def timeout_message(self) -> str:
        """Describe the exceeded deadline."""
        return f"Total timeout of {self._total_seconds}s exceeded"

    def timeout(self) -> httpx.Timeout:
        """Build httpx timeouts clamped to the time left.

        Raises:
            FetchTimeoutError: If no time is left.
        """
        self.check()
        remaining = self.remaining()
        read_write = min(self._read_write_seconds, remaining)
        return httpx.Timeout(remaining, read=read_write, write=read_write)

    def prepare_request(self, request: httpx.Request) -> None:
        """Request hook: re-clamp timeouts and watch the connection of each hop.

        Raises:
            FetchTimeoutError: If the deadline passed before this hop.
        """
        request.extensions["timeout"] = self.timeout().as_dict()
        request.extensions["trace"] = self._trace

    def _trace(self, event_name: str, info: dict[str, Any]) -> None:
        if event_name != CONNECT_TCP_COMPLETE:
            return
        stream = info.get("return_value")
        if stream is None:
            return
        sock = stream.get_extra_info("socket")
        if sock is None:
            return
        with self._lock:
            self._sockets.append(sock)
        if self._expired.is_set():
            _shutdown(sock)

    def _expire(self) -> None:
        self._expired.set()
        with self._lock:
            sockets = list(self._sockets)
        for sock in sockets:
            _shutdown(sock)


def _shutdown(sock: socket.socket) -> None:
    # The socket may already be closed by the client.
    with contextlib.suppress(OSError):
        sock.shutdown(socket.SHUT_RDWR)
