"""In-memory fixed-window rate limiter using cachetools.TTLCache.

Each client's window opens with its first request and lasts
``window_seconds``; the TTL cache drops the entry when the window ends, so
the next request opens a fresh one.  Suitable for single-process
deployments; counters are not shared between workers.  When more than
``max_clients`` clients are tracked, the least recently used window is
evicted before it expires, so that client starts a fresh count early.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog
from cachetools import TTLCache

from src.interfaces.rate_limiter import IRateLimiter

logger = structlog.get_logger(logger_name=__name__)


class _Window:
    """Mutable counter so increments do not restart the entry's TTL."""

    __slots__ = ("count",)

    def __init__(self) -> None:
        self.count = 0


class MemoryRateLimiter(IRateLimiter):
    """Allows ``max_requests`` per client per ``window_seconds``.

    Parameters
    ----------
    max_requests:
        Requests allowed inside one window (default 10).
    window_seconds:
        Window length in seconds (default 60).
    max_clients:
        Distinct clients tracked at once; the least recently used window is
        evicted beyond that.
    timer:
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        max_clients: int = 10_000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")
        self._max_requests = max_requests
        self._windows: TTLCache[str, _Window] = TTLCache(
            maxsize=max_clients, ttl=window_seconds, timer=timer
        )

    def check(self, identifier: str) -> bool:
        window = self._windows.get(identifier)
        if window is None:
            window = _Window()
            self._windows[identifier] = window

        if window.count >= self._max_requests:
            logger.info("rate_limit_exceeded", client=identifier, limit=self._max_requests)
            return False

        window.count += 1
        return True

    def reset(self, identifier: str | None = None) -> None:
        if identifier is None:
            self._windows.clear()
        else:
            self._windows.pop(identifier, None)

    def get_provider_name(self) -> str:
        return "memory"
