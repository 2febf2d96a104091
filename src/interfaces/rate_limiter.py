"""Abstract base class for request rate limiters.

The API keeps one limiter instance on ``app.state`` and consults it before
any route work, so the limiter is an owned, injectable component rather than
module-level state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: MemoryRateLimiter (src/providers/rate_limit/)
class IRateLimiter(ABC):
    """Contract for fixed-window per-client request limiting."""

    @abstractmethod
    def check(self, identifier: str) -> bool:
        """Record one request for *identifier*.

        Returns ``True`` if the request is allowed, ``False`` if the client
        has already used up its window.
        """

    @abstractmethod
    def reset(self, identifier: str | None = None) -> None:
        """Forget the window for one client, or for every client when ``None``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"memory"``."""
