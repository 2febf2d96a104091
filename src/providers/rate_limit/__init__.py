"""Rate limiter implementations.

MemoryRateLimiter keeps per-client fixed windows in a cachetools TTLCache.
main.py stores one instance on app.state for the rate-limit middleware.
"""

from src.providers.rate_limit.memory_rate_limiter import MemoryRateLimiter

__all__ = ["MemoryRateLimiter"]
