"""Minimum-interval rate limiter for outbound exchange calls."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """Async gate enforcing at least ``min_interval`` seconds between calls.

    Each exchange client owns one limiter and awaits :meth:`wait` before a
    request. Callers queue on an internal lock, so concurrent requests are
    spaced out rather than rejected.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must not be negative")
        self.min_interval = float(min_interval)
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_call: Optional[float] = None

    async def wait(self) -> float:
        """Block until the next call is allowed; return the seconds waited."""

        async with self._lock:
            waited = 0.0
            now = self._clock()
            if self._last_call is not None:
                delay = self.min_interval - (now - self._last_call)
                if delay > 0:
                    logger.debug("throttling for %.3fs", delay)
                    await self._sleep(delay)
                    waited = delay
                    now = self._clock()
            self._last_call = now
            return waited

    def reset(self) -> None:
        self._last_call = None

    async def __aenter__(self) -> "RateLimiter":
        await self.wait()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


__all__ = ["RateLimiter"]
