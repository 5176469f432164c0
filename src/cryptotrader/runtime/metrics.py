"""Process-local counters for trade execution."""

from __future__ import annotations

import asyncio
from collections import Counter, deque
from statistics import mean
from typing import Deque, Dict


class TradeMetrics:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._counters: Counter[str] = Counter()
        self._latencies: Deque[float] = deque(maxlen=100)

    async def incr(self, key: str, value: int = 1) -> None:
        async with self._lock:
            self._counters[key] += value

    async def observe_latency(self, seconds: float) -> None:
        async with self._lock:
            self._latencies.append(seconds)

    async def snapshot(self) -> Dict[str, float]:
        async with self._lock:
            snapshot: Dict[str, float] = dict(self._counters)
            if self._latencies:
                snapshot["order_latency_avg"] = mean(self._latencies)
                snapshot["order_latency_max"] = max(self._latencies)
            return snapshot

    def reset(self) -> None:
        self._counters.clear()
        self._latencies.clear()


metrics = TradeMetrics()

__all__ = ["metrics", "TradeMetrics"]
