from __future__ import annotations

import asyncio


class ConcurrencyLimiter:
    """
    Admission bound for in-flight probes.

    acquire() waits for a free slot; release() must run exactly once per
    successful acquire, whatever way the probe ends. in_flight and peak are
    tracked so the bound can be checked from outside.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self.limit = int(limit)
        self._sem = asyncio.Semaphore(self.limit)
        self.in_flight = 0
        self.peak = 0

    async def acquire(self) -> None:
        await self._sem.acquire()
        self.in_flight += 1
        if self.in_flight > self.peak:
            self.peak = self.in_flight

    def release(self) -> None:
        if self.in_flight <= 0:
            raise RuntimeError("release() without matching acquire()")
        self.in_flight -= 1
        self._sem.release()

    async def __aenter__(self) -> "ConcurrencyLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
