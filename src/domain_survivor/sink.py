from __future__ import annotations

import asyncio
from typing import Optional, TextIO

from loguru import logger

from .status import ScanStats


class ResultSink:
    """
    Single-consumer writer for matched domains.

    Any number of probe tasks call put(); one background task drains the queue
    and appends each domain as its own line, in arrival order. A failed write
    is logged and counted, never retried, and does not stop the drain.
    """

    _CLOSE = None

    def __init__(self, out: TextIO, stats: Optional[ScanStats] = None, maxsize: int = 0) -> None:
        self.out = out
        self.stats = stats
        self.written = 0
        self._q: "asyncio.Queue[Optional[str]]" = asyncio.Queue(maxsize=max(0, int(maxsize)))
        self._task: Optional["asyncio.Task[None]"] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._drain(), name="result-sink")

    async def put(self, domain: str) -> None:
        await self._q.put(domain)

    async def close(self) -> None:
        """Signal end of stream and wait until every queued result is written."""
        await self._q.put(self._CLOSE)
        if self._task is not None:
            await self._task
            self._task = None

    async def _drain(self) -> None:
        while True:
            domain = await self._q.get()
            if domain is self._CLOSE:
                break
            try:
                self.out.write(domain + "\n")
                self.out.flush()
                self.written += 1
            except (OSError, ValueError) as e:
                logger.error("sink: write failed for {}: {}", domain, e)
                if self.stats is not None:
                    self.stats.incr("write_errors")
