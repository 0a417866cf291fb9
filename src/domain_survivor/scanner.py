from __future__ import annotations

import asyncio
import time
from typing import Iterable, Optional, Set, TextIO

import aiohttp
from loguru import logger

from .config import ScanConfig
from .limiter import ConcurrencyLimiter
from .prober import Prober, build_headers, build_timeout
from .proxies import ProxyRotator
from .sink import ResultSink
from .status import ScanStats
from .utils import batched


async def scan_domains(
    domains: Iterable[str],
    config: ScanConfig,
    out: TextIO,
    rotator: Optional[ProxyRotator] = None,
    stats: Optional[ScanStats] = None,
    limiter: Optional[ConcurrencyLimiter] = None,
) -> ScanStats:
    """
    Bounded probe pool:
    - Domains are pulled `batch_size` at a time so the feed never runs far
      ahead of admission.
    - A task is only spawned after the limiter grants it a slot; the slot is
      released in the task's finally block.
    - Matches go through a single ResultSink, closed once every task is done.
    """
    stats = stats or ScanStats()
    stats.workers = config.workers
    rotator = rotator or ProxyRotator()
    limiter = limiter or ConcurrencyLimiter(config.workers)

    connector = aiohttp.TCPConnector(
        limit=config.workers,
        limit_per_host=0,
        force_close=config.new_connection,
        ssl=config.verify_ssl,
    )
    stats.start()
    logger.info(
        "scan: start workers={} timeout={:.1f}s status={} alive={} baseline={} threshold={} "
        "drop_redirects={} new_connection={} proxies={}",
        config.workers,
        config.timeout,
        config.target_status,
        config.check_alive,
        config.use_baseline,
        config.baseline_threshold,
        config.drop_redirects,
        config.new_connection,
        len(rotator),
    )

    async with aiohttp.ClientSession(
        headers=build_headers(config),
        timeout=build_timeout(config),
        connector=connector,
        trust_env=False,
    ) as session:
        prober = Prober(session, config, rotator, stats)
        sink = ResultSink(out, stats, maxsize=config.workers * 2)
        sink.start()
        pending: Set["asyncio.Task[None]"] = set()

        async def run_one(domain: str) -> None:
            try:
                if await prober.probe(domain):
                    stats.incr("matched")
                    await sink.put(domain)
            except Exception:
                # One broken domain must not take the scan down
                stats.incr("unexpected_errors")
                logger.exception("scan: unexpected error probing {}", domain)
            finally:
                limiter.release()
                stats.incr("completed")

        try:
            for batch in batched(domains, config.batch_size):
                for domain in batch:
                    await limiter.acquire()
                    stats.incr("submitted")
                    task = asyncio.create_task(run_one(domain))
                    pending.add(task)
                    task.add_done_callback(pending.discard)
        finally:
            # A failing feed still lets admitted probes finish and flush
            if pending:
                await asyncio.gather(*pending)
            await sink.close()

    stats.finish(peak_in_flight=limiter.peak)
    logger.success("scan: done {}", stats.summary())
    return stats


def run_scan(
    domains: Iterable[str],
    config: ScanConfig,
    out: TextIO,
    rotator: Optional[ProxyRotator] = None,
    stats: Optional[ScanStats] = None,
) -> ScanStats:
    """Blocking wrapper around scan_domains() for callers without an event loop."""
    t0 = time.perf_counter()
    result = asyncio.run(scan_domains(domains, config, out, rotator=rotator, stats=stats))
    logger.debug("scan: event loop closed after {:.2f}s", time.perf_counter() - t0)
    return result
