from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from colorama import Fore, Style, init as colorama_init

colorama_init(autoreset=True)
logger = logging.getLogger("domainsurvivor.status")

__all__ = [
    "ScanStats",
    "humanize_duration",
    "status_ticker",
]

_COUNTERS = (
    "submitted",
    "completed",
    "matched",
    "transport_errors",
    "redirects_dropped",
    "baseline_failures",
    "write_errors",
    "unexpected_errors",
)


def humanize_duration(seconds: float) -> str:
    s = max(0.0, float(seconds))
    m, s = divmod(int(round(s)), 60)
    h, m = divmod(m, 60)
    if h:
        return f"{h}h{m}m{s}s"
    if m:
        return f"{m}m{s}s"
    return f"{s}s"


@dataclass
class ScanStats:
    """Counters shared between the scan loop and the progress ticker thread."""

    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    workers: int = 0
    submitted: int = 0
    completed: int = 0
    matched: int = 0
    transport_errors: int = 0
    redirects_dropped: int = 0
    baseline_failures: int = 0
    write_errors: int = 0
    unexpected_errors: int = 0
    peak_in_flight: int = 0
    started_at: float = 0.0
    finished_at: float = 0.0

    def incr(self, name: str, n: int = 1) -> None:
        if name not in _COUNTERS:
            raise KeyError(name)
        with self.lock:
            setattr(self, name, getattr(self, name) + n)

    def start(self) -> None:
        with self.lock:
            self.started_at = time.monotonic()
            self.finished_at = 0.0

    def finish(self, peak_in_flight: int = 0) -> None:
        with self.lock:
            self.finished_at = time.monotonic()
            self.peak_in_flight = max(self.peak_in_flight, int(peak_in_flight))

    def elapsed(self) -> float:
        with self.lock:
            if not self.started_at:
                return 0.0
            end = self.finished_at or time.monotonic()
            return end - self.started_at

    def snapshot(self) -> Dict[str, int]:
        with self.lock:
            return {name: getattr(self, name) for name in _COUNTERS}

    def summary(self) -> str:
        snap = self.snapshot()
        elapsed = self.elapsed()
        rate = snap["completed"] / elapsed if elapsed > 0 else 0.0
        return (
            f"scanned={snap['completed']}/{snap['submitted']} matched={snap['matched']} "
            f"errors={snap['transport_errors']} redirects_dropped={snap['redirects_dropped']} "
            f"baseline_failures={snap['baseline_failures']} write_errors={snap['write_errors']} "
            f"elapsed={humanize_duration(elapsed)} rate={rate:.1f}/s peak_workers={self.peak_in_flight}"
        )


def status_ticker(stats: ScanStats, stop_evt: threading.Event, interval_s: float, total: Optional[int] = None) -> None:
    if interval_s <= 0:
        return

    while not stop_evt.wait(interval_s):
        snap = stats.snapshot()
        elapsed = stats.elapsed()
        completed = snap["completed"]
        in_flight = max(0, snap["submitted"] - completed)
        rate = completed / elapsed if elapsed > 0 else 0.0
        if total:
            pct = (completed / max(1, total)) * 100.0
            progress = f"{completed}/{total} ({pct:.1f}%)"
        else:
            progress = f"{completed}"
        msg = (
            f"{Fore.YELLOW}scan{Style.RESET_ALL}={progress} "
            f"inflight={in_flight}/{stats.workers} rate={rate:.1f}/s "
            f"| {Fore.GREEN}matched{Style.RESET_ALL}={snap['matched']} "
            f"| {Fore.RED}errors{Style.RESET_ALL}={snap['transport_errors']} "
            f"baseline_fail={snap['baseline_failures']} redirects={snap['redirects_dropped']} "
            f"| {Fore.CYAN}elapsed{Style.RESET_ALL}={humanize_duration(elapsed)}"
        )
        logger.info(msg)
