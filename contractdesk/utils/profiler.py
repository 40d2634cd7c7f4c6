"""
Resource measurements for contract analysis runs.

`profile_block` times a block and samples the process with psutil while it
runs, so every analysis result can report how long it took and how much
memory the PDF and LLM round-trips cost.

Usage:
    from contractdesk.utils.profiler import profile_block

    with profile_block("analyze:contract.pdf") as stats:
        service.analyze_contract(file)

    log.info("done", extra=stats.as_dict())
"""

from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import dataclass
from typing import Any, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    label: str
    duration_seconds: float = 0.0
    peak_rss_bytes: Optional[int] = None
    cpu_percent: Optional[float] = None

    def as_dict(self) -> dict[str, Any]:
        """Log-friendly view with rounded numbers."""
        return {
            "label": self.label,
            "duration_seconds": round(self.duration_seconds, 3),
            "peak_rss_bytes": self.peak_rss_bytes,
            "cpu_percent": round(self.cpu_percent, 1) if self.cpu_percent is not None else None,
        }


class _RssSampler(threading.Thread):
    """Polls the resident set size until stopped and keeps the maximum."""

    def __init__(self, process: psutil.Process, interval_seconds: float) -> None:
        super().__init__(daemon=True)
        self._process = process
        self._interval = interval_seconds
        self._stopped = threading.Event()
        self.peak = process.memory_info().rss

    def run(self) -> None:
        while not self._stopped.is_set():
            try:
                self.peak = max(self.peak, self._process.memory_info().rss)
            except psutil.Error:
                return
            self._stopped.wait(self._interval)

    def stop(self) -> int:
        self._stopped.set()
        self.join(timeout=1.0)
        return self.peak


@contextlib.contextmanager
def profile_block(label: str, sample_interval_ms: int = 50) -> Generator[ProfileStats, None, None]:
    """
    Measure wall-clock time, peak RSS and CPU usage of the enclosed block.

    The stats object is yielded up front and filled in on exit, including
    when the block raises.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    # The first cpu_percent call only sets the baseline.
    process.cpu_percent(interval=None)
    sampler = _RssSampler(process, sample_interval_ms / 1000.0)
    sampler.start()

    started = time.perf_counter()
    try:
        yield stats
    finally:
        stats.duration_seconds = time.perf_counter() - started
        peak = sampler.stop()
        stats.peak_rss_bytes = peak if peak > 0 else None
        stats.cpu_percent = process.cpu_percent(interval=None)


__all__ = ["ProfileStats", "profile_block"]
