"""Process memory sampling for the end-of-run summary.

Samples are taken from the orchestrating thread only (run start, stage
boundaries, between write waves), so the peak is the highest sampled RSS,
not a true high-water mark.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import psutil

from .types import MemoryMetrics

logger = logging.getLogger(__name__)

RssSampler = Callable[[], int]


def rss_bytes() -> int:
    """Resident set size of the current process."""
    return int(psutil.Process().memory_info().rss)


class MemoryTracker:
    def __init__(self, sample: RssSampler = rss_bytes) -> None:
        self._sample = sample
        self.before = self._sample()
        self.peak = self.before

    def sample(self) -> int:
        rss = self._sample()
        if rss > self.peak:
            self.peak = rss
        logger.debug("rss=%d peak=%d", rss, self.peak)
        return rss

    def finish(self) -> MemoryMetrics:
        after = self.sample()
        return MemoryMetrics(
            before_bytes=self.before, after_bytes=after, peak_bytes=self.peak
        )
