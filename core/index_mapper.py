# core/index_mapper.py
"""
Timestamp -> bar index alignment against a (possibly coarser) bar series.

The mapper owns its cache: entries are keyed by the minute-quantized
timestamp, the series identity and the timeframe. Eviction is insertion
order (oldest inserted first), not least-recently-used.
"""

from __future__ import annotations
import logging
import math
import time
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from core.timeframes import NS_PER_MINUTE, Timeframe, to_nanos
from data.bars import BarSeries

logger = logging.getLogger(__name__)

NOT_FOUND = -1

CacheKey = Tuple[int, int, Timeframe]


class TimeframeIndexMapper:
    """
    Binary-search mapping of timestamps onto bar indices.

    Args:
        capacity: Cache size above which an opportunistic purge is attempted
        purge_fraction: Share of entries dropped per purge
        purge_interval: Minimum seconds between two purges
        clock: Monotonic clock in seconds (injectable for tests)
    """

    def __init__(
        self,
        capacity: int = 1000,
        purge_fraction: float = 0.2,
        purge_interval: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        if not 0.0 < purge_fraction <= 1.0:
            raise ValueError(f"purge_fraction must be in (0, 1], got {purge_fraction}")
        self.capacity = capacity
        self.purge_fraction = purge_fraction
        self.purge_interval = purge_interval
        self._clock = clock
        self._cache: Dict[CacheKey, int] = {}
        self._last_purge: Optional[float] = None

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        if self._cache:
            logger.debug("Clearing %d timestamp mappings", len(self._cache))
        self._cache.clear()

    def index_for_timestamp(self, t, series: BarSeries, timeframe: Timeframe) -> int:
        """
        Index of the bar whose [open, open + duration) contains t.

        Falls back to the last bar opening at or before t (gaps), and returns
        NOT_FOUND when t precedes the first bar.
        """
        n = len(series)
        if n == 0:
            return NOT_FOUND
        t_ns = to_nanos(t)
        key = (t_ns // NS_PER_MINUTE, series.uid, timeframe)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        idx = self._search(t_ns, series.open_times, timeframe.duration_ns)
        # a later bar may still come to contain t
        if idx < n - 1:
            self._cache[key] = idx
            self._maybe_purge()
        return idx

    def contains(self, t, series: BarSeries, i: int, timeframe: Timeframe) -> bool:
        if not 0 <= i < len(series):
            return False
        t_ns = to_nanos(t)
        open_ns = series.open_time(i)
        return open_ns <= t_ns < open_ns + timeframe.duration_ns

    def time_ratio(self, t, series: BarSeries, i: int, timeframe: Timeframe) -> float:
        """Fraction of bar i's nominal duration elapsed at t, clamped to [0, 1]."""
        duration = timeframe.duration_ns
        if duration <= 0:
            return 0.0
        ratio = (to_nanos(t) - series.open_time(i)) / duration
        return min(max(ratio, 0.0), 1.0)

    def interpolate(self, t, series: BarSeries, timeframe: Timeframe, values: Sequence[float]) -> float:
        """
        Value at t, linearly interpolated between values[i] and values[i + 1]
        by the position of t within [open(i), open(i + 1)).
        """
        i = self.index_for_timestamp(t, series, timeframe)
        if i < 0 or i >= len(values):
            return math.nan
        current = float(values[i])
        if i + 1 >= len(series) or i + 1 >= len(values):
            return current
        t0 = series.open_time(i)
        t1 = series.open_time(i + 1)
        span = t1 - t0
        if span <= 0:
            return current
        ratio = (to_nanos(t) - t0) / span
        return current + (float(values[i + 1]) - current) * ratio

    def _search(self, t_ns: int, open_times: np.ndarray, duration_ns: int) -> int:
        # last bar opening at or before t; it either contains t or is the
        # nearest predecessor across a gap
        pos = int(np.searchsorted(open_times, t_ns, side="right")) - 1
        if pos < 0:
            return NOT_FOUND
        if t_ns >= int(open_times[pos]) + duration_ns:
            logger.debug("Timestamp %d falls in a gap after bar %d", t_ns, pos)
        return pos

    def _maybe_purge(self) -> None:
        if len(self._cache) <= self.capacity:
            return
        now = self._clock()
        if self._last_purge is not None and now - self._last_purge < self.purge_interval:
            return
        n_drop = max(1, int(len(self._cache) * self.purge_fraction))
        for key in list(self._cache)[:n_drop]:
            del self._cache[key]
        self._last_purge = now
        logger.debug("Purged %d timestamp mappings (%d kept)", n_drop, len(self._cache))
