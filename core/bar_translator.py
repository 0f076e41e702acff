# core/bar_translator.py
from __future__ import annotations
import logging
import math
import time
from typing import Callable, Dict, Optional, Sequence

import numpy as np

from core.index_mapper import NOT_FOUND, TimeframeIndexMapper
from core.timeframes import Timeframe
from data.bars import BarSeries

logger = logging.getLogger(__name__)


class BarIndexTranslator:
    """
    Translates display bar indices into calculation bar indices.

    With multi-timeframe disabled the calculation series is the display
    series and the mapping is the identity. Otherwise every display bar is
    mapped onto the calculation bar that contains its open time, and the
    result is cached per display index.
    """

    def __init__(
        self,
        display: BarSeries,
        calculation: Optional[BarSeries] = None,
        timeframe: Timeframe = Timeframe.H1,
        multi_timeframe: bool = False,
        mapper: Optional[TimeframeIndexMapper] = None,
        capacity: int = 1000,
        purge_fraction: float = 0.2,
        purge_interval: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.display = display
        self.mapper = mapper if mapper is not None else TimeframeIndexMapper(clock=clock)
        self.capacity = capacity
        self.purge_fraction = purge_fraction
        self.purge_interval = purge_interval
        self._clock = clock
        self._cache: Dict[int, int] = {}
        self._last_purge: Optional[float] = None
        self.calculation = display
        self.timeframe = timeframe
        self.multi_timeframe = False
        self.configure(calculation, timeframe, multi_timeframe)

    def configure(
        self,
        calculation: Optional[BarSeries],
        timeframe: Timeframe,
        multi_timeframe: bool,
    ) -> None:
        """Swap the calculation series and drop every cached mapping."""
        if multi_timeframe and calculation is None:
            raise ValueError("multi_timeframe requires a calculation series")
        self.calculation = calculation if multi_timeframe else self.display
        self.timeframe = timeframe
        self.multi_timeframe = multi_timeframe
        self.clear_mapping_cache()

    def clear_mapping_cache(self) -> None:
        if self._cache:
            logger.debug("Clearing %d display->calculation mappings", len(self._cache))
        self._cache.clear()

    def cache_size(self) -> int:
        return len(self._cache)

    def to_calculation_index(self, display_index: int) -> int:
        if display_index < 0 or display_index >= len(self.display):
            return NOT_FOUND
        if not self.multi_timeframe:
            return display_index

        cached = self._cache.get(display_index)
        if cached is not None:
            return cached

        idx = self.mapper.index_for_timestamp(
            self.display.open_time(display_index), self.calculation, self.timeframe
        )
        # the forming calculation bar may still change its membership
        if idx < len(self.calculation) - 1:
            self._cache[display_index] = idx
            self._maybe_purge()
        return idx

    def last_historical_calculation_index(self) -> int:
        return len(self.calculation) - 2

    def last_historical_display_index(self) -> int:
        """
        Display index at (or nearest before) the open time of the last
        historical calculation bar. Only historical display bars qualify.
        """
        calc_index = self.last_historical_calculation_index()
        if calc_index < 0 or len(self.display) < 2:
            return NOT_FOUND
        target = self.calculation.open_time(calc_index)
        historical = self.display.open_times[:len(self.display) - 1]
        return int(np.searchsorted(historical, target, side="right")) - 1

    def timeframe_value(self, display_index: int, values: Sequence[float]) -> float:
        """Per-display-bar value taken from a calculation-resolution array."""
        if display_index < 0 or display_index >= len(self.display):
            return math.nan
        if not self.multi_timeframe:
            if display_index >= len(values):
                return math.nan
            return float(values[display_index])
        return self.mapper.interpolate(
            self.display.open_time(display_index), self.calculation, self.timeframe, values
        )

    def _maybe_purge(self) -> None:
        if len(self._cache) <= self.capacity:
            return
        now = self._clock()
        if self._last_purge is not None and now - self._last_purge < self.purge_interval:
            return
        # oldest display indices go first
        n_drop = max(1, int(len(self._cache) * self.purge_fraction))
        for key in sorted(self._cache)[:n_drop]:
            del self._cache[key]
        self._last_purge = now
        logger.debug("Purged %d display mappings (%d kept)", n_drop, len(self._cache))
