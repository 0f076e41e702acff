# core/channel_service.py
"""
Channel calculation entry point.

    service = ChannelService(display_bars, ChannelConfig(period=100))
    data = service.calculate(index)
    if data is not None:
        draw(data.reference_levels, data.window_levels)

With multi_timeframe enabled, `bars_provider` supplies the calculation
series for the configured timeframe (a mapping Timeframe -> BarSeries or a
callable taking the Timeframe).
"""

from __future__ import annotations
import logging
import time
from typing import Callable, Mapping, Optional, Sequence, Union

import pandas as pd

from core.bar_translator import BarIndexTranslator
from core.channel_cache import ChannelCache, cache_capacity
from core.channel_config import (
    COMPUTATION_FIELDS,
    ChannelConfig,
    ChannelMode,
    ConfigurationError,
)
from core.channel_data import ChannelData
from core.index_mapper import TimeframeIndexMapper
from core.levels import LevelAssembler
from core.timeframes import Timeframe
from core.window_builder import Window, WindowBuilder
from data.bars import BarSeries
from modules.factory import create_regression

logger = logging.getLogger(__name__)

BarsProvider = Union[Mapping[Timeframe, BarSeries], Callable[[Timeframe], BarSeries]]


class ChannelService:
    def __init__(
        self,
        display: BarSeries,
        config: Optional[ChannelConfig] = None,
        bars_provider: Optional[BarsProvider] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.display = display
        self.config = config if config is not None else ChannelConfig()
        self._bars_provider = bars_provider

        calculation = self._calculation_series(self.config)
        self.mapper = TimeframeIndexMapper(clock=clock)
        self.translator = BarIndexTranslator(
            display,
            calculation,
            timeframe=self.config.timeframe,
            multi_timeframe=self.config.multi_timeframe,
            mapper=self.mapper,
            clock=clock,
        )
        self.windows = WindowBuilder(self.translator)
        self.assembler = LevelAssembler(self.translator)
        self.strategy = create_regression(self.config.family, self.config.period, self.config.degree)
        self.cache: ChannelCache[ChannelData] = ChannelCache(
            cache_capacity(self.config.multi_timeframe, self.config.timeframe)
        )

    def calculate(self, index: int) -> Optional[ChannelData]:
        """
        Channel anchored at display bar `index`, or None when there is not
        enough confirmed data. In DATE_RANGE mode `index` is ignored.
        """
        if self.config.mode is ChannelMode.DATE_RANGE:
            return self._calculate_date_range()
        if index < 0 or index >= len(self.display) - 1:
            return None
        return self._calculate_rolling(index, self.config.period)

    def update_config(self, config: ChannelConfig) -> frozenset:
        """
        Make `config` the active configuration.

        Any change to a computation field rebuilds the regression strategy,
        re-targets the translator and empties every cache. Mode or date
        bound changes only empty the result cache. Returns the changed
        field names.
        """
        changed = self.config.changed_fields(config)
        if not changed:
            return changed

        if changed & COMPUTATION_FIELDS:
            calculation = self._calculation_series(config)
            strategy = create_regression(config.family, config.period, config.degree)
            self.config = config
            self.strategy = strategy
            self.translator.configure(calculation, config.timeframe, config.multi_timeframe)
            self.mapper.clear()
            self.cache = ChannelCache(cache_capacity(config.multi_timeframe, config.timeframe))
            logger.info("Channel config changed (%s), caches cleared", ", ".join(sorted(changed)))
        else:
            self.config = config
            self.cache.clear()
            logger.debug("Channel mode/range changed (%s), results cleared", ", ".join(sorted(changed)))
        return changed

    def set_date_range(self, start, end) -> None:
        if start is not None and end is not None:
            start, end = pd.Timestamp(start), pd.Timestamp(end)
            if start > end:
                start, end = end, start
        self.update_config(self.config.replace(mode=ChannelMode.DATE_RANGE, start=start, end=end))

    def set_mode(self, mode: Union[ChannelMode, str]) -> None:
        self.update_config(self.config.replace(mode=ChannelMode(mode)))

    def clear_cache(self) -> None:
        """Drop every cached result and index mapping."""
        self.cache.clear()
        self.translator.clear_mapping_cache()
        self.mapper.clear()
        logger.info("Channel caches cleared")

    def timeframe_value(self, display_index: int, values: Sequence[float]) -> float:
        return self.translator.timeframe_value(display_index, values)

    def _calculate_rolling(self, index: int, period: int) -> Optional[ChannelData]:
        cached = self.cache.get(index)
        if cached is not None and cached.mode is ChannelMode.ROLLING_PERIOD:
            return cached
        window = self.windows.rolling(index, period)
        if window is None:
            return None
        return self._compute(window, index, ChannelMode.ROLLING_PERIOD, key=index)

    def _calculate_date_range(self) -> Optional[ChannelData]:
        cfg = self.config
        window = self.windows.date_range(cfg.start, cfg.end)
        if window is None:
            anchor = self.translator.last_historical_display_index()
            logger.warning(
                "Fewer than 2 bars between %s and %s, falling back to the last %d bars",
                cfg.start, cfg.end, max(2, cfg.period),
            )
            if anchor < 0:
                return None
            return self._calculate_rolling(anchor, max(2, cfg.period))

        cached = self.cache.get(window.end)
        if cached is not None and cached.mode is ChannelMode.DATE_RANGE:
            return cached
        reference = self.assembler.date_range_reference_index(window)
        return self._compute(window, reference, ChannelMode.DATE_RANGE, key=window.end)

    def _compute(self, window: Window, reference_index: int, mode: ChannelMode, key: int) -> ChannelData:
        result = self.strategy.fit(window.xs, window.closes)
        data = self.assembler.assemble(
            self.strategy, result, window, self.config.width, reference_index, mode
        )
        self.cache.set(key, data)
        return data

    def _calculation_series(self, config: ChannelConfig) -> Optional[BarSeries]:
        if not config.multi_timeframe:
            return None
        provider = self._bars_provider
        if provider is None:
            raise ConfigurationError("multi_timeframe requires a bars_provider")
        try:
            if callable(provider):
                series = provider(config.timeframe)
            else:
                series = provider[config.timeframe]
        except KeyError as e:
            raise ConfigurationError(f"No {config.timeframe.value} bars available") from e
        if series is None:
            raise ConfigurationError(f"No {config.timeframe.value} bars available")
        return series
