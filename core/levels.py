# core/levels.py
"""
Level assembly: turns a regression fit into nine proportional levels per
display bar.

Levels run from 100% (upper band) to 0% (lower band) of
[center - half_width, center + half_width].
"""

from __future__ import annotations
import logging
from typing import Dict, Tuple

import numpy as np

from core.bar_translator import BarIndexTranslator
from core.channel_config import ChannelMode
from core.channel_data import ChannelData, Levels
from core.window_builder import Window
from modules.base import RegressionResult, RegressionStrategy

logger = logging.getLogger(__name__)

PROPORTIONS: Tuple[float, ...] = (1.0, 0.886, 0.764, 0.618, 0.5, 0.382, 0.236, 0.114, 0.0)


def proportional_levels(center: float, half_width: float) -> Levels:
    lower = center - half_width
    upper = center + half_width
    span = upper - lower
    return tuple(lower + span * p for p in PROPORTIONS)


def extrapolate_levels(last: Levels, second_last: Levels) -> Levels:
    """Continue each level by its last per-bar step."""
    return tuple(a + (a - b) for a, b in zip(last, second_last))


class LevelAssembler:
    def __init__(self, translator: BarIndexTranslator):
        self.translator = translator

    def assemble(
        self,
        strategy: RegressionStrategy,
        result: RegressionResult,
        window: Window,
        width: float,
        reference_index: int,
        mode: ChannelMode,
    ) -> ChannelData:
        n = window.size
        half_width = result.dispersion * width
        x_ref = 1.0 if mode is ChannelMode.DATE_RANGE else (n - 1) / n
        center = strategy.evaluate(result.coefficients, x_ref)

        if mode is ChannelMode.DATE_RANGE:
            levels = self._date_range_levels(strategy, result, window, half_width)
        elif self.translator.multi_timeframe:
            levels = self._multi_timeframe_levels(strategy, result, window, half_width, reference_index)
        else:
            levels = self._single_timeframe_levels(strategy, result, window, half_width)
            self._extrapolate_forming(levels, reference_index)

        return ChannelData(
            reference_index=reference_index,
            mode=mode,
            reference_levels=proportional_levels(center, half_width),
            window_levels=levels,
            half_width=half_width,
            coefficients=tuple(result.coefficients),
            dispersion=result.dispersion,
        )

    def _single_timeframe_levels(self, strategy, result, window: Window, half_width: float) -> Dict[int, Levels]:
        forming = len(self.translator.display) - 1
        centers = strategy.evaluate_many(result.coefficients, window.xs)
        levels = {}
        for i, center in enumerate(centers):
            display_index = window.start + i
            if display_index >= forming:
                continue
            levels[display_index] = proportional_levels(float(center), half_width)
        return levels

    def _extrapolate_forming(self, levels: Dict[int, Levels], reference_index: int) -> None:
        forming = len(self.translator.display) - 1
        if reference_index != forming - 1:
            return
        last = levels.get(reference_index)
        second_last = levels.get(reference_index - 1)
        if last is None or second_last is None:
            return
        levels[forming] = extrapolate_levels(last, second_last)

    def _multi_timeframe_levels(
        self, strategy, result, window: Window, half_width: float, reference_index: int
    ) -> Dict[int, Levels]:
        tr = self.translator
        display, calc, tf = tr.display, tr.calculation, tr.timeframe
        n = window.size
        last_calc = tr.last_historical_calculation_index()
        last_display = tr.last_historical_display_index()
        if last_calc < 0 or last_display < 0:
            return {}
        last_calc_open = calc.open_time(last_calc)
        window_open = calc.open_time(window.start)

        levels = {}
        first = min(reference_index, len(display) - 2, last_display)
        for i in range(first, -1, -1):
            t = display.open_time(i)
            if t > last_calc_open:
                continue
            if t < window_open:
                break
            k = tr.to_calculation_index(i)
            if k not in window or k > last_calc:
                continue
            ratio = tr.mapper.time_ratio(t, calc, k, tf)
            x = min(max(((k - window.start) + 1 + ratio) / n, 0.0), 1.0)
            levels[i] = proportional_levels(strategy.evaluate(result.coefficients, x), half_width)
        return levels

    def _date_range_levels(self, strategy, result, window: Window, half_width: float) -> Dict[int, Levels]:
        tr = self.translator
        centers = strategy.evaluate_many(result.coefficients, window.xs)
        if not tr.multi_timeframe:
            return {
                window.start + i: proportional_levels(float(c), half_width)
                for i, c in enumerate(centers)
            }

        last_display = tr.last_historical_display_index()
        if last_display < 0:
            return {}
        display_times = tr.display.open_times[:last_display + 1]
        duration = tr.timeframe.duration_ns
        levels = {}
        for i, center in enumerate(centers):
            calc_open = tr.calculation.open_time(window.start + i)
            lo = int(np.searchsorted(display_times, calc_open, side="left"))
            hi = int(np.searchsorted(display_times, calc_open + duration, side="left"))
            lv = proportional_levels(float(center), half_width)
            for display_index in range(lo, hi):
                levels[display_index] = lv
        return levels

    def date_range_reference_index(self, window: Window) -> int:
        """Display bar anchoring a date-range result."""
        tr = self.translator
        if not tr.multi_timeframe:
            return window.end
        last_display = tr.last_historical_display_index()
        display_times = tr.display.open_times[:last_display + 1]
        anchor = int(np.searchsorted(display_times, tr.calculation.open_time(window.end), side="right")) - 1
        return anchor
