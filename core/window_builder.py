# core/window_builder.py
"""
Regression input windows at calculation resolution.

The independent variable is normalized as x_i = i / n over the window, so
fits over different absolute bar indices stay comparable and well
conditioned.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import numpy as np

from core.bar_translator import BarIndexTranslator
from core.timeframes import to_nanos


@dataclass(frozen=True, eq=False)
class Window:
    closes: np.ndarray
    start: int  # first calculation index
    end: int    # last calculation index, inclusive

    @property
    def size(self) -> int:
        return len(self.closes)

    @property
    def xs(self) -> np.ndarray:
        return np.arange(self.size, dtype=np.float64) / self.size

    def __contains__(self, calc_index: int) -> bool:
        return self.start <= calc_index <= self.end


class WindowBuilder:
    def __init__(self, translator: BarIndexTranslator):
        self.translator = translator

    def rolling(self, index: int, period: int) -> Optional[Window]:
        """`period` consecutive calculation closes ending at the bar mapped from `index`."""
        display = self.translator.display
        if index < 0 or index > len(display) - 2:
            return None
        calc_index = self.translator.to_calculation_index(index)
        if calc_index < 0 or calc_index < period - 1:
            return None
        if calc_index > self.translator.last_historical_calculation_index():
            return None
        start = calc_index - period + 1
        closes = np.array(self.translator.calculation.closes[start:calc_index + 1], dtype=np.float64)
        return Window(closes, start, calc_index)

    def date_range(self, start, end) -> Optional[Window]:
        """Every historical calculation bar with open time in [start, end]."""
        calc = self.translator.calculation
        n_hist = len(calc) - 1
        if n_hist < 2:
            return None
        times = calc.open_times[:n_hist]
        lo = int(np.searchsorted(times, to_nanos(start), side="left"))
        hi = int(np.searchsorted(times, to_nanos(end), side="right")) - 1
        if hi - lo + 1 < 2:
            return None
        closes = np.array(calc.closes[lo:hi + 1], dtype=np.float64)
        return Window(closes, lo, hi)
