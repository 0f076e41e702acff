# core/channel_data.py
from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

import pandas as pd

from core.channel_config import ChannelMode

Levels = Tuple[float, ...]

LEVEL_COLUMNS = (
    "upper", "fib_886", "fib_764", "fib_618", "middle",
    "fib_382", "fib_236", "fib_114", "lower",
)


@dataclass(frozen=True, eq=False)
class ChannelData:
    """
    Result of one channel calculation. Never mutated after creation.

    Attributes:
        reference_index: Display bar the channel is anchored to
        mode: Mode the result was computed in
        reference_levels: Nine levels at the reference position, 100% -> 0%
        window_levels: Read-only mapping display index -> nine levels
        half_width: dispersion * width multiplier
        coefficients: Regression coefficients of the fit
        dispersion: Regression dispersion of the fit
    """
    reference_index: int
    mode: ChannelMode
    reference_levels: Levels
    window_levels: Mapping[int, Levels]
    half_width: float
    coefficients: Tuple[float, ...]
    dispersion: float

    def __post_init__(self):
        if not isinstance(self.window_levels, MappingProxyType):
            object.__setattr__(self, "window_levels", MappingProxyType(dict(self.window_levels)))

    @property
    def upper(self) -> float:
        return self.reference_levels[0]

    @property
    def middle(self) -> float:
        return self.reference_levels[4]

    @property
    def lower(self) -> float:
        return self.reference_levels[8]

    def to_frame(self, index: Optional[pd.Index] = None) -> pd.DataFrame:
        """
        Window levels as a DataFrame (one row per touched display bar).

        When `index` is given (e.g. the display frame's DatetimeIndex) rows
        are labelled with index[i]; an extrapolated bar past its end keeps
        its integer position.
        """
        positions = sorted(self.window_levels)
        rows = [self.window_levels[i] for i in positions]
        frame = pd.DataFrame(rows, columns=list(LEVEL_COLUMNS), index=positions)
        if index is not None and positions and positions[-1] < len(index):
            frame.index = index[positions]
        return frame
