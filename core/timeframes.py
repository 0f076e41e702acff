# core/timeframes.py
"""
Timeframe catalogue used for multi-timeframe alignment.

Each timeframe carries a nominal bar duration (used for containment checks,
sub-bar time ratios and cache sizing) and a pandas resample rule.
Weekly and monthly durations are nominal (7 and 30 days).
"""

from __future__ import annotations
from enum import Enum
from typing import Union

import pandas as pd

NS_PER_SECOND = 1_000_000_000
NS_PER_MINUTE = 60 * NS_PER_SECOND
NS_PER_HOUR = 60 * NS_PER_MINUTE
NS_PER_DAY = 24 * NS_PER_HOUR


class Timeframe(str, Enum):
    M1 = "1m"
    M2 = "2m"
    M3 = "3m"
    M4 = "4m"
    M5 = "5m"
    M6 = "6m"
    M10 = "10m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H2 = "2h"
    H3 = "3h"
    H4 = "4h"
    H6 = "6h"
    H8 = "8h"
    H12 = "12h"
    D1 = "1d"
    D2 = "2d"
    D3 = "3d"
    W1 = "1w"
    MN1 = "1M"

    @property
    def duration_ns(self) -> int:
        return _DURATIONS_NS[self]

    @property
    def duration(self) -> pd.Timedelta:
        return pd.Timedelta(self.duration_ns, unit="ns")

    @property
    def resample_rule(self) -> str:
        return _RESAMPLE_RULES[self]

    @classmethod
    def parse(cls, value: Union["Timeframe", str]) -> "Timeframe":
        """Accept a Timeframe, its value ("4h") or its member name ("H4")."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[str(value).upper()]
        except KeyError:
            valid = [tf.value for tf in cls]
            raise ValueError(f"Unknown timeframe {value!r}. Valid: {valid}") from None


_DURATIONS_NS = {
    Timeframe.M1: NS_PER_MINUTE,
    Timeframe.M2: 2 * NS_PER_MINUTE,
    Timeframe.M3: 3 * NS_PER_MINUTE,
    Timeframe.M4: 4 * NS_PER_MINUTE,
    Timeframe.M5: 5 * NS_PER_MINUTE,
    Timeframe.M6: 6 * NS_PER_MINUTE,
    Timeframe.M10: 10 * NS_PER_MINUTE,
    Timeframe.M15: 15 * NS_PER_MINUTE,
    Timeframe.M30: 30 * NS_PER_MINUTE,
    Timeframe.H1: NS_PER_HOUR,
    Timeframe.H2: 2 * NS_PER_HOUR,
    Timeframe.H3: 3 * NS_PER_HOUR,
    Timeframe.H4: 4 * NS_PER_HOUR,
    Timeframe.H6: 6 * NS_PER_HOUR,
    Timeframe.H8: 8 * NS_PER_HOUR,
    Timeframe.H12: 12 * NS_PER_HOUR,
    Timeframe.D1: NS_PER_DAY,
    Timeframe.D2: 2 * NS_PER_DAY,
    Timeframe.D3: 3 * NS_PER_DAY,
    Timeframe.W1: 7 * NS_PER_DAY,
    Timeframe.MN1: 30 * NS_PER_DAY,
}

_RESAMPLE_RULES = {
    Timeframe.M1: "1min",
    Timeframe.M2: "2min",
    Timeframe.M3: "3min",
    Timeframe.M4: "4min",
    Timeframe.M5: "5min",
    Timeframe.M6: "6min",
    Timeframe.M10: "10min",
    Timeframe.M15: "15min",
    Timeframe.M30: "30min",
    Timeframe.H1: "1h",
    Timeframe.H2: "2h",
    Timeframe.H3: "3h",
    Timeframe.H4: "4h",
    Timeframe.H6: "6h",
    Timeframe.H8: "8h",
    Timeframe.H12: "12h",
    Timeframe.D1: "1D",
    Timeframe.D2: "2D",
    Timeframe.D3: "3D",
    Timeframe.W1: "W-MON",
    Timeframe.MN1: "MS",
}


def to_nanos(t) -> int:
    """Convert a timestamp-like value (int ns, str, datetime, Timestamp) to int64 ns."""
    if isinstance(t, int) and not isinstance(t, bool):
        return int(t)
    ts = pd.Timestamp(t)
    if ts is pd.NaT:
        raise ValueError(f"Cannot convert {t!r} to a timestamp")
    return int(ts.value)
