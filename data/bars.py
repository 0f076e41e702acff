# data/bars.py
"""
Append-only OHLCV bar series.

A BarSeries is time-ascending and its last element is always the forming
(incomplete) bar. The forming bar may be replaced while it forms via
update_last(); every earlier bar is treated as historical and immutable.

Open times are stored as int64 nanoseconds since the epoch so that binary
searches run directly on numpy arrays.
"""

from __future__ import annotations
import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from core.timeframes import Timeframe, to_nanos

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['open', 'high', 'low', 'close', 'volume']

_series_ids = itertools.count(1)


@dataclass(frozen=True)
class Bar:
    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @classmethod
    def at(cls, open_time, open, high, low, close, volume=0.0) -> "Bar":
        """Build a bar from any timestamp-like open time."""
        return cls(to_nanos(open_time), float(open), float(high), float(low),
                   float(close), float(volume))

    @property
    def timestamp(self) -> pd.Timestamp:
        return pd.Timestamp(self.open_time, unit="ns")


def validate_ohlcv(df: pd.DataFrame) -> bool:
    """
    Validate that an OHLCV frame can back a BarSeries.

    Args:
        df: DataFrame to validate

    Returns:
        True if valid, raises ValueError if invalid
    """
    if not isinstance(df.index, pd.DatetimeIndex):
        raise ValueError(f"Index must be DatetimeIndex, got {type(df.index)}")

    missing_cols = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns: {missing_cols}")

    if df[REQUIRED_COLUMNS].isna().any().any():
        raise ValueError("DataFrame contains NaN values in OHLCV columns")

    invalid = (
        (df['high'] < df['low']) |
        (df['high'] < df['open']) |
        (df['high'] < df['close']) |
        (df['low'] > df['open']) |
        (df['low'] > df['close']) |
        (df['volume'] < 0)
    )
    if invalid.any():
        n_invalid = int(invalid.sum())
        raise ValueError(f"Found {n_invalid} rows with invalid OHLC relationships")

    if not df.index.is_monotonic_increasing:
        raise ValueError("Index is not sorted in ascending order")

    if df.index.has_duplicates:
        raise ValueError("Index contains duplicate timestamps")

    return True


class BarSeries:
    """Growable column store of bars with the forming bar at the end."""

    _COLUMNS = ("open", "high", "low", "close", "volume")

    def __init__(self, timeframe: Optional[Timeframe] = None, capacity: int = 256):
        self.timeframe = Timeframe.parse(timeframe) if timeframe is not None else None
        # identity used by timestamp caches; never reused within a process
        self.uid = next(_series_ids)
        self.tz = None
        self._n = 0
        capacity = max(int(capacity), 1)
        self._times = np.empty(capacity, dtype=np.int64)
        self._cols = {name: np.empty(capacity, dtype=np.float64) for name in self._COLUMNS}

    @classmethod
    def from_frame(cls, df: pd.DataFrame, timeframe: Optional[Timeframe] = None) -> "BarSeries":
        validate_ohlcv(df)
        series = cls(timeframe=timeframe, capacity=max(len(df), 1) * 2)
        n = len(df)
        series._times[:n] = df.index.as_unit("ns").asi8
        for name in cls._COLUMNS:
            series._cols[name][:n] = df[name].to_numpy(dtype=np.float64)
        series._n = n
        series.tz = df.index.tz
        logger.debug("Built BarSeries uid=%d with %d bars", series.uid, n)
        return series

    def __len__(self) -> int:
        return self._n

    def __getitem__(self, i: int) -> Bar:
        if i < 0:
            i += self._n
        if not 0 <= i < self._n:
            raise IndexError(f"Bar index {i} out of range for series of {self._n} bars")
        c = self._cols
        return Bar(int(self._times[i]), float(c["open"][i]), float(c["high"][i]),
                   float(c["low"][i]), float(c["close"][i]), float(c["volume"][i]))

    def __repr__(self) -> str:
        tf = self.timeframe.value if self.timeframe else None
        return f"BarSeries(uid={self.uid}, bars={self._n}, timeframe={tf})"

    @property
    def open_times(self) -> np.ndarray:
        """Read-only view of open times (int64 ns)."""
        view = self._times[:self._n]
        view.flags.writeable = False
        return view

    @property
    def closes(self) -> np.ndarray:
        view = self._cols["close"][:self._n]
        view.flags.writeable = False
        return view

    def open_time(self, i: int) -> int:
        return int(self._times[i])

    def close(self, i: int) -> float:
        return float(self._cols["close"][i])

    @property
    def last_historical_index(self) -> int:
        return self._n - 2

    def append(self, bar: Bar) -> None:
        """Append a new forming bar; the previous forming bar becomes historical."""
        if self._n and bar.open_time <= self._times[self._n - 1]:
            raise ValueError(
                f"Bar open time {bar.timestamp} is not after the last bar "
                f"({pd.Timestamp(int(self._times[self._n - 1]), unit='ns')})"
            )
        if self._n == len(self._times):
            self._grow()
        self._write(self._n, bar)
        self._n += 1

    def update_last(self, bar: Bar) -> None:
        """Replace the forming bar. Its open time must not change."""
        if not self._n:
            raise ValueError("Cannot update the forming bar of an empty series")
        if bar.open_time != self._times[self._n - 1]:
            raise ValueError(
                f"Forming bar open time mismatch: {bar.timestamp} != "
                f"{pd.Timestamp(int(self._times[self._n - 1]), unit='ns')}"
            )
        self._write(self._n - 1, bar)

    def to_frame(self) -> pd.DataFrame:
        index = pd.DatetimeIndex(pd.to_datetime(self._times[:self._n], unit="ns"))
        if self.tz is not None:
            index = index.tz_localize("UTC").tz_convert(self.tz)
        data = {name: self._cols[name][:self._n].copy() for name in self._COLUMNS}
        return pd.DataFrame(data, index=index)

    def _write(self, i: int, bar: Bar) -> None:
        self._times[i] = bar.open_time
        self._cols["open"][i] = bar.open
        self._cols["high"][i] = bar.high
        self._cols["low"][i] = bar.low
        self._cols["close"][i] = bar.close
        self._cols["volume"][i] = bar.volume

    def _grow(self) -> None:
        size = len(self._times) * 2
        times = np.empty(size, dtype=np.int64)
        times[:self._n] = self._times[:self._n]
        self._times = times
        for name, col in self._cols.items():
            grown = np.empty(size, dtype=np.float64)
            grown[:self._n] = col[:self._n]
            self._cols[name] = grown


def bars_from_records(records: List[dict], timeframe: Optional[Timeframe] = None) -> BarSeries:
    """Build a BarSeries from dicts with open_time/open/high/low/close[/volume]."""
    series = BarSeries(timeframe=timeframe, capacity=max(len(records), 1))
    for rec in records:
        series.append(Bar.at(rec["open_time"], rec["open"], rec["high"], rec["low"],
                             rec["close"], rec.get("volume", 0.0)))
    return series
