# data/resample.py
"""
Resample a display-resolution OHLCV frame into a coarser calculation frame.
"""

from __future__ import annotations
import logging
from typing import Union

import pandas as pd

from core.timeframes import Timeframe
from data.bars import REQUIRED_COLUMNS, BarSeries, validate_ohlcv

logger = logging.getLogger(__name__)


def resample_ohlcv(df: pd.DataFrame, timeframe: Union[Timeframe, str]) -> pd.DataFrame:
    """
    Resample OHLCV bars to a coarser timeframe.

    Bars are labelled by their left edge (open time), so every resampled bar
    contains the display bars whose open time falls in [open, open + duration).

    Args:
        df: DataFrame with OHLCV columns and a DatetimeIndex
        timeframe: Target timeframe

    Returns:
        DataFrame with resampled OHLCV data
    """
    timeframe = Timeframe.parse(timeframe)

    missing_cols = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns for resampling: {missing_cols}")

    out = df.resample(timeframe.resample_rule, label="left", closed="left").agg({
        "open": "first",
        "high": "max",
        "low": "min",
        "close": "last",
        "volume": "sum",
    })

    # gaps (weekends, sessions) produce empty buckets
    n_before = len(out)
    out = out.dropna(subset=["open", "high", "low", "close"])
    if n_before != len(out):
        logger.debug("Dropped %d empty %s buckets", n_before - len(out), timeframe.value)

    if out.empty:
        raise ValueError(f"No valid {timeframe.value} bars after resampling")

    validate_ohlcv(out)
    logger.info("Resampled %d bars to %d %s bars", len(df), len(out), timeframe.value)
    return out


def resample_series(series: BarSeries, timeframe: Union[Timeframe, str]) -> BarSeries:
    """Resample a BarSeries; the result's last bar is its forming bar."""
    timeframe = Timeframe.parse(timeframe)
    return BarSeries.from_frame(resample_ohlcv(series.to_frame(), timeframe), timeframe=timeframe)
