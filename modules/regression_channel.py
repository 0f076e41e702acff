# modules/regression_channel.py
from __future__ import annotations
from typing import Optional

import numpy as np
import pandas as pd

from core.channel_config import ChannelConfig
from core.channel_data import LEVEL_COLUMNS
from core.channel_service import ChannelService
from core.timeframes import Timeframe
from data.bars import BarSeries
from data.resample import resample_ohlcv
from .base import ContextModule, RegressionFamily


class RegressionChannelContext(ContextModule):
    """
    Regression channel over an OHLCV frame.

    compute_features() anchors one channel per row on that row's own
    window (single timeframe, no lookahead); the last row is the forming
    bar and stays NaN. latest_channel() returns the full window of the most
    recent confirmed channel, optionally fitted on a coarser timeframe.
    """
    name = "rc"

    def __init__(
        self,
        period: int = 100,
        width: float = 2.0,
        family: RegressionFamily = RegressionFamily.LINEAR,
        degree: int = 2,
        timeframe: Optional[Timeframe] = None,
    ):
        self.config = ChannelConfig(period=period, width=width, family=family, degree=degree)
        self.timeframe = Timeframe.parse(timeframe) if timeframe is not None else None

    def compute_features(self, df: pd.DataFrame) -> pd.DataFrame:
        service = ChannelService(BarSeries.from_frame(df), self.config)
        columns = [f"{self.name}_{c}" for c in LEVEL_COLUMNS]

        levels = np.full((len(df), len(LEVEL_COLUMNS)), np.nan)
        half = np.full(len(df), np.nan)
        for i in range(len(df)):
            data = service.calculate(i)
            if data is None:
                continue
            levels[i] = data.reference_levels
            half[i] = data.half_width

        feats = pd.DataFrame(levels, index=df.index, columns=columns)
        feats[f"{self.name}_half_width"] = half

        upper = feats[f"{self.name}_upper"]
        lower = feats[f"{self.name}_lower"]
        width = (upper - lower).replace(0, np.nan)
        # price position within channel (0=lower, 1=upper)
        feats[f"{self.name}_pos"] = ((df["close"].astype(float) - lower) / width).clip(0, 1)
        return feats

    def latest_channel(self, df: pd.DataFrame, calc_df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        """
        Window levels of the channel anchored at the last confirmed bar.

        With a timeframe set, the channel is fitted on calc_df (or on df
        resampled to that timeframe) and mapped back onto df's bars.
        """
        display = BarSeries.from_frame(df)
        config = self.config
        provider = None
        if self.timeframe is not None:
            if calc_df is None:
                calc_df = resample_ohlcv(df, self.timeframe)
            provider = {self.timeframe: BarSeries.from_frame(calc_df, timeframe=self.timeframe)}
            config = config.replace(multi_timeframe=True, timeframe=self.timeframe)

        service = ChannelService(display, config, bars_provider=provider)
        data = service.calculate(service.translator.last_historical_display_index())
        if data is None:
            return pd.DataFrame(columns=list(LEVEL_COLUMNS), dtype=float)
        return data.to_frame(index=df.index)
