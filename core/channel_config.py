# core/channel_config.py
"""
Immutable channel configuration.

Validation runs at construction; an invalid ChannelConfig never exists.
A DATE_RANGE config missing either bound is normalized to ROLLING_PERIOD.
"""

from __future__ import annotations
import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional

import pandas as pd

from core.timeframes import Timeframe
from modules.base import RegressionFamily

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised for invalid channel configuration."""


class ChannelMode(str, Enum):
    ROLLING_PERIOD = "rolling_period"
    DATE_RANGE = "date_range"


# fields whose change invalidates every cached mapping and result
COMPUTATION_FIELDS: FrozenSet[str] = frozenset(
    {"period", "family", "degree", "width", "multi_timeframe", "timeframe"}
)


@dataclass(frozen=True)
class ChannelConfig:
    period: int = 100
    family: RegressionFamily = RegressionFamily.LINEAR
    degree: int = 2
    width: float = 2.0
    multi_timeframe: bool = False
    timeframe: Timeframe = Timeframe.H1
    mode: ChannelMode = ChannelMode.ROLLING_PERIOD
    start: Optional[pd.Timestamp] = None
    end: Optional[pd.Timestamp] = None

    def __post_init__(self):
        try:
            object.__setattr__(self, "family", RegressionFamily(self.family))
            object.__setattr__(self, "mode", ChannelMode(self.mode))
            object.__setattr__(self, "timeframe", Timeframe.parse(self.timeframe))
            for name in ("start", "end"):
                value = getattr(self, name)
                if value is not None:
                    object.__setattr__(self, name, pd.Timestamp(value))
            period = int(self.period)
            degree = int(self.degree)
            width = float(self.width)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(str(e)) from e

        if period != self.period or period <= 0:
            raise ConfigurationError(f"period must be a positive integer, got {self.period}")
        object.__setattr__(self, "period", period)
        if degree != self.degree:
            raise ConfigurationError(f"degree must be an integer, got {self.degree!r}")
        object.__setattr__(self, "degree", degree)
        if not width > 0:
            raise ConfigurationError(f"width must be positive, got {self.width}")
        object.__setattr__(self, "width", width)
        if self.family is RegressionFamily.POLYNOMIAL and not 1 <= self.degree <= 5:
            raise ConfigurationError(
                f"Polynomial degree must be between 1 and 5, got {self.degree}"
            )
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ConfigurationError(f"start {self.start} is after end {self.end}")

        if self.mode is ChannelMode.DATE_RANGE and (self.start is None or self.end is None):
            logger.debug("Date range without both bounds, using rolling period mode")
            object.__setattr__(self, "mode", ChannelMode.ROLLING_PERIOD)

    @property
    def uses_date_range(self) -> bool:
        return self.mode is ChannelMode.DATE_RANGE

    def replace(self, **changes) -> "ChannelConfig":
        return dataclasses.replace(self, **changes)

    def changed_fields(self, other: "ChannelConfig") -> FrozenSet[str]:
        return frozenset(
            f.name for f in dataclasses.fields(self)
            if getattr(self, f.name) != getattr(other, f.name)
        )

    def affects_computation(self, other: "ChannelConfig") -> bool:
        return bool(self.changed_fields(other) & COMPUTATION_FIELDS)
