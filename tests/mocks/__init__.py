"""
Mock data generators for regression channel tests.

This package provides tiny, deterministic synthetic OHLCV generators.
All mocks generate small DataFrames (10-200 rows) for instant test execution.
"""

from .mock_candles import (
    make_synthetic_ohlcv,
    make_candles_from_closes,
    make_timeframe_pair,
    make_gapped_candles,
)

__all__ = [
    "make_synthetic_ohlcv",
    "make_candles_from_closes",
    "make_timeframe_pair",
    "make_gapped_candles",
]
