"""
Pytest Configuration for the Regression Channel Engine

Tests are categorized as:
- SAFE: Run by default (mock data only, instant)
- SLOW: Larger synthetic histories, run with: pytest -m slow
- MANUAL: Require explicit invocation

To run everything that runs by default:
    pytest tests/ -v
"""

from __future__ import annotations
import logging

import numpy as np
import pandas as pd
import pytest

from tests.mocks import make_candles_from_closes, make_synthetic_ohlcv, make_timeframe_pair


def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers for test categorization.
    """
    config.addinivalue_line(
        "markers", "manual: marks tests as manual-only"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    """
    Skip tests marked as manual or slow unless explicitly requested.
    """
    markexpr = config.getoption("-m", default="")
    if "manual" in markexpr or "slow" in markexpr:
        return

    skip_manual = pytest.mark.skip(reason="Manual test - run with: pytest -m manual")
    skip_slow = pytest.mark.skip(reason="Slow test - run with: pytest -m slow")

    for item in items:
        if "manual" in item.keywords:
            item.add_marker(skip_manual)
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


# =============================================================================
# FIXTURES FOR SAFE MOCK DATA
# =============================================================================

TEN_CLOSES = [100.0, 101.0, 103.0, 102.0, 104.0, 106.0, 105.0, 107.0, 108.0, 110.0]


@pytest.fixture
def ten_bar_df():
    """
    10 five-minute candles with hand-picked closes.
    Bar 9 is the forming bar.
    """
    return make_candles_from_closes(TEN_CLOSES)


@pytest.fixture
def tiny_ohlcv_df():
    """
    Tiny linear-trend OHLCV DataFrame for fast tests.
    Only 10 rows - runs instantly.
    """
    n = 10
    return pd.DataFrame({
        'open': 100 + np.arange(n) * 0.1,
        'high': 101 + np.arange(n) * 0.1,
        'low': 99 + np.arange(n) * 0.1,
        'close': 100 + np.arange(n) * 0.1,
        'volume': [1000] * n
    }, index=pd.date_range('2024-01-01', periods=n, freq='5min'))


@pytest.fixture
def small_ohlcv_df():
    """
    Random walk OHLCV DataFrame for tests needing more data.
    Only 120 rows - still fast.
    """
    return make_synthetic_ohlcv(n_rows=120, volatility=0.01, seed=3)


@pytest.fixture
def timeframe_pair():
    """
    200 six-minute display candles and their 20 hourly calculation candles.
    """
    return make_timeframe_pair()


class FakeClock:
    """Manually advanced monotonic clock for purge-interval tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def restore_root_logging():
    """Put the root logger back after a test reconfigures it."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
