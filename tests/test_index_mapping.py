"""
Test Timeframe Index Mapping

=============================================================================
SAFE: mock data only
=============================================================================

Verifies:
- Timestamps map to the containing (or nearest earlier) calculation bar
- Mapping is monotonic in time
- Timestamp and display-index caches are hit and purged as documented
- Interpolation between calculation values guards degenerate spans
"""

from __future__ import annotations
from collections import Counter
from unittest.mock import patch

import math
import numpy as np
import pandas as pd
import pytest

from core.bar_translator import BarIndexTranslator
from core.index_mapper import NOT_FOUND, TimeframeIndexMapper
from core.timeframes import Timeframe, to_nanos
from data.bars import BarSeries
from tests.mocks import make_gapped_candles


@pytest.fixture
def hourly_series(timeframe_pair):
    _, calc = timeframe_pair
    return BarSeries.from_frame(calc, timeframe=Timeframe.H1)


@pytest.fixture
def mtf_translator(timeframe_pair):
    display, calc = timeframe_pair
    return BarIndexTranslator(
        BarSeries.from_frame(display),
        BarSeries.from_frame(calc, timeframe=Timeframe.H1),
        timeframe=Timeframe.H1,
        multi_timeframe=True,
    )


class TestIndexForTimestamp:
    """Binary search containment and fallback rules."""

    def test_containing_bar(self, hourly_series) -> None:
        mapper = TimeframeIndexMapper()
        assert mapper.index_for_timestamp("2024-01-01 00:00", hourly_series, Timeframe.H1) == 0
        assert mapper.index_for_timestamp("2024-01-01 03:59", hourly_series, Timeframe.H1) == 3
        assert mapper.index_for_timestamp("2024-01-01 04:00", hourly_series, Timeframe.H1) == 4

    def test_before_first_bar_is_not_found(self, hourly_series) -> None:
        mapper = TimeframeIndexMapper()
        assert mapper.index_for_timestamp("2023-12-31 23:00", hourly_series, Timeframe.H1) == NOT_FOUND

    def test_gap_falls_back_to_previous_bar(self) -> None:
        series = BarSeries.from_frame(make_gapped_candles(n_before=5, n_after=5, gap_hours=48))
        mapper = TimeframeIndexMapper()
        # Sunday noon sits in the hole after bar 4
        assert mapper.index_for_timestamp("2024-01-07 12:00", series, Timeframe.H1) == 4
        assert mapper.index_for_timestamp(series.open_time(5), series, Timeframe.H1) == 5

    def test_after_last_bar_maps_to_last(self, hourly_series) -> None:
        mapper = TimeframeIndexMapper()
        assert mapper.index_for_timestamp("2024-01-02 12:00", hourly_series, Timeframe.H1) == 19

    def test_empty_series(self) -> None:
        assert TimeframeIndexMapper().index_for_timestamp(0, BarSeries(), Timeframe.H1) == NOT_FOUND

    def test_mapping_is_monotonic(self, hourly_series) -> None:
        rng = np.random.default_rng(11)
        start = to_nanos("2023-12-31 22:00")
        end = to_nanos("2024-01-01 22:00")
        stamps = np.sort(rng.integers(start, end, size=300))
        mapper = TimeframeIndexMapper()
        indices = [mapper.index_for_timestamp(int(t), hourly_series, Timeframe.H1) for t in stamps]
        resolved = [i for i in indices if i != NOT_FOUND]
        assert resolved == sorted(resolved)

    def test_contains(self, hourly_series) -> None:
        mapper = TimeframeIndexMapper()
        assert mapper.contains("2024-01-01 02:30", hourly_series, 2, Timeframe.H1)
        assert not mapper.contains("2024-01-01 03:00", hourly_series, 2, Timeframe.H1)
        assert not mapper.contains("2024-01-01 03:00", hourly_series, 99, Timeframe.H1)


class TestMapperCache:
    """Minute-quantized caching and insertion-order purging."""

    def test_repeat_lookup_skips_search(self, hourly_series) -> None:
        mapper = TimeframeIndexMapper()
        with patch.object(mapper, "_search", wraps=mapper._search) as search:
            mapper.index_for_timestamp("2024-01-01 05:10", hourly_series, Timeframe.H1)
            mapper.index_for_timestamp("2024-01-01 05:10:30", hourly_series, Timeframe.H1)
        assert search.call_count == 1

    def test_forming_bar_results_are_not_cached(self, hourly_series) -> None:
        mapper = TimeframeIndexMapper()
        assert mapper.index_for_timestamp("2024-01-01 19:30", hourly_series, Timeframe.H1) == 19
        assert len(mapper) == 0
        mapper.index_for_timestamp("2024-01-01 18:30", hourly_series, Timeframe.H1)
        assert len(mapper) == 1

    def test_cache_key_includes_series(self, timeframe_pair) -> None:
        _, calc = timeframe_pair
        a = BarSeries.from_frame(calc)
        b = BarSeries.from_frame(calc.iloc[5:])
        mapper = TimeframeIndexMapper()
        assert mapper.index_for_timestamp("2024-01-01 06:00", a, Timeframe.H1) == 6
        assert mapper.index_for_timestamp("2024-01-01 06:00", b, Timeframe.H1) == 1

    def test_purge_drops_oldest_fifth(self, hourly_series, fake_clock) -> None:
        mapper = TimeframeIndexMapper(capacity=10, clock=fake_clock)
        stamps = [f"2024-01-01 {h:02d}:{m:02d}" for h in range(2) for m in range(0, 60, 5)][:11]
        for s in stamps:
            mapper.index_for_timestamp(s, hourly_series, Timeframe.H1)
        # 11 entries > 10: the two oldest inserts are dropped
        assert len(mapper) == 9
        with patch.object(mapper, "_search", wraps=mapper._search) as search:
            mapper.index_for_timestamp(stamps[0], hourly_series, Timeframe.H1)
            mapper.index_for_timestamp(stamps[-1], hourly_series, Timeframe.H1)
        assert search.call_count == 1

    def test_purge_respects_interval(self, hourly_series, fake_clock) -> None:
        mapper = TimeframeIndexMapper(capacity=4, purge_interval=300.0, clock=fake_clock)
        minutes = iter(range(0, 600, 7))

        def lookup():
            m = next(minutes)
            mapper.index_for_timestamp(f"2024-01-01 {m // 60:02d}:{m % 60:02d}", hourly_series, Timeframe.H1)

        for _ in range(5):
            lookup()
        assert len(mapper) == 4  # purged once
        for _ in range(3):
            lookup()
        assert len(mapper) == 7  # too soon to purge again
        fake_clock.advance(301)
        lookup()
        assert len(mapper) == 7  # 8 entries, one dropped

    def test_clear(self, hourly_series) -> None:
        mapper = TimeframeIndexMapper()
        mapper.index_for_timestamp("2024-01-01 01:00", hourly_series, Timeframe.H1)
        mapper.clear()
        assert len(mapper) == 0

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ValueError):
            TimeframeIndexMapper(capacity=0)


class TestInterpolate:
    """Linear interpolation of calculation values at display timestamps."""

    def test_midpoint(self, hourly_series) -> None:
        values = np.arange(20, dtype=float) * 10
        mapper = TimeframeIndexMapper()
        assert mapper.interpolate("2024-01-01 03:30", hourly_series, Timeframe.H1, values) == pytest.approx(35.0)

    def test_last_bar_returns_value(self, hourly_series) -> None:
        values = np.arange(20, dtype=float)
        mapper = TimeframeIndexMapper()
        assert mapper.interpolate("2024-01-01 19:45", hourly_series, Timeframe.H1, values) == 19.0

    def test_short_values_return_current(self, hourly_series) -> None:
        mapper = TimeframeIndexMapper()
        assert mapper.interpolate("2024-01-01 02:30", hourly_series, Timeframe.H1, [1.0, 2.0, 3.0]) == 3.0

    def test_out_of_range_is_nan(self, hourly_series) -> None:
        mapper = TimeframeIndexMapper()
        assert math.isnan(mapper.interpolate("2023-12-31", hourly_series, Timeframe.H1, [1.0]))
        assert math.isnan(mapper.interpolate("2024-01-01 05:00", hourly_series, Timeframe.H1, [1.0]))

    def test_time_ratio_clamped(self, hourly_series) -> None:
        mapper = TimeframeIndexMapper()
        assert mapper.time_ratio("2024-01-01 02:15", hourly_series, 2, Timeframe.H1) == pytest.approx(0.25)
        assert mapper.time_ratio("2024-01-01 09:00", hourly_series, 2, Timeframe.H1) == 1.0
        assert mapper.time_ratio("2024-01-01 01:00", hourly_series, 2, Timeframe.H1) == 0.0


class TestBarIndexTranslator:
    """Display -> calculation translation."""

    def test_identity_without_multi_timeframe(self, tiny_ohlcv_df) -> None:
        translator = BarIndexTranslator(BarSeries.from_frame(tiny_ohlcv_df))
        assert [translator.to_calculation_index(i) for i in range(10)] == list(range(10))
        assert translator.to_calculation_index(10) == NOT_FOUND
        assert translator.to_calculation_index(-1) == NOT_FOUND
        assert translator.last_historical_calculation_index() == 8
        assert translator.last_historical_display_index() == 8

    def test_every_calc_bar_maps_from_ten_display_bars(self, mtf_translator) -> None:
        counts = Counter(
            mtf_translator.to_calculation_index(i) for i in range(len(mtf_translator.display))
        )
        assert sorted(counts) == list(range(20))
        assert set(counts.values()) == {10}
        # consecutive display indices per calculation bar
        for i in range(len(mtf_translator.display)):
            assert mtf_translator.to_calculation_index(i) == i // 10

    def test_translation_is_cached(self, mtf_translator) -> None:
        mapper = mtf_translator.mapper
        with patch.object(mapper, "_search", wraps=mapper._search) as search:
            first = mtf_translator.to_calculation_index(57)
            second = mtf_translator.to_calculation_index(57)
        assert first == second == 5
        assert search.call_count == 1

    def test_clear_mapping_cache(self, mtf_translator) -> None:
        mtf_translator.to_calculation_index(57)
        assert mtf_translator.cache_size() == 1
        mtf_translator.clear_mapping_cache()
        assert mtf_translator.cache_size() == 0

    def test_forming_calc_bar_not_cached(self, mtf_translator) -> None:
        assert mtf_translator.to_calculation_index(195) == 19
        assert mtf_translator.cache_size() == 0

    def test_last_historical_indices(self, mtf_translator) -> None:
        assert mtf_translator.last_historical_calculation_index() == 18
        # display bar opening at 18:00
        assert mtf_translator.last_historical_display_index() == 180

    def test_last_historical_display_nearest_before(self, timeframe_pair) -> None:
        display, calc = timeframe_pair
        # remove the display bar that opens exactly at 18:00
        trimmed = display.drop(pd.Timestamp("2024-01-01 18:00"))
        translator = BarIndexTranslator(
            BarSeries.from_frame(trimmed), BarSeries.from_frame(calc),
            timeframe=Timeframe.H1, multi_timeframe=True,
        )
        assert translator.last_historical_display_index() == 179

    def test_timeframe_value(self, mtf_translator) -> None:
        values = np.arange(20, dtype=float)
        # display 145 opens at 14:30
        assert mtf_translator.timeframe_value(145, values) == pytest.approx(14.5)
        assert math.isnan(mtf_translator.timeframe_value(500, values))

    def test_timeframe_value_single(self, tiny_ohlcv_df) -> None:
        translator = BarIndexTranslator(BarSeries.from_frame(tiny_ohlcv_df))
        assert translator.timeframe_value(3, list(range(10))) == 3.0
        assert math.isnan(translator.timeframe_value(3, [0.0]))

    def test_configure_requires_series(self, tiny_ohlcv_df) -> None:
        with pytest.raises(ValueError):
            BarIndexTranslator(BarSeries.from_frame(tiny_ohlcv_df), None, multi_timeframe=True)

    def test_display_purge_drops_lowest_indices(self, mtf_translator, fake_clock) -> None:
        translator = BarIndexTranslator(
            mtf_translator.display, mtf_translator.calculation,
            timeframe=Timeframe.H1, multi_timeframe=True, capacity=10, clock=fake_clock,
        )
        for i in range(20, 31):
            translator.to_calculation_index(i)
        assert translator.cache_size() == 9
        assert 20 not in translator._cache and 21 not in translator._cache
        assert 30 in translator._cache
