"""Tests for technical indicators — known-value validation."""

from __future__ import annotations

from datetime import timedelta

import pytest

from fakes import make_candles, wave_closes
from signal_core.config import IndicatorConfig
from signal_core.errors import InsufficientDataError
from signal_core.strategy import indicators
from signal_core.strategy.indicators import (
    bollinger_bands,
    compute_indicators,
    ema,
    macd,
    momentum,
    required_candles,
    rsi,
    volume_profile,
)


class TestRSI:
    def test_insufficient_data_returns_none(self):
        assert rsi([float(i) for i in range(14)], period=14) is None
        assert rsi([], period=14) is None

    def test_exactly_enough_data(self):
        # 15 closes → 14 deltas → exactly one period
        closes = [float(i) for i in range(15)]
        assert rsi(closes, period=14) is not None

    def test_all_gains_returns_100(self):
        closes = [float(i) for i in range(20)]
        assert rsi(closes, period=14) == 100.0

    def test_all_losses_returns_0(self):
        closes = [float(20 - i) for i in range(20)]
        assert rsi(closes, period=14) == 0.0

    def test_flat_series_is_neutral(self):
        assert rsi([100.0] * 30, period=14) == 50.0

    def test_equal_gains_and_losses_around_50(self):
        closes = []
        price = 100.0
        for i in range(30):
            closes.append(price)
            price += 1.0 if i % 2 == 0 else -1.0
        result = rsi(closes, period=14)
        assert result is not None
        assert 40 < result < 60

    def test_known_value(self):
        # 14 gains of +1 seed avg_gain=1, avg_loss=0; 5 losses then smooth it down
        closes = [100.0]
        for _ in range(14):
            closes.append(closes[-1] + 1)
        for _ in range(5):
            closes.append(closes[-1] - 1)
        result = rsi(closes, period=14)
        # avg_gain = (13/14)^5, avg_loss = 1 - (13/14)^5
        gain = (13 / 14) ** 5
        loss = 1 - gain
        assert result == pytest.approx(100 - 100 / (1 + gain / loss))

    def test_custom_period(self):
        closes = [float(i) for i in range(10)]
        assert rsi(closes, period=5) == 100.0


class TestEMA:
    def test_seeded_with_sma(self):
        assert ema([1.0, 2.0, 3.0], period=3) == [2.0]

    def test_length_aligned_with_tail(self):
        values = [float(i) for i in range(10)]
        assert len(ema(values, period=4)) == 7

    def test_insufficient_data_returns_empty(self):
        assert ema([1.0, 2.0], period=3) == []

    def test_constant_series_is_constant(self):
        assert ema([5.0] * 10, period=3) == [5.0] * 8


class TestMACD:
    def test_insufficient_data_returns_none(self):
        assert macd([100.0] * 34, fast=12, slow=26, signal=9) is None

    def test_flat_series_is_zero(self):
        result = macd([100.0] * 40)
        assert result is not None
        assert result.line == pytest.approx(0.0)
        assert result.histogram == pytest.approx(0.0)

    def test_uptrend_after_flat_has_positive_histogram(self):
        closes = [100.0] * 40 + [100.0 + i for i in range(1, 11)]
        result = macd(closes)
        assert result is not None
        assert result.line > 0
        assert result.histogram > 0

    def test_downtrend_after_flat_has_negative_histogram(self):
        closes = [100.0] * 40 + [100.0 - i for i in range(1, 11)]
        result = macd(closes)
        assert result is not None
        assert result.histogram < 0

    def test_crossover_flags(self):
        closes = [100.0] * 40 + [101.0]
        result = macd(closes)
        assert result is not None
        assert result.crossed_up
        assert not result.crossed_down


class TestBollingerBands:
    def test_insufficient_data_returns_none(self):
        assert bollinger_bands([1.0] * 19, period=20) is None
        assert bollinger_bands([], period=20) is None

    def test_constant_prices_bands_equal_middle(self):
        result = bollinger_bands([100.0] * 20, period=20)
        assert result is not None
        assert result.middle == 100.0
        assert result.lower == 100.0
        assert result.upper == 100.0
        assert result.percent_b(100.0) is None

    def test_symmetric_bands(self):
        closes = [100.0] * 10 + [110.0] * 10
        result = bollinger_bands(closes, period=20, num_std=2)
        assert result is not None
        assert result.upper - result.middle == pytest.approx(result.middle - result.lower)
        # population stdev of ten 100s and ten 110s is 5
        assert result.upper == pytest.approx(115.0)

    def test_middle_is_sma(self):
        closes = [float(i) for i in range(1, 21)]
        result = bollinger_bands(closes, period=20)
        assert result is not None
        assert result.middle == pytest.approx(10.5)

    def test_wider_std_gives_wider_bands(self):
        closes = [float(100 + i % 5) for i in range(25)]
        narrow = bollinger_bands(closes, period=20, num_std=1)
        wide = bollinger_bands(closes, period=20, num_std=3)
        assert narrow is not None and wide is not None
        assert wide.upper - wide.lower > narrow.upper - narrow.lower

    def test_uses_last_n_closes(self):
        closes = [50.0] * 20 + [100.0] * 20
        result = bollinger_bands(closes, period=20)
        assert result is not None
        assert result.middle == 100.0


class TestMomentumAndVolume:
    def test_momentum_rate_of_change(self):
        closes = [100.0] + [0.0] * 9 + [110.0]
        assert momentum(closes, period=10) == pytest.approx(0.10)

    def test_momentum_insufficient(self):
        assert momentum([1.0] * 10, period=10) is None

    def test_relative_volume(self):
        profile = volume_profile([10.0] * 20 + [30.0], period=20)
        assert profile is not None
        assert profile.average_volume == 10.0
        assert profile.relative_volume == pytest.approx(3.0)

    def test_zero_average_volume_is_neutral(self):
        profile = volume_profile([0.0] * 21, period=20)
        assert profile is not None
        assert profile.relative_volume == 1.0


class TestComputeIndicators:
    def test_required_candles_defaults(self):
        # MACD needs slow + signal = 35 closes
        assert required_candles(IndicatorConfig()) == 35

    def test_too_few_candles_raises(self):
        candles = make_candles(wave_closes(34))
        with pytest.raises(InsufficientDataError):
            compute_indicators(candles, IndicatorConfig())

    def test_unsorted_candles_raise(self):
        candles = make_candles(wave_closes(50))
        candles[10], candles[11] = candles[11], candles[10]
        with pytest.raises(InsufficientDataError):
            compute_indicators(candles, IndicatorConfig())

    def test_duplicate_open_time_raises(self):
        candles = make_candles(wave_closes(50))
        candles[20] = candles[20].model_copy(update={"open_time": candles[19].open_time})
        with pytest.raises(InsufficientDataError):
            compute_indicators(candles, IndicatorConfig())

    def test_deterministic(self):
        candles = make_candles(wave_closes(100))
        first = compute_indicators(candles, IndicatorConfig())
        second = compute_indicators(list(candles), IndicatorConfig())
        assert first == second
        assert first.model_dump() == second.model_dump()

    def test_rising_closes_are_overbought_with_positive_histogram(self):
        closes = [100.0] * 40 + [100.0 + 0.5 * i for i in range(1, 21)]
        result = compute_indicators(make_candles(closes), IndicatorConfig())
        assert result.rsi >= 70
        assert result.macd.histogram > 0

    def test_latest_close_reported(self):
        closes = wave_closes(60)
        result = compute_indicators(make_candles(closes), IndicatorConfig())
        assert result.close == closes[-1]

    def test_custom_periods(self):
        config = IndicatorConfig(macd_fast=3, macd_slow=6, macd_signal=3, rsi_period=5,
                                 bb_period=5, momentum_period=3, volume_period=5)
        assert required_candles(config) == 9
        candles = make_candles(wave_closes(9), step_s=int(timedelta(minutes=5).total_seconds()))
        assert compute_indicators(candles, config).rsi is not None

    def test_undefined_indicator_raises(self, monkeypatch):
        monkeypatch.setattr(indicators, "volume_profile", lambda volumes, period: None)
        with pytest.raises(InsufficientDataError):
            compute_indicators(make_candles(wave_closes(60)), IndicatorConfig())
