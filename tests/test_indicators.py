"""Tests for technical indicator functions"""

import math

import numpy as np
import pandas as pd
import pytest

from quant_engine.indicators.technical import (
    compute_indicators,
    ema,
    macd,
    rsi,
    sma,
    volume_confirmation,
)


@pytest.fixture
def random_walk():
    rng = np.random.default_rng(42)
    return list(100 + np.cumsum(rng.normal(0, 1, 200)))


class TestSMA:
    """Test simple moving average"""

    def test_sma_warmup_is_unavailable(self):
        result = sma([1, 2, 3, 4, 5], 3)
        assert len(result) == 5
        assert result.iloc[:2].isna().all()

    def test_sma_trailing_mean(self):
        result = sma([1, 2, 3, 4, 5], 3)
        assert result.iloc[2] == pytest.approx(2.0)
        assert result.iloc[3] == pytest.approx(3.0)
        assert result.iloc[4] == pytest.approx(4.0)

    def test_sma_matches_window_mean_everywhere(self, random_walk):
        period = 20
        result = sma(random_walk, period)
        for i in range(period - 1, len(random_walk)):
            assert result.iloc[i] == pytest.approx(np.mean(random_walk[i - period + 1:i + 1]))

    def test_sma_shorter_than_period(self):
        result = sma([1.0, 2.0], 5)
        assert len(result) == 2
        assert result.isna().all()

    def test_sma_keeps_series_index(self):
        prices = pd.Series([1.0, 2.0, 3.0], index=[10, 11, 12])
        result = sma(prices, 2)
        assert list(result.index) == [10, 11, 12]
        assert result.loc[12] == pytest.approx(2.5)

    def test_sma_constant_series_is_exact(self):
        result = sma([100.0] * 60, 50)
        assert result.iloc[-1] == 100.0

    def test_sma_rejects_non_positive_period(self):
        with pytest.raises(ValueError):
            sma([1, 2, 3], 0)


class TestEMA:
    """Test exponential moving average"""

    def test_ema_seed_equals_sma(self, random_walk):
        period = 10
        assert ema(random_walk, period).iloc[period - 1] == pytest.approx(
            sma(random_walk, period).iloc[period - 1]
        )

    def test_ema_recurrence(self):
        prices = [1, 2, 3, 4, 5, 6]
        result = ema(prices, 3)
        assert result.iloc[:2].isna().all()
        assert result.iloc[2] == pytest.approx(2.0)
        # multiplier 0.5
        assert result.iloc[3] == pytest.approx((4 - 2.0) * 0.5 + 2.0)
        assert result.iloc[4] == pytest.approx((5 - 3.0) * 0.5 + 3.0)

    def test_ema_short_input_all_unavailable(self):
        result = ema([1.0, 2.0, 3.0], 5)
        assert len(result) == 3
        assert result.isna().all()


class TestRSI:
    """Test Wilder RSI"""

    def test_rsi_bounded(self, random_walk):
        values = rsi(random_walk, 14).dropna()
        assert len(values) > 0
        assert ((values >= 0) & (values <= 100)).all()

    def test_rsi_100_without_losses(self):
        prices = [100 + i * 1.5 for i in range(40)]
        values = rsi(prices, 14).dropna()
        assert (values == 100.0).all()

    def test_rsi_zero_without_gains(self):
        prices = [100 - i for i in range(40)]
        values = rsi(prices, 14).dropna()
        assert (values == 0.0).all()

    def test_rsi_first_defined_index(self):
        prices = [100 + (i % 3) for i in range(30)]
        result = rsi(prices, 14)
        assert result.iloc[:14].isna().all()
        assert not math.isnan(result.iloc[14])

    def test_rsi_insufficient_data(self):
        result = rsi([1.0] * 14, 14)
        assert len(result) == 14
        assert result.isna().all()

    def test_rsi_initial_value(self):
        # 2 up moves of 2, 1 down move of 1 → avg gain 4/3, avg loss 1/3 → RS 4
        result = rsi([10, 12, 14, 13], 3)
        assert result.iloc[3] == pytest.approx(100 - 100 / (1 + 4))

    def test_rsi_wilder_smoothing(self):
        prices = [10, 12, 14, 13, 15]
        result = rsi(prices, 3)
        avg_gain = (4 / 3 * 2 + 2) / 3
        avg_loss = (1 / 3 * 2 + 0) / 3
        assert result.iloc[4] == pytest.approx(100 - 100 / (1 + avg_gain / avg_loss))


class TestMACD:
    """Test MACD line / signal / histogram"""

    def test_histogram_is_macd_minus_signal(self, random_walk):
        result = macd(random_walk)
        defined = result.histogram.notna()
        assert defined.any()
        diff = (result.macd - result.signal)[defined]
        assert np.allclose(result.histogram[defined], diff)

    def test_defined_regions(self, random_walk):
        result = macd(random_walk, fast=12, slow=26, signal=9)
        assert result.macd.iloc[:25].isna().all()
        assert result.macd.iloc[25:].notna().all()
        assert result.signal.iloc[:33].isna().all()
        assert result.signal.iloc[33:].notna().all()
        assert result.histogram.iloc[:33].isna().all()

    def test_macd_line_is_fast_minus_slow(self, random_walk):
        result = macd(random_walk)
        expected = ema(random_walk, 12) - ema(random_walk, 26)
        assert np.allclose(result.macd.iloc[25:], expected.iloc[25:])

    def test_lengths_match_input(self, random_walk):
        result = macd(random_walk)
        assert len(result.macd) == len(result.signal) == len(result.histogram) == len(random_walk)

    def test_short_input(self):
        result = macd([1.0] * 10)
        assert result.macd.isna().all()
        assert result.signal.isna().all()
        assert result.histogram.isna().all()

    def test_fast_must_be_shorter_than_slow(self):
        with pytest.raises(ValueError):
            macd([1.0] * 50, fast=26, slow=12)


class TestVolumeConfirmation:
    """Test volume ratio against trailing average"""

    def test_constant_volume_ratio_is_one(self):
        result = volume_confirmation([1000.0] * 30, 20)
        assert result.iloc[:19].isna().all()
        assert (result.iloc[19:] == 1.0).all()

    def test_spike_above_average(self):
        volumes = [1000.0] * 19 + [3000.0]
        result = volume_confirmation(volumes, 20)
        # average includes the spike: (19*1000 + 3000) / 20 = 1100
        assert result.iloc[-1] == pytest.approx(3000 / 1100)

    def test_zero_average_is_unavailable(self):
        result = volume_confirmation([0.0] * 25, 20)
        assert result.isna().all()

    def test_insufficient_data(self):
        result = volume_confirmation([1000.0] * 5, 20)
        assert result.isna().all()


class TestComputeIndicators:
    """Test the combined indicator table"""

    def test_columns_and_alignment(self, make_bars, random_walk):
        bars = make_bars(random_walk)
        table = compute_indicators(bars)
        assert len(table) == len(bars)
        assert list(table.columns) == [
            "date", "close", "rsi", "macd", "macd_signal", "macd_histogram", "sma50", "volume_ratio",
        ]
        assert table["sma50"].iloc[:49].isna().all()
        assert table["sma50"].iloc[-1] == pytest.approx(np.mean(random_walk[-50:]))
