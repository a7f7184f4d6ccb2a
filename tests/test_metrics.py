"""Tests for backtest performance metrics"""

import math

import pytest

from quant_engine.backtest.metrics import (
    BacktestMetrics,
    EquityPoint,
    Trade,
    calculate_metrics,
    max_drawdown,
)


def make_trade(return_pct: float) -> Trade:
    return Trade(
        entry_date="2024-01-01",
        exit_date="2024-01-02",
        entry_price=100.0,
        exit_price=100.0 * (1 + return_pct / 100),
        return_pct=return_pct,
        outcome="Win" if return_pct > 0 else "Loss",
    )


def make_curve(values: list[float], benchmark: list[float] | None = None) -> list[EquityPoint]:
    benchmark = benchmark or values
    return [EquityPoint(label=str(i), strategy_equity=v, benchmark_equity=b)
            for i, (v, b) in enumerate(zip(values, benchmark))]


class TestMaxDrawdown:
    """Test peak-to-trough decline"""

    def test_largest_decline_wins(self):
        assert max_drawdown([110, 99, 120, 90], 100) == pytest.approx(25.0)

    def test_initial_balance_is_first_peak(self):
        assert max_drawdown([90, 95], 100) == pytest.approx(10.0)

    def test_monotonic_rise_has_no_drawdown(self):
        assert max_drawdown([101, 102, 103], 100) == 0.0

    def test_empty_curve(self):
        assert max_drawdown([], 100) == 0.0


class TestCalculateMetrics:
    """Test calculate_metrics()"""

    def test_returns(self):
        curve = make_curve([10_000, 10_500, 11_000], benchmark=[10_000, 10_200, 12_000])
        metrics = calculate_metrics([], curve, initial_balance=10_000, final_balance=11_000)
        assert metrics.total_return == pytest.approx(10.0)
        assert metrics.benchmark_return == pytest.approx(20.0)

    def test_no_trades(self):
        metrics = calculate_metrics([], make_curve([10_000] * 5), 10_000, 10_000)
        assert metrics.total_trades == 0
        assert metrics.win_rate == 0.0
        assert metrics.profit_factor == 0.0
        assert metrics.sharpe_ratio == 0.0

    def test_trade_statistics(self):
        trades = [make_trade(10.0), make_trade(-5.0), make_trade(5.0)]
        metrics = calculate_metrics(trades, make_curve([10_000, 10_100]), 10_000, 11_000)
        assert metrics.total_trades == 3
        assert metrics.winning_trades == 2
        assert metrics.losing_trades == 1
        assert metrics.win_rate == pytest.approx(200 / 3)
        assert metrics.avg_trade_return == pytest.approx(10 / 3)
        assert metrics.profit_factor == pytest.approx(3.0)

    def test_profit_factor_without_losses(self):
        metrics = calculate_metrics([make_trade(2.0)], make_curve([10_000]), 10_000, 10_200)
        assert math.isinf(metrics.profit_factor)

    def test_consecutive_streaks(self):
        returns = [1.0, 2.0, -1.0, -2.0, -3.0, 4.0]
        metrics = calculate_metrics([make_trade(r) for r in returns], [], 10_000, 10_000)
        assert metrics.max_consecutive_wins == 2
        assert metrics.max_consecutive_losses == 3

    def test_zero_return_counts_as_loss(self):
        metrics = calculate_metrics([make_trade(0.0)], [], 10_000, 10_000)
        assert metrics.losing_trades == 1
        assert metrics.win_rate == 0.0

    def test_sharpe_sign_follows_returns(self):
        rising = calculate_metrics([], make_curve([100, 101, 103, 104, 107]), 100, 107)
        falling = calculate_metrics([], make_curve([100, 99, 97, 96, 93]), 100, 93)
        assert rising.sharpe_ratio > 0
        assert falling.sharpe_ratio < 0

    def test_drawdown_from_curve(self):
        metrics = calculate_metrics([], make_curve([10_000, 12_000, 9_000]), 10_000, 9_000)
        assert metrics.max_drawdown == pytest.approx(25.0)

    def test_open_position_flag(self):
        metrics = calculate_metrics([], [], 10_000, 10_000, open_position=True)
        assert metrics.open_position is True


class TestBacktestMetrics:
    """Test report formatting"""

    def test_summary(self):
        text = BacktestMetrics(initial_balance=10_000, final_balance=10_500, total_return=5.0).summary()
        assert "Backtest Report" in text
        assert "Total Return:" in text
        assert "5.00%" in text

    def test_to_dict(self):
        data = BacktestMetrics(total_trades=3).to_dict()
        assert data["total_trades"] == 3
        assert "sharpe_ratio" in data
