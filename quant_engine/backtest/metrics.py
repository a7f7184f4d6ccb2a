"""
백테스트 성과 지표 계산 모듈.

[ 역할 ]
    백테스트 결과(완료된 거래 + 봉별 자산곡선)를 받아 성과 지표를 계산.
    calculate_metrics() 함수가 핵심.

[ 계산하는 지표 ]
    - 총 수익률 (최종 잔고 vs 초기 잔고) / 벤치마크(보유) 수익률
    - MDD (전략 자산곡선의 최대 낙폭, 초기 잔고를 첫 고점으로 사용)
    - 승률, 평균 거래 수익률, 수익 팩터
    - 샤프 비율 (봉 단위 수익률 기준)
    - 연속 승/패

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine.run_backtest() 완료 시 호출

[ 참고 ]
    마지막 봉에서 아직 보유 중인 포지션은 거래로 집계하지 않는다
    (자산곡선에만 평가손익으로 반영, open_position=True).
"""

from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

TRADING_DAYS_PER_YEAR = 252


@dataclass(frozen=True)
class Trade:
    """완료된 거래 (청산 시 생성, 이후 변경 불가)."""
    entry_date: str
    exit_date: str
    entry_price: float
    exit_price: float
    return_pct: float        # 수익률 (%)
    outcome: str             # "Win" / "Loss"
    direction: str = "LONG"


@dataclass(frozen=True)
class EquityPoint:
    """평가된 봉마다 하나씩 기록되는 자산곡선 점."""
    label: str
    strategy_equity: float
    benchmark_equity: float


@dataclass
class BacktestMetrics:
    """백테스트 성과 지표. summary()로 포맷된 리포트 출력 가능."""
    initial_balance: float = 0.0
    final_balance: float = 0.0
    total_return: float = 0.0         # 총 수익률 (%)
    benchmark_return: float = 0.0     # 단순 보유 수익률 (%)
    max_drawdown: float = 0.0         # 최대 낙폭 MDD (%)
    win_rate: float = 0.0             # 승률 (%)
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    avg_trade_return: float = 0.0     # 거래당 평균 수익률 (%)
    profit_factor: float = 0.0        # 총이익률 / 총손실률
    sharpe_ratio: float = 0.0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    open_position: bool = False       # 종료 시점 보유 중 여부

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환."""
        return asdict(self)

    def summary(self) -> str:
        """성과 요약 문자열."""
        lines = [
            "=" * 50,
            "Backtest Report",
            "=" * 50,
            f"Total Return:     {self.total_return:>10.2f}%",
            f"Benchmark Return: {self.benchmark_return:>10.2f}%",
            f"Max Drawdown:     {self.max_drawdown:>10.2f}%",
            f"Sharpe Ratio:     {self.sharpe_ratio:>10.2f}",
            f"Final Balance:    {self.final_balance:>10,.2f}",
            "-" * 50,
            f"Total Trades:     {self.total_trades:>10d}",
            f"Win Rate:         {self.win_rate:>10.2f}%",
            f"Wins / Losses:    {self.winning_trades:>5d} / {self.losing_trades:<4d}",
            f"Avg Trade Return: {self.avg_trade_return:>10.2f}%",
            f"Profit Factor:    {self.profit_factor:>10.2f}",
            f"Max Consec. Wins: {self.max_consecutive_wins:>10d}",
            f"Max Consec. Loss: {self.max_consecutive_losses:>10d}",
            f"Open Position:    {'yes' if self.open_position else 'no':>10}",
            "=" * 50,
        ]
        return "\n".join(lines)


def max_drawdown(values: list[float], initial_peak: float) -> float:
    """고점 대비 최대 하락폭 (%). 고점은 initial_peak에서 시작."""
    peak = initial_peak
    max_dd = 0.0
    for value in values:
        if value > peak:
            peak = value
        if peak > 0:
            dd = (peak - value) / peak * 100
            if dd > max_dd:
                max_dd = dd
    return max_dd


def calculate_metrics(
    trades: list[Trade],
    equity_curve: list[EquityPoint],
    initial_balance: float,
    final_balance: float,
    open_position: bool = False,
) -> BacktestMetrics:
    """성과 지표 계산. engine.py에서 백테스트 완료 후 호출됨.

    Args:
        trades: 완료된 거래 (시간순)
        equity_curve: 봉별 자산곡선
        initial_balance: 초기 잔고
        final_balance: 최종 실현 잔고 (보유 포지션 평가손익 제외)
        open_position: 종료 시점에 보유 중인지
    """
    metrics = BacktestMetrics(
        initial_balance=initial_balance,
        final_balance=final_balance,
        open_position=open_position,
    )

    # ─── 수익률 ─────────────────────────────────────────────────────────
    metrics.total_return = (final_balance - initial_balance) / initial_balance * 100
    if equity_curve:
        metrics.benchmark_return = (
            (equity_curve[-1].benchmark_equity - initial_balance) / initial_balance * 100
        )

    # ─── MDD ──────────────────────────────────────────────────────────────
    strategy_values = [p.strategy_equity for p in equity_curve]
    metrics.max_drawdown = max_drawdown(strategy_values, initial_balance)

    # ─── 샤프 비율 (봉 단위 수익률, 무위험 수익률 0) ──────────────────────
    if len(strategy_values) > 1:
        values = np.array(strategy_values)
        returns = np.diff(values) / values[:-1]
        if np.std(returns) > 0:
            metrics.sharpe_ratio = float(
                np.mean(returns) / np.std(returns) * np.sqrt(TRADING_DAYS_PER_YEAR)
            )

    # ─── 거래 기반 지표 ───────────────────────────────────────────────────
    metrics.total_trades = len(trades)
    if not trades:
        return metrics

    returns_pct = [t.return_pct for t in trades]
    wins = [r for t, r in zip(trades, returns_pct) if t.outcome == "Win"]
    losses = [r for t, r in zip(trades, returns_pct) if t.outcome != "Win"]

    metrics.winning_trades = len(wins)
    metrics.losing_trades = len(losses)
    metrics.win_rate = len(wins) / len(trades) * 100
    metrics.avg_trade_return = sum(returns_pct) / len(trades)

    total_gain = sum(wins)
    total_loss = abs(sum(losses))
    metrics.profit_factor = total_gain / total_loss if total_loss > 0 else float("inf")

    # 연속 승패
    consecutive_wins = 0
    consecutive_losses = 0
    for t in trades:
        if t.outcome == "Win":
            consecutive_wins += 1
            consecutive_losses = 0
            metrics.max_consecutive_wins = max(metrics.max_consecutive_wins, consecutive_wins)
        else:
            consecutive_losses += 1
            consecutive_wins = 0
            metrics.max_consecutive_losses = max(metrics.max_consecutive_losses, consecutive_losses)

    return metrics
