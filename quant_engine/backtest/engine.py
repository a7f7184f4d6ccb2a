"""
백테스팅 엔진 모듈.

[ 역할 ]
    과거 봉 데이터에 전략을 워크포워드 방식으로 적용하여
    단일 롱/무포지션 매매를 시뮬레이션하고 성과를 측정.

[ 실행 흐름 ]
    run_backtest() 호출 시:
        1. 봉 개수가 min_bars(100) 미만이면 빈 리포트 반환
        2. index warmup_bars(50)부터 한 봉씩 전진
           → 현재 봉까지의 데이터만으로 strategy.generate_signal() 호출
           → FLAT + BUY  → LONG 진입 (종가, 거래 기록은 청산 시)
           → LONG + SELL → 청산, Trade 기록, 잔고 갱신
        3. 매 봉 자산곡선 기록 (전략 = 잔고 + 보유 평가손익, 벤치마크 = 단순 보유)
        4. metrics.calculate_metrics()로 성과 지표 계산

[ 포지션 크기 ]
    매 진입마다 initial_balance / 진입가 만큼의 고정 수량 (복리 없음).

[ 종료 처리 ]
    마지막 봉에서 보유 중이어도 강제 청산하지 않는다.
    평가손익은 마지막 자산곡선 점에만 반영되고 거래 통계에는 들어가지 않는다.

[ 호출하는 곳 ]
    - run_backtest.py (진입점)에서 생성 및 실행
"""

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

import pandas as pd

from quant_engine.backtest.metrics import (
    BacktestMetrics,
    EquityPoint,
    Trade,
    calculate_metrics,
)
from quant_engine.core.trading_strategy import SignalType, TradingStrategy

logger = logging.getLogger("quant_engine.backtest")


class PositionState(Enum):
    FLAT = "flat"
    LONG = "long"


@dataclass(frozen=True)
class StatItem:
    """리포트 상단 요약 카드 한 칸."""
    label: str
    value: str
    sub: str = ""


@dataclass
class BacktestReport:
    """run_backtest()의 반환값. 데이터 부족 시 모든 리스트가 비어 있다."""
    stats: list[StatItem] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)          # 최근 거래가 앞
    equity_curve: list[EquityPoint] = field(default_factory=list)
    metrics: Optional[BacktestMetrics] = None

    @property
    def is_empty(self) -> bool:
        return not self.stats and not self.trades and not self.equity_curve

    def to_dict(self) -> dict[str, Any]:
        return {
            "stats": [asdict(s) for s in self.stats],
            "trades": [asdict(t) for t in self.trades],
            "equity_curve": [asdict(p) for p in self.equity_curve],
            "metrics": self.metrics.to_dict() if self.metrics else None,
        }


class BacktestEngine:
    """워크포워드 백테스팅 엔진. run_backtest()로 시뮬레이션 실행."""

    def __init__(
        self,
        initial_balance: float = 10_000,
        warmup_bars: int = 50,       # 첫 평가 index
        min_bars: int = 100,         # 이보다 적으면 빈 리포트
    ):
        if not 0 <= warmup_bars < min_bars:
            raise ValueError(f"warmup_bars({warmup_bars})는 0 이상, min_bars({min_bars}) 미만이어야 합니다")
        self.initial_balance = initial_balance
        self.warmup_bars = warmup_bars
        self.min_bars = min_bars

    def run_backtest(self, strategy: TradingStrategy, data: pd.DataFrame) -> BacktestReport:
        """백테스트 실행.

        Args:
            strategy: 매매 전략
            data: OHLCV DataFrame (columns: date, open, high, low, close, volume)

        Returns:
            BacktestReport: 요약 통계, 거래 목록(최근순), 자산곡선
        """
        if data is None or len(data) < self.min_bars:
            logger.warning(
                f"데이터 부족으로 백테스트 생략 ({0 if data is None else len(data)}개 < {self.min_bars}개)"
            )
            return BacktestReport()

        bars = data.sort_values("date").reset_index(drop=True)
        closes = bars["close"].astype(float).tolist()
        labels = [str(d) for d in bars["date"]]

        initial = self.initial_balance
        balance = initial
        state = PositionState.FLAT
        entry_price = 0.0
        entry_date = ""
        trades: list[Trade] = []
        equity_curve: list[EquityPoint] = []
        benchmark_base = closes[self.warmup_bars]

        logger.info(
            f"백테스트 시작: {labels[self.warmup_bars]} ~ {labels[-1]} "
            f"({len(bars) - self.warmup_bars}개 봉, 전략: {strategy.name})"
        )

        for i in range(self.warmup_bars, len(bars)):
            # 현재 봉까지의 데이터만 전달 (미래 데이터 누출 방지)
            signal = strategy.generate_signal(bars.iloc[: i + 1])
            price = closes[i]
            label = labels[i]

            if signal.signal_type == SignalType.BUY and state == PositionState.FLAT:
                state = PositionState.LONG
                entry_price = price
                entry_date = label
                logger.debug(f"[{label}] 진입 @ {price:,.2f} ({signal.reason})")

            elif signal.signal_type == SignalType.SELL and state == PositionState.LONG:
                ret = (price - entry_price) / entry_price
                balance += (price - entry_price) * (initial / entry_price)
                trades.append(Trade(
                    entry_date=entry_date,
                    exit_date=label,
                    entry_price=entry_price,
                    exit_price=price,
                    return_pct=ret * 100,
                    outcome="Win" if ret > 0 else "Loss",
                ))
                state = PositionState.FLAT
                logger.debug(f"[{label}] 청산 @ {price:,.2f}, 수익률 {ret * 100:.2f}% ({signal.reason})")

            open_pnl = (price - entry_price) * (initial / entry_price) if state == PositionState.LONG else 0.0
            equity_curve.append(EquityPoint(
                label=label,
                strategy_equity=balance + open_pnl,
                benchmark_equity=price / benchmark_base * initial,
            ))

        metrics = calculate_metrics(
            trades=trades,
            equity_curve=equity_curve,
            initial_balance=initial,
            final_balance=balance,
            open_position=state == PositionState.LONG,
        )

        logger.info(
            f"백테스트 완료. 총 수익률: {metrics.total_return:.2f}%, "
            f"거래 {metrics.total_trades}건, 승률 {metrics.win_rate:.1f}%"
        )

        return BacktestReport(
            stats=self._build_stats(metrics),
            trades=list(reversed(trades)),
            equity_curve=equity_curve,
            metrics=metrics,
        )

    def _build_stats(self, metrics: BacktestMetrics) -> list[StatItem]:
        """요약 카드 4종: 총 수익률 / 승률 / MDD / 최종 잔고."""
        return [
            StatItem("Total Return", f"{metrics.total_return:.1f}%", "Strategy vs Benchmark"),
            StatItem(
                "Win Rate",
                f"{metrics.win_rate:.1f}%" if metrics.total_trades else "0%",
                f"{metrics.winning_trades} wins out of {metrics.total_trades}",
            ),
            StatItem("Max Drawdown", f"{metrics.max_drawdown:.1f}%", "Peak to trough decline"),
            StatItem(
                "Final Balance",
                f"${metrics.final_balance:,.2f}",
                f"Starting: ${self.initial_balance:,.0f}",
            ),
        ]
