"""
시그널 + 백테스트 실행 스크립트 (시스템 진입점).

[ 사용법 ]
    # 기본 실행 (config.yaml의 티커/전략/데이터 소스 사용)
    python run_backtest.py

    # 티커 지정
    python run_backtest.py --ticker AAPL --ticker TSLA

    # 파라미터 오버라이드
    python run_backtest.py --ticker NVDA -p rsi_oversold=30 -p decision_threshold=3.5

    # 합성 데이터로 테스트 (네트워크 없이)
    python run_backtest.py --source synthetic

    # 최근 거래 / 지표 테이블 표시 개수
    python run_backtest.py --trades 10 --indicators 5

    # 등록된 전략 목록 확인
    python run_backtest.py --list
"""

import argparse
from pathlib import Path

import pandas as pd
import yaml

from quant_engine.backtest.engine import BacktestEngine, BacktestReport
from quant_engine.core.trading_strategy import Signal
from quant_engine.data.market_data import MarketDataManager
from quant_engine.data.providers import create_provider
from quant_engine.indicators.technical import compute_indicators
from quant_engine.strategies import create_strategy, list_strategies
from quant_engine.utils.config import load_config
from quant_engine.utils.logger import setup_logger

DEFAULT_TICKERS = ["AAPL"]


def parse_param(param_str: str) -> tuple[str, object]:
    """'key=value' → (key, value). 값은 YAML 스칼라 규칙으로 변환 (30 → int, 3.5 → float, yes → True)."""
    key, _, raw = param_str.partition("=")
    value = yaml.safe_load(raw.strip()) if raw.strip() else ""
    return key.strip(), value


def _fmt(value: float | None, digits: int = 2) -> str:
    return "N/A" if value is None else f"{value:.{digits}f}"


def print_signal(ticker: str, signal: Signal) -> None:
    """최신 시그널 출력."""
    ind = signal.indicators
    print(f"\n[{ticker}] 시그널: {signal.signal_type.value} (score {signal.score:+.1f})")
    print(f"  사유: {signal.reason}")
    for reason in signal.full_reasons:
        print(f"    - {reason}")
    print(
        f"  RSI {_fmt(ind.rsi)} | MACD hist {_fmt(ind.macd_histogram, 4)} | "
        f"SMA50 {_fmt(ind.sma50)} | Vol ratio {_fmt(ind.volume_ratio)}"
    )


def print_indicator_table(data: pd.DataFrame, rows: int) -> None:
    """최근 N개 봉의 지표 테이블 출력."""
    if rows <= 0:
        return
    table = compute_indicators(data).tail(rows)
    print("\n최근 지표:")
    print(table.to_string(index=False, float_format=lambda v: f"{v:,.2f}"))


def print_report(report: BacktestReport, max_trades: int) -> None:
    """백테스트 결과 출력."""
    if report.is_empty:
        print("  백테스트 생략: 데이터 부족")
        return

    print()
    print(report.metrics.summary())
    for stat in report.stats:
        print(f"  {stat.label:<14} {stat.value:>14}   {stat.sub}")

    if report.trades:
        print(f"\n최근 거래 (최대 {max_trades}건):")
        for t in report.trades[:max_trades]:
            print(
                f"  {t.entry_date} → {t.exit_date} {t.direction} "
                f"{t.entry_price:,.2f} → {t.exit_price:,.2f} ({t.return_pct:+.2f}%, {t.outcome})"
            )
    if report.metrics.open_position:
        print("  * 마지막 봉 기준 보유 중 (평가손익만 자산곡선에 반영)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="시그널 생성 및 워크포워드 백테스트")
    parser.add_argument("--config", default="config.yaml", help="설정 파일 경로 (.yaml / .json)")
    parser.add_argument("--ticker", action="append", default=[], help="분석할 티커, 반복 지정 가능")
    parser.add_argument("--strategy", default=None, help="전략 이름 (기본: config의 strategy.name)")
    parser.add_argument("-p", "--param", action="append", default=[], metavar="KEY=VALUE",
                        help="전략 파라미터 덮어쓰기 (예: -p rsi_oversold=30)")
    parser.add_argument("--source", default=None, choices=["alpha_vantage", "yahoo", "synthetic"],
                        help="시세 데이터 소스 (기본: config의 data_source.provider)")
    parser.add_argument("--trades", type=int, default=5, help="출력할 최근 거래 수")
    parser.add_argument("--indicators", type=int, default=0, help="출력할 최근 지표 행 수")
    parser.add_argument("--list", action="store_true", help="등록된 전략 이름만 출력하고 종료")
    return parser


def main():
    args = build_parser().parse_args()

    if args.list:
        print("\n".join(list_strategies()))
        return

    if not Path(args.config).exists():
        print(f"설정 파일 없음 ({args.config}), 기본 설정으로 실행")
    config = load_config(args.config)
    setup_logger(level=config.log_level, log_dir=config.log_dir)

    if args.source:
        config.data_source.provider = args.source
    overrides = dict(parse_param(p) for p in args.param)
    strategy_name = args.strategy or config.strategy.name
    strategy = create_strategy(strategy_name, params={**config.strategy.params, **overrides})

    engine = BacktestEngine(
        initial_balance=config.backtest.initial_balance,
        warmup_bars=config.backtest.warmup_bars,
        min_bars=config.backtest.min_bars,
    )
    market_data = MarketDataManager(create_provider(config.data_source))

    print(f"\n전략: {strategy_name} / 데이터 소스: {config.data_source.provider}")
    if overrides:
        print(f"파라미터 덮어쓰기: {overrides}")

    for ticker in args.ticker or config.strategy.tickers or DEFAULT_TICKERS:
        data = market_data.get_historical_bars(ticker)
        if data.empty:
            print(f"\n[SKIP] {ticker}: 데이터 없음")
            continue
        first, last = data["date"].iloc[0], data["date"].iloc[-1]
        print(f"\n{'=' * 50}\n{ticker}: 봉 {len(data)}개 ({first} ~ {last})")

        print_signal(ticker, strategy.generate_signal(data))
        print_indicator_table(data, args.indicators)
        print_report(engine.run_backtest(strategy, data), args.trades)


if __name__ == "__main__":
    main()
