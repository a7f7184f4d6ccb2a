#!/usr/bin/env python3
"""
모의투자 원장 CLI
- JSON 파일 저장소에 가상 계좌를 보관
- buy / sell / stats / positions / history / reset

사용 예:
    python scripts/paper_trade.py buy AAPL 10 --price 180
    python scripts/paper_trade.py sell AAPL 5            # 가격 생략 시 최근 종가
    python scripts/paper_trade.py positions --price AAPL=190
    python scripts/paper_trade.py stats
"""
import argparse
import sys
from pathlib import Path

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from quant_engine.data.market_data import MarketDataManager
from quant_engine.data.portfolio import LedgerError, PaperTradingLedger
from quant_engine.data.providers import create_provider
from quant_engine.storage.kv_store import JsonFileStore
from quant_engine.utils.config import Config, load_config
from quant_engine.utils.logger import setup_logger


def parse_prices(values: list[str]) -> dict[str, float]:
    """'TICKER=PRICE' 목록 → dict."""
    prices = {}
    for item in values:
        ticker, _, price = item.partition("=")
        if not price:
            raise argparse.ArgumentTypeError(f"형식 오류 (TICKER=PRICE): {item}")
        prices[ticker.strip()] = float(price)
    return prices


def resolve_price(config: Config, ticker: str, price: float | None) -> float:
    """가격이 없으면 데이터 소스의 최근 종가 사용."""
    if price is not None:
        return price
    latest = MarketDataManager(create_provider(config.data_source)).get_latest_price(ticker)
    if latest is None:
        raise LedgerError(f"{ticker}의 현재가를 구할 수 없습니다. --price로 지정하세요.")
    print(f"{ticker} 최근 종가 사용: {latest:,.2f}")
    return latest


def build_ledger(config: Config, store_path: str | None) -> PaperTradingLedger:
    store = JsonFileStore(store_path or config.ledger.store_path)
    return PaperTradingLedger(
        store,
        initial_cash=config.ledger.initial_cash,
        storage_key=config.ledger.storage_key,
    )


def print_stats(ledger: PaperTradingLedger) -> None:
    stats = ledger.get_stats()
    print(f"현금:        {stats['balance']:>14,.2f}")
    print(f"묶인 금액:   {stats['locked']:>14,.2f}")
    print(f"평가 자산:   {stats['equity']:>14,.2f}")
    print(f"보유 종목:   {stats['positions_count']:>14d}")
    print(f"거래 횟수:   {stats['total_trades']:>14d}")
    print(f"실현 손익:   {ledger.realized_pnl():>+14,.2f}")


def print_positions(ledger: PaperTradingLedger, prices: dict[str, float]) -> None:
    rows = ledger.get_positions_with_pnl(prices)
    if not rows:
        print("보유 종목 없음")
        return
    print(f"{'티커':<8}{'수량':>10}{'평균단가':>12}{'현재가':>12}{'평가금액':>14}{'평가손익':>14}{'수익률':>10}")
    for r in rows:
        print(
            f"{r.ticker:<8}{r.quantity:>10,.2f}{r.avg_price:>12,.2f}{r.current_price:>12,.2f}"
            f"{r.market_value:>14,.2f}{r.unrealized_pnl:>+14,.2f}{r.pnl_percent:>+9.2f}%"
        )


def print_history(ledger: PaperTradingLedger, limit: int) -> None:
    history = ledger.history[-limit:]
    if not history:
        print("거래 내역 없음")
        return
    for e in history:
        pnl = f" pnl {e.pnl:+,.2f}" if e.pnl is not None else ""
        print(f"[{e.timestamp}] {e.side:<4} {e.ticker} {e.quantity:,.2f} @ {e.price:,.2f} = {e.total:,.2f}{pnl}")


def main():
    parser = argparse.ArgumentParser(description="모의투자 원장")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--store", type=str, default=None, help="원장 JSON 파일 경로 (config 대신)")
    sub = parser.add_subparsers(dest="command", required=True)

    for side in ("buy", "sell"):
        p = sub.add_parser(side, help=f"{side} 주문")
        p.add_argument("ticker")
        p.add_argument("quantity", type=float)
        p.add_argument("--price", type=float, default=None, help="체결 가격 (생략 시 최근 종가)")

    sub.add_parser("stats", help="계좌 요약")
    p = sub.add_parser("positions", help="보유 종목 평가손익")
    p.add_argument("--price", action="append", default=[], help="현재가 지정 (TICKER=PRICE)")
    p = sub.add_parser("history", help="거래 내역")
    p.add_argument("--limit", type=int, default=20)
    sub.add_parser("reset", help="계좌 초기화")

    args = parser.parse_args()

    config = load_config(args.config)
    setup_logger(level=config.log_level, log_dir=config.log_dir, console=False)

    try:
        ledger = build_ledger(config, args.store)

        if args.command == "buy":
            price = resolve_price(config, args.ticker, args.price)
            entry = ledger.buy(args.ticker, args.quantity, price)
            print(f"매수 완료: {entry.ticker} {entry.quantity:,.2f} @ {entry.price:,.2f} (총 {entry.total:,.2f})")
            print_stats(ledger)
        elif args.command == "sell":
            price = resolve_price(config, args.ticker, args.price)
            entry = ledger.sell(args.ticker, args.quantity, price)
            print(f"매도 완료: {entry.ticker} {entry.quantity:,.2f} @ {entry.price:,.2f}, 실현손익 {entry.pnl:+,.2f}")
            print_stats(ledger)
        elif args.command == "stats":
            print_stats(ledger)
        elif args.command == "positions":
            print_positions(ledger, parse_prices(args.price))
        elif args.command == "history":
            print_history(ledger, args.limit)
        elif args.command == "reset":
            ledger.reset()
            print("계좌를 초기화했습니다.")
            print_stats(ledger)
    except LedgerError as e:
        print(f"오류: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
