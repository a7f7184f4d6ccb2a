"""
모의투자 원장 모듈.

[ 역할 ]
    사용자가 직접 낸 가상 매수/매도 주문으로 현금, 보유 종목(Position),
    거래 기록(LedgerEntry)을 관리하는 가상 계좌의 기준 장부.
    백테스트와는 독립적으로 동작한다.

[ 주요 클래스 ]
    Position           - 종목별 수량/평균단가 (수량이 0이 되면 제거)
    LedgerEntry        - 개별 거래 기록 (추가만 가능, 매도 시 실현손익 포함)
    PortfolioState     - 현금 + 포지션들 + 거래내역. JSON 문서 하나로 직렬화
    PaperTradingLedger - 주문 처리 서비스. 저장소와 시계를 주입받는다

[ 저장 규칙 ]
    생성 시 저장소의 "finbot_trade_profile" 키에서 상태를 읽고,
    없으면 초기 현금 100,000으로 새로 만든다.
    buy/sell/reset이 성공할 때마다 전체 상태를 다시 저장한다.
    주문이 실패하면 메모리 상태와 저장소 모두 그대로 유지된다.

[ 동시성 ]
    한 인스턴스의 buy/sell/reset은 내부 락으로 직렬화된다.
    같은 저장소를 여러 인스턴스가 동시에 쓰는 경우는 호출 측에서 순서를 보장해야 한다.

[ 호출하는 곳 ]
    - scripts/paper_trade.py (CLI)
"""

import copy
import json
import logging
import math
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from quant_engine.core.storage import KeyValueStore

logger = logging.getLogger("quant_engine.ledger")

DEFAULT_STORAGE_KEY = "finbot_trade_profile"
INITIAL_CASH = 100_000.0

# 매도 후 남은 수량이 이 값 이하이면 포지션을 닫는다 (소수 수량의 부동소수점 잔여분)
QUANTITY_EPSILON = 1e-9


class OrderSide(Enum):
    BUY = "BUY"
    SELL = "SELL"


# ─── 예외 ───────────────────────────────────────────────────────────────────

class LedgerError(Exception):
    """원장 처리 실패의 공통 부모."""


class InsufficientFundsError(LedgerError):
    """매수 금액이 가용 현금보다 큼."""


class InsufficientPositionError(LedgerError):
    """보유하지 않았거나 보유 수량보다 많이 매도."""


class InvalidOrderError(LedgerError):
    """수량/가격이 0 이하이거나 종목 코드가 비어 있음."""


# ─── 데이터 클래스 ──────────────────────────────────────────────────────────

@dataclass
class Position:
    """개별 종목 포지션. quantity > 0 인 동안만 존재."""
    ticker: str
    quantity: float
    avg_price: float    # 평균 매수가 (매수 시마다 가중평균 갱신)

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.avg_price

    def update_on_buy(self, quantity: float, price: float) -> None:
        """매수 시 가중평균 단가 갱신."""
        total_quantity = self.quantity + quantity
        self.avg_price = (self.quantity * self.avg_price + quantity * price) / total_quantity
        self.quantity = total_quantity


@dataclass(frozen=True)
class LedgerEntry:
    """개별 거래 기록."""
    timestamp: str          # ISO 8601
    ticker: str
    side: str               # "BUY" / "SELL"
    quantity: float
    price: float
    total: float            # quantity * price
    pnl: Optional[float] = None   # 실현 손익 (매도 시에만)


@dataclass
class PositionPnL:
    """get_positions_with_pnl()의 항목."""
    ticker: str
    quantity: float
    avg_price: float
    current_price: float
    market_value: float
    unrealized_pnl: float
    pnl_percent: float      # (%)


@dataclass
class PortfolioState:
    """원장 전체 상태. 저장소에는 JSON 문서 하나로 보관."""
    balance: float
    locked: float = 0.0
    positions: list[Position] = field(default_factory=list)
    history: list[LedgerEntry] = field(default_factory=list)

    @classmethod
    def fresh(cls, initial_cash: float) -> "PortfolioState":
        return cls(balance=initial_cash)

    def find_position(self, ticker: str) -> Optional[Position]:
        for position in self.positions:
            if position.ticker == ticker:
                return position
        return None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PortfolioState":
        return cls(
            balance=data["balance"],
            locked=data.get("locked", 0.0),
            positions=[Position(**p) for p in data.get("positions", [])],
            history=[LedgerEntry(**h) for h in data.get("history", [])],
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "PortfolioState":
        return cls.from_dict(json.loads(text))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ─── 원장 서비스 ────────────────────────────────────────────────────────────

class PaperTradingLedger:
    """모의투자 원장.

    사용 예:
        ledger = PaperTradingLedger(JsonFileStore("data/paper_trading.json"))
        ledger.buy("AAPL", 10, 180.0)
        ledger.sell("AAPL", 5, 190.0)
        ledger.get_positions_with_pnl({"AAPL": 185.0})
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] | None = None,
        initial_cash: float = INITIAL_CASH,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ):
        self.store = store
        self.clock = clock or _utc_now
        self.initial_cash = initial_cash
        self.storage_key = storage_key
        self._lock = threading.RLock()
        self._state = self._load()

    # ─── 저장 / 로드 ──────────────────────────────────────────────────────

    def _load(self) -> PortfolioState:
        saved = self.store.get(self.storage_key)
        if saved is None:
            state = PortfolioState.fresh(self.initial_cash)
            self._persist(state)
            logger.info(f"새 모의투자 계좌 생성 (초기 현금: {self.initial_cash:,.2f})")
            return state

        try:
            return PortfolioState.from_json(saved)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"저장된 원장을 읽을 수 없습니다 (key={self.storage_key}): {e}")
            raise LedgerError(f"저장된 원장 문서가 손상되었습니다: {e}") from e

    def _persist(self, state: PortfolioState) -> None:
        self.store.set(self.storage_key, state.to_json())

    def _commit(self, state: PortfolioState) -> None:
        """저장 성공 후에만 메모리 상태 교체."""
        self._persist(state)
        self._state = state

    @property
    def state(self) -> PortfolioState:
        """현재 상태의 사본."""
        return copy.deepcopy(self._state)

    @property
    def balance(self) -> float:
        return self._state.balance

    @property
    def positions(self) -> list[Position]:
        return copy.deepcopy(self._state.positions)

    @property
    def history(self) -> list[LedgerEntry]:
        return list(self._state.history)

    def get_position(self, ticker: str) -> Optional[Position]:
        position = self._state.find_position(ticker)
        return copy.copy(position) if position else None

    # ─── 주문 ─────────────────────────────────────────────────────────────

    @staticmethod
    def _validate_order(ticker: str, quantity: float, price: float) -> None:
        if not ticker or not ticker.strip():
            raise InvalidOrderError("종목 코드가 비어 있습니다.")
        if not math.isfinite(quantity) or quantity <= 0:
            raise InvalidOrderError(f"수량은 0보다 큰 유한값이어야 합니다: {quantity}")
        if not math.isfinite(price) or price <= 0:
            raise InvalidOrderError(f"가격은 0보다 큰 유한값이어야 합니다: {price}")

    def buy(self, ticker: str, quantity: float, price: float) -> LedgerEntry:
        """매수. 현금 차감 + 가중평균 단가로 포지션 생성/갱신.

        Raises:
            InvalidOrderError: 수량/가격이 0 이하이거나 NaN/inf
            InsufficientFundsError: 가용 현금 < quantity * price
        """
        self._validate_order(ticker, quantity, price)
        with self._lock:
            cost = quantity * price
            if self._state.balance < cost:
                logger.warning(
                    f"매수 거절: {ticker} {quantity} @ {price:,.2f} "
                    f"(필요 {cost:,.2f} > 가용 {self._state.balance:,.2f})"
                )
                raise InsufficientFundsError(
                    f"Insufficient virtual funds: need {cost:,.2f}, available {self._state.balance:,.2f}"
                )

            state = copy.deepcopy(self._state)
            state.balance -= cost

            position = state.find_position(ticker)
            if position is not None:
                position.update_on_buy(quantity, price)
            else:
                state.positions.append(Position(ticker=ticker, quantity=quantity, avg_price=price))

            entry = LedgerEntry(
                timestamp=self.clock().isoformat(),
                ticker=ticker,
                side=OrderSide.BUY.value,
                quantity=quantity,
                price=price,
                total=cost,
            )
            state.history.append(entry)
            self._commit(state)

        logger.info(f"매수: {ticker} {quantity} @ {price:,.2f} (잔고 {self.balance:,.2f})")
        return entry

    def sell(self, ticker: str, quantity: float, price: float) -> LedgerEntry:
        """매도. 현금 입금 + 실현손익 기록, 수량이 0이 되면 포지션 제거.

        Raises:
            InvalidOrderError: 수량/가격이 0 이하이거나 NaN/inf
            InsufficientPositionError: 미보유 또는 보유 수량 부족
        """
        self._validate_order(ticker, quantity, price)
        with self._lock:
            held = self._state.find_position(ticker)
            if held is None or held.quantity < quantity:
                held_qty = held.quantity if held else 0
                logger.warning(f"매도 거절: {ticker} {quantity} (보유 {held_qty})")
                raise InsufficientPositionError(
                    f"Insufficient position quantity for {ticker}: requested {quantity}, held {held_qty}"
                )

            state = copy.deepcopy(self._state)
            position = state.find_position(ticker)
            proceeds = quantity * price
            pnl = proceeds - quantity * position.avg_price

            state.balance += proceeds
            position.quantity -= quantity
            if position.quantity <= QUANTITY_EPSILON:
                state.positions.remove(position)

            entry = LedgerEntry(
                timestamp=self.clock().isoformat(),
                ticker=ticker,
                side=OrderSide.SELL.value,
                quantity=quantity,
                price=price,
                total=proceeds,
                pnl=pnl,
            )
            state.history.append(entry)
            self._commit(state)

        logger.info(f"매도: {ticker} {quantity} @ {price:,.2f}, 실현손익 {pnl:+,.2f}")
        return entry

    def reset(self) -> None:
        """초기 현금 상태로 재설정 후 저장."""
        with self._lock:
            self._commit(PortfolioState.fresh(self.initial_cash))
        logger.info(f"모의투자 계좌 초기화 (초기 현금: {self.initial_cash:,.2f})")

    # ─── 조회 ─────────────────────────────────────────────────────────────

    def get_stats(self) -> dict[str, Any]:
        """계좌 요약. 상태를 바꾸지 않는다."""
        state = self._state
        return {
            "balance": state.balance,
            "locked": state.locked,
            "equity": state.balance + state.locked,
            "positions_count": len(state.positions),
            "total_trades": len(state.history),
        }

    def get_positions_with_pnl(self, current_prices: dict[str, float] | None = None) -> list[PositionPnL]:
        """보유 종목별 평가손익. 현재가가 없으면 평균단가로 평가."""
        current_prices = current_prices or {}
        result = []
        for p in self._state.positions:
            price = current_prices.get(p.ticker)
            if price is None or price <= 0:
                price = p.avg_price
            market_value = p.quantity * price
            result.append(PositionPnL(
                ticker=p.ticker,
                quantity=p.quantity,
                avg_price=p.avg_price,
                current_price=price,
                market_value=market_value,
                unrealized_pnl=market_value - p.cost_basis,
                pnl_percent=(price - p.avg_price) / p.avg_price * 100,
            ))
        return result

    def realized_pnl(self) -> float:
        """거래내역 전체의 실현손익 합."""
        return sum(e.pnl for e in self._state.history if e.pnl is not None)
