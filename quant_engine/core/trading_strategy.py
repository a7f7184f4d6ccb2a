"""
매매 전략 추상 클래스 정의.

[ 역할 ]
    시그널 엔진의 인터페이스를 정의.
    OHLCV 데이터를 받아 마지막 봉 기준으로 매수/매도/홀드 시그널을 생성.

[ 구현체 ]
    - strategies/combined_strategy.py::CombinedSignalStrategy (RSI + MACD + SMA50 + 거래량)

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine.run_backtest()에서
      매 봉마다 generate_signal()을 호출 (워크포워드)
    - run_backtest.py에서 최신 시그널 출력

[ 데이터 흐름 ]
    market_data(OHLCV DataFrame) → generate_signal() → Signal 반환
    Signal은 매 평가마다 새로 생성되며 변경되지 않는다 (frozen).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import pandas as pd


class SignalType(Enum):
    """전략이 반환하는 시그널 종류."""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True)
class IndicatorSnapshot:
    """시그널 평가 시점(마지막 봉)의 지표 값. 계산 불가 시 None."""
    rsi: Optional[float] = None
    macd_histogram: Optional[float] = None
    sma50: Optional[float] = None
    volume_ratio: Optional[float] = None


@dataclass(frozen=True)
class Signal:
    """generate_signal()의 반환값."""
    signal_type: SignalType
    score: float = 0.0                          # 매수 가중치 - 매도 가중치
    reason: str = ""                            # 요약 사유 (최대 2개 사유 결합)
    full_reasons: tuple[str, ...] = ()          # 우세한 쪽의 전체 사유
    indicators: IndicatorSnapshot = field(default_factory=IndicatorSnapshot)

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환 (표시 계층 전달용)."""
        return {
            "signal": self.signal_type.value,
            "score": self.score,
            "reasons": self.reason,
            "full_reasons": list(self.full_reasons),
            "indicators": {
                "rsi": self.indicators.rsi,
                "macd_histogram": self.indicators.macd_histogram,
                "sma50": self.indicators.sma50,
                "volume_ratio": self.indicators.volume_ratio,
            },
        }


class TradingStrategy(ABC):
    """매매 전략 추상 클래스.

    새 전략을 만들려면 이 클래스를 상속받아 generate_signal()을 구현하고
    min_bars(시그널 평가에 필요한 최소 봉 개수)를 지정하면 된다.
    """

    def __init__(self, name: str, params: dict[str, Any] | None = None):
        self.name = name
        self.params = params or {}  # config.yaml에서 로드된 전략 파라미터

    @property
    @abstractmethod
    def min_bars(self) -> int:
        """시그널 평가에 필요한 최소 봉 개수."""
        ...

    @abstractmethod
    def generate_signal(self, market_data: pd.DataFrame) -> Signal:
        """매매 시그널 생성.

        Args:
            market_data: OHLCV DataFrame (date 오름차순, 마지막 행이 평가 대상)

        Returns:
            Signal: 매수/매도/홀드 시그널. 데이터 부족도 HOLD로 보고한다.
        """
        ...
