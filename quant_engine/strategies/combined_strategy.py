"""
복합 지표 가중치 전략 구현 (시그널 엔진).

[ 역할 ]
    core/trading_strategy.py::TradingStrategy의 구현체.
    마지막 봉 기준으로 RSI / MACD 히스토그램 / SMA50 추세 / 거래량을
    매수·매도 가중치로 환산하고, 한쪽이 충분히 우세하면 BUY/SELL.

[ 점수 규칙 ]
    RSI < 35                          → 매수 +2
    RSI > 65                          → 매도 +2
    히스토그램 ≤0 → >0 (골든크로스)     → 매수 +3
    히스토그램 ≥0 → <0 (데드크로스)     → 매도 +3
    히스토그램 > 0 (교차 없음)          → 매수 +1
    히스토그램 < 0 (교차 없음)          → 매도 +1
    종가 > SMA50                      → 매수 +1.5 (그 외 매도 +1.5)
    거래량 비율 > 1.2 + 한쪽이 우세     → 우세한 쪽 +1

[ 결정 규칙 ]
    매수 가중치 >= 4 이고 매도 가중치 + 1 보다 크면 BUY, 반대도 동일.
    그 외 HOLD (우세한 쪽에 따라 약한 강세/약세, 동률이면 중립).

[ 파라미터 (config.yaml의 strategy 섹션에서 로드) ]
    DEFAULT_PARAMS 참고. 임계값/가중치 모두 오버라이드 가능.
"""

import math
from typing import Any, Optional

import pandas as pd

from quant_engine.core.trading_strategy import (
    IndicatorSnapshot,
    Signal,
    SignalType,
    TradingStrategy,
)
from quant_engine.indicators.technical import macd, rsi, sma, volume_confirmation
from quant_engine.strategies import register

INSUFFICIENT_DATA_REASON = "Insufficient data for analysis."
NEUTRAL_REASON = "Indicators are currently neutral or conflicting."
BULLISH_BIAS_REASON = "Slight bullish bias, but awaiting stronger confirmation."
BEARISH_BIAS_REASON = "Slight bearish bias, but awaiting stronger confirmation."


def _last_value(series: pd.Series, offset: int = 1) -> Optional[float]:
    """뒤에서 offset번째 값. 없거나 NaN이면 None."""
    if len(series) < offset:
        return None
    value = float(series.iloc[-offset])
    return None if math.isnan(value) else value


@register("combined")
class CombinedSignalStrategy(TradingStrategy):
    """RSI + MACD + SMA50 + 거래량 가중치 전략."""

    # config.yaml에서 오버라이드 가능한 기본값
    DEFAULT_PARAMS = {
        "min_bars": 50,               # 시그널 평가 최소 봉 개수
        "rsi_period": 14,
        "rsi_oversold": 35.0,
        "rsi_overbought": 65.0,
        "macd_fast": 12,
        "macd_slow": 26,
        "macd_signal": 9,
        "sma_period": 50,
        "volume_period": 20,
        "volume_threshold": 1.2,      # 거래량 비율 기준
        "rsi_weight": 2.0,
        "macd_cross_weight": 3.0,
        "macd_trend_weight": 1.0,
        "sma_weight": 1.5,
        "volume_weight": 1.0,
        "decision_threshold": 4.0,    # BUY/SELL 최소 가중치
        "decision_margin": 1.0,       # 반대쪽 대비 최소 우위
    }

    def __init__(self, params: dict[str, Any] | None = None):
        # DEFAULT_PARAMS를 기본으로 하고, 전달된 params로 오버라이드
        merged = {**self.DEFAULT_PARAMS, **(params or {})}
        super().__init__(name="combined", params=merged)

    @property
    def min_bars(self) -> int:
        return int(self.params["min_bars"])

    def generate_signal(self, market_data: pd.DataFrame) -> Signal:
        """지표 계산 후 마지막 봉 기준 시그널 생성."""
        if market_data is None or len(market_data) < self.min_bars:
            return Signal(signal_type=SignalType.HOLD, score=0.0, reason=INSUFFICIENT_DATA_REASON)

        closes = market_data["close"]
        rsi_series = rsi(closes, int(self.params["rsi_period"]))
        macd_result = macd(
            closes,
            fast=int(self.params["macd_fast"]),
            slow=int(self.params["macd_slow"]),
            signal=int(self.params["macd_signal"]),
        )
        sma_series = sma(closes, int(self.params["sma_period"]))
        volume_series = volume_confirmation(market_data["volume"], int(self.params["volume_period"]))

        return self.evaluate(
            close=float(closes.iloc[-1]),
            rsi_value=_last_value(rsi_series),
            histogram=_last_value(macd_result.histogram),
            prev_histogram=_last_value(macd_result.histogram, offset=2),
            sma_value=_last_value(sma_series),
            volume_ratio=_last_value(volume_series),
        )

    def evaluate(
        self,
        close: float,
        rsi_value: Optional[float],
        histogram: Optional[float],
        prev_histogram: Optional[float],
        sma_value: Optional[float],
        volume_ratio: Optional[float],
    ) -> Signal:
        """마지막 봉의 지표 값으로 가중치 계산 → Signal.

        None인 지표는 점수에 기여하지 않는다.
        """
        p = self.params
        buy_weight = 0.0
        sell_weight = 0.0
        buy_reasons: list[str] = []
        sell_reasons: list[str] = []

        # RSI
        if rsi_value is not None:
            if rsi_value < p["rsi_oversold"]:
                buy_weight += p["rsi_weight"]
                buy_reasons.append(f"RSI is oversold at {rsi_value:.1f}")
            elif rsi_value > p["rsi_overbought"]:
                sell_weight += p["rsi_weight"]
                sell_reasons.append(f"RSI is overbought at {rsi_value:.1f}")

        # MACD 히스토그램 교차 (직전 값과 비교)
        if histogram is not None and prev_histogram is not None:
            if prev_histogram <= 0 < histogram:
                buy_weight += p["macd_cross_weight"]
                buy_reasons.append("MACD bullish crossover detected")
            elif prev_histogram >= 0 > histogram:
                sell_weight += p["macd_cross_weight"]
                sell_reasons.append("MACD bearish crossover detected")
            elif histogram > 0:
                buy_weight += p["macd_trend_weight"]
            elif histogram < 0:
                sell_weight += p["macd_trend_weight"]

        # SMA50 추세 (같으면 약세로 본다)
        if sma_value is not None:
            if close > sma_value:
                buy_weight += p["sma_weight"]
                buy_reasons.append("Price above SMA 50 (Bullish Trend)")
            else:
                sell_weight += p["sma_weight"]
                sell_reasons.append("Price below SMA 50 (Bearish Trend)")

        # 거래량 확인: 이미 우세한 쪽에만 가산
        if volume_ratio is not None and volume_ratio > p["volume_threshold"]:
            if buy_weight > sell_weight:
                buy_weight += p["volume_weight"]
                buy_reasons.append("Strong volume confirming upward move")
            elif sell_weight > buy_weight:
                sell_weight += p["volume_weight"]
                sell_reasons.append("Strong volume confirming downward move")

        signal_type, reason = self._decide(buy_weight, sell_weight, buy_reasons, sell_reasons)

        return Signal(
            signal_type=signal_type,
            score=buy_weight - sell_weight,
            reason=reason,
            full_reasons=tuple(buy_reasons if buy_weight > sell_weight else sell_reasons),
            indicators=IndicatorSnapshot(
                rsi=rsi_value,
                macd_histogram=histogram,
                sma50=sma_value,
                volume_ratio=volume_ratio,
            ),
        )

    def _decide(
        self,
        buy_weight: float,
        sell_weight: float,
        buy_reasons: list[str],
        sell_reasons: list[str],
    ) -> tuple[SignalType, str]:
        threshold = self.params["decision_threshold"]
        margin = self.params["decision_margin"]

        if buy_weight >= threshold and buy_weight > sell_weight + margin:
            return SignalType.BUY, " and ".join(buy_reasons[:2])
        if sell_weight >= threshold and sell_weight > buy_weight + margin:
            return SignalType.SELL, " and ".join(sell_reasons[:2])
        if buy_weight > sell_weight:
            return SignalType.HOLD, BULLISH_BIAS_REASON
        if sell_weight > buy_weight:
            return SignalType.HOLD, BEARISH_BIAS_REASON
        return SignalType.HOLD, NEUTRAL_REASON
