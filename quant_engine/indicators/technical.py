"""
기술적 지표 계산 모듈.

[ 역할 ]
    가격/거래량 시퀀스로부터 SMA, EMA, RSI, MACD, 거래량 확인 비율을 계산.
    모든 함수는 순수 함수 (상태 없음, 같은 입력 → 같은 출력).

[ 반환 형식 ]
    입력과 길이가 같은 pd.Series. 워밍업 구간(계산 불가 위치)은 NaN.
    pd.Series를 넣으면 같은 index를 유지한다.

[ 호출하는 곳 ]
    - strategies/combined_strategy.py에서 마지막 봉의 지표 값 조회
    - run_backtest.py에서 compute_indicators()로 지표 테이블 출력
"""

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

PriceInput = Union[Sequence[float], np.ndarray, pd.Series]


@dataclass
class MACDResult:
    """macd()의 반환값."""
    macd: pd.Series
    signal: pd.Series
    histogram: pd.Series


def _check_period(period: int, name: str = "period") -> None:
    if period <= 0:
        raise ValueError(f"{name}은(는) 1 이상이어야 합니다: {period}")


def _as_array(values: PriceInput) -> tuple[np.ndarray, pd.Index]:
    """입력을 float 배열 + 결과에 붙일 index로 변환."""
    if isinstance(values, pd.Series):
        return values.to_numpy(dtype=float), values.index
    arr = np.asarray(values, dtype=float)
    return arr, pd.RangeIndex(len(arr))


def _trailing_mean(values: np.ndarray, period: int) -> np.ndarray:
    """index period-1 이후의 trailing 평균. 앞부분은 NaN."""
    out = np.full(len(values), np.nan)
    if len(values) >= period:
        out[period - 1:] = sliding_window_view(values, period).mean(axis=1)
    return out


def _ema_array(values: np.ndarray, period: int) -> np.ndarray:
    out = np.full(len(values), np.nan)
    if len(values) < period:
        return out

    multiplier = 2 / (period + 1)
    # 첫 EMA는 처음 period개 값의 SMA
    out[period - 1] = values[:period].mean()
    for i in range(period, len(values)):
        out[i] = (values[i] - out[i - 1]) * multiplier + out[i - 1]
    return out


def sma(prices: PriceInput, period: int) -> pd.Series:
    """단순 이동평균. index period-1부터 정의."""
    _check_period(period)
    values, index = _as_array(prices)
    return pd.Series(_trailing_mean(values, period), index=index, name=f"sma{period}")


def ema(prices: PriceInput, period: int) -> pd.Series:
    """지수 이동평균.

    index period-1에서 SMA로 시작하고 이후
    EMA[i] = (price[i] - EMA[i-1]) * 2/(period+1) + EMA[i-1].
    데이터가 period보다 짧으면 전부 NaN.
    """
    _check_period(period)
    values, index = _as_array(prices)
    return pd.Series(_ema_array(values, period), index=index, name=f"ema{period}")


def rsi(prices: PriceInput, period: int = 14) -> pd.Series:
    """Wilder 평활 RSI.

    첫 평균 상승/하락폭은 처음 period개 가격 차이의 단순 평균이고,
    이후 avg = (avg * (period - 1) + current) / period 로 갱신한다.
    평균 하락폭이 0이면 100. 첫 값은 index period (period개의 차이를 사용).
    """
    _check_period(period)
    values, index = _as_array(prices)
    out = np.full(len(values), np.nan)
    if len(values) <= period:
        return pd.Series(out, index=index, name=f"rsi{period}")

    diffs = np.diff(values)
    gains = np.where(diffs >= 0, diffs, 0.0)
    losses = np.where(diffs < 0, -diffs, 0.0)

    avg_gain = gains[:period].sum() / period
    avg_loss = losses[:period].sum() / period
    out[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, len(values)):
        # diffs[i - 1] = values[i] - values[i - 1]
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        out[i] = _rsi_value(avg_gain, avg_loss)

    return pd.Series(out, index=index, name=f"rsi{period}")


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100 - 100 / (1 + avg_gain / avg_loss)


def macd(
    prices: PriceInput,
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDResult:
    """MACD 라인 / 시그널 라인 / 히스토그램.

    MACD 라인은 fast EMA와 slow EMA가 모두 정의된 곳에서만 계산하고,
    시그널 라인은 MACD 라인의 첫 유효 index부터 잘라낸 구간의 EMA.
    """
    _check_period(fast, "fast")
    _check_period(slow, "slow")
    _check_period(signal, "signal")
    if fast >= slow:
        raise ValueError(f"fast({fast})는 slow({slow})보다 작아야 합니다")

    values, index = _as_array(prices)
    macd_line = _ema_array(values, fast) - _ema_array(values, slow)  # NaN 전파

    signal_line = np.full(len(values), np.nan)
    valid = np.flatnonzero(~np.isnan(macd_line))
    if len(valid) > 0:
        first = valid[0]
        signal_line[first:] = _ema_array(macd_line[first:], signal)

    histogram = macd_line - signal_line
    return MACDResult(
        macd=pd.Series(macd_line, index=index, name="macd"),
        signal=pd.Series(signal_line, index=index, name="macd_signal"),
        histogram=pd.Series(histogram, index=index, name="macd_histogram"),
    )


def volume_confirmation(volumes: PriceInput, period: int = 20) -> pd.Series:
    """현재 거래량 / 최근 period개 봉(현재 포함) 평균 거래량.

    1보다 크면 평균 이상의 참여. 평균이 0인 위치는 NaN.
    """
    _check_period(period)
    values, index = _as_array(volumes)
    avg = _trailing_mean(values, period)
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.where(avg > 0, values / avg, np.nan)
    return pd.Series(ratio, index=index, name="volume_ratio")


def compute_indicators(
    market_data: pd.DataFrame,
    rsi_period: int = 14,
    sma_period: int = 50,
    volume_period: int = 20,
) -> pd.DataFrame:
    """OHLCV DataFrame에 대한 지표 테이블 (행 정렬 유지)."""
    closes = market_data["close"]
    macd_result = macd(closes)
    return pd.DataFrame({
        "date": market_data["date"],
        "close": closes,
        "rsi": rsi(closes, rsi_period),
        "macd": macd_result.macd,
        "macd_signal": macd_result.signal,
        "macd_histogram": macd_result.histogram,
        "sma50": sma(closes, sma_period),
        "volume_ratio": volume_confirmation(market_data["volume"], volume_period),
    })
