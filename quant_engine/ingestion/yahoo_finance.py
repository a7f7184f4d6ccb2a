"""
Yahoo Finance 일봉 수집 모듈

yfinance의 history()는 날짜 인덱스 + 대문자 컬럼(Open, High, ...)을 돌려주므로
OHLCV 표준 형식으로 바꿔서 반환한다. 네트워크 오류는 재시도 후 None.
"""
import logging
import time
from datetime import date, timedelta
from typing import Optional

import pandas as pd
import yfinance as yf

from quant_engine.core.data_provider import OHLCV_COLUMNS, normalize_ohlcv

logger = logging.getLogger(__name__)

# yfinance 컬럼명 → 표준 컬럼명 (Adj Close 등 나머지는 버린다)
COLUMN_MAP = {
    "Date": "date",
    "Open": "open",
    "High": "high",
    "Low": "low",
    "Close": "close",
    "Volume": "volume",
}

PRICE_COLUMNS = ["open", "high", "low", "close"]


def _download(ticker: str, start_date: date, end_date: date) -> pd.DataFrame:
    """history() 호출 후 표준 형식으로 변환. 결과가 없으면 빈 DataFrame."""
    raw = yf.Ticker(ticker).history(
        start=start_date,
        end=end_date + timedelta(days=1),  # end는 미포함이므로 하루 연장
        auto_adjust=False,
        actions=False,
    )
    if raw.empty:
        return pd.DataFrame(columns=OHLCV_COLUMNS)
    return normalize_ohlcv(raw.reset_index().rename(columns=COLUMN_MAP))


def fetch_ticker_data(
    ticker: str,
    start_date: date,
    end_date: date,
    max_retries: int = 3,
    retry_delay: int = 5
) -> Optional[pd.DataFrame]:
    """
    start_date ~ end_date(포함) 일봉 조회.

    Args:
        ticker: 티커 심볼 (예: 'AAPL', '005930.KS')
        start_date: 시작 날짜
        end_date: 종료 날짜
        max_retries: 최대 시도 횟수
        retry_delay: 재시도 간 대기 시간 (초)

    Returns:
        OHLCV DataFrame (date 오름차순). 데이터 없음 / 검증 실패 / 재시도 소진 시 None
    """
    for attempt in range(1, max_retries + 1):
        logger.info(f"Fetching {ticker} {start_date} ~ {end_date} ({attempt}/{max_retries})")
        try:
            df = _download(ticker, start_date, end_date)
        except Exception as e:
            logger.error(f"{ticker} 조회 실패 ({attempt}/{max_retries}): {e}")
            if attempt == max_retries:
                logger.error(f"{ticker} 재시도 횟수 초과")
                return None
            time.sleep(retry_delay)
            continue

        if df.empty:
            logger.warning(f"{ticker} 데이터 없음")
            return None
        if not validate_data(df, ticker):
            return None

        logger.info(f"{ticker} {len(df)}행 수집 완료")
        return df

    return None


def validate_data(df: pd.DataFrame, ticker: str) -> bool:
    """
    수집 데이터 점검.

    비어 있거나 OHLCV 컬럼이 빠졌거나 종가가 전부 NULL이면 실패.
    0 이하 가격 / high < low / 음수 거래량은 행 수만 경고로 남긴다.
    """
    if df is None or df.empty:
        logger.warning(f"{ticker}: 빈 DataFrame")
        return False

    missing = [c for c in OHLCV_COLUMNS if c not in df.columns]
    if missing:
        logger.error(f"{ticker}: 컬럼 누락 {missing}")
        return False

    if df["close"].isnull().all():
        logger.error(f"{ticker}: 종가가 모두 NULL")
        return False

    issues = {f"{col} <= 0": int((df[col] <= 0).sum()) for col in PRICE_COLUMNS}
    issues["high < low"] = int((df["high"] < df["low"]).sum())
    issues["volume < 0"] = int((df["volume"] < 0).sum())
    for label, count in issues.items():
        if count:
            logger.warning(f"{ticker}: {label} {count}행")

    return True
