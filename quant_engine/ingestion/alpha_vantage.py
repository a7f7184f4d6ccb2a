"""
Alpha Vantage 일봉 데이터 수집 모듈

무료 키는 호출 한도가 엄격하다 (하루 25회, 분당 5회).
한도 초과 시에도 HTTP 200으로 "Note"/"Information" 메시지만 돌려주므로
응답 본문을 보고 실패를 판단한다.
"""
import logging
from typing import Any

import pandas as pd
import requests

from quant_engine.core.data_provider import normalize_ohlcv

logger = logging.getLogger(__name__)

BASE_URL = "https://www.alphavantage.co/query"
SERIES_KEY = "Time Series (Daily)"


class DataSourceError(Exception):
    """시세 API 응답이 비었거나 사용할 수 없음."""


def fetch_daily_series(
    ticker: str,
    api_key: str = "demo",
    output_size: str = "compact",
    timeout: float = 10,
    session: requests.Session | None = None,
) -> pd.DataFrame:
    """
    TIME_SERIES_DAILY 조회.

    Args:
        ticker: 티커 심볼 (예: 'AAPL')
        api_key: Alpha Vantage API 키
        output_size: 'compact' (최근 100개) 또는 'full'
        timeout: 요청 타임아웃 (초)
        session: 재사용할 requests 세션 (없으면 새로 요청)

    Returns:
        DataFrame with columns: [date, open, high, low, close, volume] (오름차순)

    Raises:
        DataSourceError: 시계열이 응답에 없음 (한도 초과, 잘못된 티커 등)
        requests.RequestException: 네트워크/HTTP 오류
    """
    params = {
        "function": "TIME_SERIES_DAILY",
        "symbol": ticker,
        "apikey": api_key,
        "outputsize": output_size,
    }
    http = session or requests
    logger.info(f"Fetching {ticker} from Alpha Vantage (outputsize={output_size})")
    response = http.get(BASE_URL, params=params, timeout=timeout)
    response.raise_for_status()

    return parse_daily_series(ticker, response.json())


def parse_daily_series(ticker: str, payload: dict[str, Any]) -> pd.DataFrame:
    """응답 JSON → OHLCV DataFrame."""
    series = payload.get(SERIES_KEY)
    if not series:
        message = payload.get("Note") or payload.get("Information") or payload.get("Error Message") or "no time series"
        raise DataSourceError(f"Alpha Vantage returned no data for {ticker}: {message}")

    rows = [
        {
            "date": day,
            "open": float(values["1. open"]),
            "high": float(values["2. high"]),
            "low": float(values["3. low"]),
            "close": float(values["4. close"]),
            "volume": float(values["5. volume"]),
        }
        for day, values in series.items()
    ]
    df = normalize_ohlcv(pd.DataFrame(rows))
    logger.info(f"Successfully fetched {len(df)} rows for {ticker}")
    return df
