"""
DataProvider 구현체 모음.

[ 포함 클래스 ]
    AlphaVantageDataProvider - Alpha Vantage TIME_SERIES_DAILY (requests)
    YahooFinanceDataProvider - yfinance 일봉 (재시도 포함)
    SyntheticDataProvider    - 티커 기반 결정적 합성 데이터
    FallbackDataProvider     - primary 실패/빈 결과 시 fallback으로 대체.
                               예외를 밖으로 내보내지 않는다.

[ 호출하는 곳 ]
    - run_backtest.py에서 create_provider(config.data_source)로 생성
    - data/market_data.py::MarketDataManager가 감싸서 캐싱
"""

import logging
from datetime import date, timedelta
from typing import Callable, Optional

import pandas as pd

from quant_engine.core.data_provider import DataProvider
from quant_engine.ingestion.alpha_vantage import DataSourceError, fetch_daily_series
from quant_engine.ingestion.synthetic import generate_consistent_series
from quant_engine.ingestion.yahoo_finance import fetch_ticker_data
from quant_engine.utils.config import DataSourceConfig

logger = logging.getLogger("quant_engine.data")


class AlphaVantageDataProvider(DataProvider):
    """Alpha Vantage 일봉 제공자."""

    def __init__(self, api_key: str = "demo", output_size: str = "compact", timeout: float = 10):
        self.api_key = api_key
        self.output_size = output_size
        self.timeout = timeout

    def get_historical_bars(self, ticker: str) -> pd.DataFrame:
        return fetch_daily_series(
            ticker,
            api_key=self.api_key,
            output_size=self.output_size,
            timeout=self.timeout,
        )


class YahooFinanceDataProvider(DataProvider):
    """yfinance 일봉 제공자. 최근 lookback_days일."""

    def __init__(
        self,
        lookback_days: int = 365,
        max_retries: int = 3,
        retry_delay: int = 5,
        today: Callable[[], date] = date.today,
    ):
        self.lookback_days = lookback_days
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.today = today

    def get_historical_bars(self, ticker: str) -> pd.DataFrame:
        end = self.today()
        start = end - timedelta(days=self.lookback_days)
        df = fetch_ticker_data(ticker, start, end, self.max_retries, self.retry_delay)
        if df is None:
            raise DataSourceError(f"Yahoo Finance returned no data for {ticker}")
        return df


class SyntheticDataProvider(DataProvider):
    """합성 데이터 제공자. end_date를 고정하면 완전히 재현 가능."""

    def __init__(self, end_date: Optional[date] = None, days: int = 251):
        self.end_date = end_date
        self.days = days

    def get_historical_bars(self, ticker: str) -> pd.DataFrame:
        return generate_consistent_series(ticker, end_date=self.end_date, days=self.days)


class FallbackDataProvider(DataProvider):
    """primary가 실패하면 fallback 결과를 반환.

    사용 예:
        provider = FallbackDataProvider(AlphaVantageDataProvider(api_key), SyntheticDataProvider())
        df = provider.get_historical_bars("AAPL")  # API 한도 초과여도 항상 데이터 반환
    """

    def __init__(self, primary: DataProvider, fallback: DataProvider | None = None):
        self.primary = primary
        self.fallback = fallback or SyntheticDataProvider()

    def get_historical_bars(self, ticker: str) -> pd.DataFrame:
        try:
            df = self.primary.get_historical_bars(ticker)
        except Exception as e:
            logger.warning(f"{ticker} 시세 조회 실패, 합성 데이터로 대체: {e}")
            return self.fallback.get_historical_bars(ticker)

        if df is None or df.empty:
            logger.warning(f"{ticker} 시세가 비어 있음, 합성 데이터로 대체")
            return self.fallback.get_historical_bars(ticker)
        return df


def create_provider(config: DataSourceConfig) -> DataProvider:
    """설정의 provider 이름으로 제공자 생성. 외부 소스는 항상 합성 데이터 fallback을 붙인다.

    Raises:
        ValueError: 알 수 없는 provider 이름
    """
    name = config.provider.lower()
    if name == "synthetic":
        return SyntheticDataProvider()
    if name == "alpha_vantage":
        primary = AlphaVantageDataProvider(
            api_key=config.api_key,
            output_size=config.output_size,
            timeout=config.timeout,
        )
    elif name == "yahoo":
        primary = YahooFinanceDataProvider(
            lookback_days=config.lookback_days,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
        )
    else:
        raise ValueError(f"알 수 없는 데이터 소스: '{config.provider}'. 사용 가능: alpha_vantage, synthetic, yahoo")
    return FallbackDataProvider(primary, SyntheticDataProvider())
