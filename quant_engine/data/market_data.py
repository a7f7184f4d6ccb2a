"""
시장 데이터 관리 모듈.

[ 역할 ]
    DataProvider를 감싸서 티커별 캐싱 + 편의 메서드 제공.
    호출 한도가 있는 API를 같은 세션에서 반복 호출하지 않도록 한다.

[ 의존성 ]
    - core/data_provider.py::DataProvider (데이터 소스 추상화)

[ 호출하는 곳 ]
    - run_backtest.py에서 시그널/백테스트용 데이터 조회
    - scripts/paper_trade.py에서 평가 가격(최근 종가) 조회
"""

from typing import Optional

import pandas as pd

from quant_engine.core.data_provider import DataProvider


class MarketDataManager:
    """DataProvider 위에 캐싱 레이어를 추가한 매니저.

    사용 예:
        manager = MarketDataManager(create_provider(config.data_source))
        df = manager.get_historical_bars("AAPL")
        price = manager.get_latest_price("AAPL")
    """

    def __init__(self, data_provider: DataProvider):
        self.provider = data_provider
        self._cache: dict[str, pd.DataFrame] = {}  # ticker → DataFrame

    def get_historical_bars(self, ticker: str, use_cache: bool = True) -> pd.DataFrame:
        """일봉 조회 (캐싱 지원). 반환값은 사본."""
        if use_cache and ticker in self._cache:
            return self._cache[ticker].copy()

        df = self.provider.get_historical_bars(ticker)
        if use_cache:
            self._cache[ticker] = df
        return df.copy()

    def get_latest_price(self, ticker: str) -> Optional[float]:
        """가장 최근 종가. 데이터가 없으면 None."""
        df = self.get_historical_bars(ticker)
        if df.empty:
            return None
        return float(df.iloc[-1]["close"])

    def get_latest_prices(self, tickers: list[str]) -> dict[str, float]:
        """여러 종목의 최근 종가 (데이터 없는 종목은 제외)."""
        prices = {}
        for ticker in tickers:
            price = self.get_latest_price(ticker)
            if price is not None:
                prices[ticker] = price
        return prices

    def clear_cache(self) -> None:
        """캐시 초기화."""
        self._cache.clear()
