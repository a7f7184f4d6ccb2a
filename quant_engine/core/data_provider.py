"""
주가 데이터 제공 추상 클래스 정의.

[ 역할 ]
    OHLCV(시가/고가/저가/종가/거래량) 과거 데이터를 제공하는 인터페이스.
    데이터 소스(Alpha Vantage, Yahoo, 합성 데이터 등)에 독립적으로
    시그널 엔진/백테스트에 데이터 공급.

[ 구현체 ]
    - data/providers.py::AlphaVantageDataProvider  (HTTP API)
    - data/providers.py::YahooFinanceDataProvider  (yfinance)
    - data/providers.py::SyntheticDataProvider     (결정적 합성 데이터)
    - data/providers.py::FallbackDataProvider      (실패 시 합성 데이터로 대체)

[ 데이터 형식 ]
    DataFrame columns: [date, open, high, low, close, volume]
    date 오름차순, 중복 날짜 없음.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

import pandas as pd

OHLCV_COLUMNS = ["date", "open", "high", "low", "close", "volume"]


@dataclass(frozen=True)
class Bar:
    """단일 봉(캔들) 데이터. 생성 후 변경 불가."""
    date: date
    open: float      # 시가
    high: float      # 고가
    low: float       # 저가
    close: float     # 종가
    volume: float    # 거래량


def bars_to_frame(bars: list[Bar]) -> pd.DataFrame:
    """Bar 리스트 → OHLCV DataFrame."""
    return pd.DataFrame(
        [[b.date, b.open, b.high, b.low, b.close, b.volume] for b in bars],
        columns=OHLCV_COLUMNS,
    )


def frame_to_bars(df: pd.DataFrame) -> list[Bar]:
    """OHLCV DataFrame → Bar 리스트."""
    return [
        Bar(
            date=row.date,
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in df[OHLCV_COLUMNS].itertuples(index=False)
    ]


def normalize_ohlcv(df: pd.DataFrame) -> pd.DataFrame:
    """컬럼 정리 + date 오름차순 정렬 + 중복 날짜 제거."""
    df = df[OHLCV_COLUMNS].copy()
    df["date"] = pd.to_datetime(df["date"]).dt.date
    df = df.drop_duplicates(subset="date", keep="last")
    return df.sort_values("date").reset_index(drop=True)


class DataProvider(ABC):
    """주가 데이터 제공 추상 클래스.

    모든 데이터 제공자 구현체는 이 클래스를 상속받아 get_historical_bars()를 구현해야 한다.
    """

    @abstractmethod
    def get_historical_bars(self, ticker: str) -> pd.DataFrame:
        """일봉 OHLCV 조회.

        Args:
            ticker: 종목 코드 (예: 'AAPL')

        Returns:
            DataFrame with columns: [date, open, high, low, close, volume]
        """
        ...
