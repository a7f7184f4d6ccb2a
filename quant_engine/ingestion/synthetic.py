"""
결정적 합성 주가 데이터 생성 모듈.

[ 역할 ]
    시세 API가 실패하거나 호출 한도에 걸렸을 때 대신 쓰는 일봉 데이터.
    같은 티커 + 같은 종료일이면 항상 똑같은 시리즈가 나온다.

[ 난수 ]
    seed = 티커 문자 코드의 합
    seed = (seed * 9301 + 49297) % 233280,  u = seed / 233280
"""

import math
from datetime import date, timedelta
from typing import Iterator, Optional

import pandas as pd

from quant_engine.core.data_provider import OHLCV_COLUMNS

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280

DEFAULT_DAYS = 251

# 티커별 시작 가격 (시드와 같은 원문 티커로 조회, 없으면 100)
START_PRICES = {
    "TSLA": 240.0,
    "NVDA": 720.0,
    "AAPL": 180.0,
}


def ticker_seed(ticker: str) -> int:
    return sum(ord(c) for c in ticker)


def lcg_draws(seed: int) -> Iterator[float]:
    """[0, 1) 균등 난수 무한 생성기."""
    while True:
        seed = (seed * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        yield seed / LCG_MODULUS


def generate_consistent_series(
    ticker: str,
    end_date: Optional[date] = None,
    days: int = DEFAULT_DAYS,
) -> pd.DataFrame:
    """end_date를 마지막 날로 하는 days개의 달력일 봉 생성.

    일별 변화량 = (u - 0.48) * price * 0.02 (약간 상승 편향 랜덤워크),
    고가/저가는 시가·종가 바깥으로 최대 가격의 1%,
    거래량 = floor((u * 50 + 50) * 1,000,000).
    """
    end_date = end_date or date.today()
    rng = lcg_draws(ticker_seed(ticker))
    price = START_PRICES.get(ticker, 100.0)

    rows = []
    for offset in range(days - 1, -1, -1):
        change = (next(rng) - 0.48) * (price * 0.02)
        open_price = price
        close = price + change
        high = max(open_price, close) + next(rng) * (price * 0.01)
        low = min(open_price, close) - next(rng) * (price * 0.01)
        volume = math.floor((next(rng) * 50 + 50) * 1_000_000)

        rows.append([end_date - timedelta(days=offset), open_price, high, low, close, volume])
        price = close

    return pd.DataFrame(rows, columns=OHLCV_COLUMNS)
