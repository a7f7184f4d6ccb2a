"""Shared fixtures: bar-frame builders, in-memory store, fixed clock"""

import math
from datetime import date, datetime, timedelta, timezone

import pandas as pd
import pytest

from quant_engine.storage.kv_store import InMemoryStore


def build_bars(closes, volumes=None, start=date(2024, 1, 1)) -> pd.DataFrame:
    """OHLCV frame with one calendar day per close; open = previous close."""
    closes = [float(c) for c in closes]
    if volumes is None:
        volumes = [1_000_000.0] * len(closes)
    rows = []
    prev = closes[0] if closes else 0.0
    for i, (close, volume) in enumerate(zip(closes, volumes)):
        rows.append({
            "date": start + timedelta(days=i),
            "open": prev,
            "high": max(prev, close) * 1.01,
            "low": min(prev, close) * 0.99,
            "close": close,
            "volume": float(volume),
        })
        prev = close
    return pd.DataFrame(rows, columns=["date", "open", "high", "low", "close", "volume"])


def oscillating_uptrend(n: int = 200) -> list[float]:
    """Strictly increasing closes whose increments vary (1 +/- 0.75)."""
    return [100 + i + 3 * math.sin(i / 4) for i in range(n)]


@pytest.fixture
def make_bars():
    return build_bars


@pytest.fixture
def store():
    return InMemoryStore()


FIXED_NOW = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW
