"""
시그널 전략 패키지.

[ 등록 ]
    클래스에 @register("이름")을 붙이면 STRATEGY_REGISTRY에 들어간다.
    이름은 소문자로 저장되고, 조회도 대소문자를 구분하지 않는다.
    패키지 import 시 이 디렉토리의 모듈을 모두 읽어 등록을 끝낸다.

[ 등록된 전략 ]
    combined - RSI + MACD 히스토그램 + SMA50 추세 + 거래량 확인 가중치 전략

[ 호출하는 곳 ]
    - run_backtest.py: config.yaml의 strategy.name 또는 --strategy 로 생성
"""

import pkgutil
from importlib import import_module
from typing import Any

from quant_engine.core.trading_strategy import TradingStrategy

STRATEGY_REGISTRY: dict[str, type[TradingStrategy]] = {}


def register(name: str):
    """전략 클래스 등록 데코레이터. 같은 이름을 두 번 등록하면 ValueError."""
    key = name.lower()

    def decorator(cls: type[TradingStrategy]):
        existing = STRATEGY_REGISTRY.get(key)
        if existing is not None and existing is not cls:
            raise ValueError(f"전략 이름 중복: '{key}' ({existing.__name__}, {cls.__name__})")
        STRATEGY_REGISTRY[key] = cls
        return cls
    return decorator


def create_strategy(name: str, params: dict[str, Any] | None = None) -> TradingStrategy:
    """등록된 이름으로 전략 생성. params는 DEFAULT_PARAMS 위에 덮어쓴다.

    Raises:
        ValueError: 등록되지 않은 이름 (메시지에 사용 가능한 이름 목록 포함)
    """
    cls = STRATEGY_REGISTRY.get(name.lower())
    if cls is None:
        raise ValueError(f"알 수 없는 전략: '{name}'. 사용 가능: {', '.join(list_strategies())}")
    return cls(params=params)


def list_strategies() -> list[str]:
    return sorted(STRATEGY_REGISTRY)


def _auto_discover() -> None:
    for module in pkgutil.iter_modules(__path__):
        if not module.name.startswith("_"):
            import_module(f"{__name__}.{module.name}")


_auto_discover()
