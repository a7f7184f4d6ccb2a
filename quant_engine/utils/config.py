"""
설정 로더.

[ 구조 ]
    Config
     ├─ strategy     StrategyConfig    전략 이름, 분석 티커, 파라미터 오버라이드
     ├─ backtest     BacktestConfig    초기 잔고, 첫 평가 봉, 최소 봉 수
     ├─ ledger       LedgerConfig      모의투자 초기 현금, 저장 키, JSON 파일 경로
     ├─ data_source  DataSourceConfig  alpha_vantage / yahoo / synthetic
     ├─ log_level
     └─ log_dir      빈 문자열이면 파일 로그를 남기지 않음

    파일 형식은 확장자로 판단 (.json → JSON, 그 외 YAML).
    섹션에 모르는 키가 있으면 무시한다.

[ 호출하는 곳 ]
    - run_backtest.py            Config.from_yaml()
    - scripts/paper_trade.py     load_config()
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml


@dataclass
class StrategyConfig:
    """strategy 섹션.

    params에는 바꾸고 싶은 값만 넣으면 된다.
    나머지는 전략 클래스의 DEFAULT_PARAMS를 따른다.
    """
    name: str = "combined"
    tickers: list[str] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_section(cls, data: dict[str, Any]) -> "StrategyConfig":
        # params 키가 없으면 name/tickers 외의 키를 전부 파라미터로 취급
        if "params" in data:
            params = dict(data["params"] or {})
        else:
            params = {k: v for k, v in data.items() if k not in ("name", "tickers")}
        return cls(
            name=data.get("name", cls.name),
            tickers=list(data.get("tickers") or []),
            params=params,
        )


@dataclass
class BacktestConfig:
    initial_balance: float = 10_000
    warmup_bars: int = 50
    min_bars: int = 100


@dataclass
class LedgerConfig:
    initial_cash: float = 100_000
    storage_key: str = "finbot_trade_profile"
    store_path: str = "data/paper_trading.json"


@dataclass
class DataSourceConfig:
    provider: str = "alpha_vantage"   # alpha_vantage / yahoo / synthetic
    api_key: str = "demo"
    output_size: str = "compact"      # compact(최근 100개) / full
    lookback_days: int = 365          # yahoo 조회 기간
    max_retries: int = 3
    retry_delay: int = 5
    timeout: float = 10


def _section(section_cls, data: dict[str, Any] | None):
    """알려진 필드만 골라 섹션 dataclass 생성."""
    known = {f.name for f in fields(section_cls)}
    return section_cls(**{k: v for k, v in (data or {}).items() if k in known})


def _read_file(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    return data or {}


@dataclass
class Config:
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    data_source: DataSourceConfig = field(default_factory=DataSourceConfig)
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        return cls._from_dict(_read_file(Path(path)))

    @classmethod
    def from_json(cls, path: str | Path) -> "Config":
        return cls._from_dict(_read_file(Path(path)))

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        return cls(
            strategy=StrategyConfig.from_section(data.get("strategy") or {}),
            backtest=_section(BacktestConfig, data.get("backtest")),
            ledger=_section(LedgerConfig, data.get("ledger")),
            data_source=_section(DataSourceConfig, data.get("data_source")),
            log_level=data.get("log_level", cls.log_level),
            log_dir=data.get("log_dir", cls.log_dir),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def save_yaml(self, path: str | Path) -> None:
        """현재 설정을 YAML로 저장 (상위 디렉토리 자동 생성)."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, allow_unicode=True, sort_keys=False)


def load_config(path: str | Path) -> Config:
    """설정 파일 로드. 파일이 없으면 기본값."""
    path = Path(path)
    if not path.exists():
        return Config()
    return Config._from_dict(_read_file(path))
