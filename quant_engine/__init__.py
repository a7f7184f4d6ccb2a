"""
=============================================================================
퀀트 트레이딩 엔진 (Quant Engine)
=============================================================================

[ 시스템 전체 구조 ]

    run_backtest.py / scripts/paper_trade.py (진입점)
         │
         ├── utils/config.py        ← config.yaml 설정 로드
         ├── utils/logger.py        ← 로깅
         │
         ├── indicators/            ← 기술적 지표 (SMA, EMA, RSI, MACD, 거래량)
         ├── strategies/            ← 시그널 생성 (combined_strategy.py)
         │
         ├── backtest/engine.py     ← 워크포워드 백테스트
         │     └── backtest/metrics.py  ← 성과 지표 계산
         │
         └── data/portfolio.py      ← 모의투자 원장 (현금/포지션/거래내역)
               └── storage/         ← 원장 저장소 (메모리, JSON 파일)


[ 핵심 추상 클래스 (core/) - 모든 구현체의 부모 ]

    core/data_provider.py    → data/providers.py (Alpha Vantage, Yahoo, 합성 데이터)
    core/trading_strategy.py → strategies/combined_strategy.py
    core/storage.py          → storage/kv_store.py


[ 데이터 흐름 ]

    1. DataProvider가 OHLCV DataFrame 제공 (실패 시 합성 데이터로 대체)
    2. indicators가 지표 시리즈 계산
    3. TradingStrategy가 마지막 봉 기준으로 BUY/SELL/HOLD 시그널 생성
    4. BacktestEngine이 과거 봉을 하나씩 늘려가며 시그널을 재평가 (워크포워드)
    5. 사용자의 모의 주문은 PaperTradingLedger로 직접 들어가 저장소에 기록
"""

__version__ = "0.1.0"
