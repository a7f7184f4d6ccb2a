"""
로깅 모듈.

[ 역할 ]
    파일 + 콘솔 로거를 설정. 백테스트 진행, 모의 주문 체결/거절,
    데이터 소스 대체(fallback) 등을 기록.

[ 로그 파일 위치 ]
    {log_dir}/{name}_{YYYYMMDD}.log (예: logs/quant_engine_20240601.log)
    log_dir이 비어 있으면 파일 핸들러를 붙이지 않는다.

[ 호출하는 곳 ]
    - run_backtest.py, scripts/paper_trade.py에서 setup_logger() 호출
    - 각 모듈은 logging.getLogger("quant_engine.<영역>") 사용
      (backtest / ledger / data) → 부모 로거 설정을 그대로 따른다
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str = "quant_engine",
    level: str = "INFO",
    log_dir: str | None = "logs",
    console: bool = True,
) -> logging.Logger:
    """로거 설정. 파일 핸들러(일별) + 콘솔 핸들러 등록. 이미 설정된 로거는 그대로 반환."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    # 파일 핸들러
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        today = datetime.now().strftime("%Y%m%d")
        file_handler = logging.FileHandler(
            log_path / f"{name}_{today}.log",
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # 콘솔 핸들러 (CLI 출력과 섞이지 않도록 stderr)
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
