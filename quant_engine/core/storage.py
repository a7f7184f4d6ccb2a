"""
키-값 저장소 추상 클래스 정의.

[ 역할 ]
    모의투자 원장(PortfolioState) JSON 문서를 보관하는 저장소 인터페이스.
    저장 매체(메모리, 파일, DB 등)를 교체해도 원장 코드는 그대로.

[ 구현체 ]
    - storage/kv_store.py::InMemoryStore  (테스트용)
    - storage/kv_store.py::JsonFileStore  (로컬 JSON 파일)

[ 호출하는 곳 ]
    - data/portfolio.py::PaperTradingLedger 생성 시 주입
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """키-값 저장소 추상 클래스. 값은 항상 문자열(JSON 텍스트)."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """키 조회. 없으면 None."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """키에 값 저장 (덮어쓰기)."""
        ...
