"""
키-값 저장소 구현.

[ 포함 클래스 ]
    InMemoryStore - core/storage.py::KeyValueStore 구현체
                    프로세스 메모리 dict. 테스트 / 일회성 세션용.

    JsonFileStore - core/storage.py::KeyValueStore 구현체
                    하나의 JSON 파일에 {key: value} 객체로 저장.
                    쓰기는 임시 파일에 쓴 뒤 교체 (중간에 끊겨도 이전 내용 유지).

[ 호출하는 곳 ]
    - scripts/paper_trade.py에서 JsonFileStore로 원장 생성
    - 테스트에서 InMemoryStore 사용
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from quant_engine.core.storage import KeyValueStore


class InMemoryStore(KeyValueStore):
    """dict 기반 저장소."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore(KeyValueStore):
    """JSON 파일 기반 저장소.

    사용 예:
        store = JsonFileStore("data/paper_trading.json")
        ledger = PaperTradingLedger(store)
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            content = f.read()
        if not content.strip():
            return {}
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"저장소 파일 형식 오류 (객체가 아님): {self.path}")
        return data

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
