"""
Key-Value Storage

엔진 상태를 키 단위 JSON 문서로 저장/로드

키:
    preferences  - ledger + taste profile (한 문서로 원자적 저장)
    lineage      - 계보 노드
    contributor  - 기여 동의 설정
    retry_queue  - 저장 실패로 재시도 대기 중인 피드백 (스풀 저장소)

디렉토리 구조 (JsonFileStore):
data/taste/
├── preferences.json
├── lineage.json
├── contributor.json
└── spool/
    └── retry_queue.json
"""

import os
import copy
import json
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from .errors import StorageError


class KeyValueStore(ABC):
    """
    저장소 인터페이스 (Abstract)

    구현체는 실패 시 StorageError를 던져야 함
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """키에 해당하는 문서, 없으면 None"""

    @abstractmethod
    def set(self, key: str, value: Dict[str, Any]) -> None:
        """문서 전체를 교체 저장"""


class MemoryStore(KeyValueStore):
    """메모리 저장소 (테스트 / 임시 세션용)"""

    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    def keys(self):
        return list(self._data.keys())


class JsonFileStore(KeyValueStore):
    """
    JSON 파일 저장소

    키마다 {base_dir}/{key}.json 하나, 임시 파일에 쓴 뒤 os.replace로 교체

    사용 예시:
        store = JsonFileStore("./data/taste")
        store.set("preferences", {"ledger": {...}})
        data = store.get("preferences")
    """

    def __init__(self, base_dir):
        self.base_dir = Path(base_dir)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self.base_dir}: {e}")

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load {path}: {e}")
            raise StorageError(f"Failed to load '{key}': {e}")

    def set(self, key: str, value: Dict[str, Any]) -> None:
        path = self._path(key)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=str(self.base_dir), prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            logger.error(f"Failed to save {path}: {e}")
            raise StorageError(f"Failed to save '{key}': {e}")
