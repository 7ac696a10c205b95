"""
Taste Engine 설정

모든 경로 및 학습 파라미터를 중앙 관리
환경변수 또는 YAML 설정 파일로 오버라이드 가능
"""

import os
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from loguru import logger

# .env 파일 로드
load_dotenv()


def get_project_root() -> Path:
    """
    프로젝트 루트 디렉토리 반환

    src/taste_engine/config.py 기준으로 상위 2단계
    """
    return Path(__file__).parent.parent.parent


@dataclass
class PathConfig:
    """경로 설정"""
    # 프로젝트 루트
    PROJECT_ROOT: Path = get_project_root()

    # 데이터 경로 (JsonFileStore 저장 위치)
    DATA_DIR: Path = None

    # 재시도 큐 스풀 (저장 실패 이벤트 보관)
    SPOOL_DIR: Path = None

    # YAML 설정 파일
    CONFIG_PATH: Path = None

    def __post_init__(self):
        """환경변수 또는 기본값으로 초기화"""
        self.DATA_DIR = Path(os.getenv("TASTE_DATA_DIR", self.PROJECT_ROOT / "data" / "taste"))
        self.SPOOL_DIR = Path(os.getenv("TASTE_SPOOL_DIR", self.DATA_DIR / "spool"))
        self.CONFIG_PATH = Path(os.getenv(
            "TASTE_CONFIG_PATH",
            self.PROJECT_ROOT / "configs" / "taste_engine.yaml"
        ))


@dataclass
class LedgerConfig:
    """Preference Ledger 설정"""
    LIKED_THRESHOLD: int = 2            # score >= +2 → liked
    AVOID_THRESHOLD: int = -2           # score <= -2 → avoid
    DECAY_INTERVAL_DAYS: int = 30       # 30일마다 |score| 1씩 감소

    # 사유 추적 한도
    REASON_KEYWORDS_LIMIT: int = 20     # 사유별 최근 키워드 수
    CUSTOM_FEEDBACK_LIMIT: int = 50     # 자유 텍스트 피드백 보관 수

    def __post_init__(self):
        self.DECAY_INTERVAL_DAYS = int(os.getenv(
            "TASTE_DECAY_INTERVAL_DAYS", self.DECAY_INTERVAL_DAYS
        ))


@dataclass
class ContextConfig:
    """리라이트 요청용 선호 컨텍스트 설정"""
    MAX_LIKED: int = 20
    MAX_AVOID: int = 10
    MAX_TRASH_REASONS: int = 2


@dataclass
class SweepConfig:
    """저장 실패 재시도 스윕 설정"""
    SWEEP_INTERVAL_SECONDS: float = 60.0
    MAX_RETRY_ATTEMPTS: int = 5         # 초과 시 failed 목록으로 이동
    MAX_PENDING_EVENTS: int = 500       # 재시도 큐 한도
    DECAY_ON_SWEEP: bool = True

    def __post_init__(self):
        self.SWEEP_INTERVAL_SECONDS = float(os.getenv(
            "TASTE_SWEEP_INTERVAL_SECONDS", self.SWEEP_INTERVAL_SECONDS
        ))
        self.MAX_RETRY_ATTEMPTS = int(os.getenv(
            "TASTE_MAX_RETRY_ATTEMPTS", self.MAX_RETRY_ATTEMPTS
        ))
        self.MAX_PENDING_EVENTS = int(os.getenv(
            "TASTE_MAX_PENDING_EVENTS", self.MAX_PENDING_EVENTS
        ))


# 전역 설정 인스턴스
paths = PathConfig()
ledger = LedgerConfig()
context = ContextConfig()
sweep = SweepConfig()


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """YAML 설정 파일 로드 (빈 파일은 {})"""
    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def _cast(value: Any, kind: type) -> Any:
    """YAML 값을 필드 타입으로 변환 (__post_init__의 int()/float() 변환과 동일)"""
    if kind is bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueError(f"not a boolean: {value!r}")
    if kind is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"not an integer: {value!r}")
    if kind is int:
        return int(value)
    return kind(value)


def _apply_overrides(target: Any, values: Dict[str, Any]) -> None:
    """YAML 섹션 값을 dataclass 필드 타입으로 변환해 덮어쓰기 (대소문자 무시)"""
    types = {f.name: f.type for f in fields(target)}
    for key, value in (values or {}).items():
        attr = str(key).upper()
        if attr not in types:
            logger.warning(f"Unknown setting ignored: {type(target).__name__}.{attr}")
            continue
        try:
            setattr(target, attr, _cast(value, types[attr]))
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid value for {type(target).__name__}.{attr}, keeping default: {e}")


def load_overrides(config_path: Optional[str] = None) -> bool:
    """
    YAML 설정 파일을 읽어 전역 설정에 반영

    파일 형식:
        ledger:
          decay_interval_days: 14
        sweep:
          max_retry_attempts: 3

    Returns:
        파일이 존재해서 반영했으면 True
    """
    path = Path(config_path) if config_path else paths.CONFIG_PATH
    if not path.exists():
        return False

    data = load_config(path)
    _apply_overrides(ledger, data.get("ledger", {}))
    _apply_overrides(context, data.get("context", {}))
    _apply_overrides(sweep, data.get("sweep", {}))
    return True


def get_config():
    """
    전체 설정 반환

    사용 예시:
        from src.taste_engine.config import get_config
        config = get_config()
        print(config['ledger'].DECAY_INTERVAL_DAYS)
    """
    return {
        'paths': paths,
        'ledger': ledger,
        'context': context,
        'sweep': sweep,
    }
