"""
Taste Engine - Preference Learning & Prompt Lineage

피드백 기반 키워드 선호도 학습, 취향 프로필/기여자 등급, 취향 팩 내보내기/가져오기,
프롬프트 버전 계보 관리

사용 예시:
    from src.taste_engine import (
        # Engine
        TasteEngine, MemoryStore, JsonFileStore,

        # Events
        RatingEvent, LikeEvent, RejectionEvent, TrashEvent, CustomFeedbackEvent,

        # Taste Pack
        ImportMode, list_presets,
    )
"""

# Models
from .models import (
    FeedbackKind,
    LikeReason,
    RejectionReason,
    TrashReason,
    ScoreDelta,
    RatingEvent,
    LikeEvent,
    RejectionEvent,
    TrashEvent,
    CustomFeedbackEvent,
    KeywordScore,
    EditMode,
    LineageNode,
    Tier,
    TierProgress,
    ContributorStats,
    Achievement,
    AchievementProgress,
    KeywordSuggestion,
    TasteProfile,
    TastePack,
    DimensionValue,
    ImportMode,
    ImportResult,
)

# Errors
from .errors import (
    TasteEngineError,
    NotFoundError,
    InvalidFormatError,
    StorageError,
)

# Core
from .ledger import PreferenceLedger
from .classifier import FeedbackClassifier
from .lineage import LineageGraph
from .reputation import tier_for, progress_to_next
from .taste_pack import TastePackCodec, get_preset, list_presets

# Storage
from .storage import (
    KeyValueStore,
    JsonFileStore,
    MemoryStore,
)

# Engine
from .engine import TasteEngine, SweepResult
from .sweeper import run_periodic, start_background

__all__ = [
    # Models
    "FeedbackKind",
    "LikeReason",
    "RejectionReason",
    "TrashReason",
    "ScoreDelta",
    "RatingEvent",
    "LikeEvent",
    "RejectionEvent",
    "TrashEvent",
    "CustomFeedbackEvent",
    "KeywordScore",
    "EditMode",
    "LineageNode",
    "Tier",
    "TierProgress",
    "ContributorStats",
    "Achievement",
    "AchievementProgress",
    "KeywordSuggestion",
    "TasteProfile",
    "TastePack",
    "DimensionValue",
    "ImportMode",
    "ImportResult",
    # Errors
    "TasteEngineError",
    "NotFoundError",
    "InvalidFormatError",
    "StorageError",
    # Core
    "PreferenceLedger",
    "FeedbackClassifier",
    "LineageGraph",
    "tier_for",
    "progress_to_next",
    "TastePackCodec",
    "get_preset",
    "list_presets",
    # Storage
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
    # Engine
    "TasteEngine",
    "SweepResult",
    "run_periodic",
    "start_background",
]
