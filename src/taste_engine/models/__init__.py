"""
Taste Engine 데이터 모델

피드백 이벤트, 선호도 장부, 계보, 평판, 취향 프로필/팩 구조 정의
"""

from .feedback import (
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
    FeedbackEvent,
    PendingEvent,
    feedback_event_from_dict,
)

from .preferences import (
    KeywordScore,
    LedgerStats,
    CustomFeedbackEntry,
    PlatformKeywordStats,
    KeywordSuggestion,
    LIKED_THRESHOLD,
    AVOID_THRESHOLD,
    DECAY_INTERVAL_DAYS,
)

from .lineage import (
    EditMode,
    LineageNode,
    LineageTree,
    LineageStats,
)

from .contributor import (
    Tier,
    TierProgress,
    AchievementRarity,
    Achievement,
    AchievementProgress,
    ContributorStats,
)

from .taste_profile import (
    TasteProfile,
    MAX_PROFILE_LIST,
)

from .taste_pack import (
    TASTE_PACK_VERSION,
    TasteLayer,
    ImportMode,
    TasteDimension,
    DimensionValue,
    TastePack,
    ImportResult,
)

__all__ = [
    # feedback.py
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
    "FeedbackEvent",
    "PendingEvent",
    "feedback_event_from_dict",
    # preferences.py
    "KeywordScore",
    "LedgerStats",
    "CustomFeedbackEntry",
    "PlatformKeywordStats",
    "KeywordSuggestion",
    "LIKED_THRESHOLD",
    "AVOID_THRESHOLD",
    "DECAY_INTERVAL_DAYS",
    # lineage.py
    "EditMode",
    "LineageNode",
    "LineageTree",
    "LineageStats",
    # contributor.py
    "Tier",
    "TierProgress",
    "AchievementRarity",
    "Achievement",
    "AchievementProgress",
    "ContributorStats",
    # taste_profile.py
    "TasteProfile",
    "MAX_PROFILE_LIST",
    # taste_pack.py
    "TASTE_PACK_VERSION",
    "TasteLayer",
    "ImportMode",
    "TasteDimension",
    "DimensionValue",
    "TastePack",
    "ImportResult",
]
