"""
선호도 장부 데이터 모델

키워드별 누적 점수와 피드백 통계
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime


# ============================================
# 점수 판정 기준
# ============================================
LIKED_THRESHOLD = 2         # score >= +2 → liked
AVOID_THRESHOLD = -2        # score <= -2 → avoid
DECAY_INTERVAL_DAYS = 30    # 30일마다 |score| 1 감소


@dataclass
class KeywordScore:
    """
    키워드 점수

    피드백 delta로만 변경되며 학습으로 삭제되지 않음 (decay로 0까지만 감소)
    """
    keyword: str
    score: int = 0
    last_updated: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "score": self.score,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeywordScore":
        return cls(
            keyword=data["keyword"],
            score=int(data.get("score", 0)),
            last_updated=data.get("last_updated", datetime.now().isoformat()),
        )

    def is_liked(self, threshold: int = LIKED_THRESHOLD) -> bool:
        return self.score >= threshold

    def is_avoided(self, threshold: int = AVOID_THRESHOLD) -> bool:
        return self.score <= threshold


@dataclass
class LedgerStats:
    """
    피드백 누적 통계

    streak: 연속 활동 일수 (하루에 여러 번 활동해도 1일)
    streak_bonus_points: 연속 활동 보너스 누적 포인트
    """
    total_likes: int = 0
    total_dislikes: int = 0
    total_deletes: int = 0
    total_ratings: int = 0
    last_updated: Optional[str] = None

    current_streak: int = 0
    longest_streak: int = 0
    last_active_date: Optional[str] = None     # YYYY-MM-DD
    streak_bonus_points: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_likes": self.total_likes,
            "total_dislikes": self.total_dislikes,
            "total_deletes": self.total_deletes,
            "total_ratings": self.total_ratings,
            "last_updated": self.last_updated,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_active_date": self.last_active_date,
            "streak_bonus_points": self.streak_bonus_points,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerStats":
        return cls(
            total_likes=data.get("total_likes", 0),
            total_dislikes=data.get("total_dislikes", 0),
            total_deletes=data.get("total_deletes", 0),
            total_ratings=data.get("total_ratings", 0),
            last_updated=data.get("last_updated"),
            current_streak=data.get("current_streak", 0),
            longest_streak=data.get("longest_streak", 0),
            last_active_date=data.get("last_active_date"),
            streak_bonus_points=data.get("streak_bonus_points", 0),
        )


@dataclass
class CustomFeedbackEntry:
    """자유 텍스트 피드백 기록"""
    text: str
    content: str = ""
    positive: bool = False
    platform: str = "unknown"
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "content": self.content,
            "positive": self.positive,
            "platform": self.platform,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomFeedbackEntry":
        return cls(
            text=data["text"],
            content=data.get("content", ""),
            positive=data.get("positive", False),
            platform=data.get("platform", "unknown"),
            timestamp=data.get("timestamp", datetime.now().isoformat()),
        )


@dataclass
class PlatformKeywordStats:
    """
    플랫폼 간 키워드 반응

    긍정 피드백 +1, 부정 피드백 -0.5 누적
    여러 플랫폼에서 평균이 양수인 키워드 = 어디서나 통하는 키워드
    """
    platforms: List[str] = field(default_factory=list)
    total_score: float = 0.0
    count: int = 0

    @property
    def average_score(self) -> float:
        return self.total_score / self.count if self.count else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platforms": list(self.platforms),
            "total_score": self.total_score,
            "count": self.count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlatformKeywordStats":
        return cls(
            platforms=list(data.get("platforms", [])),
            total_score=float(data.get("total_score", 0.0)),
            count=int(data.get("count", 0)),
        )


@dataclass
class KeywordSuggestion:
    """플랫폼 보정 점수가 붙은 키워드"""
    keyword: str
    category: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"keyword": self.keyword, "category": self.category, "score": self.score}
