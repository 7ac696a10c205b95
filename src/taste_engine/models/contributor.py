"""
기여자 평판 데이터 모델
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Tier(Enum):
    """기여자 등급 (낮은 순)"""
    EXPLORER = "explorer"
    CURATOR = "curator"
    TASTEMAKER = "tastemaker"
    ORACLE = "oracle"


class AchievementRarity(Enum):
    """업적 희귀도"""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"


@dataclass
class TierProgress:
    """다음 등급까지 진행도"""
    progress_percent: float
    points_to_next: int
    next_tier: Optional[Tier] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "progress_percent": self.progress_percent,
            "points_to_next": self.points_to_next,
            "next_tier": self.next_tier.value if self.next_tier else None,
        }


@dataclass(frozen=True)
class Achievement:
    """
    업적 정의

    metric 값이 target 이상이면 달성 (장부 통계에서 파생, 따로 저장하지 않음)
    """
    id: str
    name: str
    description: str
    rarity: AchievementRarity
    metric: str
    target: int


@dataclass
class AchievementProgress:
    """업적 진행도"""
    achievement: Achievement
    current: int

    @property
    def unlocked(self) -> bool:
        return self.current >= self.achievement.target

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.achievement.id,
            "name": self.achievement.name,
            "rarity": self.achievement.rarity.value,
            "current": min(self.current, self.achievement.target),
            "target": self.achievement.target,
            "unlocked": self.unlocked,
        }


@dataclass
class ContributorStats:
    """
    기여자 통계

    current_tier는 항상 total_points에서 파생
    """
    total_contributions: int = 0
    total_points: int = 0
    current_tier: Tier = Tier.EXPLORER
    taste_score: float = 0.5
    expertise_tags: List[str] = field(default_factory=list)
    consent_enabled: bool = False
    current_streak: int = 0
    longest_streak: int = 0
    achievements: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_contributions": self.total_contributions,
            "total_points": self.total_points,
            "current_tier": self.current_tier.value,
            "taste_score": self.taste_score,
            "expertise_tags": self.expertise_tags,
            "consent_enabled": self.consent_enabled,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "achievements": self.achievements,
        }
