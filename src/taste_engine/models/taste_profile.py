"""
취향 프로필 데이터 모델

피드백에서 누적된 시각/오디오 취향 요약
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List
from datetime import datetime


MAX_PROFILE_LIST = 5        # 카테고리별 리스트 최대 길이 (최신 유지)


@dataclass
class TasteProfile:
    """
    취향 프로필

    - visual_style / color_palette / lighting / audio_genre / mood: 최근 선호 키워드
    - frequent_keywords: 키워드별 긍정 피드백 누적 횟수
    """
    visual_style: List[str] = field(default_factory=list)
    color_palette: List[str] = field(default_factory=list)
    lighting: List[str] = field(default_factory=list)
    audio_genre: List[str] = field(default_factory=list)
    mood: List[str] = field(default_factory=list)
    frequent_keywords: Dict[str, int] = field(default_factory=dict)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    updated_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "visual_style": self.visual_style,
            "color_palette": self.color_palette,
            "lighting": self.lighting,
            "audio_genre": self.audio_genre,
            "mood": self.mood,
            "frequent_keywords": self.frequent_keywords,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TasteProfile":
        return cls(
            visual_style=data.get("visual_style", []),
            color_palette=data.get("color_palette", []),
            lighting=data.get("lighting", []),
            audio_genre=data.get("audio_genre", []),
            mood=data.get("mood", []),
            frequent_keywords=data.get("frequent_keywords", {}),
            created_at=data.get("created_at", datetime.now().isoformat()),
            updated_at=data.get("updated_at", datetime.now().isoformat()),
        )

    def top_keywords(self, limit: int = 10) -> List[str]:
        """빈도 높은 키워드 (동점은 알파벳 순)"""
        ranked = sorted(self.frequent_keywords.items(), key=lambda x: (-x[1], x[0]))
        return [keyword for keyword, _ in ranked[:limit]]
