"""
피드백 이벤트 데이터 모델

확장 프로그램/UI가 전달하는 사용자 반응을 태그된 이벤트로 표현
- rating: 1~5 별점
- like: 좋아요 / 싫어요 (+ 선택적 사유)
- rejection: 결과 거절 (+ 사유, 자유 텍스트)
- trash: 결과 삭제 (+ 사유, 자유 텍스트)
- custom: 자유 텍스트 피드백
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class FeedbackKind(Enum):
    """피드백 이벤트 종류"""
    RATING = "rating"
    LIKE = "like"
    REJECTION = "rejection"
    TRASH = "trash"
    CUSTOM = "custom"


class LikeReason(Enum):
    """좋아요 사유"""
    GREAT_STYLE = "great-style"
    PERFECT_COLORS = "perfect-colors"
    MATCHES_INTENT = "matches-intent"
    UNIQUE = "unique"
    TECHNICAL_QUALITY = "technical-quality"
    OTHER = "other"


class RejectionReason(Enum):
    """거절 사유"""
    POOR_QUALITY = "poor-quality"
    WRONG_STYLE = "wrong-style"
    DOESNT_MATCH = "doesnt-match"
    TOO_GENERIC = "too-generic"
    TECHNICAL_ISSUE = "technical-issue"
    OTHER = "other"
    SKIPPED = "skipped"


class TrashReason(Enum):
    """삭제 사유"""
    POOR_QUALITY = "poor-quality"
    WRONG_STYLE = "wrong-style"
    DOESNT_MATCH = "doesnt-match"
    TOO_SIMILAR = "too-similar"
    WRONG_COMPOSITION = "wrong-composition"
    OTHER = "other"
    SKIPPED = "skipped"


def _reason_value(reason: Any) -> Optional[str]:
    """Enum 또는 문자열 사유를 저장용 문자열로 변환"""
    if isinstance(reason, Enum):
        return reason.value
    return reason


@dataclass
class ScoreDelta:
    """
    키워드 점수 변화량

    FeedbackClassifier가 생성하고 PreferenceLedger가 적용
    """
    category: str
    keyword: str
    delta: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "keyword": self.keyword,
            "delta": self.delta,
        }


# ==================== Events ====================

@dataclass
class RatingEvent:
    """별점 피드백 (1~5)"""
    content: str
    rating: int
    platform: str = "unknown"
    timestamp: Optional[str] = None

    kind = FeedbackKind.RATING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "content": self.content,
            "rating": self.rating,
            "platform": self.platform,
            "timestamp": self.timestamp,
        }


@dataclass
class LikeEvent:
    """좋아요 / 싫어요 피드백"""
    content: str
    liked: bool = True
    reason: Optional[str] = None
    platform: str = "unknown"
    timestamp: Optional[str] = None

    kind = FeedbackKind.LIKE

    def __post_init__(self):
        self.reason = _reason_value(self.reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "content": self.content,
            "liked": self.liked,
            "reason": self.reason,
            "platform": self.platform,
            "timestamp": self.timestamp,
        }


@dataclass
class RejectionEvent:
    """결과 거절 피드백"""
    content: str
    reason: Optional[str] = None
    custom_text: Optional[str] = None
    platform: str = "unknown"
    timestamp: Optional[str] = None

    kind = FeedbackKind.REJECTION

    def __post_init__(self):
        self.reason = _reason_value(self.reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "content": self.content,
            "reason": self.reason,
            "custom_text": self.custom_text,
            "platform": self.platform,
            "timestamp": self.timestamp,
        }


@dataclass
class TrashEvent:
    """결과 삭제 피드백"""
    content: str
    reason: Optional[str] = None
    custom_text: Optional[str] = None
    platform: str = "unknown"
    timestamp: Optional[str] = None

    kind = FeedbackKind.TRASH

    def __post_init__(self):
        self.reason = _reason_value(self.reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "content": self.content,
            "reason": self.reason,
            "custom_text": self.custom_text,
            "platform": self.platform,
            "timestamp": self.timestamp,
        }


@dataclass
class CustomFeedbackEvent:
    """자유 텍스트 피드백 ("더 어둡게", "less saturated" 등)"""
    content: str
    text: str
    positive: bool = True
    platform: str = "unknown"
    timestamp: Optional[str] = None

    kind = FeedbackKind.CUSTOM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "content": self.content,
            "text": self.text,
            "positive": self.positive,
            "platform": self.platform,
            "timestamp": self.timestamp,
        }


FeedbackEvent = Union[RatingEvent, LikeEvent, RejectionEvent, TrashEvent, CustomFeedbackEvent]

_EVENT_TYPES = {
    FeedbackKind.RATING: RatingEvent,
    FeedbackKind.LIKE: LikeEvent,
    FeedbackKind.REJECTION: RejectionEvent,
    FeedbackKind.TRASH: TrashEvent,
    FeedbackKind.CUSTOM: CustomFeedbackEvent,
}


def feedback_event_from_dict(data: Dict[str, Any]) -> FeedbackEvent:
    """
    dict → 이벤트 객체 (재시도 큐 복원용)

    Raises:
        ValueError: 알 수 없는 kind
    """
    kind = FeedbackKind(data["kind"])
    payload = {k: v for k, v in data.items() if k != "kind"}
    return _EVENT_TYPES[kind](**payload)


@dataclass
class PendingEvent:
    """저장 실패로 재시도 대기 중인 이벤트"""
    event: Dict[str, Any]
    attempts: int = 0
    last_error: str = ""
    queued_at: str = field(default="")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event,
            "attempts": self.attempts,
            "last_error": self.last_error,
            "queued_at": self.queued_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingEvent":
        return cls(
            event=dict(data["event"]),
            attempts=int(data.get("attempts", 0)),
            last_error=data.get("last_error", ""),
            queued_at=data.get("queued_at", ""),
        )
