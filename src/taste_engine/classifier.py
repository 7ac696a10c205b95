"""
Feedback Classifier

피드백 이벤트 → 키워드별 ScoreDelta 변환

FeedbackKind별 핸들러 테이블 하나로 분기하며,
잘못된 입력은 예외 대신 빈 리스트로 처리 (피드백 기록을 막지 않음)
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional

from loguru import logger

from .ledger import PreferenceLedger
from .models import (
    FeedbackKind,
    ScoreDelta,
    RatingEvent,
    LikeEvent,
    RejectionEvent,
    TrashEvent,
    CustomFeedbackEvent,
    CustomFeedbackEntry,
)
from .reputation import update_streak
from .utils.keywords import extract_keyword_list, categorize_keyword


# ============================================
# 피드백 가중치 (키워드당 delta)
# ============================================
RATING_POSITIVE_DELTA = 1       # rating >= 4
RATING_NEGATIVE_DELTA = -1      # rating <= 2
LIKE_DELTA = 2
LIKE_WITH_REASON_DELTA = 3
DISLIKE_DELTA = -2
REJECTION_DELTA = -2
REJECTION_GENERIC_DELTA = -1    # 사유 없음 / other / skipped
TRASH_DELTA = -3
TRASH_SKIPPED_DELTA = -1        # 사유 없음 / skipped
CUSTOM_TEXT_DELTA = 1           # 자유 텍스트 키워드 (부호는 긍/부정에 따름)

REASON_KEYWORD_COUNT = 5        # 사유에 연결할 앞쪽 키워드 수

GENERIC_LIKE_REASONS = {None, "", "skipped"}
GENERIC_REJECTION_REASONS = {None, "", "other", "skipped"}
GENERIC_TRASH_REASONS = {None, "", "skipped"}

_EVENT_CLASSES = {
    FeedbackKind.RATING: RatingEvent,
    FeedbackKind.LIKE: LikeEvent,
    FeedbackKind.REJECTION: RejectionEvent,
    FeedbackKind.TRASH: TrashEvent,
    FeedbackKind.CUSTOM: CustomFeedbackEvent,
}


def _deltas_for(text: Optional[str], delta: int) -> List[ScoreDelta]:
    """텍스트 키워드마다 같은 delta 부여 (등장 순서)"""
    if delta == 0:
        return []
    return [
        ScoreDelta(category=categorize_keyword(kw), keyword=kw, delta=delta)
        for kw in extract_keyword_list(text)
    ]


def _is_text(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _optional_text(value) -> bool:
    return value is None or isinstance(value, str)


class FeedbackClassifier:
    """
    피드백 분류기

    사용 예시:
        classifier = FeedbackClassifier()
        deltas = classifier.classify(RatingEvent(content="neon cyberpunk city", rating=5))
        # [ScoreDelta("color", "neon", 1), ScoreDelta("style", "cyberpunk", 1), ...]

        # ledger에 바로 반영 (점수 + 통계 + 사유)
        classifier.apply(event, ledger)
    """

    def __init__(self):
        self._handlers: Dict[FeedbackKind, Callable[..., List[ScoreDelta]]] = {
            FeedbackKind.RATING: self._classify_rating,
            FeedbackKind.LIKE: self._classify_like,
            FeedbackKind.REJECTION: self._classify_rejection,
            FeedbackKind.TRASH: self._classify_trash,
            FeedbackKind.CUSTOM: self._classify_custom,
        }

    # ==================== Validation ====================

    def is_valid(self, event) -> bool:
        """이벤트 형식 검사 (예외 없음)"""
        kind = getattr(event, "kind", None)
        expected = _EVENT_CLASSES.get(kind) if isinstance(kind, FeedbackKind) else None
        if expected is None or not isinstance(event, expected):
            return False
        if not _is_text(event.platform):
            return False

        if kind == FeedbackKind.CUSTOM:
            return _is_text(event.text) and _optional_text(event.content)

        if not _is_text(event.content):
            return False

        if kind == FeedbackKind.RATING:
            rating = event.rating
            return isinstance(rating, int) and not isinstance(rating, bool) and 1 <= rating <= 5
        if kind == FeedbackKind.LIKE:
            return isinstance(event.liked, bool) and _optional_text(event.reason)
        return _optional_text(event.reason) and _optional_text(event.custom_text)

    # ==================== Classification ====================

    def classify(self, event) -> List[ScoreDelta]:
        """
        이벤트 → ScoreDelta 리스트

        잘못된 이벤트(내용 없음, 범위 밖 rating, 알 수 없는 객체)는 []
        """
        if not self.is_valid(event):
            logger.warning(f"Ignoring malformed feedback event: {event!r}")
            return []
        return self._handlers[event.kind](event)

    def _classify_rating(self, event: RatingEvent) -> List[ScoreDelta]:
        if event.rating >= 4:
            return _deltas_for(event.content, RATING_POSITIVE_DELTA)
        if event.rating <= 2:
            return _deltas_for(event.content, RATING_NEGATIVE_DELTA)
        return []

    def _classify_like(self, event: LikeEvent) -> List[ScoreDelta]:
        if not event.liked:
            return _deltas_for(event.content, DISLIKE_DELTA)
        if event.reason in GENERIC_LIKE_REASONS:
            return _deltas_for(event.content, LIKE_DELTA)
        return _deltas_for(event.content, LIKE_WITH_REASON_DELTA)

    def _classify_rejection(self, event: RejectionEvent) -> List[ScoreDelta]:
        weight = REJECTION_GENERIC_DELTA if event.reason in GENERIC_REJECTION_REASONS else REJECTION_DELTA
        return _deltas_for(event.content, weight) + _deltas_for(event.custom_text, -CUSTOM_TEXT_DELTA)

    def _classify_trash(self, event: TrashEvent) -> List[ScoreDelta]:
        weight = TRASH_SKIPPED_DELTA if event.reason in GENERIC_TRASH_REASONS else TRASH_DELTA
        return _deltas_for(event.content, weight) + _deltas_for(event.custom_text, -CUSTOM_TEXT_DELTA)

    def _classify_custom(self, event: CustomFeedbackEvent) -> List[ScoreDelta]:
        sign = 1 if event.positive else -1
        return _deltas_for(event.text, sign * CUSTOM_TEXT_DELTA)

    # ==================== Ledger 반영 ====================

    def apply(
        self,
        event,
        ledger: PreferenceLedger,
        now: Optional[datetime] = None,
    ) -> List[ScoreDelta]:
        """
        분류 결과를 ledger에 반영

        - 키워드 delta 적용 (전역 + 플랫폼별), 키워드 조합, 연속 활동일
        - 통계: rating>=4/like → likes, rating<=2/dislike/rejection → dislikes, trash → deletes
        - rating은 항상 total_ratings 증가
        - 구체적 trash/rejection 사유는 앞쪽 키워드 5개와 연결

        Returns:
            적용된 delta 리스트 (잘못된 이벤트는 [] 이고 ledger 변경 없음)
        """
        if not self.is_valid(event):
            logger.warning(f"Ignoring malformed feedback event: {event!r}")
            return []

        now = now or datetime.now()
        deltas = self._handlers[event.kind](event)
        ledger.apply_deltas(deltas, now)
        self._track_platform(event, deltas, ledger)
        update_streak(ledger.stats, now)

        stats = ledger.stats
        kind = event.kind
        if kind == FeedbackKind.RATING:
            stats.total_ratings += 1
            if event.rating >= 4:
                stats.total_likes += 1
            elif event.rating <= 2:
                stats.total_dislikes += 1

        elif kind == FeedbackKind.LIKE:
            if event.liked:
                stats.total_likes += 1
                if event.reason not in GENERIC_LIKE_REASONS:
                    ledger.record_like_reason(event.reason)
            else:
                stats.total_dislikes += 1

        elif kind == FeedbackKind.REJECTION:
            stats.total_dislikes += 1
            ledger.record_rejection_reason(event.reason or "skipped")
            if event.reason not in GENERIC_REJECTION_REASONS:
                ledger.associate_reason_keywords(
                    event.reason, extract_keyword_list(event.content)[:REASON_KEYWORD_COUNT]
                )
            self._log_custom_text(event, event.custom_text, False, ledger, now)

        elif kind == FeedbackKind.TRASH:
            stats.total_deletes += 1
            ledger.record_trash_reason(event.reason or "skipped")
            if event.reason not in GENERIC_TRASH_REASONS:
                ledger.associate_reason_keywords(
                    event.reason, extract_keyword_list(event.content)[:REASON_KEYWORD_COUNT]
                )
            self._log_custom_text(event, event.custom_text, False, ledger, now)

        elif kind == FeedbackKind.CUSTOM:
            self._log_custom_text(event, event.text, event.positive, ledger, now)

        ledger.touch(now)
        return deltas

    @staticmethod
    def _track_platform(event, deltas: List[ScoreDelta], ledger: PreferenceLedger) -> None:
        """플랫폼 점수, 키워드 조합, 플랫폼 간 반응 갱신 (본문 키워드 기준)"""
        ledger.apply_platform_deltas(event.platform, deltas)

        primary = event.text if event.kind == FeedbackKind.CUSTOM else event.content
        keywords = extract_keyword_list(primary)
        if not keywords or not deltas:
            return
        # 본문 delta가 항상 앞에 옴
        weight = deltas[0].delta
        ledger.record_combination(keywords, weight)
        ledger.track_cross_platform(keywords, event.platform, positive=weight > 0)

    @staticmethod
    def _log_custom_text(event, text: Optional[str], positive: bool, ledger: PreferenceLedger, now: datetime) -> None:
        if not _is_text(text):
            return
        ledger.add_custom_feedback(CustomFeedbackEntry(
            text=text.strip(),
            content=event.content or "",
            positive=positive,
            platform=event.platform,
            timestamp=event.timestamp or now.isoformat(),
        ))
