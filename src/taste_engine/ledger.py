"""
Preference Ledger

category → keyword → KeywordScore 누적 장부

- delta는 순서와 무관하게 합산 (누락 없음)
- decay: 마지막 갱신 후 decay_interval마다 |score| 1 감소, 0에서 멈추고 부호는 유지
- 사유별 통계 (trash / rejection / like) 및 사유-키워드 연결
- 플랫폼별 점수, 성공/실패 키워드 조합, 플랫폼 간 키워드 반응
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from loguru import logger

from .models import (
    ScoreDelta,
    KeywordScore,
    LedgerStats,
    CustomFeedbackEntry,
    PlatformKeywordStats,
    KeywordSuggestion,
    LIKED_THRESHOLD,
    AVOID_THRESHOLD,
    DECAY_INTERVAL_DAYS,
)
from .utils.keywords import is_relevant_category


REASON_KEYWORDS_LIMIT = 20
CUSTOM_FEEDBACK_LIMIT = 50

# 키워드 조합 / 플랫폼
COMBINATION_LIMIT = 50          # 성공/실패 조합 보관 수
COMBINATION_SIZE = 5            # 조합에 쓰는 앞쪽 키워드 수
FAILED_COMBINATION_DELTA = -1   # delta가 이보다 작아야 실패 조합
PLATFORM_BONUS_WEIGHT = 0.5     # 추천/회피 점수에 더하는 플랫폼 점수 비율
CROSS_PLATFORM_POSITIVE = 1.0
CROSS_PLATFORM_NEGATIVE = -0.5


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None


class PreferenceLedger:
    """
    키워드 선호도 장부

    사용 예시:
        ledger = PreferenceLedger()
        ledger.apply_delta("style", "cyberpunk", 2)
        ledger.get_liked_keywords()        # ["cyberpunk"]

        # 30일 이상 지난 점수 감쇠
        ledger.decay(datetime.now())
    """

    def __init__(
        self,
        decay_interval_days: int = DECAY_INTERVAL_DAYS,
        reason_keywords_limit: int = REASON_KEYWORDS_LIMIT,
        custom_feedback_limit: int = CUSTOM_FEEDBACK_LIMIT,
    ):
        self.decay_interval = timedelta(days=decay_interval_days)
        self.reason_keywords_limit = reason_keywords_limit
        self.custom_feedback_limit = custom_feedback_limit

        self.scores: Dict[str, Dict[str, KeywordScore]] = {}
        self.stats = LedgerStats()
        self.trash_reasons: Dict[str, int] = {}
        self.rejection_reasons: Dict[str, int] = {}
        self.like_reasons: Dict[str, int] = {}
        self.reason_keywords: Dict[str, List[str]] = {}
        self.custom_feedback: List[CustomFeedbackEntry] = []

        # platform → keyword → 누적 delta
        self.platform_scores: Dict[str, Dict[str, int]] = {}
        self.successful_combinations: List[List[str]] = []
        self.failed_combinations: List[List[str]] = []
        self.cross_platform: Dict[str, PlatformKeywordStats] = {}

    # ==================== Scores ====================

    def apply_delta(
        self,
        category: str,
        keyword: str,
        delta: int,
        now: Optional[datetime] = None,
    ) -> KeywordScore:
        """
        키워드 점수에 delta 더하기 (없으면 생성)

        last_updated는 앞으로만 이동 (늦게 재적용된 과거 이벤트가 감쇠 기준을 되돌리지 않음)
        """
        now = now or datetime.now()
        timestamp = now.isoformat()
        bucket = self.scores.setdefault(category, {})
        entry = bucket.get(keyword)
        if entry is None:
            entry = KeywordScore(keyword=keyword, score=0, last_updated=timestamp)
            bucket[keyword] = entry

        entry.score += int(delta)
        previous = _parse_time(entry.last_updated)
        if previous is None or now >= previous:
            entry.last_updated = timestamp
        self.touch(now)
        return entry

    def touch(self, now: datetime) -> None:
        """stats.last_updated 갱신 (앞으로만)"""
        previous = _parse_time(self.stats.last_updated)
        if previous is None or now >= previous:
            self.stats.last_updated = now.isoformat()

    def apply_deltas(self, deltas: Iterable[ScoreDelta], now: Optional[datetime] = None) -> int:
        """여러 delta 적용, 적용 개수 반환"""
        count = 0
        for d in deltas:
            self.apply_delta(d.category, d.keyword, d.delta, now)
            count += 1
        return count

    def set_score(
        self,
        category: str,
        keyword: str,
        score: int,
        now: Optional[datetime] = None,
    ) -> KeywordScore:
        """점수 직접 지정 (taste pack import 전용)"""
        timestamp = (now or datetime.now()).isoformat()
        entry = KeywordScore(keyword=keyword, score=int(score), last_updated=timestamp)
        self.scores.setdefault(category, {})[keyword] = entry
        return entry

    def remove_keyword(self, category: str, keyword: str) -> bool:
        bucket = self.scores.get(category)
        if not bucket or keyword not in bucket:
            return False
        del bucket[keyword]
        if not bucket:
            del self.scores[category]
        return True

    def get_score(self, category: str, keyword: str) -> int:
        entry = self.scores.get(category, {}).get(keyword)
        return entry.score if entry else 0

    def iter_scores(self) -> Iterator[Tuple[str, KeywordScore]]:
        """(category, KeywordScore) 순회"""
        for category, bucket in self.scores.items():
            for entry in bucket.values():
                yield category, entry

    # ==================== Queries ====================

    def get_scored_keywords(self, positive: bool = True, limit: Optional[int] = None) -> List[KeywordScore]:
        """
        점수 순 키워드 목록

        Args:
            positive: True면 양수 점수 내림차순, False면 음수 점수 오름차순
            limit: 최대 개수
        """
        if positive:
            entries = [e for _, e in self.iter_scores() if e.score > 0]
            entries.sort(key=lambda e: (-e.score, e.keyword))
        else:
            entries = [e for _, e in self.iter_scores() if e.score < 0]
            entries.sort(key=lambda e: (e.score, e.keyword))
        return entries[:limit] if limit is not None else entries

    def get_liked_keywords(self, threshold: int = LIKED_THRESHOLD) -> List[str]:
        """score >= threshold 키워드 (높은 점수 순)"""
        return [e.keyword for e in self.get_scored_keywords(positive=True) if e.is_liked(threshold)]

    def get_avoid_keywords(self, threshold: int = AVOID_THRESHOLD) -> List[str]:
        """score <= threshold 키워드 (낮은 점수 순)"""
        return [e.keyword for e in self.get_scored_keywords(positive=False) if e.is_avoided(threshold)]

    def is_empty(self) -> bool:
        return not any(True for _ in self.iter_scores())

    # ==================== Platform ====================

    def apply_platform_deltas(self, platform: str, deltas: Iterable[ScoreDelta]) -> None:
        """플랫폼별 키워드 점수 누적 (전역 점수와 별도)"""
        bucket = self.platform_scores.setdefault(platform, {})
        for d in deltas:
            bucket[d.keyword] = bucket.get(d.keyword, 0) + int(d.delta)

    def get_platform_score(self, platform: str, keyword: str) -> int:
        return self.platform_scores.get(platform, {}).get(keyword, 0)

    def record_combination(self, keywords: List[str], delta: int) -> Optional[List[str]]:
        """
        함께 쓰인 키워드 조합 기록

        앞쪽 COMBINATION_SIZE개를 정렬해 하나의 조합으로 보고,
        delta > 0 이면 성공 조합, delta < -1 이면 실패 조합 (중복 없이 최근 COMBINATION_LIMIT개)

        Returns:
            기록된 조합 (키워드 2개 미만이거나 약한 부정이면 None)
        """
        if len(keywords) < 2:
            return None
        if delta > 0:
            target = self.successful_combinations
        elif delta < FAILED_COMBINATION_DELTA:
            target = self.failed_combinations
        else:
            return None

        combination = sorted(keywords[:COMBINATION_SIZE])
        if combination not in target:
            target.append(combination)
            del target[:-COMBINATION_LIMIT]
        return combination

    def track_cross_platform(self, keywords: Iterable[str], platform: str, positive: bool) -> None:
        weight = CROSS_PLATFORM_POSITIVE if positive else CROSS_PLATFORM_NEGATIVE
        for keyword in keywords:
            entry = self.cross_platform.setdefault(keyword.lower(), PlatformKeywordStats())
            if platform not in entry.platforms:
                entry.platforms.append(platform)
            entry.total_score += weight
            entry.count += 1

    def _platform_ranked(self, platform: Optional[str], avoid: bool) -> List[KeywordSuggestion]:
        ranked = []
        for category, entry in self.iter_scores():
            wanted = entry.is_avoided() if avoid else entry.score > 0
            if not wanted or not is_relevant_category(category, platform):
                continue
            bonus = self.get_platform_score(platform, entry.keyword) if platform else 0
            ranked.append(KeywordSuggestion(
                keyword=entry.keyword,
                category=category,
                score=entry.score + bonus * PLATFORM_BONUS_WEIGHT,
            ))
        if avoid:
            ranked.sort(key=lambda s: (s.score, s.keyword))
        else:
            ranked.sort(key=lambda s: (-s.score, s.keyword))
        return ranked

    def get_suggested_keywords(self, platform: Optional[str] = None, limit: int = 10) -> List[KeywordSuggestion]:
        """
        플랫폼 맞춤 추천 키워드

        양수 점수 + 해당 플랫폼 점수 * 0.5, 플랫폼 매체에 맞지 않는 카테고리는 제외
        """
        return self._platform_ranked(platform, avoid=False)[:limit]

    def get_keywords_to_avoid(self, platform: Optional[str] = None, limit: int = 10) -> List[KeywordSuggestion]:
        """플랫폼 맞춤 회피 키워드 (avoid 기준 이하, 낮은 점수 순)"""
        return self._platform_ranked(platform, avoid=True)[:limit]

    def get_universal_keywords(self, min_platforms: int = 2, limit: int = 10) -> List[Tuple[str, List[str], float]]:
        """여러 플랫폼에서 긍정적인 키워드 (keyword, platforms, 평균 점수), 평균 높은 순"""
        universal = [
            (keyword, list(entry.platforms), entry.average_score)
            for keyword, entry in self.cross_platform.items()
            if len(entry.platforms) >= min_platforms and entry.total_score > 0
        ]
        universal.sort(key=lambda x: (-x[2], x[0]))
        return universal[:limit]

    # ==================== Decay ====================

    def decay(self, now: Optional[datetime] = None) -> int:
        """
        시간 경과에 따른 점수 감쇠

        steps = 경과 시간 // decay_interval
        |score|를 steps만큼 줄이되 0 아래로 내려가지 않음 (부호 반전 없음)
        last_updated는 소비한 steps만큼만 전진하므로 반복 호출해도 이중 감쇠 없음

        Returns:
            점수가 바뀐 키워드 수
        """
        now = now or datetime.now()
        changed = 0

        for _, entry in self.iter_scores():
            if entry.score == 0:
                continue
            last = _parse_time(entry.last_updated)
            if last is None or now <= last:
                continue

            steps = (now - last) // self.decay_interval
            if steps <= 0:
                continue

            sign = 1 if entry.score > 0 else -1
            magnitude = max(0, abs(entry.score) - steps)
            if magnitude != abs(entry.score):
                changed += 1
            entry.score = sign * magnitude
            entry.last_updated = (last + self.decay_interval * steps).isoformat()

        if changed:
            logger.debug(f"Decayed {changed} keyword scores")
        return changed

    # ==================== Reasons ====================

    @staticmethod
    def _bump(tally: Dict[str, int], reason: str) -> None:
        tally[reason] = tally.get(reason, 0) + 1

    def record_trash_reason(self, reason: str) -> None:
        self._bump(self.trash_reasons, reason)

    def record_rejection_reason(self, reason: str) -> None:
        self._bump(self.rejection_reasons, reason)

    def record_like_reason(self, reason: str) -> None:
        self._bump(self.like_reasons, reason)

    def associate_reason_keywords(self, reason: str, keywords: Iterable[str]) -> None:
        """사유에 키워드 연결 (중복 제거, 최근 reason_keywords_limit개 유지)"""
        existing = self.reason_keywords.get(reason, [])
        for keyword in keywords:
            if keyword in existing:
                existing.remove(keyword)
            existing.append(keyword)
        self.reason_keywords[reason] = existing[-self.reason_keywords_limit:]

    def add_custom_feedback(self, entry: CustomFeedbackEntry) -> None:
        self.custom_feedback.append(entry)
        self.custom_feedback = self.custom_feedback[-self.custom_feedback_limit:]

    def top_trash_reasons(self, limit: int = 2) -> List[Tuple[str, int]]:
        ranked = sorted(self.trash_reasons.items(), key=lambda x: (-x[1], x[0]))
        return ranked[:limit]

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword_scores": {
                category: {kw: e.to_dict() for kw, e in bucket.items()}
                for category, bucket in self.scores.items()
            },
            "stats": self.stats.to_dict(),
            "trash_reasons": dict(self.trash_reasons),
            "rejection_reasons": dict(self.rejection_reasons),
            "like_reasons": dict(self.like_reasons),
            "reason_keywords": {r: list(kws) for r, kws in self.reason_keywords.items()},
            "custom_feedback": [c.to_dict() for c in self.custom_feedback],
            "platform_scores": {p: dict(kws) for p, kws in self.platform_scores.items()},
            "successful_combinations": [list(c) for c in self.successful_combinations],
            "failed_combinations": [list(c) for c in self.failed_combinations],
            "cross_platform": {kw: e.to_dict() for kw, e in self.cross_platform.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **kwargs) -> "PreferenceLedger":
        ledger = cls(**kwargs)
        for category, bucket in data.get("keyword_scores", {}).items():
            ledger.scores[category] = {
                kw: KeywordScore.from_dict(e) for kw, e in bucket.items()
            }
        ledger.stats = LedgerStats.from_dict(data.get("stats", {}))
        ledger.trash_reasons = dict(data.get("trash_reasons", {}))
        ledger.rejection_reasons = dict(data.get("rejection_reasons", {}))
        ledger.like_reasons = dict(data.get("like_reasons", {}))
        ledger.reason_keywords = {
            r: list(kws) for r, kws in data.get("reason_keywords", {}).items()
        }
        ledger.custom_feedback = [
            CustomFeedbackEntry.from_dict(c) for c in data.get("custom_feedback", [])
        ]
        ledger.platform_scores = {
            p: {kw: int(v) for kw, v in kws.items()}
            for p, kws in data.get("platform_scores", {}).items()
        }
        ledger.successful_combinations = [list(c) for c in data.get("successful_combinations", [])]
        ledger.failed_combinations = [list(c) for c in data.get("failed_combinations", [])]
        ledger.cross_platform = {
            kw: PlatformKeywordStats.from_dict(e) for kw, e in data.get("cross_platform", {}).items()
        }
        return ledger
