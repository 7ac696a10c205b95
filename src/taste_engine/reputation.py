"""
Contributor Reputation

피드백 활동 포인트 → 등급 (explorer < curator < tastemaker < oracle)
등급 계산과 진행도는 순수 함수이며 예외를 던지지 않음

연속 활동(streak) 보너스와 업적은 장부 통계에서 파생
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from .ledger import PreferenceLedger
from .models import (
    Tier,
    TierProgress,
    ContributorStats,
    LedgerStats,
    Achievement,
    AchievementProgress,
    AchievementRarity,
)
from .utils.keywords import CUSTOM_CATEGORY


# ============================================
# 등급 기준 포인트 (오름차순)
# ============================================
TIER_THRESHOLDS: List[Tuple[Tier, int]] = [
    (Tier.EXPLORER, 0),
    (Tier.CURATOR, 100),
    (Tier.TASTEMAKER, 500),
    (Tier.ORACLE, 2000),
]

# 활동별 포인트
POINTS_PER_LIKE = 10
POINTS_PER_DISLIKE = 8
POINTS_PER_DELETE = 5

# 연속 활동 보너스
DAILY_STREAK_BONUS = 10         # 연속된 날마다
WEEKLY_STREAK_BONUS = 50        # 7일째마다 추가
MONTHLY_STREAK_BONUS = 200      # 30일째마다 추가

DECISIVE_SCORE = 2          # |score| >= 2 → 확실한 취향
DEFAULT_TASTE_SCORE = 0.5
MAX_EXPERTISE_TAGS = 3

# ============================================
# 업적 (metric >= target 이면 달성)
# ============================================
ACHIEVEMENTS: List[Achievement] = [
    # 피드백 횟수
    Achievement("first_rating", "First Taste", "Rate your first output", AchievementRarity.COMMON, "contributions", 1),
    Achievement("ten_ratings", "Developing Palette", "Rate 10 outputs", AchievementRarity.COMMON, "contributions", 10),
    Achievement("fifty_ratings", "Taste Trained", "Rate 50 outputs", AchievementRarity.UNCOMMON, "contributions", 50),
    Achievement("hundred_ratings", "Refined Palate", "Rate 100 outputs", AchievementRarity.UNCOMMON, "contributions", 100),
    Achievement("five_hundred_ratings", "Aesthetic Authority", "Rate 500 outputs", AchievementRarity.RARE, "contributions", 500),
    Achievement("thousand_ratings", "Taste Sage", "Rate 1000 outputs", AchievementRarity.EPIC, "contributions", 1000),
    # 연속 활동
    Achievement("three_day_streak", "Getting Started", "3-day rating streak", AchievementRarity.COMMON, "longest_streak", 3),
    Achievement("week_streak", "Week Warrior", "7-day rating streak", AchievementRarity.UNCOMMON, "longest_streak", 7),
    Achievement("month_streak", "Monthly Maven", "30-day rating streak", AchievementRarity.RARE, "longest_streak", 30),
    Achievement("hundred_day_streak", "Centurion", "100-day rating streak", AchievementRarity.EPIC, "longest_streak", 100),
    # 스타일 발견 (양수 점수 style 키워드)
    Achievement("five_styles", "Style Sampler", "Like 5 different styles", AchievementRarity.COMMON, "styles", 5),
    Achievement("fifteen_styles", "Style Chameleon", "Like 15 different styles", AchievementRarity.UNCOMMON, "styles", 15),
    Achievement("thirty_styles", "Omni-Aesthetic", "Like 30 different styles", AchievementRarity.RARE, "styles", 30),
    # 부정 피드백
    Achievement("first_dislike", "Quality Control", "Give your first dislike", AchievementRarity.COMMON, "dislikes", 1),
    Achievement("fifty_dislikes", "Discerning Eye", "Dislike 50 outputs", AchievementRarity.UNCOMMON, "dislikes", 50),
    Achievement("critical_eye", "Critical Eye", "Dislike 100 outputs", AchievementRarity.RARE, "dislikes", 100),
    Achievement("balanced_feedback", "Balanced Critic", "50 likes and 50 dislikes", AchievementRarity.RARE, "balanced", 50),
]


def tier_for(points: int) -> Tier:
    """포인트 → 등급 (포인트에 대해 단조 증가)"""
    current = TIER_THRESHOLDS[0][0]
    for tier, minimum in TIER_THRESHOLDS:
        if points >= minimum:
            current = tier
    return current


def _tier_index(tier: Tier) -> int:
    return [t for t, _ in TIER_THRESHOLDS].index(tier)


def progress_to_next(points: int, tier: Optional[Tier] = None) -> TierProgress:
    """
    다음 등급까지 진행도

    - 최고 등급: (100, 0, None)
    - progress_percent: 현재 등급 구간 내 선형 비율, 0~100으로 제한
    - points_to_next: 음수가 되지 않음
    """
    tier = tier or tier_for(points)
    index = _tier_index(tier)
    if index == len(TIER_THRESHOLDS) - 1:
        return TierProgress(progress_percent=100.0, points_to_next=0, next_tier=None)

    start = TIER_THRESHOLDS[index][1]
    next_tier, end = TIER_THRESHOLDS[index + 1]

    percent = (points - start) / (end - start) * 100
    percent = max(0.0, min(100.0, percent))
    return TierProgress(
        progress_percent=percent,
        points_to_next=max(0, end - points),
        next_tier=next_tier,
    )


def compute_points(stats: LedgerStats) -> int:
    return (
        stats.total_likes * POINTS_PER_LIKE
        + stats.total_dislikes * POINTS_PER_DISLIKE
        + stats.total_deletes * POINTS_PER_DELETE
        + stats.streak_bonus_points
    )


# ==================== Streak ====================

def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except (ValueError, TypeError):
        return None


def update_streak(stats: LedgerStats, now: datetime) -> int:
    """
    활동 일자를 streak에 반영

    - 첫 활동: streak 1
    - 같은 날 또는 마지막 활동일 이전(늦게 재적용된 이벤트): 변화 없음
    - 바로 다음 날: streak +1, 보너스 10 (7일째마다 +50, 30일째마다 +200)
    - 이틀 이상 공백: streak 1부터 다시

    Returns:
        이번에 얻은 보너스 포인트
    """
    today = now.date()
    last = _parse_date(stats.last_active_date)

    bonus = 0
    if last is None:
        stats.current_streak = 1
    else:
        gap = (today - last).days
        if gap <= 0:
            return 0
        if gap == 1:
            stats.current_streak += 1
            bonus = DAILY_STREAK_BONUS
            if stats.current_streak % 7 == 0:
                bonus += WEEKLY_STREAK_BONUS
            if stats.current_streak % 30 == 0:
                bonus += MONTHLY_STREAK_BONUS
        else:
            stats.current_streak = 1

    stats.longest_streak = max(stats.longest_streak, stats.current_streak)
    stats.last_active_date = today.isoformat()
    stats.streak_bonus_points += bonus
    return bonus


# ==================== Achievements ====================

def _achievement_metrics(ledger: PreferenceLedger) -> Dict[str, int]:
    stats = ledger.stats
    return {
        "contributions": stats.total_likes + stats.total_dislikes + stats.total_deletes,
        "longest_streak": stats.longest_streak,
        "styles": sum(1 for category, entry in ledger.iter_scores() if category == "style" and entry.score > 0),
        "dislikes": stats.total_dislikes,
        "balanced": min(stats.total_likes, stats.total_dislikes),
    }


def evaluate_achievements(ledger: PreferenceLedger) -> List[AchievementProgress]:
    """모든 업적의 진행도 (ACHIEVEMENTS 순서)"""
    metrics = _achievement_metrics(ledger)
    return [AchievementProgress(achievement=a, current=metrics.get(a.metric, 0)) for a in ACHIEVEMENTS]


def unlocked_achievements(ledger: PreferenceLedger) -> List[str]:
    return [p.achievement.id for p in evaluate_achievements(ledger) if p.unlocked]


# ==================== Taste ====================

def compute_taste_score(ledger: PreferenceLedger) -> float:
    """
    취향 명확도 (0~1)

    점수가 있는 키워드 중 |score| >= 2 인 비율, 데이터가 없으면 0.5
    """
    scored = [entry for _, entry in ledger.iter_scores() if entry.score != 0]
    if not scored:
        return DEFAULT_TASTE_SCORE
    decisive = sum(1 for entry in scored if abs(entry.score) >= DECISIVE_SCORE)
    return decisive / len(scored)


def compute_expertise_tags(ledger: PreferenceLedger, limit: int = MAX_EXPERTISE_TAGS) -> List[str]:
    """양수 점수 합이 큰 카테고리 상위 limit개 (custom 제외)"""
    totals = {}
    for category, entry in ledger.iter_scores():
        if category == CUSTOM_CATEGORY or entry.score <= 0:
            continue
        totals[category] = totals.get(category, 0) + entry.score
    ranked = sorted(totals.items(), key=lambda x: (-x[1], x[0]))
    return [category for category, _ in ranked[:limit]]


def build_contributor_stats(ledger: PreferenceLedger, consent_enabled: bool = False) -> ContributorStats:
    stats = ledger.stats
    points = compute_points(stats)
    return ContributorStats(
        total_contributions=stats.total_likes + stats.total_dislikes + stats.total_deletes,
        total_points=points,
        current_tier=tier_for(points),
        taste_score=compute_taste_score(ledger),
        expertise_tags=compute_expertise_tags(ledger),
        consent_enabled=consent_enabled,
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
        achievements=unlocked_achievements(ledger),
    )
