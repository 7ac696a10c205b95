"""
Preference Context

학습된 취향을 리라이트 요청에 붙일 텍스트 블록으로 변환하고,
작성 중인 프롬프트를 취향 기준으로 점검
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import ContextConfig
from .ledger import PreferenceLedger
from .utils.keywords import extract_keywords, is_relevant_category, CUSTOM_CATEGORY


CONTEXT_HEADER = "USER TASTE PREFERENCES (learned from feedback):"

TRASH_REASON_DESCRIPTIONS = {
    "poor-quality": "low quality",
    "wrong-style": "wrong style",
    "doesnt-match": "prompt mismatch",
    "too-similar": "repetitive results",
    "wrong-composition": "poor composition",
}

LIKE_REASON_DESCRIPTIONS = {
    "great-style": "distinctive style",
    "perfect-colors": "color harmony",
    "matches-intent": "intent accuracy",
    "unique": "creativity & uniqueness",
    "technical-quality": "high quality output",
}

_GENERIC_REASONS = {"skipped", "other"}

# analyze_prompt 점수
BASE_PROMPT_SCORE = 50
AVOID_PENALTY = 10
LIKED_BONUS = 5
MAX_SUGGESTIONS = 3
ANALYSIS_KEYWORD_LIMIT = 20


@dataclass
class PromptAnalysis:
    """프롬프트 점검 결과"""
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    score: int = BASE_PROMPT_SCORE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warnings": self.warnings,
            "suggestions": self.suggestions,
            "score": self.score,
        }


def _top_reasons(tally: Dict[str, int], limit: int, descriptions: Dict[str, str]) -> List[str]:
    ranked = sorted(
        ((r, c) for r, c in tally.items() if r not in _GENERIC_REASONS),
        key=lambda x: (-x[1], x[0]),
    )
    return [descriptions.get(reason, reason) for reason, _ in ranked[:limit]]


def _for_platform(ledger: PreferenceLedger, keywords: List[str], platform: Optional[str]) -> List[str]:
    """플랫폼 매체에 맞지 않는 카테고리의 키워드 제외"""
    if not platform:
        return keywords
    categories = {entry.keyword: category for category, entry in ledger.iter_scores()}
    return [kw for kw in keywords if is_relevant_category(categories.get(kw, CUSTOM_CATEGORY), platform)]


def build_preference_context(
    ledger: PreferenceLedger,
    config: Optional[ContextConfig] = None,
    platform: Optional[str] = None,
) -> str:
    """
    리라이트 요청용 선호 컨텍스트

    platform을 주면 해당 매체에 의미 있는 카테고리의 키워드만 포함 (suno에는 조명/색 제외 등)

    예시:
        USER TASTE PREFERENCES (learned from feedback):
        STRONGLY INCORPORATE: cinematic, neon
        AVOID: cartoon
        User often deletes due to: low quality - avoid these issues

    Returns:
        학습된 내용이 없으면 빈 문자열
    """
    config = config or ContextConfig()
    liked = _for_platform(ledger, ledger.get_liked_keywords(), platform)[:config.MAX_LIKED]
    avoid = _for_platform(ledger, ledger.get_avoid_keywords(), platform)[:config.MAX_AVOID]
    trash = _top_reasons(ledger.trash_reasons, config.MAX_TRASH_REASONS, TRASH_REASON_DESCRIPTIONS)
    valued = _top_reasons(ledger.like_reasons, 3, LIKE_REASON_DESCRIPTIONS)

    lines = []
    if liked:
        lines.append(f"STRONGLY INCORPORATE: {', '.join(liked)}")
    if avoid:
        lines.append(f"AVOID: {', '.join(avoid)}")
    if valued:
        lines.append(f"User specifically values: {', '.join(valued)}")
    if trash:
        lines.append(f"User often deletes due to: {', '.join(trash)} - avoid these issues")

    if not lines:
        return ""
    return "\n".join([CONTEXT_HEADER] + lines)


def analyze_prompt(ledger: PreferenceLedger, prompt: str) -> PromptAnalysis:
    """
    프롬프트 점검

    50점에서 시작해 회피 키워드마다 -10, 선호 키워드마다 +5 (0~100)
    프롬프트에 없는 선호 키워드 상위 3개를 제안
    """
    keywords = extract_keywords(prompt)
    liked = ledger.get_liked_keywords()[:ANALYSIS_KEYWORD_LIMIT]
    avoid = set(ledger.get_avoid_keywords()[:ANALYSIS_KEYWORD_LIMIT])

    analysis = PromptAnalysis()
    score = BASE_PROMPT_SCORE

    for keyword in sorted(keywords & avoid):
        analysis.warnings.append(f'"{keyword}" - you\'ve disliked outputs with this before')
        score -= AVOID_PENALTY

    used = [kw for kw in liked if kw in keywords]
    score += len(used) * LIKED_BONUS

    missing = [kw for kw in liked if kw not in keywords][:MAX_SUGGESTIONS]
    for keyword in missing:
        analysis.suggestions.append(f'Consider adding "{keyword}" - you\'ve liked outputs with this')

    analysis.score = max(0, min(100, score))
    return analysis
