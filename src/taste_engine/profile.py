"""
Taste Profile Builder

피드백 delta로 TasteProfile을 점진적으로 갱신
- 긍정: frequent_keywords +1, 카테고리 리스트에 추가 (최대 5개, 최신 유지)
- 부정: frequent_keywords -1, 0이 되면 삭제
- rebuild: taste pack import 후 ledger의 liked 키워드로 재구성
"""

from datetime import datetime
from typing import Dict, Iterable, Optional

from .ledger import PreferenceLedger
from .models import ScoreDelta, TasteProfile, MAX_PROFILE_LIST


# ledger 카테고리 → 프로필 필드
PROFILE_FIELDS: Dict[str, str] = {
    "style": "visual_style",
    "color": "color_palette",
    "lighting": "lighting",
    "genre": "audio_genre",
    "mood": "mood",
}


def _push_recent(values, keyword: str, limit: int = MAX_PROFILE_LIST):
    if keyword in values:
        values.remove(keyword)
    values.append(keyword)
    del values[:-limit]


def apply_deltas(
    profile: TasteProfile,
    deltas: Iterable[ScoreDelta],
    now: Optional[datetime] = None,
) -> TasteProfile:
    """delta 부호에 따라 프로필 갱신 (in-place)"""
    changed = False
    for d in deltas:
        if d.delta > 0:
            profile.frequent_keywords[d.keyword] = profile.frequent_keywords.get(d.keyword, 0) + 1
            field_name = PROFILE_FIELDS.get(d.category)
            if field_name:
                _push_recent(getattr(profile, field_name), d.keyword)
            changed = True
        elif d.delta < 0 and d.keyword in profile.frequent_keywords:
            count = profile.frequent_keywords[d.keyword] - 1
            if count <= 0:
                del profile.frequent_keywords[d.keyword]
            else:
                profile.frequent_keywords[d.keyword] = count
            changed = True

    if changed:
        profile.updated_at = (now or datetime.now()).isoformat()
    return profile


def rebuild(
    ledger: PreferenceLedger,
    previous: Optional[TasteProfile] = None,
    now: Optional[datetime] = None,
) -> TasteProfile:
    """ledger의 liked 키워드로 프로필 재구성 (점수 높은 키워드가 리스트에 남음)"""
    timestamp = (now or datetime.now()).isoformat()
    profile = TasteProfile(
        created_at=previous.created_at if previous else timestamp,
        updated_at=timestamp,
    )

    liked = [
        (category, entry)
        for category, entry in ledger.iter_scores()
        if entry.is_liked()
    ]
    # 낮은 점수부터 push → 상위 MAX_PROFILE_LIST개가 남음
    liked.sort(key=lambda x: (x[1].score, x[1].keyword))
    for category, entry in liked:
        profile.frequent_keywords[entry.keyword] = entry.score
        field_name = PROFILE_FIELDS.get(category)
        if field_name:
            _push_recent(getattr(profile, field_name), entry.keyword)
    return profile
