"""
Keyword Extractor

프롬프트 텍스트에서 의미 있는 키워드를 추출하고 카테고리를 분류
- 소문자 변환, 구두점 제거 (단어 내부 하이픈 유지)
- 3글자 미만 토큰 및 불용어 제외
- 중복 제거
"""

import re
from typing import Dict, List, Optional, Set


STOP_WORDS: Set[str] = {
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
    "be", "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "shall", "can", "need", "dare", "ought",
    "used", "it", "its", "this", "that", "these", "those", "i", "you", "he",
    "she", "we", "they", "what", "which", "who", "whom", "whose", "where",
    "when", "why", "how", "all", "each", "every", "both", "few", "more",
    "most", "other", "some", "such", "no", "nor", "not", "only", "own",
    "same", "so", "than", "too", "very", "just", "also", "now", "here",
}

MIN_KEYWORD_LENGTH = 3

# 키워드 카테고리 (단일 토큰 기준)
KEYWORD_CATEGORIES: Dict[str, List[str]] = {
    # Visual
    "lighting": [
        "backlit", "chiaroscuro", "silhouette", "shadows", "volumetric",
        "golden", "sunset", "sunrise", "glow", "studio", "softbox", "strobe",
        "ambient", "rim", "lighting", "lit",
    ],
    "color": [
        "neon", "fluorescent", "chrome", "pastel", "muted", "blush", "earthy",
        "amber", "ochre", "sepia", "vibrant", "saturated", "desaturated",
        "monochrome", "grayscale", "teal",
    ],
    "style": [
        "cyberpunk", "futuristic", "sci-fi", "retro", "vintage", "analog",
        "nostalgic", "photorealistic", "cinematic", "surreal", "minimal",
        "abstract", "gothic", "gritty", "editorial", "noir",
    ],
    "mood": [
        "dark", "brooding", "mysterious", "haunting", "melancholic", "serene",
        "peaceful", "calm", "dreamy", "ethereal", "energetic", "uplifting",
        "intense", "powerful", "whimsical", "dramatic",
    ],
    "medium": [
        "watercolor", "oil", "painterly", "impressionist", "photograph",
        "film", "illustration", "sketch", "charcoal", "acrylic", "render",
    ],
    "camera": [
        "wide-angle", "fisheye", "panoramic", "bokeh", "telephoto", "85mm",
        "35mm", "50mm", "shallow", "macro", "closeup", "anamorphic",
    ],
    "quality": [
        "detailed", "8k", "4k", "sharp", "professional", "masterpiece",
    ],
    # Music
    "genre": [
        "pop", "rock", "hip-hop", "electronic", "jazz", "classical", "folk",
        "country", "metal", "indie", "lo-fi", "house", "techno", "trap",
        "soul", "funk", "blues", "reggae", "synthwave",
    ],
    "tempo": [
        "slow", "fast", "upbeat", "mid-tempo", "ballad", "uptempo", "downtempo",
    ],
    "instruments": [
        "guitar", "piano", "synth", "drums", "808s", "strings", "brass",
        "bass", "violin", "saxophone", "flute", "percussion",
    ],
    "vocals": [
        "vocals", "falsetto", "raspy", "smooth", "whispered", "harmonies",
        "auto-tune",
    ],
    # Video
    "movement": [
        "timelapse", "tracking", "dolly", "pan", "zoom", "crane", "steadicam",
        "handheld", "static", "orbital",
    ],
}

CUSTOM_CATEGORY = "custom"

# ============================================
# 플랫폼 → 매체 (image / music / video / text)
# ============================================
PLATFORM_MEDIA: Dict[str, str] = {
    "midjourney": "image",
    "dalle": "image",
    "stable-diffusion": "image",
    "leonardo": "image",
    "flux": "image",
    "suno": "music",
    "udio": "music",
    "runway": "video",
    "pika": "video",
    "higgsfield": "video",
    "chatgpt": "text",
    "claude": "text",
}

# 매체별로 의미 있는 카테고리 (text 및 알 수 없는 플랫폼은 전부 허용)
MEDIA_CATEGORIES: Dict[str, Set[str]] = {
    "image": {"lighting", "color", "style", "quality", "camera", "medium", "mood"},
    "music": {"genre", "tempo", "instruments", "vocals", "mood"},
    "video": {"lighting", "color", "style", "movement", "mood", "camera"},
}

# keyword -> category 역색인 (먼저 등록된 카테고리 우선)
_KEYWORD_INDEX: Dict[str, str] = {}
for _category, _keywords in KEYWORD_CATEGORIES.items():
    for _keyword in _keywords:
        _KEYWORD_INDEX.setdefault(_keyword, _category)

_PUNCTUATION_RE = re.compile(r"[^\w\s-]")


def _normalize_token(token: str) -> str:
    """양 끝 하이픈 제거 ("-neon-" → "neon", "sci-fi" 유지)"""
    return token.strip("-")


def extract_keywords(text: Optional[str]) -> Set[str]:
    """
    텍스트에서 키워드 집합 추출

    Args:
        text: 프롬프트 원문 (None 허용)

    Returns:
        중복 제거된 소문자 키워드 집합
    """
    if not text:
        return set()

    cleaned = _PUNCTUATION_RE.sub(" ", str(text).lower())
    keywords = set()
    for token in cleaned.split():
        token = _normalize_token(token)
        if len(token) < MIN_KEYWORD_LENGTH or token in STOP_WORDS:
            continue
        keywords.add(token)
    return keywords


def extract_keyword_list(text: Optional[str]) -> List[str]:
    """등장 순서를 유지한 키워드 리스트 (사유-키워드 연결용)"""
    if not text:
        return []

    cleaned = _PUNCTUATION_RE.sub(" ", str(text).lower())
    ordered: List[str] = []
    seen: Set[str] = set()
    for token in cleaned.split():
        token = _normalize_token(token)
        if len(token) < MIN_KEYWORD_LENGTH or token in STOP_WORDS or token in seen:
            continue
        seen.add(token)
        ordered.append(token)
    return ordered


def keyword_similarity(text_a: Optional[str], text_b: Optional[str]) -> float:
    """
    Jaccard 유사도

    두 텍스트의 키워드 집합 교집합 / 합집합, 합집합이 비면 0.0
    """
    words_a = extract_keywords(text_a)
    words_b = extract_keywords(text_b)
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def categorize_keyword(keyword: str) -> str:
    """키워드 카테고리 반환 (카탈로그에 없으면 "custom")"""
    return _KEYWORD_INDEX.get(keyword.lower(), CUSTOM_CATEGORY)


def categorize_keywords(keywords) -> Dict[str, List[str]]:
    """키워드들을 카테고리별로 묶기 (정렬된 순서)"""
    grouped: Dict[str, List[str]] = {}
    for keyword in sorted(keywords):
        grouped.setdefault(categorize_keyword(keyword), []).append(keyword)
    return grouped


def is_relevant_category(category: str, platform: Optional[str]) -> bool:
    """키워드 카테고리가 플랫폼 매체에 의미 있는지 (custom은 항상 True)"""
    if category == CUSTOM_CATEGORY:
        return True
    allowed = MEDIA_CATEGORIES.get(PLATFORM_MEDIA.get(platform or "", "text"))
    return allowed is None or category in allowed
