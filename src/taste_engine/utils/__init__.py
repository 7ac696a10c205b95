"""
Utils Package
"""
from .keywords import (
    extract_keywords,
    extract_keyword_list,
    keyword_similarity,
    categorize_keyword,
    categorize_keywords,
    KEYWORD_CATEGORIES,
    STOP_WORDS,
    CUSTOM_CATEGORY,
    PLATFORM_MEDIA,
    is_relevant_category,
)

__all__ = [
    "extract_keywords",
    "extract_keyword_list",
    "keyword_similarity",
    "categorize_keyword",
    "categorize_keywords",
    "KEYWORD_CATEGORIES",
    "STOP_WORDS",
    "CUSTOM_CATEGORY",
    "PLATFORM_MEDIA",
    "is_relevant_category",
]
