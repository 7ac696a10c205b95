from src.taste_engine.utils.keywords import (
    extract_keywords,
    extract_keyword_list,
    keyword_similarity,
    categorize_keyword,
    categorize_keywords,
    is_relevant_category,
)
import pytest


def test_extract_keywords_lowercases_and_strips_punctuation():
    assert extract_keywords("Neon, Cyberpunk city!") == {"neon", "cyberpunk", "city"}


@pytest.mark.parametrize("text", [None, "", "   ", "a an the"])
def test_extract_keywords_empty_inputs(text):
    assert extract_keywords(text) == set()


def test_extract_keywords_drops_short_tokens_and_stop_words():
    assert extract_keywords("a cat in the rain") == {"cat", "rain"}


def test_extract_keywords_keeps_internal_hyphens():
    assert extract_keywords("sci-fi lo-fi -neon-") == {"sci-fi", "lo-fi", "neon"}


def test_extract_keywords_dedupes():
    assert extract_keywords("neon neon NEON") == {"neon"}


def test_extract_keyword_list_keeps_first_seen_order():
    assert extract_keyword_list("blurry flat portrait, blurry") == ["blurry", "flat", "portrait"]


def test_keyword_similarity_bounds():
    assert keyword_similarity("neon city", "city neon") == 1.0
    assert keyword_similarity("neon city", "pastel meadow") == 0.0
    assert keyword_similarity("", None) == 0.0


def test_keyword_similarity_partial_overlap():
    # {neon, city} vs {neon, rain} → 1 / 3
    assert keyword_similarity("neon city", "neon rain") == pytest.approx(1 / 3)


@pytest.mark.parametrize(
    "keyword, category",
    [
        ("neon", "color"),
        ("cyberpunk", "style"),
        ("chiaroscuro", "lighting"),
        ("bokeh", "camera"),
        ("lo-fi", "genre"),
        ("city", "custom"),
    ]
)
def test_categorize_keyword(keyword, category):
    assert categorize_keyword(keyword) == category


def test_categorize_keywords_groups_by_category():
    grouped = categorize_keywords({"neon", "pastel", "city"})
    assert grouped == {"color": ["neon", "pastel"], "custom": ["city"]}


@pytest.mark.parametrize(
    "category, platform, expected",
    [
        ("color", "midjourney", True),
        ("genre", "midjourney", False),
        ("genre", "suno", True),
        ("lighting", "suno", False),
        ("movement", "runway", True),
        ("quality", "runway", False),
        ("custom", "suno", True),
        ("genre", "chatgpt", True),
        ("genre", "unknown", True),
        ("genre", None, True),
    ]
)
def test_is_relevant_category(category, platform, expected):
    assert is_relevant_category(category, platform) is expected
