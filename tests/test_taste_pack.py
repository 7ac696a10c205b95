from datetime import datetime

from src.taste_engine.errors import InvalidFormatError, NotFoundError
from src.taste_engine.ledger import PreferenceLedger
from src.taste_engine.models import ImportMode, TastePack, DimensionValue
from src.taste_engine.taste_pack import (
    TASTE_DIMENSIONS,
    TastePackCodec,
    get_dimension,
    get_dimensions_by_layer,
    get_preset,
    list_presets,
)
from src.taste_engine.utils.keywords import categorize_keyword
import pytest


NOW = datetime(2024, 3, 1)


@pytest.fixture
def codec():
    return TastePackCodec()


def _values(pack):
    return {d.dimension_id: d.keywords for d in pack.dimensions}


def _ledger(scores):
    ledger = PreferenceLedger()
    for (category, keyword), score in scores.items():
        ledger.apply_delta(category, keyword, score, NOW)
    return ledger


def test_catalog_keywords_are_unique_and_categorized():
    seen = set()
    for dimension in TASTE_DIMENSIONS:
        for keyword in dimension.keywords:
            assert keyword not in seen
            seen.add(keyword)
            assert categorize_keyword(keyword) == dimension.category


def test_dimension_lookup():
    assert get_dimension("palette-neon").category == "color"
    assert {d.id for d in get_dimensions_by_layer("lens")} >= {"lens-wide", "lens-macro"}
    with pytest.raises(NotFoundError):
        get_dimension("palette-plaid")


def test_export_only_liked_catalog_keywords(codec):
    ledger = _ledger({
        ("style", "cyberpunk"): 3,
        ("color", "neon"): 2,
        ("color", "pastel"): 1,
        ("custom", "city"): 5,
    })

    pack = codec.export(ledger, "Night City", "neon rain", ["cyberpunk"], now=NOW)

    assert pack.format_version == "1.0"
    assert pack.name == "Night City"
    assert pack.tags == ["cyberpunk"]
    assert _values(pack) == {
        "palette-neon": {"neon": 2},
        "era-futuristic": {"cyberpunk": 3},
    }


def test_replace_roundtrip_restores_exported_dimensions(codec):
    source = _ledger({
        ("style", "cyberpunk"): 3,
        ("color", "neon"): 4,
        ("lighting", "volumetric"): 2,
    })
    pack = codec.export(source, "Export", now=NOW)

    target = _ledger({
        ("style", "vintage"): 5,
        ("color", "neon"): 9,
        ("camera", "bokeh"): -3,
        ("custom", "city"): 2,
    })
    codec.import_pack(target, pack, ImportMode.REPLACE, NOW)

    again = codec.export(target, "Export", now=NOW)
    assert [d.to_dict() for d in again.dimensions] == [d.to_dict() for d in pack.dimensions]
    # 카탈로그 밖 키워드는 유지, 카탈로그 키워드는 pack 값만 남음
    assert target.get_score("custom", "city") == 2
    assert target.get_score("style", "vintage") == 0
    assert target.get_score("camera", "bokeh") == 0


def test_merge_keeps_higher_magnitude(codec):
    ledger = _ledger({
        ("color", "neon"): 3,
        ("color", "chrome"): 1,
        ("color", "fluorescent"): -4,
        ("style", "vintage"): 2,
    })
    pack = TastePack(name="Incoming", dimensions=[
        DimensionValue("palette-neon", {"neon": 2, "chrome": 3, "fluorescent": 3, "saturated": 2}),
    ])

    codec.import_pack(ledger, pack, "merge", NOW)

    assert ledger.get_score("color", "neon") == 3
    assert ledger.get_score("color", "chrome") == 3
    assert ledger.get_score("color", "fluorescent") == -4
    assert ledger.get_score("color", "saturated") == 2
    assert ledger.get_score("style", "vintage") == 2


@pytest.mark.parametrize(
    "data, error",
    [
        ({"format_version": "2.0", "name": "x", "dimensions": []}, InvalidFormatError),
        ({"format_version": ["1.0"], "name": "x", "dimensions": []}, InvalidFormatError),
        ({"format_version": {"major": 1}, "name": "x", "dimensions": []}, InvalidFormatError),
        ({"name": "x", "dimensions": []}, InvalidFormatError),
        ({"format_version": "1.0", "dimensions": []}, InvalidFormatError),
        ({"format_version": "1.0", "name": "x"}, InvalidFormatError),
        ({"format_version": "1.0", "name": "", "dimensions": []}, InvalidFormatError),
        ({"format_version": "1.0", "name": "x", "tags": "neon", "dimensions": []}, InvalidFormatError),
        ({"format_version": "1.0", "name": "x", "dimensions": {}}, InvalidFormatError),
        (
            {"format_version": "1.0", "name": "x",
             "dimensions": [{"dimension_id": "palette-plaid", "keywords": {"neon": 2}}]},
            NotFoundError,
        ),
        (
            {"format_version": "1.0", "name": "x",
             "dimensions": [{"dimension_id": "palette-neon", "keywords": {"neon": "high"}}]},
            InvalidFormatError,
        ),
        (
            {"format_version": "1.0", "name": "x",
             "dimensions": [{"dimension_id": "palette-neon", "keywords": {"neon": True}}]},
            InvalidFormatError,
        ),
        (
            {"format_version": "1.0", "name": "x",
             "dimensions": [{"dimension_id": "palette-neon", "keywords": {"vintage": 2}}]},
            InvalidFormatError,
        ),
        ("not a pack", InvalidFormatError),
    ]
)
def test_invalid_packs_are_rejected_without_changes(codec, data, error):
    ledger = _ledger({("color", "neon"): 3})
    before = ledger.to_dict()

    with pytest.raises(error):
        codec.import_pack(ledger, data, ImportMode.REPLACE, NOW)

    assert ledger.to_dict() == before


def test_partially_valid_pack_never_applies(codec):
    ledger = _ledger({("color", "neon"): 3})
    before = ledger.to_dict()
    data = {
        "format_version": "1.0",
        "name": "half",
        "dimensions": [
            {"dimension_id": "era-retro", "keywords": {"vintage": 3}},
            {"dimension_id": "era-nowhere", "keywords": {"vintage": 3}},
        ],
    }

    with pytest.raises(NotFoundError):
        codec.import_pack(ledger, data, ImportMode.MERGE, NOW)
    assert ledger.to_dict() == before


def test_unknown_import_mode(codec, ledger):
    with pytest.raises(InvalidFormatError):
        codec.import_pack(ledger, TastePack(name="x"), "overwrite", NOW)


def test_json_roundtrip(codec):
    ledger = _ledger({("style", "cyberpunk"): 3})
    pack = codec.export(ledger, "Json", tags=["a"], now=NOW)
    assert codec.from_json(codec.to_json(pack)) == pack


def test_from_json_rejects_garbage(codec):
    with pytest.raises(InvalidFormatError):
        codec.from_json("{not json")


def test_presets():
    assert list_presets() == ["Shadow Theatre", "Mist & Honey", "Chrome Rain", "Analog Soul"]
    assert get_preset("chrome rain").name == "Chrome Rain"
    assert get_preset("Vaporwave") is None


@pytest.mark.parametrize("name", ["Shadow Theatre", "Mist & Honey", "Chrome Rain", "Analog Soul"])
def test_presets_are_valid_packs(codec, name):
    assert codec.validate(get_preset(name)).name == name


def test_apply_dimensions_uses_catalog_defaults(codec, ledger):
    codec.apply_dimensions(ledger, ["era-futuristic"], ImportMode.MERGE, NOW)
    assert ledger.get_score("style", "cyberpunk") == 3
    assert ledger.get_score("style", "sci-fi") == 2

    with pytest.raises(NotFoundError):
        codec.apply_dimensions(ledger, ["era-unknown"], ImportMode.MERGE, NOW)
