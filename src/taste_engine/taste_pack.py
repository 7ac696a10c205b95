"""
Taste Pack Codec

고정된 차원 카탈로그 기준으로 학습된 취향을 내보내고 가져오기

- export: ledger에서 liked 상태인 카탈로그 키워드를 차원별로 묶어 버전 태그와 함께 반환
- import (replace): 카탈로그 키워드 점수를 모두 지운 뒤 pack 값 적용
- import (merge): 키워드 합집합, 키워드별로 |score|가 큰 값 유지
- 검증이 끝난 뒤에만 ledger를 변경 (잘못된 pack은 일부도 적용되지 않음)
"""

import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from loguru import logger

from .errors import InvalidFormatError, NotFoundError
from .ledger import PreferenceLedger
from .models import (
    TASTE_PACK_VERSION,
    TasteLayer,
    ImportMode,
    TasteDimension,
    DimensionValue,
    TastePack,
    LIKED_THRESHOLD,
)


SUPPORTED_VERSIONS = {TASTE_PACK_VERSION}
REQUIRED_FIELDS = ("format_version", "name", "dimensions")


# ============================================
# 레이어 / 차원 카탈로그
# ============================================
TASTE_LAYERS: Dict[TasteLayer, Dict[str, str]] = {
    TasteLayer.MOOD: {"name": "Mood", "description": "Emotional tone of the output"},
    TasteLayer.PALETTE: {"name": "Palette", "description": "Color families and saturation"},
    TasteLayer.LIGHT: {"name": "Light", "description": "Lighting setup and time of day"},
    TasteLayer.ERA: {"name": "Era", "description": "Period and genre aesthetics"},
    TasteLayer.LENS: {"name": "Lens", "description": "Camera, focal length and depth"},
    TasteLayer.FORM: {"name": "Form", "description": "Medium and rendering technique"},
}

TASTE_DIMENSIONS: List[TasteDimension] = [
    # Mood
    TasteDimension(
        id="mood-brooding", name="Brooding", layer=TasteLayer.MOOD, category="mood",
        description="Dark, mysterious, dramatic atmospheres",
        keywords={"dark": 3, "brooding": 3, "dramatic": 3, "mysterious": 2, "haunting": 2, "melancholic": 2},
    ),
    TasteDimension(
        id="mood-serene", name="Serene", layer=TasteLayer.MOOD, category="mood",
        description="Calm, dreamy and ethereal scenes",
        keywords={"serene": 3, "dreamy": 3, "ethereal": 2, "peaceful": 2, "calm": 2},
    ),
    TasteDimension(
        id="mood-energetic", name="Energetic", layer=TasteLayer.MOOD, category="mood",
        description="High energy and uplifting",
        keywords={"energetic": 3, "uplifting": 2, "intense": 2, "powerful": 2},
    ),
    # Palette
    TasteDimension(
        id="palette-neon", name="Neon", layer=TasteLayer.PALETTE, category="color",
        description="Electric, saturated neon and chrome",
        keywords={"neon": 3, "chrome": 2, "fluorescent": 2, "saturated": 2, "vibrant": 2},
    ),
    TasteDimension(
        id="palette-earthy", name="Earthy", layer=TasteLayer.PALETTE, category="color",
        description="Warm natural pigments",
        keywords={"earthy": 3, "amber": 2, "ochre": 2, "sepia": 2},
    ),
    TasteDimension(
        id="palette-pastel", name="Pastel", layer=TasteLayer.PALETTE, category="color",
        description="Soft, muted, low saturation",
        keywords={"pastel": 3, "muted": 2, "blush": 2, "desaturated": 2},
    ),
    TasteDimension(
        id="palette-mono", name="Monochrome", layer=TasteLayer.PALETTE, category="color",
        description="Black and white, single hue",
        keywords={"monochrome": 3, "grayscale": 2, "teal": 2},
    ),
    # Light
    TasteDimension(
        id="light-low-key", name="Low Key", layer=TasteLayer.LIGHT, category="lighting",
        description="Deep shadows and rim light",
        keywords={"chiaroscuro": 3, "shadows": 2, "silhouette": 2, "backlit": 2, "rim": 2, "volumetric": 2},
    ),
    TasteDimension(
        id="light-golden", name="Golden Hour", layer=TasteLayer.LIGHT, category="lighting",
        description="Warm sun at the edges of the day",
        keywords={"golden": 3, "sunset": 2, "sunrise": 2, "glow": 2},
    ),
    TasteDimension(
        id="light-studio", name="Studio", layer=TasteLayer.LIGHT, category="lighting",
        description="Controlled studio lighting",
        keywords={"studio": 3, "softbox": 2, "strobe": 2},
    ),
    # Era
    TasteDimension(
        id="era-retro", name="Retro", layer=TasteLayer.ERA, category="style",
        description="Vintage and analog nostalgia",
        keywords={"retro": 3, "vintage": 3, "analog": 2, "nostalgic": 2},
    ),
    TasteDimension(
        id="era-futuristic", name="Futuristic", layer=TasteLayer.ERA, category="style",
        description="Sci-fi and cyberpunk futures",
        keywords={"futuristic": 3, "cyberpunk": 3, "sci-fi": 2},
    ),
    TasteDimension(
        id="era-noir", name="Noir", layer=TasteLayer.ERA, category="style",
        description="Gothic and gritty noir",
        keywords={"noir": 3, "gothic": 2, "gritty": 2},
    ),
    # Lens
    TasteDimension(
        id="lens-wide", name="Wide", layer=TasteLayer.LENS, category="camera",
        description="Wide and panoramic framing",
        keywords={"wide-angle": 3, "fisheye": 2, "panoramic": 2},
    ),
    TasteDimension(
        id="lens-portrait", name="Portrait", layer=TasteLayer.LENS, category="camera",
        description="Telephoto compression and bokeh",
        keywords={"bokeh": 3, "telephoto": 2, "85mm": 2, "shallow": 2},
    ),
    TasteDimension(
        id="lens-macro", name="Macro", layer=TasteLayer.LENS, category="camera",
        description="Extreme close detail",
        keywords={"macro": 3, "closeup": 2},
    ),
    TasteDimension(
        id="lens-film", name="Film Camera", layer=TasteLayer.LENS, category="camera",
        description="Classic film focal lengths",
        keywords={"anamorphic": 3, "35mm": 2, "50mm": 2},
    ),
    # Form
    TasteDimension(
        id="form-painterly", name="Painterly", layer=TasteLayer.FORM, category="medium",
        description="Traditional paint media",
        keywords={"painterly": 3, "watercolor": 2, "oil": 2, "impressionist": 2, "acrylic": 2},
    ),
    TasteDimension(
        id="form-photographic", name="Photographic", layer=TasteLayer.FORM, category="medium",
        description="Photograph and film stock",
        keywords={"photograph": 3, "film": 2},
    ),
    TasteDimension(
        id="form-graphic", name="Graphic", layer=TasteLayer.FORM, category="medium",
        description="Drawn and illustrated",
        keywords={"illustration": 3, "sketch": 2, "charcoal": 2},
    ),
]


def get_dimension(dimension_id: str, catalog: Optional[List[TasteDimension]] = None) -> TasteDimension:
    """
    Raises:
        NotFoundError: 카탈로그에 없는 ID
    """
    for dimension in catalog or TASTE_DIMENSIONS:
        if dimension.id == dimension_id:
            return dimension
    raise NotFoundError("taste dimension", dimension_id)


def get_dimensions_by_layer(layer: Union[TasteLayer, str]) -> List[TasteDimension]:
    layer = TasteLayer(layer)
    return [d for d in TASTE_DIMENSIONS if d.layer == layer]


# ============================================
# 프리셋
# ============================================
def _preset(name: str, description: str, tags: List[str], dimensions: Dict[str, Dict[str, int]]) -> TastePack:
    return TastePack(
        name=name,
        description=description,
        tags=tags,
        dimensions=[DimensionValue(dimension_id=d, keywords=kws) for d, kws in dimensions.items()],
        created_at="2024-01-01T00:00:00",
    )


TASTE_PRESETS: List[TastePack] = [
    _preset(
        "Shadow Theatre",
        "Moody, dramatic visuals with rich shadows and cinematic color grading",
        ["cinematic", "dark", "moody", "dramatic"],
        {
            "mood-brooding": {"dramatic": 3, "mysterious": 3, "dark": 3, "haunting": 2},
            "light-low-key": {"chiaroscuro": 3, "shadows": 3, "rim": 2, "volumetric": 2},
            "palette-pastel": {"pastel": -2},
        },
    ),
    _preset(
        "Mist & Honey",
        "Soft, dreamy aesthetics with pastel colors and gentle lighting",
        ["ethereal", "dreamy", "soft", "pastel"],
        {
            "mood-serene": {"dreamy": 3, "ethereal": 3, "serene": 2, "peaceful": 2},
            "palette-pastel": {"pastel": 3, "blush": 2, "muted": 2},
            "light-golden": {"golden": 3, "glow": 2},
            "era-noir": {"gritty": -2},
        },
    ),
    _preset(
        "Chrome Rain",
        "Neon-soaked cyberpunk streets and reflective chrome",
        ["cyberpunk", "neon", "futuristic"],
        {
            "era-futuristic": {"cyberpunk": 3, "futuristic": 3, "sci-fi": 2},
            "palette-neon": {"neon": 3, "chrome": 3, "fluorescent": 2},
            "light-low-key": {"volumetric": 2, "backlit": 2},
            "lens-film": {"anamorphic": 2},
        },
    ),
    _preset(
        "Analog Soul",
        "Warm film grain, vintage tones and nostalgic framing",
        ["vintage", "film", "analog", "warm"],
        {
            "era-retro": {"vintage": 3, "analog": 3, "nostalgic": 2},
            "palette-earthy": {"sepia": 2, "amber": 2, "earthy": 2},
            "lens-film": {"35mm": 3},
            "form-photographic": {"film": 3, "photograph": 2},
        },
    ),
]


def list_presets() -> List[str]:
    return [p.name for p in TASTE_PRESETS]


def get_preset(name: str) -> Optional[TastePack]:
    """이름으로 프리셋 조회 (대소문자 무시), 없으면 None"""
    for preset in TASTE_PRESETS:
        if preset.name.lower() == name.lower():
            return TastePack.from_dict(preset.to_dict())
    return None


# ============================================
# Codec
# ============================================
class TastePackCodec:
    """
    Taste Pack 내보내기 / 가져오기

    사용 예시:
        codec = TastePackCodec()
        pack = codec.export(ledger, "My Taste", "night city vibes", ["neon"])
        text = codec.to_json(pack)

        # 다른 기기에서
        codec.import_pack(ledger, codec.from_json(text), ImportMode.REPLACE)
    """

    def __init__(self, catalog: Optional[List[TasteDimension]] = None, liked_threshold: int = LIKED_THRESHOLD):
        self.catalog = catalog or TASTE_DIMENSIONS
        self.liked_threshold = liked_threshold

    # ==================== Export ====================

    def export(
        self,
        ledger: PreferenceLedger,
        name: str,
        description: str = "",
        tags: Optional[Iterable[str]] = None,
        now: Optional[datetime] = None,
    ) -> TastePack:
        """liked 상태의 카탈로그 키워드를 차원별 값으로 내보내기"""
        dimensions = []
        for dimension in self.catalog:
            values = {}
            for keyword in dimension.keywords:
                score = ledger.get_score(dimension.category, keyword)
                if score >= self.liked_threshold:
                    values[keyword] = score
            if values:
                dimensions.append(DimensionValue(dimension_id=dimension.id, keywords=values))

        pack = TastePack(
            name=name,
            description=description,
            tags=list(tags or []),
            dimensions=dimensions,
            created_at=(now or datetime.now()).isoformat(),
        )
        logger.info(f"Exported taste pack '{name}' with {len(dimensions)} dimensions")
        return pack

    # ==================== Validation ====================

    def validate(self, pack: Union[TastePack, Dict[str, Any]]) -> TastePack:
        """
        pack 형식 검사 후 정규화된 TastePack 반환

        Raises:
            InvalidFormatError: 지원하지 않는 버전, 필수 필드 누락, 잘못된 값
            NotFoundError: 카탈로그에 없는 dimension ID
        """
        data = pack.to_dict() if isinstance(pack, TastePack) else pack
        if not isinstance(data, dict):
            raise InvalidFormatError("Taste pack must be an object")

        missing = [f for f in REQUIRED_FIELDS if data.get(f) is None]
        if missing:
            raise InvalidFormatError(f"Taste pack missing required fields: {', '.join(missing)}")

        if not isinstance(data["format_version"], str) or data["format_version"] not in SUPPORTED_VERSIONS:
            raise InvalidFormatError(f"Unsupported taste pack version: {data['format_version']}")
        if not isinstance(data["name"], str) or not data["name"].strip():
            raise InvalidFormatError("Taste pack name must be a non-empty string")
        if not isinstance(data.get("description", ""), str):
            raise InvalidFormatError("Taste pack description must be a string")
        tags = data.get("tags", [])
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise InvalidFormatError("Taste pack tags must be a list of strings")
        if not isinstance(data["dimensions"], list):
            raise InvalidFormatError("Taste pack dimensions must be a list")

        seen = set()
        for item in data["dimensions"]:
            if not isinstance(item, dict) or not isinstance(item.get("dimension_id"), str):
                raise InvalidFormatError("Each dimension needs a string dimension_id")
            dimension_id = item["dimension_id"]
            if dimension_id in seen:
                raise InvalidFormatError(f"Duplicate dimension: {dimension_id}")
            seen.add(dimension_id)

            dimension = get_dimension(dimension_id, self.catalog)
            keywords = item.get("keywords")
            if not isinstance(keywords, dict):
                raise InvalidFormatError(f"Dimension {dimension_id} keywords must be an object")
            for keyword, score in keywords.items():
                if keyword not in dimension.keywords:
                    raise InvalidFormatError(f"Keyword '{keyword}' is not part of dimension {dimension_id}")
                if not isinstance(score, int) or isinstance(score, bool):
                    raise InvalidFormatError(f"Score for '{keyword}' must be an integer")

        return TastePack.from_dict(data)

    # ==================== Import ====================

    def import_pack(
        self,
        ledger: PreferenceLedger,
        pack: Union[TastePack, Dict[str, Any]],
        mode: Union[ImportMode, str] = ImportMode.MERGE,
        now: Optional[datetime] = None,
    ) -> int:
        """
        pack 적용

        Returns:
            적용된 차원 수

        Raises:
            InvalidFormatError / NotFoundError: 검증 실패 (ledger 변경 없음)
        """
        try:
            mode = ImportMode(mode)
        except ValueError:
            raise InvalidFormatError(f"Unknown import mode: {mode}")

        validated = self.validate(pack)
        now = now or datetime.now()

        if mode == ImportMode.REPLACE:
            for dimension in self.catalog:
                for keyword in dimension.keywords:
                    ledger.remove_keyword(dimension.category, keyword)

        for value in validated.dimensions:
            dimension = get_dimension(value.dimension_id, self.catalog)
            for keyword, score in value.keywords.items():
                if mode == ImportMode.MERGE:
                    existing = ledger.scores.get(dimension.category, {}).get(keyword)
                    if existing is not None and abs(existing.score) >= abs(score):
                        continue
                ledger.set_score(dimension.category, keyword, score, now)

        ledger.stats.last_updated = now.isoformat()
        logger.info(
            f"Imported taste pack '{validated.name}' ({mode.value}, {len(validated.dimensions)} dimensions)"
        )
        return len(validated.dimensions)

    def build_dimension_pack(self, dimension_ids: Iterable[str], name: str = "Selected dimensions") -> TastePack:
        """카탈로그 기본 가중치로 pack 구성"""
        dimensions = []
        for dimension_id in dimension_ids:
            dimension = get_dimension(dimension_id, self.catalog)
            dimensions.append(DimensionValue(dimension_id=dimension.id, keywords=dict(dimension.keywords)))
        return TastePack(name=name, dimensions=dimensions)

    def apply_dimensions(
        self,
        ledger: PreferenceLedger,
        dimension_ids: Iterable[str],
        mode: Union[ImportMode, str] = ImportMode.MERGE,
        now: Optional[datetime] = None,
    ) -> int:
        """선택한 카탈로그 차원을 기본 가중치로 적용"""
        return self.import_pack(ledger, self.build_dimension_pack(dimension_ids), mode, now)

    # ==================== JSON ====================

    @staticmethod
    def to_json(pack: TastePack) -> str:
        return json.dumps(pack.to_dict(), ensure_ascii=False, indent=2)

    def from_json(self, text: str) -> TastePack:
        """
        Raises:
            InvalidFormatError: JSON 파싱 실패 또는 형식 오류
        """
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise InvalidFormatError(f"Taste pack is not valid JSON: {e}")
        return self.validate(data)
