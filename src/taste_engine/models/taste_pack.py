"""
Taste Pack 데이터 모델

학습된 취향 차원을 내보내고 가져오기 위한 버전 관리 번들
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime


TASTE_PACK_VERSION = "1.0"


class TasteLayer(Enum):
    """취향 차원 레이어"""
    MOOD = "mood"
    PALETTE = "palette"
    LIGHT = "light"
    ERA = "era"
    LENS = "lens"
    FORM = "form"


class ImportMode(Enum):
    """가져오기 방식"""
    MERGE = "merge"         # 기존 값과 합침 (신뢰도 높은 값 유지)
    REPLACE = "replace"     # 기존 차원 값 전부 폐기 후 적용


@dataclass(frozen=True)
class TasteDimension:
    """
    카탈로그 차원 정의

    keywords: 기본 가중치 (apply_dimensions에서 사용)
    category: 키워드가 기록되는 ledger 카테고리
    """
    id: str
    name: str
    layer: TasteLayer
    category: str
    description: str
    keywords: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "layer": self.layer.value,
            "category": self.category,
            "description": self.description,
            "keywords": dict(self.keywords),
        }


@dataclass
class DimensionValue:
    """pack에 담긴 차원 값 (keyword → score)"""
    dimension_id: str
    keywords: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension_id": self.dimension_id,
            "keywords": dict(self.keywords),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DimensionValue":
        return cls(
            dimension_id=data["dimension_id"],
            keywords=dict(data.get("keywords", {})),
        )


@dataclass
class TastePack:
    """
    Taste Pack

    export 시 생성되고 import 시 소비됨 (영속 상태 아님)
    """
    name: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    dimensions: List[DimensionValue] = field(default_factory=list)
    format_version: str = TASTE_PACK_VERSION
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format_version": self.format_version,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "created_at": self.created_at,
            "dimensions": [d.to_dict() for d in self.dimensions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TastePack":
        return cls(
            format_version=data["format_version"],
            name=data["name"],
            description=data.get("description", ""),
            tags=list(data.get("tags", [])),
            created_at=data.get("created_at", datetime.now().isoformat()),
            dimensions=[DimensionValue.from_dict(d) for d in data.get("dimensions", [])],
        )

    def get_dimension(self, dimension_id: str) -> Optional[DimensionValue]:
        return next((d for d in self.dimensions if d.dimension_id == dimension_id), None)


@dataclass
class ImportResult:
    """import_taste_pack 결과"""
    success: bool
    error: Optional[str] = None
    mode: Optional[str] = None
    dimensions_applied: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error,
            "mode": self.mode,
            "dimensions_applied": self.dimensions_applied,
        }
