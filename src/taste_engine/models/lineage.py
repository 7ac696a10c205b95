"""
프롬프트 계보 데이터 모델

최적화된 프롬프트 버전 사이의 부모-자식 관계
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime


class EditMode(Enum):
    """새 버전이 만들어진 방식"""
    MANUAL = "manual"       # 사용자가 직접 작성/수정
    ENHANCE = "enhance"
    EXPAND = "expand"
    STYLE = "style"
    PARAMS = "params"


@dataclass(frozen=True)
class LineageNode:
    """
    계보 노드 (생성 후 변경 불가)

    parent_id가 None이면 루트
    """
    content: str
    platform: str
    parent_id: Optional[str] = None
    mode: EditMode = EditMode.MANUAL
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "platform": self.platform,
            "parent_id": self.parent_id,
            "mode": self.mode.value,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineageNode":
        return cls(
            id=data["id"],
            content=data["content"],
            platform=data.get("platform", "unknown"),
            parent_id=data.get("parent_id"),
            mode=EditMode(data.get("mode", EditMode.MANUAL.value)),
            created_at=data.get("created_at", datetime.now().isoformat()),
        )

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass
class LineageTree:
    """build_tree 결과 (노드 + 하위 트리)"""
    node: LineageNode
    children: List["LineageTree"] = field(default_factory=list)
    depth: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node": self.node.to_dict(),
            "children": [c.to_dict() for c in self.children],
            "depth": self.depth,
        }

    def size(self) -> int:
        return 1 + sum(child.size() for child in self.children)


@dataclass
class LineageStats:
    """계보 통계"""
    total_nodes: int = 0
    total_roots: int = 0
    avg_depth: float = 0.0
    platform_counts: Dict[str, int] = field(default_factory=dict)
    mode_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_nodes": self.total_nodes,
            "total_roots": self.total_roots,
            "avg_depth": self.avg_depth,
            "platform_counts": self.platform_counts,
            "mode_counts": self.mode_counts,
        }
