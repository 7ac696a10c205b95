"""
Lineage Graph

프롬프트 버전 계보 (forest)

- id → node 인덱스와 부모 id만으로 구성 (노드는 불변)
- 조상 체인 조회는 O(depth)
- 존재하지 않는 부모를 참조하면 NotFoundError, 그래프는 변경되지 않음
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from loguru import logger

from .errors import NotFoundError
from .models import EditMode, LineageNode, LineageTree, LineageStats
from .utils.keywords import keyword_similarity


DEFAULT_MAX_TREE_DEPTH = 10
DEFAULT_SIMILARITY_THRESHOLD = 0.3


class LineageGraph:
    """
    프롬프트 계보 그래프

    사용 예시:
        graph = LineageGraph()
        root = graph.add_node("a cat", "midjourney")
        child = graph.add_node("a cat, cinematic lighting", "midjourney",
                               parent_id=root.id, mode=EditMode.ENHANCE)

        graph.get_ancestor_chain(child.id)   # [root, child]
        graph.get_children(root.id)          # [child]
    """

    def __init__(self):
        self._nodes: Dict[str, LineageNode] = {}
        self._children: Dict[str, List[str]] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    # ==================== Mutation ====================

    def add_node(
        self,
        content: str,
        platform: str,
        parent_id: Optional[str] = None,
        mode: Union[EditMode, str] = EditMode.MANUAL,
        now: Optional[datetime] = None,
    ) -> LineageNode:
        """
        노드 추가

        Raises:
            NotFoundError: parent_id가 그래프에 없음
            ValueError: 알 수 없는 mode
        """
        if parent_id is not None and parent_id not in self._nodes:
            raise NotFoundError("lineage parent", parent_id)

        node = LineageNode(
            content=content,
            platform=platform,
            parent_id=parent_id,
            mode=EditMode(mode),
            created_at=(now or datetime.now()).isoformat(),
        )
        self._insert(node)
        logger.debug(f"Lineage node added: {node.id} (parent={parent_id}, mode={node.mode.value})")
        return node

    def _insert(self, node: LineageNode) -> None:
        if node.parent_id is not None and node.parent_id not in self._nodes:
            raise NotFoundError("lineage parent", node.parent_id)
        self._nodes[node.id] = node
        self._children[node.id] = []
        if node.parent_id is not None:
            self._children[node.parent_id].append(node.id)

    # ==================== Queries ====================

    def get_node(self, node_id: str) -> LineageNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NotFoundError("lineage node", node_id)
        return node

    def get_ancestor_chain(self, node_id: str) -> List[LineageNode]:
        """
        루트 → 노드 순서의 조상 체인

        Raises:
            NotFoundError: node_id가 그래프에 없음
        """
        chain = [self.get_node(node_id)]
        while chain[-1].parent_id is not None:
            chain.append(self._nodes[chain[-1].parent_id])
        chain.reverse()
        return chain

    def get_children(self, node_id: str) -> List[LineageNode]:
        """직계 자식 (추가된 순서)"""
        self.get_node(node_id)
        return [self._nodes[child_id] for child_id in self._children[node_id]]

    def get_roots(self) -> List[LineageNode]:
        return [node for node in self._nodes.values() if node.parent_id is None]

    def get_depth(self, node_id: str) -> int:
        """루트 깊이 = 0"""
        return len(self.get_ancestor_chain(node_id)) - 1

    def nodes(self) -> List[LineageNode]:
        return list(self._nodes.values())

    def build_tree(self, root_id: str, max_depth: int = DEFAULT_MAX_TREE_DEPTH) -> LineageTree:
        """root_id 아래 하위 트리 (max_depth 이후는 잘라냄)"""
        return self._build(self.get_node(root_id), 0, max_depth)

    def _build(self, node: LineageNode, depth: int, max_depth: int) -> LineageTree:
        tree = LineageTree(node=node, depth=depth)
        if depth < max_depth:
            tree.children = [
                self._build(self._nodes[child_id], depth + 1, max_depth)
                for child_id in self._children[node.id]
            ]
        return tree

    def get_all_trees(self, max_depth: int = DEFAULT_MAX_TREE_DEPTH) -> List[LineageTree]:
        return [self.build_tree(root.id, max_depth) for root in self.get_roots()]

    def find_similar(
        self,
        content: str,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> List[Tuple[LineageNode, float]]:
        """키워드 유사도 threshold 이상인 노드 (유사도 내림차순)"""
        matches = []
        for node in self._nodes.values():
            similarity = keyword_similarity(content, node.content)
            if similarity >= threshold:
                matches.append((node, similarity))
        matches.sort(key=lambda x: -x[1])
        return matches

    def get_stats(self) -> LineageStats:
        """
        계보 통계

        avg_depth는 리프 노드 깊이의 평균
        """
        stats = LineageStats(total_nodes=len(self._nodes), total_roots=len(self.get_roots()))

        leaf_depths = []
        for node in self._nodes.values():
            stats.platform_counts[node.platform] = stats.platform_counts.get(node.platform, 0) + 1
            mode = node.mode.value
            stats.mode_counts[mode] = stats.mode_counts.get(mode, 0) + 1
            if not self._children[node.id]:
                leaf_depths.append(self.get_depth(node.id))

        if leaf_depths:
            stats.avg_depth = sum(leaf_depths) / len(leaf_depths)
        return stats

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """노드를 추가된 순서로 저장 (부모가 항상 먼저)"""
        return {"nodes": [node.to_dict() for node in self._nodes.values()]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineageGraph":
        """
        Raises:
            NotFoundError: 부모보다 먼저 저장된 노드 (손상된 데이터)
        """
        graph = cls()
        for node_data in data.get("nodes", []):
            graph._insert(LineageNode.from_dict(node_data))
        return graph
