"""
Taste Engine

확장 프로그램/UI가 사용하는 단일 진입점

흐름:
    record_feedback → FeedbackClassifier → PreferenceLedger + TasteProfile → store("preferences")
    add_lineage_node → LineageGraph → store("lineage")
    export/import_taste_pack → TastePackCodec ↔ PreferenceLedger

각 공개 메서드는 키 하나에 대한 read-modify-write 단위이며,
저장 전에 실패하면 저장소는 변경되지 않음
모든 read-modify-write와 재시도 큐는 엔진 락 하나로 직렬화 (백그라운드 sweep과 동시 호출 가능)
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from loguru import logger

from .classifier import FeedbackClassifier
from . import config as settings
from .config import LedgerConfig, ContextConfig, SweepConfig
from .context import build_preference_context, analyze_prompt, PromptAnalysis
from .errors import StorageError, InvalidFormatError, NotFoundError
from .ledger import PreferenceLedger
from .lineage import LineageGraph
from .models import (
    ScoreDelta,
    TasteProfile,
    EditMode,
    LineageNode,
    ContributorStats,
    AchievementProgress,
    KeywordSuggestion,
    TastePack,
    ImportMode,
    ImportResult,
    PendingEvent,
    feedback_event_from_dict,
)
from .profile import apply_deltas as apply_profile_deltas, rebuild as rebuild_profile
from .reputation import build_contributor_stats, evaluate_achievements
from .storage import KeyValueStore, JsonFileStore
from .taste_pack import TastePackCodec, get_preset


PREFERENCES_KEY = "preferences"
LINEAGE_KEY = "lineage"
CONTRIBUTOR_KEY = "contributor"
RETRY_QUEUE_KEY = "retry_queue"


@dataclass
class SweepResult:
    """sweep 1회 결과"""
    retried: int = 0
    succeeded: int = 0
    failed: int = 0
    still_pending: int = 0
    decayed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "retried": self.retried,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "still_pending": self.still_pending,
            "decayed": self.decayed,
        }


class TasteEngine:
    """
    취향 학습 엔진

    사용 예시:
        engine = TasteEngine(store=MemoryStore())

        # 피드백 기록
        engine.record_feedback(RatingEvent(content="neon cyberpunk city", rating=5))
        engine.get_deep_preferences().get_liked_keywords()

        # 계보
        root = engine.add_lineage_node("a cat", "midjourney")
        child = engine.add_lineage_node("a cat, volumetric light", "midjourney",
                                        parent_id=root.id, mode="enhance")
        engine.get_lineage(child.id)        # [root, child]

        # 취향 팩
        pack = engine.export_taste_pack("Night City", "neon and rain", ["cyberpunk"])
        engine.import_taste_pack(pack, "replace")

    재시도 큐는 spool 저장소(기본: store와 같은 저장소)에 저장되어
    프로세스 재시작 후에도 이어서 재시도됨
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
        ledger_config: Optional[LedgerConfig] = None,
        context_config: Optional[ContextConfig] = None,
        sweep_config: Optional[SweepConfig] = None,
        spool: Optional[KeyValueStore] = None,
    ):
        self.ledger_config = ledger_config or settings.ledger
        self.context_config = context_config or settings.context
        self.sweep_config = sweep_config or settings.sweep
        if store is None:
            store = JsonFileStore(settings.paths.DATA_DIR)
            spool = spool or JsonFileStore(settings.paths.SPOOL_DIR)
        self.store = store
        self.spool = spool or store
        self.clock = clock or datetime.now

        self.classifier = FeedbackClassifier()
        self.codec = TastePackCodec(liked_threshold=self.ledger_config.LIKED_THRESHOLD)

        self._lock = threading.RLock()
        self._pending: List[PendingEvent] = []
        self._failed: List[PendingEvent] = []
        self._load_queue()

    # ==================== Load / Save ====================

    def _new_ledger(self) -> PreferenceLedger:
        return PreferenceLedger(
            decay_interval_days=self.ledger_config.DECAY_INTERVAL_DAYS,
            reason_keywords_limit=self.ledger_config.REASON_KEYWORDS_LIMIT,
            custom_feedback_limit=self.ledger_config.CUSTOM_FEEDBACK_LIMIT,
        )

    def _load_preferences(self) -> Tuple[PreferenceLedger, TasteProfile]:
        data = self.store.get(PREFERENCES_KEY)
        if not data:
            now = self.clock().isoformat()
            return self._new_ledger(), TasteProfile(created_at=now, updated_at=now)
        try:
            ledger = PreferenceLedger.from_dict(
                data.get("ledger", {}),
                decay_interval_days=self.ledger_config.DECAY_INTERVAL_DAYS,
                reason_keywords_limit=self.ledger_config.REASON_KEYWORDS_LIMIT,
                custom_feedback_limit=self.ledger_config.CUSTOM_FEEDBACK_LIMIT,
            )
            profile = TasteProfile.from_dict(data.get("profile", {}))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StorageError(f"Corrupt preferences document: {e}")
        return ledger, profile

    def _save_preferences(self, ledger: PreferenceLedger, profile: TasteProfile) -> None:
        self.store.set(PREFERENCES_KEY, {
            "ledger": ledger.to_dict(),
            "profile": profile.to_dict(),
        })

    def _load_lineage(self) -> LineageGraph:
        data = self.store.get(LINEAGE_KEY)
        if not data:
            return LineageGraph()
        try:
            return LineageGraph.from_dict(data)
        except (KeyError, TypeError, ValueError, NotFoundError) as e:
            raise StorageError(f"Corrupt lineage document: {e}")

    def _load_contributor(self) -> Dict[str, Any]:
        return self.store.get(CONTRIBUTOR_KEY) or {}

    # ==================== Retry Queue 저장 ====================

    def _load_queue(self) -> None:
        """이전 프로세스가 남긴 재시도 큐 복원"""
        try:
            data = self.spool.get(RETRY_QUEUE_KEY) or {}
        except StorageError as e:
            logger.warning(f"Retry queue could not be loaded, starting empty: {e}")
            return

        for name, target in (("pending", self._pending), ("failed", self._failed)):
            for item in data.get(name, []):
                try:
                    target.append(PendingEvent.from_dict(item))
                except (KeyError, TypeError, ValueError) as e:
                    logger.error(f"Dropping unreadable queued feedback: {e}")

        if self._pending or self._failed:
            logger.info(f"Restored retry queue: {len(self._pending)} pending, {len(self._failed)} failed")

    def _save_queue(self) -> None:
        """재시도 큐 저장 (실패해도 메모리 큐는 유지)"""
        try:
            self.spool.set(RETRY_QUEUE_KEY, {
                "pending": [p.to_dict() for p in self._pending],
                "failed": [p.to_dict() for p in self._failed],
            })
        except StorageError as e:
            logger.warning(f"Retry queue not persisted: {e}")

    # ==================== Feedback ====================

    def record_feedback(self, event) -> List[ScoreDelta]:
        """
        피드백 기록

        저장 실패 시 이벤트를 재시도 큐에 넣고 반환 (sweep에서 재적용)

        Returns:
            적용된(또는 재시도 대기 중인) delta 리스트, 잘못된 이벤트는 []

        Raises:
            StorageError: 재시도 큐가 가득 찬 상태에서 저장 실패
        """
        if not self.classifier.is_valid(event):
            logger.warning(f"Ignoring malformed feedback event: {event!r}")
            return []

        with self._lock:
            try:
                return self._record(event)
            except StorageError as e:
                self._enqueue(event, e)
                return self.classifier.classify(event)

    def _record(self, event, now: Optional[datetime] = None) -> List[ScoreDelta]:
        ledger, profile = self._load_preferences()
        now = now or self.clock()
        deltas = self.classifier.apply(event, ledger, now)
        apply_profile_deltas(profile, deltas, now)
        self._save_preferences(ledger, profile)
        logger.debug(f"Recorded {event.kind.value} feedback ({len(deltas)} deltas)")
        return deltas

    def _enqueue(self, event, error: Exception) -> None:
        with self._lock:
            if len(self._pending) >= self.sweep_config.MAX_PENDING_EVENTS:
                logger.error(f"Retry queue full, dropping {event.kind.value} feedback: {error}")
                raise StorageError(f"Retry queue full: {error}")

            self._pending.append(PendingEvent(
                event=event.to_dict(),
                attempts=1,
                last_error=str(error),
                queued_at=self.clock().isoformat(),
            ))
            self._save_queue()
        logger.warning(f"Storage unavailable, queued {event.kind.value} feedback for retry: {error}")

    def get_pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def get_failed_events(self) -> List[PendingEvent]:
        """재시도 한도를 넘겨 포기한 이벤트"""
        with self._lock:
            return list(self._failed)

    def clear_failed_events(self) -> List[PendingEvent]:
        """포기한 이벤트를 호스트에 넘기고 목록 비우기"""
        with self._lock:
            failed, self._failed = self._failed, []
            if failed:
                self._save_queue()
            return failed

    def flush(self) -> int:
        """
        재시도 큐를 즉시 한 번 처리

        Returns:
            아직 남아있는 이벤트 수
        """
        with self._lock:
            self._retry_pending(SweepResult())
            return len(self._pending)

    @staticmethod
    def _queued_time(pending: PendingEvent) -> Optional[datetime]:
        try:
            return datetime.fromisoformat(pending.queued_at) if pending.queued_at else None
        except ValueError:
            return None

    def _retry_pending(self, result: SweepResult) -> SweepResult:
        with self._lock:
            if not self._pending:
                return result

            remaining = []
            for pending in self._pending:
                result.retried += 1
                try:
                    event = feedback_event_from_dict(pending.event)
                except (KeyError, TypeError, ValueError) as e:
                    logger.error(f"Unreadable queued feedback moved to failed: {e}")
                    pending.last_error = str(e)
                    self._failed.append(pending)
                    result.failed += 1
                    continue
                try:
                    # 실패 시점 기준으로 재적용 (감쇠 기준 시각 유지)
                    self._record(event, now=self._queued_time(pending))
                    result.succeeded += 1
                except StorageError as e:
                    pending.attempts += 1
                    pending.last_error = str(e)
                    if pending.attempts >= self.sweep_config.MAX_RETRY_ATTEMPTS:
                        logger.error(f"Giving up on feedback after {pending.attempts} attempts: {e}")
                        self._failed.append(pending)
                        result.failed += 1
                    else:
                        remaining.append(pending)
            self._pending = remaining
            result.still_pending = len(remaining)
            self._save_queue()
            return result

    def sweep(self) -> SweepResult:
        """주기 작업: 재시도 큐 처리 + 점수 감쇠"""
        with self._lock:
            result = self._retry_pending(SweepResult())
            if self.sweep_config.DECAY_ON_SWEEP:
                try:
                    result.decayed = self.apply_decay()
                except StorageError as e:
                    logger.warning(f"Decay skipped, storage unavailable: {e}")

        if result.retried or result.decayed:
            logger.info(f"Sweep finished: {result.to_dict()}")
        return result

    def apply_decay(self) -> int:
        """
        시간 경과 감쇠 적용

        Returns:
            점수가 바뀐 키워드 수
        """
        with self._lock:
            ledger, profile = self._load_preferences()
            changed = ledger.decay(self.clock())
            if changed:
                self._save_preferences(ledger, profile)
            return changed

    # ==================== Preferences ====================

    def get_taste_profile(self) -> TasteProfile:
        return self._load_preferences()[1]

    def get_deep_preferences(self) -> PreferenceLedger:
        return self._load_preferences()[0]

    def get_preference_context(self, platform: Optional[str] = None) -> str:
        """리라이트 요청에 붙일 선호 컨텍스트 (없으면 빈 문자열)"""
        return build_preference_context(self.get_deep_preferences(), self.context_config, platform=platform)

    def analyze_prompt(self, prompt: str) -> PromptAnalysis:
        return analyze_prompt(self.get_deep_preferences(), prompt)

    def get_suggested_keywords(self, platform: str, limit: int = 10) -> List[KeywordSuggestion]:
        return self.get_deep_preferences().get_suggested_keywords(platform, limit)

    def get_keywords_to_avoid(self, platform: str, limit: int = 10) -> List[KeywordSuggestion]:
        return self.get_deep_preferences().get_keywords_to_avoid(platform, limit)

    def get_universal_keywords(self, min_platforms: int = 2, limit: int = 10) -> List[Tuple[str, List[str], float]]:
        return self.get_deep_preferences().get_universal_keywords(min_platforms, limit)

    # ==================== Lineage ====================

    def add_lineage_node(
        self,
        content: str,
        platform: str,
        parent_id: Optional[str] = None,
        mode: Union[EditMode, str] = EditMode.MANUAL,
    ) -> LineageNode:
        """
        Raises:
            NotFoundError: parent_id 없음 (저장소 변경 없음)
        """
        with self._lock:
            graph = self._load_lineage()
            node = graph.add_node(content, platform, parent_id=parent_id, mode=mode, now=self.clock())
            self.store.set(LINEAGE_KEY, graph.to_dict())
            return node

    def get_lineage(self, node_id: str) -> List[LineageNode]:
        """루트 → 노드 조상 체인"""
        return self._load_lineage().get_ancestor_chain(node_id)

    def get_children(self, node_id: str) -> List[LineageNode]:
        return self._load_lineage().get_children(node_id)

    def get_lineage_graph(self) -> LineageGraph:
        """트리/통계/유사 검색용 전체 그래프 (읽기 전용 사본)"""
        return self._load_lineage()

    # ==================== Contributor ====================

    def get_contributor_stats(self) -> ContributorStats:
        ledger = self.get_deep_preferences()
        consent = bool(self._load_contributor().get("consent_enabled", False))
        return build_contributor_stats(ledger, consent_enabled=consent)

    def get_achievements(self) -> List[AchievementProgress]:
        return evaluate_achievements(self.get_deep_preferences())

    def set_consent(self, enabled: bool) -> None:
        with self._lock:
            self.store.set(CONTRIBUTOR_KEY, {
                "consent_enabled": bool(enabled),
                "updated_at": self.clock().isoformat(),
            })
        logger.info(f"Contribution consent {'enabled' if enabled else 'disabled'}")

    # ==================== Taste Pack ====================

    def export_taste_pack(self, name: str, description: str = "", tags: Optional[Iterable[str]] = None) -> TastePack:
        return self.codec.export(self.get_deep_preferences(), name, description, tags, now=self.clock())

    def import_taste_pack(
        self,
        pack: Union[TastePack, Dict[str, Any]],
        mode: Union[ImportMode, str] = ImportMode.MERGE,
    ) -> ImportResult:
        """
        취향 팩 가져오기 (전부 적용되거나 전혀 적용되지 않음)

        검증/저장 실패는 ImportResult(success=False, error=...)로 반환
        """
        return self._import(lambda ledger, now: self.codec.import_pack(ledger, pack, mode, now), mode)

    def apply_preset(self, name: str, mode: Union[ImportMode, str] = ImportMode.MERGE) -> ImportResult:
        preset = get_preset(name)
        if preset is None:
            return ImportResult(success=False, error=str(NotFoundError("taste preset", name)))
        return self.import_taste_pack(preset, mode)

    def apply_dimensions(
        self,
        dimension_ids: Iterable[str],
        mode: Union[ImportMode, str] = ImportMode.MERGE,
    ) -> ImportResult:
        ids = list(dimension_ids)
        return self._import(lambda ledger, now: self.codec.apply_dimensions(ledger, ids, mode, now), mode)

    def _import(self, apply: Callable[[PreferenceLedger, datetime], int], mode) -> ImportResult:
        mode_value = mode.value if isinstance(mode, ImportMode) else str(mode)
        try:
            with self._lock:
                ledger, profile = self._load_preferences()
                now = self.clock()
                applied = apply(ledger, now)
                profile = rebuild_profile(ledger, previous=profile, now=now)
                self._save_preferences(ledger, profile)
        except (InvalidFormatError, NotFoundError, StorageError) as e:
            logger.warning(f"Taste pack import failed: {e}")
            return ImportResult(success=False, error=str(e), mode=mode_value)

        return ImportResult(success=True, mode=mode_value, dimensions_applied=applied)
