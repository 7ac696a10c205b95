import threading

from src.taste_engine.config import SweepConfig
from src.taste_engine.engine import TasteEngine, PREFERENCES_KEY, LINEAGE_KEY, RETRY_QUEUE_KEY
from src.taste_engine.errors import NotFoundError, StorageError
from src.taste_engine.models import (
    RatingEvent,
    LikeEvent,
    TrashEvent,
    EditMode,
    ImportMode,
    Tier,
)
from src.taste_engine.storage import MemoryStore
import pytest


def test_record_feedback_learns_and_persists(engine, store):
    event = RatingEvent(content="neon cyberpunk city", rating=5, platform="midjourney")
    engine.record_feedback(event)
    engine.record_feedback(event)

    ledger = engine.get_deep_preferences()
    assert set(ledger.get_liked_keywords()) == {"neon", "cyberpunk", "city"}
    assert store.get(PREFERENCES_KEY)["ledger"]["stats"]["total_likes"] == 2


def test_record_feedback_updates_profile(engine):
    engine.record_feedback(LikeEvent(content="neon cyberpunk city", liked=True))
    engine.record_feedback(LikeEvent(content="neon portrait", liked=True))
    engine.record_feedback(TrashEvent(content="portrait", reason="poor-quality"))

    profile = engine.get_taste_profile()
    assert profile.frequent_keywords == {"neon": 2, "cyberpunk": 1, "city": 1}
    assert profile.color_palette == ["neon"]
    assert profile.visual_style == ["cyberpunk"]


def test_malformed_feedback_is_ignored(engine, store):
    assert engine.record_feedback(RatingEvent(content="neon", rating=9)) == []
    assert store.get(PREFERENCES_KEY) is None
    assert engine.get_pending_count() == 0


def test_lineage_through_engine(engine, store):
    root = engine.add_lineage_node("a cat", "midjourney")
    a = engine.add_lineage_node("a cat, cinematic", "midjourney", parent_id=root.id, mode="enhance")
    b = engine.add_lineage_node("a cat, cinematic, neon", "midjourney", parent_id=a.id, mode=EditMode.STYLE)
    c = engine.add_lineage_node("a cat, cinematic, neon --ar 16:9", "midjourney", parent_id=b.id, mode="params")

    assert [n.id for n in engine.get_lineage(c.id)] == [root.id, a.id, b.id, c.id]
    assert engine.get_children(root.id) == [a]

    before = store.get(LINEAGE_KEY)
    with pytest.raises(NotFoundError):
        engine.add_lineage_node("orphan", "midjourney", parent_id="missing")
    assert store.get(LINEAGE_KEY) == before


def test_contributor_stats_and_consent(engine):
    for _ in range(10):
        engine.record_feedback(LikeEvent(content="neon city", liked=True))

    stats = engine.get_contributor_stats()
    assert stats.total_points == 100
    assert stats.current_tier == Tier.CURATOR
    assert stats.consent_enabled is False

    engine.set_consent(True)
    assert engine.get_contributor_stats().consent_enabled is True


def test_taste_pack_roundtrip_through_engine(engine, store, clock):
    engine.record_feedback(LikeEvent(content="neon cyberpunk volumetric", liked=True))
    pack = engine.export_taste_pack("Night City", "neon rain", ["cyberpunk"])
    assert {d.dimension_id for d in pack.dimensions} == {"palette-neon", "era-futuristic", "light-low-key"}

    other = TasteEngine(store=type(store)(), clock=clock)
    other.record_feedback(LikeEvent(content="vintage sepia", liked=True))
    result = other.import_taste_pack(pack, ImportMode.REPLACE)

    assert result.success is True
    assert result.dimensions_applied == 3
    again = other.export_taste_pack("Night City", "neon rain", ["cyberpunk"])
    assert [d.to_dict() for d in again.dimensions] == [d.to_dict() for d in pack.dimensions]
    # import 후 프로필 재구성
    assert other.get_taste_profile().visual_style == ["cyberpunk"]


def test_invalid_import_reports_failure_without_changes(engine, store):
    engine.record_feedback(LikeEvent(content="neon city", liked=True))
    before = store.get(PREFERENCES_KEY)

    result = engine.import_taste_pack({"format_version": "9.9", "name": "x", "dimensions": []}, "replace")

    assert result.success is False
    assert "version" in result.error
    assert store.get(PREFERENCES_KEY) == before


def test_apply_preset(engine):
    result = engine.apply_preset("Chrome Rain")
    assert result.success is True
    assert "cyberpunk" in engine.get_deep_preferences().get_liked_keywords()

    missing = engine.apply_preset("Vaporwave")
    assert missing.success is False


def test_apply_dimensions(engine):
    assert engine.apply_dimensions(["lens-macro"]).success is True
    assert engine.get_deep_preferences().get_score("camera", "macro") == 3
    assert engine.apply_dimensions(["lens-unknown"]).success is False


def test_preference_context(engine):
    assert engine.get_preference_context() == ""

    engine.record_feedback(LikeEvent(content="neon cyberpunk", liked=True))
    engine.record_feedback(LikeEvent(content="cartoon", liked=False))
    engine.record_feedback(TrashEvent(content="blurry", reason="poor-quality"))

    context = engine.get_preference_context()
    assert context.startswith("USER TASTE PREFERENCES")
    assert "STRONGLY INCORPORATE: cyberpunk, neon" in context
    assert "AVOID: blurry, cartoon" in context
    assert "low quality" in context


def test_analyze_prompt(engine):
    engine.record_feedback(LikeEvent(content="neon cyberpunk", liked=True))
    engine.record_feedback(LikeEvent(content="cartoon", liked=False))

    analysis = engine.analyze_prompt("cartoon neon street")
    # 50 - 10 (cartoon) + 5 (neon)
    assert analysis.score == 45
    assert len(analysis.warnings) == 1
    assert analysis.suggestions == ['Consider adding "cyberpunk" - you\'ve liked outputs with this']


def test_decay_through_engine(engine, clock):
    engine.record_feedback(LikeEvent(content="neon", liked=True, reason="perfect-colors"))
    clock.advance(days=61)

    assert engine.apply_decay() == 1
    assert engine.get_deep_preferences().get_score("color", "neon") == 1


def test_storage_failure_queues_feedback_until_sweep(engine, store):
    store.down = True
    deltas = engine.record_feedback(RatingEvent(content="neon city", rating=5))

    assert len(deltas) == 2
    assert engine.get_pending_count() == 1

    store.down = False
    assert store.get(PREFERENCES_KEY) is None

    result = engine.sweep()
    assert result.succeeded == 1
    assert engine.get_pending_count() == 0
    assert engine.get_deep_preferences().get_score("color", "neon") == 1


def test_flush_retries_pending(engine, store):
    store.down = True
    engine.record_feedback(RatingEvent(content="neon city", rating=5))
    assert engine.flush() == 1

    store.down = False
    assert engine.flush() == 0
    assert engine.get_deep_preferences().stats.total_ratings == 1


def test_retries_give_up_after_max_attempts(store, clock):
    engine = TasteEngine(store=store, clock=clock, sweep_config=SweepConfig(MAX_RETRY_ATTEMPTS=2))
    store.down = True
    engine.record_feedback(RatingEvent(content="neon city", rating=5))

    result = engine.sweep()

    assert result.failed == 1
    assert engine.get_pending_count() == 0
    failed = engine.get_failed_events()
    assert len(failed) == 1
    assert failed[0].attempts == 2
    assert failed[0].event["kind"] == "rating"


def test_full_retry_queue_raises(store, clock):
    engine = TasteEngine(store=store, clock=clock, sweep_config=SweepConfig(MAX_PENDING_EVENTS=1))
    store.down = True
    engine.record_feedback(RatingEvent(content="neon city", rating=5))

    with pytest.raises(StorageError):
        engine.record_feedback(RatingEvent(content="neon city", rating=5))


def test_corrupt_preferences_raise_storage_error(engine, store):
    store.set(PREFERENCES_KEY, {"ledger": {"keyword_scores": {"style": {"noir": {}}}}})
    with pytest.raises(StorageError):
        engine.get_deep_preferences()


# ==================== Concurrency ====================

class HookStore(MemoryStore):
    """첫 get 호출 때 한 번 on_first_get 실행"""

    def __init__(self):
        super().__init__()
        self.on_first_get = None

    def get(self, key):
        hook, self.on_first_get = self.on_first_get, None
        if hook is not None:
            hook()
        return super().get(key)


def test_feedback_during_decay_is_not_lost(clock):
    store = HookStore()
    engine = TasteEngine(store=store, clock=clock)
    engine.record_feedback(LikeEvent(content="neon", liked=True, reason="perfect-colors"))
    clock.advance(days=61)

    writer = threading.Thread(
        target=engine.record_feedback,
        args=(LikeEvent(content="neon", liked=True, reason="perfect-colors"),),
    )

    def start_writer():
        writer.start()
        # 락이 없으면 이 사이에 writer가 읽고-쓰기를 끝냄
        writer.join(timeout=0.1)

    store.on_first_get = start_writer
    assert engine.apply_decay() == 1
    writer.join()

    ledger = engine.get_deep_preferences()
    # 3 → 1 (감쇠) → 4 (새 좋아요)
    assert ledger.get_score("color", "neon") == 4
    assert ledger.stats.total_likes == 2


def test_parallel_feedback_is_fully_counted(engine):
    events = [RatingEvent(content="neon city", rating=5) for _ in range(20)]
    threads = [threading.Thread(target=engine.record_feedback, args=(e,)) for e in events]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    ledger = engine.get_deep_preferences()
    assert ledger.stats.total_ratings == 20
    assert ledger.get_score("color", "neon") == 20


# ==================== Retry Queue 저장 ====================

def test_unhashable_pack_version_reports_failure(engine, store):
    engine.record_feedback(LikeEvent(content="neon city", liked=True))
    before = store.get(PREFERENCES_KEY)

    result = engine.import_taste_pack({"format_version": ["1.0"], "name": "x", "dimensions": []})

    assert result.success is False
    assert store.get(PREFERENCES_KEY) == before


def test_queued_feedback_survives_restart(store, clock):
    spool = MemoryStore()
    first = TasteEngine(store=store, clock=clock, spool=spool)
    store.down = True
    first.record_feedback(RatingEvent(content="neon city", rating=5))
    assert len(spool.get(RETRY_QUEUE_KEY)["pending"]) == 1

    # 재시작
    store.down = False
    second = TasteEngine(store=store, clock=clock, spool=spool)
    assert second.get_pending_count() == 1

    result = second.sweep()
    assert result.succeeded == 1
    assert second.get_deep_preferences().get_score("color", "neon") == 1
    assert spool.get(RETRY_QUEUE_KEY)["pending"] == []


def test_failed_events_survive_restart_until_cleared(store, clock):
    spool = MemoryStore()
    config = SweepConfig(MAX_RETRY_ATTEMPTS=2)
    first = TasteEngine(store=store, clock=clock, spool=spool, sweep_config=config)
    store.down = True
    first.record_feedback(RatingEvent(content="neon city", rating=5))
    first.sweep()

    second = TasteEngine(store=store, clock=clock, spool=spool, sweep_config=config)
    assert second.get_pending_count() == 0
    assert len(second.get_failed_events()) == 1

    cleared = second.clear_failed_events()
    assert cleared[0].event["kind"] == "rating"
    assert second.get_failed_events() == []
    assert TasteEngine(store=store, clock=clock, spool=spool).get_failed_events() == []


def test_unreadable_queue_entries_are_skipped(store, clock):
    spool = MemoryStore()
    spool.set(RETRY_QUEUE_KEY, {
        "pending": [
            "garbage",
            {"event": {"kind": "rating", "content": "neon city", "rating": 5}, "attempts": 1},
            {"event": {"kind": "mystery"}, "attempts": 1},
        ],
    })
    engine = TasteEngine(store=store, clock=clock, spool=spool)
    assert engine.get_pending_count() == 2

    result = engine.sweep()
    assert result.succeeded == 1
    assert result.failed == 1
    assert engine.get_failed_events()[0].event == {"kind": "mystery"}


def test_replay_uses_time_of_original_feedback(engine, store, clock):
    store.down = True
    engine.record_feedback(LikeEvent(content="neon", liked=True, reason="perfect-colors"))
    clock.advance(days=61)
    store.down = False

    result = engine.sweep()

    assert result.succeeded == 1
    # 원래 시각 기준으로 두 번 감쇠 (3 → 1)
    assert result.decayed == 1
    ledger = engine.get_deep_preferences()
    assert ledger.get_score("color", "neon") == 1
    assert ledger.stats.last_active_date == "2024-03-01"


# ==================== Platform / Achievements ====================

def test_platform_suggestions_through_engine(engine):
    engine.record_feedback(LikeEvent(content="neon jazz", liked=True, platform="midjourney"))
    engine.record_feedback(LikeEvent(content="neon jazz", liked=True, platform="suno"))
    engine.record_feedback(LikeEvent(content="blurry", liked=False, platform="midjourney"))

    image = [s.keyword for s in engine.get_suggested_keywords("midjourney")]
    music = [s.keyword for s in engine.get_suggested_keywords("suno")]
    assert image == ["neon"]
    assert music == ["jazz"]
    assert [s.keyword for s in engine.get_keywords_to_avoid("midjourney")] == ["blurry"]

    universal = engine.get_universal_keywords()
    assert [kw for kw, _, _ in universal] == ["jazz", "neon"]
    assert universal[0][1] == ["midjourney", "suno"]


def test_achievements_through_engine(engine, clock):
    engine.record_feedback(RatingEvent(content="neon city", rating=5))
    clock.advance(days=1)
    engine.record_feedback(LikeEvent(content="cartoon", liked=False))

    unlocked = {p.achievement.id for p in engine.get_achievements() if p.unlocked}
    assert unlocked == {"first_rating", "first_dislike"}

    stats = engine.get_contributor_stats()
    assert stats.current_streak == 2
    # like 10 + dislike 8 + 연속 보너스 10
    assert stats.total_points == 28
    assert stats.achievements == ["first_rating", "first_dislike"]


def test_preference_context_for_platform(engine):
    engine.record_feedback(LikeEvent(content="neon jazz", liked=True))

    assert "STRONGLY INCORPORATE: jazz, neon" in engine.get_preference_context()
    assert "STRONGLY INCORPORATE: jazz\n" in engine.get_preference_context("suno") + "\n"
    assert "STRONGLY INCORPORATE: neon" in engine.get_preference_context("midjourney")
    assert "jazz" not in engine.get_preference_context("midjourney")
