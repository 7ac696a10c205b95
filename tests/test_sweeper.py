import threading

from src.taste_engine.models import RatingEvent
from src.taste_engine.sweeper import run_periodic, start_background


class CountingEngine:
    def __init__(self, stop_after, stop_event):
        self.calls = 0
        self.stop_after = stop_after
        self.stop_event = stop_event

    def sweep(self):
        self.calls += 1
        if self.calls >= self.stop_after:
            self.stop_event.set()


def test_run_periodic_stops_on_event():
    stop = threading.Event()
    engine = CountingEngine(stop_after=3, stop_event=stop)

    assert run_periodic(engine, interval=0, stop_event=stop) == 3
    assert engine.calls == 3


def test_run_periodic_not_started_when_already_stopped():
    stop = threading.Event()
    stop.set()
    engine = CountingEngine(stop_after=1, stop_event=stop)

    assert run_periodic(engine, interval=0, stop_event=stop) == 0
    assert engine.calls == 0


def test_sweep_retries_queued_feedback(engine, store):
    store.down = True
    engine.record_feedback(RatingEvent(content="neon city", rating=5))
    store.down = False

    stop = threading.Event()
    original = engine.sweep

    def sweep_once():
        result = original()
        stop.set()
        return result

    engine.sweep = sweep_once
    run_periodic(engine, interval=0, stop_event=stop)

    assert engine.get_pending_count() == 0
    assert engine.get_deep_preferences().get_score("color", "neon") == 1


def test_start_background_sweeps_until_stopped(engine, store):
    store.down = True
    engine.record_feedback(RatingEvent(content="neon city", rating=5))
    store.down = False

    swept = threading.Event()
    original = engine.sweep

    def sweep_and_signal():
        result = original()
        swept.set()
        return result

    engine.sweep = sweep_and_signal
    stop = start_background(engine, interval=0.01)
    try:
        assert swept.wait(timeout=5)
    finally:
        stop.set()

    assert engine.get_pending_count() == 0
    assert engine.get_deep_preferences().get_score("color", "neon") == 1

    sweeper = [t for t in threading.enumerate() if t.name == "taste-engine-sweeper"]
    for t in sweeper:
        t.join(timeout=5)
    assert not any(t.is_alive() for t in sweeper)


def test_background_sweep_and_feedback_share_the_engine(engine, clock):
    stop = start_background(engine, interval=0)
    try:
        for _ in range(30):
            engine.record_feedback(RatingEvent(content="neon city", rating=5))
    finally:
        stop.set()

    ledger = engine.get_deep_preferences()
    assert ledger.stats.total_ratings == 30
    assert ledger.get_score("color", "neon") == 30
