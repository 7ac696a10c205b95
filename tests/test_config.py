from src.taste_engine import config
from src.taste_engine.config import LedgerConfig, SweepConfig, get_config, load_overrides
import pytest


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("TASTE_DECAY_INTERVAL_DAYS", "14")
    monkeypatch.setenv("TASTE_MAX_RETRY_ATTEMPTS", "3")
    monkeypatch.setenv("TASTE_SWEEP_INTERVAL_SECONDS", "2.5")

    assert LedgerConfig().DECAY_INTERVAL_DAYS == 14
    sweep = SweepConfig()
    assert sweep.MAX_RETRY_ATTEMPTS == 3
    assert sweep.SWEEP_INTERVAL_SECONDS == 2.5


def test_yaml_overrides(tmp_path, monkeypatch):
    monkeypatch.setattr(config.ledger, "DECAY_INTERVAL_DAYS", config.ledger.DECAY_INTERVAL_DAYS)
    monkeypatch.setattr(config.sweep, "MAX_PENDING_EVENTS", config.sweep.MAX_PENDING_EVENTS)

    path = tmp_path / "taste.yaml"
    path.write_text(
        "ledger:\n  decay_interval_days: 7\nsweep:\n  max_pending_events: 12\n  unknown_key: 1\n",
        encoding="utf-8",
    )

    assert load_overrides(str(path)) is True
    assert config.ledger.DECAY_INTERVAL_DAYS == 7
    assert config.sweep.MAX_PENDING_EVENTS == 12
    assert not hasattr(config.sweep, "UNKNOWN_KEY")


def test_missing_yaml_is_ignored(tmp_path):
    assert load_overrides(str(tmp_path / "missing.yaml")) is False


def test_get_config_groups():
    assert set(get_config()) == {"paths", "ledger", "context", "sweep"}


def test_yaml_values_are_cast_to_field_types(tmp_path, monkeypatch):
    monkeypatch.setattr(config.ledger, "DECAY_INTERVAL_DAYS", config.ledger.DECAY_INTERVAL_DAYS)
    monkeypatch.setattr(config.sweep, "SWEEP_INTERVAL_SECONDS", config.sweep.SWEEP_INTERVAL_SECONDS)
    monkeypatch.setattr(config.sweep, "DECAY_ON_SWEEP", config.sweep.DECAY_ON_SWEEP)

    path = tmp_path / "taste.yaml"
    path.write_text(
        'ledger:\n  decay_interval_days: "14"\nsweep:\n  sweep_interval_seconds: 5\n  decay_on_sweep: "off"\n',
        encoding="utf-8",
    )

    assert load_overrides(str(path)) is True
    assert config.ledger.DECAY_INTERVAL_DAYS == 14
    assert isinstance(config.ledger.DECAY_INTERVAL_DAYS, int)
    assert config.sweep.SWEEP_INTERVAL_SECONDS == 5.0
    assert isinstance(config.sweep.SWEEP_INTERVAL_SECONDS, float)
    assert config.sweep.DECAY_ON_SWEEP is False


@pytest.mark.parametrize("raw", ['"fourteen"', "2.5", "[1, 2]"])
def test_invalid_yaml_value_keeps_current_setting(tmp_path, monkeypatch, raw):
    monkeypatch.setattr(config.ledger, "DECAY_INTERVAL_DAYS", 30)

    path = tmp_path / "taste.yaml"
    path.write_text(f"ledger:\n  decay_interval_days: {raw}\n", encoding="utf-8")

    assert load_overrides(str(path)) is True
    assert config.ledger.DECAY_INTERVAL_DAYS == 30


def test_invalid_boolean_keeps_current_setting(tmp_path, monkeypatch):
    monkeypatch.setattr(config.sweep, "DECAY_ON_SWEEP", True)

    path = tmp_path / "taste.yaml"
    path.write_text("sweep:\n  decay_on_sweep: sometimes\n", encoding="utf-8")

    load_overrides(str(path))
    assert config.sweep.DECAY_ON_SWEEP is True


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "taste.yaml"
    path.write_text("", encoding="utf-8")
    assert config.load_config(path) == {}
    assert load_overrides(str(path)) is True
