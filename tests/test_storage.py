"""Tests for JSON stores, CSV export and config persistence."""

import pandas as pd
import pytest

from daylight import config
from daylight.config import ArbConfig, load_config, save_config
from daylight.storage import JsonStore, export_price_history


def test_missing_store_returns_default(store):
    default = {"a": []}
    loaded = store.load("nothing-here", default)

    assert loaded == default
    loaded["a"].append(1)
    assert default == {"a": []}


def test_save_then_load(store):
    store.save("alerts", [{"id": "x"}])

    assert store.path_for("alerts").exists()
    assert store.load("alerts", []) == [{"id": "x"}]


def test_corrupt_store_returns_default(store):
    store.base_path.mkdir(parents=True)
    store.path_for("arb-history").write_text("{not json")

    assert store.load("arb-history", []) == []


def test_write_failure_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    store = JsonStore(blocker)

    with pytest.raises(OSError):
        store.save("alerts", [])


def test_export_price_history(tmp_path):
    df = pd.DataFrame({"instrument": ["k:K1"], "ts": [pd.Timestamp("2025-01-01", tz="UTC")], "price": [50]})

    path = export_price_history(df, tmp_path / "out" / "history.csv")
    assert path.exists()
    assert pd.read_csv(path)["price"].tolist() == [50]

    generated = export_price_history(df, tmp_path)
    assert generated.parent == tmp_path
    assert generated.name.startswith("price_history_")


def test_config_defaults():
    cfg = ArbConfig()

    assert cfg.min_spread == config.DEFAULT_MIN_SPREAD
    assert cfg.display_min_spread == 2
    assert cfg.auto_alert is True
    assert cfg.check_interval == 300_000
    assert cfg.check_interval_seconds == 300.0
    assert cfg.similarity_threshold == 0.4


def test_config_validation():
    with pytest.raises(ValueError):
        ArbConfig(min_spread=-1)
    with pytest.raises(ValueError):
        ArbConfig(similarity_threshold=1.5)
    with pytest.raises(ValueError):
        ArbConfig().replace(not_an_option=1)


def test_config_persistence(store):
    save_config(store, ArbConfig().replace(min_spread=7, auto_alert=False))

    loaded = load_config(store)

    assert loaded.min_spread == 7
    assert loaded.auto_alert is False


def test_config_falls_back_to_defaults(store):
    store.save(config.CONFIG_STORE, {"min_spread": -3})
    assert load_config(store) == ArbConfig()

    store.save(config.CONFIG_STORE, ["not", "a", "dict"])
    assert load_config(store) == ArbConfig()

    store.save(config.CONFIG_STORE, {"min_spread": 9, "legacy_flag": True})
    assert load_config(store).min_spread == 9
