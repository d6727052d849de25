"""Tests for price history, sparklines and movers."""

import pandas as pd

from daylight.history import PriceHistoryStore, record_snapshot, sparkline_points
from daylight.models import PriceSample
from daylight.movers import build_movers, top_movers

from .conftest import kalshi, poly


def test_history_cap():
    """Test only the most recent M samples are kept, oldest first."""
    history = PriceHistoryStore(max_samples=20)
    for i in range(25):
        history.append("k:K1", 40 + i, 1000 * i)

    samples = history.series("k:K1")
    assert len(samples) == 20
    assert samples[0] == PriceSample(t=5000, p=45)
    assert samples[-1] == PriceSample(t=24000, p=64)


def test_delta_against_previous_sample():
    history = PriceHistoryStore()

    assert history.delta("k:K1", 50) is None
    history.append("k:K1", 50, 1)
    assert history.delta("k:K1", 47) == -3


def test_series_returns_copy():
    history = PriceHistoryStore()
    history.append("p:btc", 61, 1)

    history.series("p:btc").clear()

    assert len(history.series("p:btc")) == 1
    assert history.series("missing") == []


def test_record_snapshot_returns_deltas():
    """Test deltas are computed before the new samples are appended."""
    history = PriceHistoryStore()
    first = record_snapshot(history, [kalshi("K1", "A", 50), poly("P1", "B", 60)], 1000)
    second = record_snapshot(history, [kalshi("K1", "A", 55), poly("P1", "B", 60)], 2000)

    assert first == {"k:K1": None, "p:P1": None}
    assert second == {"k:K1": 5, "p:P1": 0}
    assert [s.p for s in history.series("k:K1")] == [50, 55]
    # Flat prices are still sampled
    assert len(history.series("p:P1")) == 2


def test_persistence_and_malformed_entries(store):
    history = PriceHistoryStore(max_samples=3)
    history.append("k:K1", 50, 1)
    history.save(store)

    restored = PriceHistoryStore(max_samples=3)
    restored.load(store)
    assert restored.series("k:K1") == [PriceSample(t=1, p=50)]

    broken = PriceHistoryStore.from_dict({"k:K1": [{"t": 1}, {"t": 2, "p": 40}], "k:K2": "oops"})
    assert broken.keys() == ["k:K1"]
    assert broken.series("k:K1") == [PriceSample(t=2, p=40)]


def test_to_frame():
    history = PriceHistoryStore()
    history.append("p:btc", 61, 1_700_000_000_000)
    history.append("k:K1", 50, 1_700_000_060_000)

    df = history.to_frame()

    assert list(df.columns) == ["instrument", "ts", "price"]
    assert list(df["instrument"]) == ["k:K1", "p:btc"]
    assert df["ts"].iloc[1] == pd.Timestamp(1_700_000_000_000, unit="ms", tz="UTC")
    assert PriceHistoryStore().to_frame().empty


def test_sparkline_points():
    samples = [PriceSample(t=i, p=p) for i, p in enumerate([40, 50, 45])]

    points, trend = sparkline_points(samples, width=60, height=20)

    assert points == [(0.0, 20.0), (30.0, 0.0), (60.0, 10.0)]
    assert trend == "up"


def test_sparkline_edge_cases():
    assert sparkline_points([PriceSample(t=0, p=50)]) == ([], None)

    flat, trend = sparkline_points([PriceSample(t=0, p=50), PriceSample(t=1, p=50)])
    assert flat == [(0.0, 20.0), (60.0, 20.0)]
    assert trend == "up"

    _, trend = sparkline_points([PriceSample(t=0, p=50), PriceSample(t=1, p=30)])
    assert trend == "down"


def test_top_movers():
    """Test ranking by absolute delta, dropping unchanged and new instruments."""
    instruments = [kalshi("K1", "A", 50), kalshi("K2", "B", 30), poly("P1", "C", 70), poly("P2", "D", 10)]
    deltas = {"k:K1": 2, "k:K2": -8, "p:P1": 0}

    movers = top_movers(build_movers(instruments, deltas), limit=5)

    assert [(m.instrument_id, m.delta) for m in movers] == [("k:K2", -8), ("k:K1", 2)]
    assert top_movers(build_movers(instruments, deltas), limit=1)[0].title == "B"
