"""Shared fixtures and factories."""

from datetime import datetime, timezone

import pytest

from daylight import config
from daylight.matcher import compute_direction
from daylight.models import CanonicalInstrument, MatchCandidate
from daylight.storage import JsonStore

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def kalshi(id, title, price, volume=100.0):
    return CanonicalInstrument(venue=config.VENUE_KALSHI, id=id, title=title, yes_price=price, volume=volume)


def poly(id, title, price, volume=100.0):
    return CanonicalInstrument(venue=config.VENUE_POLY, id=id, title=title, yes_price=price, volume=volume)


def make_pair(id_a="K1", id_b="P1", price_a=52, price_b=61, score=0.8):
    return MatchCandidate(
        id_a=id_a,
        id_b=id_b,
        title_a=f"title {id_a}",
        title_b=f"title {id_b}",
        price_a=price_a,
        price_b=price_b,
        similarity=score,
        spread=abs(price_a - price_b),
        direction=compute_direction(price_a, price_b),
    )


class StubFeed:
    """Feed returning canned instruments, or raising."""

    def __init__(self, instruments=None, error=None):
        self.instruments = list(instruments or [])
        self.error = error
        self.calls = 0

    def fetch_snapshot(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.instruments)

    def canonicalize(self, snapshot):
        return snapshot


class Clock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "data")
