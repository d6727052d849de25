"""Tests for cross-venue matching."""

from daylight.matcher import MarketMatcher, best_spreads, compute_direction, filter_by_spread
from daylight.models import Direction

from .conftest import kalshi, make_pair, poly


def test_compute_direction():
    """Test the cheaper venue is the buy side; ties buy venue A."""
    assert compute_direction(52, 61) is Direction.BUY_A_SELL_B
    assert compute_direction(70, 61) is Direction.BUY_B_SELL_A
    assert compute_direction(50, 50) is Direction.BUY_A_SELL_B


def test_match_pairs_above_threshold():
    """Test a similar pair is matched with spread and direction."""
    matcher = MarketMatcher(similarity_threshold=0.4)
    pairs = matcher.match_pairs(
        [kalshi("K1", "Will BTC hit 100k by Dec", 52)],
        [poly("P1", "BTC to hit 100k by Dec?", 61)],
    )

    assert len(pairs) == 1
    pair = pairs[0]
    assert (pair.id_a, pair.id_b) == ("K1", "P1")
    assert pair.spread == 9
    assert pair.direction is Direction.BUY_A_SELL_B
    assert pair.similarity >= 0.4
    assert pair.key == "K1|P1"


def test_below_threshold_never_matches():
    """Test dissimilar titles produce no pair regardless of spread."""
    matcher = MarketMatcher(similarity_threshold=0.4)
    pairs = matcher.match_pairs(
        [kalshi("K1", "Will BTC hit 100k by Dec", 5)],
        [poly("P1", "BTC above $100,000 December", 95)],
    )

    assert pairs == []


def test_zero_price_instruments_are_skipped():
    """Test instruments without a quote never form pairs."""
    matcher = MarketMatcher()
    pairs = matcher.match_pairs(
        [kalshi("K1", "Fed cuts rates June", 0)],
        [poly("P1", "Fed cuts rates June", 40)],
    )

    assert pairs == []


def test_cross_product_allows_reuse():
    """Test one instrument can appear in several pairs."""
    matcher = MarketMatcher()
    pairs = matcher.match_pairs(
        [kalshi("K1", "Fed cuts rates June", 30)],
        [poly("P1", "Fed cuts rates June", 40), poly("P2", "Fed cuts rates June meeting", 45)],
    )

    assert sorted(p.id_b for p in pairs) == ["P1", "P2"]


def test_threshold_monotonicity():
    """Test raising the threshold never adds pairs."""
    instruments_a = [
        kalshi("K1", "Will BTC hit 100k by Dec", 52),
        kalshi("K2", "Will Trump win 2024", 40),
        kalshi("K3", "Fed cuts rates June", 30),
    ]
    instruments_b = [
        poly("P1", "BTC to hit 100k by Dec?", 61),
        poly("P2", "Trump wins 2024 election", 48),
        poly("P3", "Fed cuts rates in June?", 33),
    ]

    previous = None
    for threshold in (0.0, 0.2, 0.4, 0.6, 0.8, 1.0):
        keys = {p.key for p in MarketMatcher(threshold).match_pairs(instruments_a, instruments_b)}
        if previous is not None:
            assert keys <= previous
        previous = keys


def test_find_candidates_filters_and_sorts():
    """Test spread filtering and descending sort."""
    matcher = MarketMatcher()
    candidates = matcher.find_candidates(
        [kalshi("K1", "Fed cuts rates June", 30), kalshi("K2", "Will Trump win 2024", 40)],
        [poly("P1", "Fed cuts rates June", 33), poly("P2", "Trump wins 2024 election", 50)],
        min_spread=3,
    )

    assert [(c.id_a, c.spread) for c in candidates] == [("K2", 10), ("K1", 3)]


def test_filter_by_spread_and_best_spreads():
    pairs = [make_pair("K1", "P1", 50, 54), make_pair("K2", "P2", 20, 40), make_pair("K1", "P1", 50, 60)]

    assert [p.spread for p in filter_by_spread(pairs, 5)] == [20, 10]
    assert best_spreads(pairs) == {"K1|P1": 10, "K2|P2": 20}


def test_min_spread_monotonicity():
    """Test raising min_spread never increases the candidate count."""
    matcher = MarketMatcher()
    instruments_a = [
        kalshi("K1", "Will BTC hit 100k by Dec", 52),
        kalshi("K2", "Will Trump win 2024", 40),
        kalshi("K3", "Fed cuts rates June", 30),
    ]
    instruments_b = [
        poly("P1", "BTC to hit 100k by Dec?", 61),
        poly("P2", "Trump wins 2024 election", 48),
        poly("P3", "Fed cuts rates in June?", 33),
    ]

    counts = [len(matcher.find_candidates(instruments_a, instruments_b, min_spread=s)) for s in range(15)]

    assert counts[0] == 3
    assert counts[-1] == 0
    assert all(later <= earlier for earlier, later in zip(counts, counts[1:]))
