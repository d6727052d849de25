"""Tests for venue canonicalization."""

from daylight import config
from daylight.canonicalizer import canonicalize_kalshi, canonicalize_polymarket

KALSHI_EVENTS = [
    {
        "event_ticker": "BTC-DEC",
        "title": "Will BTC hit 100k by Dec",
        "markets": [
            {"ticker": "BTC-LOW", "volume": 10, "yes_bid": 30},
            {"ticker": "BTC-100K", "volume": 500, "yes_bid": 52, "last_price": 50},
        ],
    },
    {"title": "Zero volume", "markets": [{"ticker": "ZERO", "volume": 0, "yes_bid": 40}]},
    {"title": "Bid missing", "markets": [{"ticker": "NOBID", "volume": 5, "yes_bid": 0, "last_price": 33}]},
    {"title": "Price missing", "markets": [{"ticker": "NOPRICE", "volume": 5}]},
    {"title": "Ticker missing", "markets": [{"volume": 9, "yes_bid": 10}]},
    {"title": "No markets", "markets": []},
    "not an event",
]


def test_kalshi_selects_highest_volume_market():
    """Test one instrument per event, the most traded one."""
    instruments = canonicalize_kalshi(KALSHI_EVENTS)
    by_id = {i.id: i for i in instruments}

    assert "BTC-LOW" not in by_id
    btc = by_id["BTC-100K"]
    assert btc.venue == config.VENUE_KALSHI
    assert btc.title == "Will BTC hit 100k by Dec"
    assert btc.yes_price == 52
    assert btc.volume == 500
    assert btc.history_key == "k:BTC-100K"


def test_kalshi_price_fallbacks():
    """Test bid -> last price -> 0 fallback; a 0 price is still emitted."""
    by_id = {i.id: i for i in canonicalize_kalshi(KALSHI_EVENTS)}

    assert by_id["NOBID"].yes_price == 33
    assert by_id["NOPRICE"].yes_price == 0
    assert by_id["NOPRICE"].has_quote is False


def test_kalshi_drops_zero_volume_and_missing_ticker():
    """Test events without tradable signal or identifier are skipped."""
    ids = [i.id for i in canonicalize_kalshi(KALSHI_EVENTS)]

    assert "ZERO" not in ids
    assert len(ids) == 3


def test_kalshi_accepts_full_response_and_limit():
    """Test dict payloads and the activity limit."""
    events = [
        {"title": "Quiet", "markets": [{"ticker": "Q", "volume": 100, "volume_24h": 0, "yes_bid": 10}]},
        {"title": "Busy", "markets": [{"ticker": "B", "volume": 50, "volume_24h": 20, "yes_bid": 20}]},
    ]

    instruments = canonicalize_kalshi({"events": events}, limit=1)

    assert [i.id for i in instruments] == ["B"]


def test_kalshi_malformed_input():
    """Test garbage input yields no instruments instead of raising."""
    assert canonicalize_kalshi(None) == []
    assert canonicalize_kalshi("oops") == []
    assert canonicalize_kalshi([{"title": "Bad", "markets": [{"ticker": "X", "volume": 5, "yes_bid": "n/a"}]}]) == []


POLY_EVENTS = [
    {
        "slug": "btc-event",
        "title": "BTC above $100,000 December",
        "markets": [
            {"slug": "btc-100k", "volume24hr": "1000.4", "bestBid": "0.61", "lastTradePrice": "0.6"},
            {"slug": "btc-120k", "volume": "10", "bestBid": "0.2"},
        ],
    },
    {"slug": "fed", "title": "Fed cuts rates June", "markets": [{"slug": "fed-june", "volume": "300", "lastTradePrice": 0.45}]},
    {"slug": "eth", "title": "ETH above $5k", "markets": [{"slug": "eth-5k", "volume": "80", "outcomePrices": "[\"0.28\", \"0.72\"]"}]},
    {"slug": "dead", "title": "No volume", "markets": [{"slug": "dead-m", "volume": "0", "bestBid": "0.5"}]},
    {"slug": "bad", "title": "Bad price", "markets": [{"slug": "bad-m", "volume": "5", "bestBid": "abc"}]},
    {"title": "No slug", "markets": [{"volume": "5", "bestBid": "0.5"}]},
    {"slug": "quiet", "title": "No quote", "markets": [{"slug": "quiet-m", "volume": "5"}]},
]


def test_polymarket_canonicalization():
    """Test slug, title, cents conversion and volume selection."""
    by_id = {i.id: i for i in canonicalize_polymarket(POLY_EVENTS)}

    btc = by_id["btc-100k"]
    assert btc.venue == config.VENUE_POLY
    assert btc.title == "BTC above $100,000 December"
    assert btc.yes_price == 61
    assert btc.volume == 1000
    assert btc.history_key == "p:btc-100k"


def test_polymarket_price_fallbacks():
    """Test best bid -> last trade -> outcome price -> 0."""
    by_id = {i.id: i for i in canonicalize_polymarket(POLY_EVENTS)}

    assert by_id["fed-june"].yes_price == 45
    assert by_id["eth-5k"].yes_price == 28
    assert by_id["quiet-m"].yes_price == 0


def test_polymarket_drops_malformed_records():
    """Test zero volume, unparseable price and missing slug records are dropped."""
    ids = {i.id for i in canonicalize_polymarket(POLY_EVENTS)}

    assert ids == {"btc-100k", "fed-june", "eth-5k", "quiet-m"}


def test_polymarket_limit_keeps_feed_order():
    """Test the limit keeps the first instruments in feed order."""
    instruments = canonicalize_polymarket(POLY_EVENTS, limit=2)

    assert [i.id for i in instruments] == ["btc-100k", "fed-june"]
    assert canonicalize_polymarket({"data": []}) == []


def test_kalshi_drops_non_finite_numbers():
    """Test infinite or NaN fields drop only their own record."""
    events = [
        {"title": "Good", "markets": [{"ticker": "GOOD", "volume": 5, "yes_bid": 40}]},
        {"title": "Inf bid", "markets": [{"ticker": "BAD1", "volume": 5, "yes_bid": float("inf")}]},
        {"title": "Inf last", "markets": [{"ticker": "BAD2", "volume": 5, "last_price": "Infinity"}]},
        {"title": "NaN volume", "markets": [{"ticker": "BAD3", "volume": "NaN", "yes_bid": 40}]},
    ]

    assert [i.id for i in canonicalize_kalshi(events)] == ["GOOD"]


def test_polymarket_drops_non_finite_numbers():
    events = [
        {"slug": "good", "title": "Good", "markets": [{"slug": "good-m", "volume": "5", "bestBid": "0.4"}]},
        {"slug": "big", "title": "Inf volume", "markets": [{"slug": "big-m", "volume": "1e999", "bestBid": "0.4"}]},
        {"slug": "inf", "title": "Inf price", "markets": [{"slug": "inf-m", "volume": "5", "outcomePrices": "[Infinity, 0]"}]},
    ]

    assert [i.id for i in canonicalize_polymarket(events)] == ["good-m"]


def test_cents_round_half_up():
    """Test half-cent prices round up, not to even."""
    events = [
        {"slug": "half", "title": "Half cent", "markets": [{"slug": "half-m", "volume": "2.5", "bestBid": "0.125"}]},
    ]

    instrument = canonicalize_polymarket(events)[0]

    assert instrument.yes_price == 13
    assert instrument.volume == 3
