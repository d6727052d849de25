"""
Canonicalization of raw venue responses.

Each venue lists logical events with one or more nested markets. For every
event the most traded market is kept and reduced to a CanonicalInstrument.
Malformed records are dropped, never raised.
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional

from . import config
from .models import CanonicalInstrument

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float:
    """
    Parse a numeric field, treating missing/empty as zero.

    Raises:
        ValueError, TypeError: If the value is present but not a finite number
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise TypeError(f"Unexpected boolean value: {value}")
    result = float(value)
    if not math.isfinite(result):
        raise ValueError(f"Non-finite numeric value: {value}")
    return result


def _clamp_cents(value: float) -> int:
    """Round half up to whole cents within 0-100."""
    return max(0, min(100, math.floor(value + 0.5)))


def _first_truthy(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def _best_by_volume(markets: List[Dict[str, Any]], volume_of) -> Optional[Dict[str, Any]]:
    best = None
    best_volume = 0.0
    for market in markets:
        if not isinstance(market, dict):
            continue
        try:
            volume = volume_of(market)
        except (ValueError, TypeError):
            continue
        if best is None or volume > best_volume:
            best = market
            best_volume = volume
    return best


def _kalshi_volume(market: Dict[str, Any]) -> float:
    return _to_float(market.get("volume"))


def _poly_volume(market: Dict[str, Any]) -> float:
    return _to_float(_first_truthy(market.get("volume24hr"), market.get("volume")))


def canonicalize_kalshi(events: Any, limit: Optional[int] = None) -> List[CanonicalInstrument]:
    """
    Canonicalize a Kalshi /events response (with nested markets).

    Price is yes_bid, falling back to last_price, else 0 (both in cents).

    Args:
        events: List of event dicts, or the full response dict
        limit: Keep only the most active instruments (None = all)

    Returns:
        List of CanonicalInstrument objects
    """
    if isinstance(events, dict):
        events = events.get("events", [])
    if not isinstance(events, list):
        logger.debug("Kalshi payload is not a list, ignoring")
        return []

    ranked = []

    for event in events:
        if not isinstance(event, dict):
            continue

        markets = event.get("markets") or []
        best = _best_by_volume(markets, _kalshi_volume)
        if best is None:
            continue

        try:
            volume = _kalshi_volume(best)
            if volume <= 0:
                continue

            ticker = best.get("ticker")
            title = event.get("title") or best.get("title")
            if not ticker or not title:
                logger.debug(f"Dropping Kalshi record without ticker/title: {event.get('event_ticker')}")
                continue

            price = _to_float(_first_truthy(best.get("yes_bid"), best.get("last_price")))
            activity = _to_float(best.get("volume_24h")) * 10 + volume

            instrument = CanonicalInstrument(
                venue=config.VENUE_KALSHI,
                id=str(ticker),
                title=str(title),
                yes_price=_clamp_cents(price),
                volume=volume,
            )
        except (ValueError, TypeError, AssertionError) as e:
            logger.debug(f"Dropping malformed Kalshi record: {e}")
            continue

        ranked.append((activity, instrument))

    if limit is not None:
        ranked.sort(key=lambda item: item[0], reverse=True)
        ranked = ranked[:limit]

    return [instrument for _, instrument in ranked]


def _poly_price(market: Dict[str, Any]) -> float:
    """
    Best bid, then last trade, then the first outcome price (dollars).
    """
    best_bid = _to_float(market.get("bestBid"))
    if best_bid:
        return best_bid

    last_trade = _to_float(market.get("lastTradePrice"))
    if last_trade:
        return last_trade

    outcome_prices = market.get("outcomePrices") or []
    if isinstance(outcome_prices, str):
        outcome_prices = json.loads(outcome_prices)
    if isinstance(outcome_prices, list) and outcome_prices:
        return _to_float(outcome_prices[0])

    return 0.0


def canonicalize_polymarket(events: Any, limit: Optional[int] = None) -> List[CanonicalInstrument]:
    """
    Canonicalize a Gamma /events response.

    Args:
        events: List of event dicts
        limit: Keep only the first N instruments, in feed order (None = all)

    Returns:
        List of CanonicalInstrument objects
    """
    if not isinstance(events, list):
        logger.debug("Polymarket payload is not a list, ignoring")
        return []

    instruments = []

    for event in events:
        if not isinstance(event, dict):
            continue

        markets = event.get("markets") or []
        best = _best_by_volume(markets, _poly_volume)
        if best is None:
            continue

        try:
            volume = _poly_volume(best)
            if volume <= 0:
                continue

            slug = best.get("slug") or event.get("slug")
            title = event.get("title") or best.get("question") or best.get("groupItemTitle")
            if not slug or not title:
                logger.debug(f"Dropping Polymarket record without slug/title: {event.get('id')}")
                continue

            instrument = CanonicalInstrument(
                venue=config.VENUE_POLY,
                id=str(slug),
                title=str(title),
                yes_price=_clamp_cents(_poly_price(best) * 100),
                volume=float(math.floor(volume + 0.5)),
            )
        except (ValueError, TypeError, AssertionError) as e:
            logger.debug(f"Dropping malformed Polymarket record: {e}")
            continue

        instruments.append(instrument)

        if limit is not None and len(instruments) >= limit:
            break

    return instruments
