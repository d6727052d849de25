"""
Data models for Daylight.
"""

import random
import string
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from . import config
from .utils.timeutil import format_timestamp, parse_timestamp, to_epoch_ms


class Direction(str, Enum):
    """Which side of a matched pair to buy."""

    BUY_A_SELL_B = "BuyA_SellB"
    BUY_B_SELL_A = "BuyB_SellA"

    def describe(self, venue_a: str = config.VENUE_KALSHI, venue_b: str = config.VENUE_POLY) -> str:
        """Human readable form, e.g. 'Buy Kalshi / Sell Poly'."""
        label_a = config.VENUE_LABELS.get(venue_a, venue_a)
        label_b = config.VENUE_LABELS.get(venue_b, venue_b)
        if self is Direction.BUY_A_SELL_B:
            return f"Buy {label_a} / Sell {label_b}"
        return f"Buy {label_b} / Sell {label_a}"


class OpportunityStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


def opportunity_key(id_a: str, id_b: str) -> str:
    """Key for the unordered pair (id_a, id_b)."""
    first, second = sorted((id_a, id_b))
    return f"{first}|{second}"


def make_record_id(prefix: str, now: datetime) -> str:
    """Record id like 'arb-1700000000000-x1y2'."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{prefix}-{to_epoch_ms(now)}-{suffix}"


def _optional_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return parse_timestamp(value)


@dataclass
class CanonicalInstrument:
    """Normalized instrument quote from one venue."""
    venue: str           # 'kalshi' or 'poly'
    id: str              # Ticker (Kalshi) or slug (Polymarket)
    title: str           # Display title, not normalized
    yes_price: int       # Cents, 0 ~ 100; 0 means no reliable quote
    volume: float        # Venue-reported volume

    def __post_init__(self):
        """Validate data after initialization."""
        assert 0 <= self.yes_price <= 100, f"Invalid yes_price: {self.yes_price}"
        assert self.volume >= 0, f"Invalid volume: {self.volume}"

    @property
    def history_key(self) -> str:
        """Venue-qualified id used by the shared stores ('k:TICKER', 'p:slug')."""
        prefix = config.VENUE_PREFIXES.get(self.venue, self.venue)
        return f"{prefix}:{self.id}"

    @property
    def has_quote(self) -> bool:
        return self.yes_price > 0


@dataclass
class MatchCandidate:
    """One instrument from venue A paired with one from venue B."""

    id_a: str
    id_b: str
    title_a: str
    title_b: str
    price_a: int
    price_b: int
    similarity: float
    spread: int
    direction: Direction

    @property
    def key(self) -> str:
        return opportunity_key(self.id_a, self.id_b)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "id_a": self.id_a,
            "id_b": self.id_b,
            "title_a": self.title_a,
            "title_b": self.title_b,
            "price_a": self.price_a,
            "price_b": self.price_b,
            "similarity": round(self.similarity, 4),
            "spread": self.spread,
            "direction": self.direction.value,
            "direction_label": self.direction.describe(),
        }


@dataclass
class Opportunity:
    """Tracked, lifecycle-managed record of one matched pair."""

    id: str
    key: str
    id_a: str
    id_b: str
    title_a: str
    title_b: str
    price_a: int
    price_b: int
    spread: int
    direction: Direction
    detected_at: datetime
    min_spread: int
    status: OpportunityStatus = OpportunityStatus.OPEN
    closed_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None

    @classmethod
    def from_candidate(cls, candidate: MatchCandidate, now: datetime, min_spread: int) -> "Opportunity":
        return cls(
            id=make_record_id("arb", now),
            key=candidate.key,
            id_a=candidate.id_a,
            id_b=candidate.id_b,
            title_a=candidate.title_a,
            title_b=candidate.title_b,
            price_a=candidate.price_a,
            price_b=candidate.price_b,
            spread=candidate.spread,
            direction=candidate.direction,
            detected_at=now,
            min_spread=min_spread,
        )

    @property
    def is_open(self) -> bool:
        return self.status is OpportunityStatus.OPEN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "key": self.key,
            "id_a": self.id_a,
            "id_b": self.id_b,
            "title_a": self.title_a,
            "title_b": self.title_b,
            "price_a": self.price_a,
            "price_b": self.price_b,
            "spread": self.spread,
            "direction": self.direction.value,
            "status": self.status.value,
            "detected_at": format_timestamp(self.detected_at),
            "closed_at": format_timestamp(self.closed_at) if self.closed_at else None,
            "duration_minutes": self.duration_minutes,
            "min_spread": self.min_spread,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Opportunity":
        """
        Rebuild a stored record.

        Raises:
            KeyError, ValueError, TypeError: If the record is malformed
        """
        return cls(
            id=str(data["id"]),
            key=opportunity_key(str(data["id_a"]), str(data["id_b"])),
            id_a=str(data["id_a"]),
            id_b=str(data["id_b"]),
            title_a=str(data.get("title_a", "")),
            title_b=str(data.get("title_b", "")),
            price_a=int(data["price_a"]),
            price_b=int(data["price_b"]),
            spread=int(data["spread"]),
            direction=Direction(data["direction"]),
            detected_at=parse_timestamp(data["detected_at"]),
            min_spread=int(data.get("min_spread", config.DEFAULT_MIN_SPREAD)),
            status=OpportunityStatus(data.get("status", "open")),
            closed_at=_optional_timestamp(data.get("closed_at")),
            duration_minutes=data.get("duration_minutes"),
        )


@dataclass
class AlertEvent:
    """One-shot notification for a newly opened opportunity."""

    id: str
    opportunity_key: str
    instrument_id: str   # Venue A id of the pair
    name: str
    spread: int
    direction: Direction
    price_a: int
    price_b: int
    created_at: datetime
    triggered: bool = True
    kind: str = field(default="arb", init=False)

    @property
    def triggered_at(self) -> datetime:
        return self.created_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "opportunity_key": self.opportunity_key,
            "instrument_id": self.instrument_id,
            "name": self.name,
            "condition": "spread >=",
            "target": self.spread,
            "spread": self.spread,
            "direction": self.direction.value,
            "price_a": self.price_a,
            "price_b": self.price_b,
            "triggered": self.triggered,
            "created_at": format_timestamp(self.created_at),
            "triggered_at": format_timestamp(self.triggered_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertEvent":
        return cls(
            id=str(data["id"]),
            opportunity_key=str(data["opportunity_key"]),
            instrument_id=str(data["instrument_id"]),
            name=str(data.get("name", "")),
            spread=int(data["spread"]),
            direction=Direction(data["direction"]),
            price_a=int(data["price_a"]),
            price_b=int(data["price_b"]),
            created_at=parse_timestamp(data["created_at"]),
            triggered=bool(data.get("triggered", True)),
        )


@dataclass
class PriceAlert:
    """User-defined alert on one instrument's yes price."""

    id: str
    instrument_id: str   # History key, e.g. 'k:TICKER'
    name: str
    condition: str       # 'above' or 'below'
    target: int          # Cents
    created_at: datetime
    triggered: bool = False
    triggered_at: Optional[datetime] = None
    kind: str = field(default="price", init=False)

    def __post_init__(self):
        if self.condition not in ("above", "below"):
            raise ValueError(f"condition must be 'above' or 'below', got {self.condition!r}")
        if not 0 <= self.target <= 100:
            raise ValueError(f"target must be 0-100, got {self.target}")

    def is_hit(self, price: int) -> bool:
        if self.condition == "above":
            return price >= self.target
        return price <= self.target

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "instrument_id": self.instrument_id,
            "name": self.name,
            "condition": self.condition,
            "target": self.target,
            "triggered": self.triggered,
            "created_at": format_timestamp(self.created_at),
            "triggered_at": format_timestamp(self.triggered_at) if self.triggered_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceAlert":
        return cls(
            id=str(data["id"]),
            instrument_id=str(data["instrument_id"]),
            name=str(data.get("name", "")),
            condition=str(data["condition"]),
            target=int(data["target"]),
            created_at=parse_timestamp(data["created_at"]),
            triggered=bool(data.get("triggered", False)),
            triggered_at=_optional_timestamp(data.get("triggered_at")),
        )


@dataclass
class PriceSample:
    t: int   # Epoch milliseconds
    p: int   # Cents

    def to_dict(self) -> Dict[str, int]:
        return {"t": self.t, "p": self.p}


@dataclass
class Mover:
    """Instrument whose price changed since the previous cycle."""

    instrument_id: str
    venue: str
    title: str
    yes_price: int
    delta: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instrument_id": self.instrument_id,
            "venue": self.venue,
            "title": self.title,
            "yes_price": self.yes_price,
            "delta": self.delta,
        }


@dataclass
class WatchItem:
    id: str
    title: str
    source: str
    link: str
    added_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "source": self.source,
            "link": self.link,
            "added_at": format_timestamp(self.added_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatchItem":
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            source=str(data.get("source", "unknown")),
            link=str(data.get("link", "#")),
            added_at=parse_timestamp(data["added_at"]),
        )
