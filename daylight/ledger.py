"""
Opportunity ledger.

Bounded, append-only log of detected opportunities with open/closed
lifecycle per pair key:

    absent -> open     candidate seen, no open record for the key
    open   -> open     seen again; record left untouched
    open   -> closed   not seen this scan; closed_at and duration set
    closed             terminal; a later sighting opens a new record
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .matcher import best_spreads
from .models import MatchCandidate, Opportunity, OpportunityStatus
from .utils.timeutil import minutes_between

logger = logging.getLogger(__name__)


@dataclass
class LedgerUpdate:
    """Transitions produced by one scan."""

    opened: List[Opportunity] = field(default_factory=list)
    closed: List[Opportunity] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.opened or self.closed)


class OpportunityLedger:
    """Detected opportunities, oldest first."""

    def __init__(
        self,
        records: Optional[Sequence[Opportunity]] = None,
        max_records: int = config.DEFAULT_MAX_OPPORTUNITIES,
    ):
        self.max_records = max_records
        self.records: List[Opportunity] = list(records or [])

    def __len__(self) -> int:
        return len(self.records)

    def open_records(self) -> List[Opportunity]:
        return [r for r in self.records if r.is_open]

    def closed_records(self) -> List[Opportunity]:
        return [r for r in self.records if not r.is_open]

    def find_open(self, key: str) -> Optional[Opportunity]:
        for record in self.records:
            if record.is_open and record.key == key:
                return record
        return None

    def update(
        self,
        pairs: Sequence[MatchCandidate],
        min_spread: int,
        now: datetime,
    ) -> LedgerUpdate:
        """
        Apply one scan's matched pairs.

        An open record stays open while its pair is matched with a spread of
        at least min(record.min_spread, min_spread), so raising the live
        threshold does not close opportunities that are still present.

        Args:
            pairs: Similarity-matched pairs of this scan (spread unfiltered)
            min_spread: Live minimum spread for new opportunities
            now: Scan time

        Returns:
            LedgerUpdate with the opened and closed records
        """
        result = LedgerUpdate()
        sighted = best_spreads(pairs)

        for record in self.records:
            if not record.is_open:
                continue
            required = min(record.min_spread, min_spread)
            if sighted.get(record.key, -1) >= required:
                continue

            record.status = OpportunityStatus.CLOSED
            record.closed_at = now
            record.duration_minutes = minutes_between(record.detected_at, now)
            result.closed.append(record)
            logger.info(
                f"Closed arb after {record.duration_minutes}m: {record.title_a[:40]} ({record.spread}c)"
            )

        for candidate in pairs:
            if candidate.spread < min_spread:
                continue
            if self.find_open(candidate.key) is not None:
                continue

            record = Opportunity.from_candidate(candidate, now, min_spread)
            self.records.append(record)
            result.opened.append(record)
            logger.info(
                f"NEW ARB: {record.spread}c spread - {record.title_a[:40]} | "
                f"{record.direction.describe()}"
            )

        self.trim()
        return result

    def trim(self) -> None:
        """Drop the oldest records beyond max_records."""
        overflow = len(self.records) - self.max_records
        if overflow > 0:
            evicted_open = sum(1 for r in self.records[:overflow] if r.is_open)
            if evicted_open:
                logger.warning(f"Evicting {evicted_open} open record(s) from the ledger")
            self.records = self.records[overflow:]

    def to_list(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self.records]

    @classmethod
    def from_list(
        cls,
        data: Any,
        max_records: int = config.DEFAULT_MAX_OPPORTUNITIES,
    ) -> "OpportunityLedger":
        """
        Rebuild from a stored document, skipping malformed records.

        If the stored log holds several open records for one key, only the
        newest stays open.
        """
        if not isinstance(data, list):
            if data:
                logger.warning("Ignoring malformed opportunity ledger document")
            return cls(max_records=max_records)

        records = []
        for item in data:
            try:
                records.append(Opportunity.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed ledger record: {e}")

        records.sort(key=lambda r: r.detected_at)

        seen_open = set()
        for record in reversed(records):
            if not record.is_open:
                continue
            if record.key in seen_open:
                record.status = OpportunityStatus.CLOSED
                record.closed_at = record.detected_at
                record.duration_minutes = 0
            seen_open.add(record.key)

        ledger = cls(records, max_records=max_records)
        ledger.trim()
        return ledger

    def load(self, store) -> None:
        """Replace contents with the persisted document."""
        loaded = OpportunityLedger.from_list(
            store.load(config.LEDGER_STORE, []),
            max_records=self.max_records,
        )
        self.records = loaded.records

    def save(self, store) -> None:
        self.trim()
        store.save(config.LEDGER_STORE, self.to_list())
