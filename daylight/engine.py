"""
Scan engine.

One scan cycle:
1. Fetches both venue snapshots concurrently
2. Canonicalizes them and appends them to the price history
3. Matches instruments across venues and computes spreads
4. Updates the opportunity ledger and emits alerts for new opportunities
5. Writes every store back

Cycles are serialized through one lock whether they come from the monitor
timer or from a view request, so the read-modify-write of the stores never
interleaves within a process. Several processes sharing one data directory
still need external locking.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from . import config as cfg
from .alerts import AlertBook, AlertBridge
from .config import ArbConfig, load_config, save_config
from .history import PriceHistoryStore, record_snapshot
from .ledger import OpportunityLedger
from .matcher import MarketMatcher, filter_by_spread
from .models import AlertEvent, CanonicalInstrument, MatchCandidate, Mover, Opportunity, PriceAlert
from .movers import build_movers, top_movers
from .services import KalshiCollector, PolymarketCollector
from .storage import JsonStore
from .utils.timeutil import format_timestamp, to_epoch_ms, utc_now
from .watchlist import Watchlist

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """Outcome of one scan cycle."""

    scanned_at: datetime
    instruments_a: List[CanonicalInstrument] = field(default_factory=list)
    instruments_b: List[CanonicalInstrument] = field(default_factory=list)
    candidates: List[MatchCandidate] = field(default_factory=list)
    display_candidates: List[MatchCandidate] = field(default_factory=list)
    opened: List[Opportunity] = field(default_factory=list)
    closed: List[Opportunity] = field(default_factory=list)
    alerts: List[AlertEvent] = field(default_factory=list)
    price_alerts: List[PriceAlert] = field(default_factory=list)
    deltas: Dict[str, Optional[int]] = field(default_factory=dict)
    movers: List[Mover] = field(default_factory=list)
    inconclusive: bool = False

    @property
    def prices(self) -> Dict[str, int]:
        return {
            instrument.history_key: instrument.yes_price
            for instrument in self.instruments_a + self.instruments_b
        }

    def summary(self) -> str:
        return (
            f"Kalshi: {len(self.instruments_a)}, Poly: {len(self.instruments_b)}, "
            f"candidates: {len(self.candidates)}, opened: {len(self.opened)}, "
            f"closed: {len(self.closed)}, alerts: {len(self.alerts)}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scanned_at": format_timestamp(self.scanned_at),
            "kalshi_count": len(self.instruments_a),
            "poly_count": len(self.instruments_b),
            "inconclusive": self.inconclusive,
            "opportunities": [c.to_dict() for c in self.display_candidates],
            "opened": [o.to_dict() for o in self.opened],
            "closed": [o.to_dict() for o in self.closed],
            "alerts": [a.to_dict() for a in self.alerts + self.price_alerts],
            "movers": [m.to_dict() for m in self.movers],
        }


class ScanEngine:
    """Owns the stores and runs scan cycles against two feeds."""

    def __init__(
        self,
        config: ArbConfig,
        store: JsonStore,
        feed_a,
        feed_b,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the engine.

        Args:
            config: Engine settings
            store: Key-value store for the ledger, history, alerts, watchlist
            feed_a: Venue A provider (fetch_snapshot() and canonicalize(snapshot))
            feed_b: Venue B provider
            clock: Returns the current aware datetime
        """
        self.config = config
        self.store = store
        self.feed_a = feed_a
        self.feed_b = feed_b
        self.clock = clock
        self.last_report: Optional[ScanReport] = None
        self._lock = asyncio.Lock()

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def _fetch(self, feed) -> List[CanonicalInstrument]:
        loop = asyncio.get_running_loop()
        snapshot = await asyncio.wait_for(
            loop.run_in_executor(None, feed.fetch_snapshot),
            timeout=self.config.fetch_timeout,
        )
        return feed.canonicalize(snapshot)

    async def gather_snapshots(self) -> Tuple[List[CanonicalInstrument], List[CanonicalInstrument]]:
        """
        Fetch both venues concurrently.

        A venue that errors or times out yields an empty list.

        Returns:
            (instruments_a, instruments_b)
        """
        results = await asyncio.gather(
            self._fetch(self.feed_a),
            self._fetch(self.feed_b),
            return_exceptions=True,
        )

        snapshots = []
        for name, result in zip((cfg.VENUE_KALSHI, cfg.VENUE_POLY), results):
            if isinstance(result, asyncio.TimeoutError):
                logger.error(f"{name} fetch timed out after {self.config.fetch_timeout}s")
                snapshots.append([])
            elif isinstance(result, Exception):
                logger.error(f"{name} collection failed: {result}")
                snapshots.append([])
            elif isinstance(result, BaseException):
                raise result
            else:
                snapshots.append(result)

        return snapshots[0], snapshots[1]

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def run_cycle(self, display_min_spread: Optional[int] = None) -> ScanReport:
        """
        Run one full scan cycle.

        Args:
            display_min_spread: Spread filter for the returned display list
                (None = the ledger's min_spread)

        Returns:
            ScanReport

        Raises:
            OSError: If a store cannot be written
        """
        async with self._lock:
            instruments_a, instruments_b = await self.gather_snapshots()
            return self.process(instruments_a, instruments_b, display_min_spread)

    def process(
        self,
        instruments_a: Sequence[CanonicalInstrument],
        instruments_b: Sequence[CanonicalInstrument],
        display_min_spread: Optional[int] = None,
    ) -> ScanReport:
        """
        Apply one pair of canonical snapshots to the stores.

        If either snapshot is empty the cycle is inconclusive: history is
        still appended, but no opportunity is opened or closed.
        """
        now = self.clock()
        config = self.config

        ledger = OpportunityLedger(max_records=config.max_opportunities)
        ledger.load(self.store)
        history = PriceHistoryStore(max_samples=config.max_history)
        history.load(self.store)
        book = AlertBook()
        book.load(self.store)

        report = ScanReport(
            scanned_at=now,
            instruments_a=list(instruments_a),
            instruments_b=list(instruments_b),
        )
        everything = report.instruments_a + report.instruments_b

        report.deltas = record_snapshot(history, everything, to_epoch_ms(now))

        pairs: List[MatchCandidate] = []
        if report.instruments_a and report.instruments_b:
            matcher = MarketMatcher(similarity_threshold=config.similarity_threshold)
            pairs = matcher.match_pairs(report.instruments_a, report.instruments_b)
            report.candidates = filter_by_spread(pairs, config.min_spread)

            update = ledger.update(pairs, config.min_spread, now)
            report.opened = update.opened
            report.closed = update.closed

            bridge = AlertBridge(book, min_spread=config.min_spread, enabled=config.auto_alert)
            report.alerts = bridge.notify(update.opened, now)
        else:
            report.inconclusive = True
            logger.warning(
                f"Missing data - Kalshi: {len(report.instruments_a)}, "
                f"Poly: {len(report.instruments_b)}; skipping lifecycle update"
            )

        report.price_alerts = book.check_prices(report.prices, now)

        if display_min_spread is None or display_min_spread == config.min_spread:
            report.display_candidates = report.candidates
        else:
            report.display_candidates = filter_by_spread(pairs, display_min_spread)

        report.movers = top_movers(build_movers(everything, report.deltas), config.top_movers)

        history.save(self.store)
        ledger.save(self.store)
        if report.alerts or report.price_alerts:
            book.save(self.store)

        logger.info(f"Scan complete - {report.summary()}")
        self.last_report = report
        return report

    async def run_forever(self, max_cycles: Optional[int] = None) -> None:
        """
        Standalone monitor: scan now, then every check_interval.

        Args:
            max_cycles: Stop after this many cycles (None = run until cancelled)

        Raises:
            OSError: If a store cannot be written
        """
        logger.info(
            f"Starting monitor - min spread: {self.config.min_spread}c, "
            f"interval: {self.config.check_interval_seconds:.0f}s"
        )
        cycles = 0
        while True:
            report = await self.run_cycle()
            if report.candidates:
                logger.info(f"Scan complete - {len(report.candidates)} active arbs")

            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                return
            await asyncio.sleep(self.config.check_interval_seconds)

    # ------------------------------------------------------------------
    # Read-only snapshots
    # ------------------------------------------------------------------

    def opportunities(self, status: Optional[str] = None) -> List[Opportunity]:
        ledger = OpportunityLedger(max_records=self.config.max_opportunities)
        ledger.load(self.store)
        if status is None:
            return ledger.records
        return [r for r in ledger.records if r.status.value == status]

    def price_history(self) -> PriceHistoryStore:
        history = PriceHistoryStore(max_samples=self.config.max_history)
        history.load(self.store)
        return history

    def alert_book(self) -> AlertBook:
        book = AlertBook()
        book.load(self.store)
        return book

    def watchlist(self) -> Watchlist:
        watchlist = Watchlist()
        watchlist.load(self.store)
        return watchlist

    # ------------------------------------------------------------------
    # Serialized writes from outside the cycle
    # ------------------------------------------------------------------

    async def add_price_alert(self, instrument_id: str, name: str, condition: str, target: int) -> PriceAlert:
        async with self._lock:
            book = self.alert_book()
            alert = book.create_price_alert(instrument_id, name, condition, target, self.clock())
            book.save(self.store)
            return alert

    async def delete_alert(self, alert_id: str) -> bool:
        async with self._lock:
            book = self.alert_book()
            removed = book.delete(alert_id)
            if removed:
                book.save(self.store)
            return removed

    async def add_watch(self, item_id: str, title: str, source: str = "unknown", link: str = "#"):
        async with self._lock:
            watchlist = self.watchlist()
            item = watchlist.add(item_id, title, self.clock(), source=source, link=link)
            watchlist.save(self.store)
            return item

    async def remove_watch(self, item_id: str) -> bool:
        async with self._lock:
            watchlist = self.watchlist()
            removed = watchlist.remove(item_id)
            if removed:
                watchlist.save(self.store)
            return removed

    async def update_config(self, **changes: Any) -> ArbConfig:
        """
        Change settings and persist them; applies from the next cycle.

        Raises:
            ValueError: On unknown options or invalid values
        """
        async with self._lock:
            self.config = self.config.replace(**changes)
            save_config(self.store, self.config)
            logger.info(f"Config updated: {changes}")
            return self.config


def create_engine(
    data_dir: Union[str, Path] = cfg.DATA_DIR,
    config: Optional[ArbConfig] = None,
) -> ScanEngine:
    """
    Build an engine wired to the live Kalshi and Polymarket feeds.

    Args:
        data_dir: Directory for the JSON stores
        config: Settings (None = the persisted config, else defaults)

    Returns:
        ScanEngine instance
    """
    store = JsonStore(data_dir)
    if config is None:
        config = load_config(store)

    feed_a = KalshiCollector(timeout=config.fetch_timeout, limit=config.kalshi_limit)
    feed_b = PolymarketCollector(timeout=config.fetch_timeout, limit=config.poly_limit)
    return ScanEngine(config, store, feed_a, feed_b)
