"""
Alert book and the arbitrage alert bridge.

The alert book is the persisted alert list: one-shot arb alerts emitted
for new opportunities, and manual price alerts checked against each
cycle's live prices.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from . import config
from .models import AlertEvent, Opportunity, PriceAlert, make_record_id

logger = logging.getLogger(__name__)

Alert = Union[AlertEvent, PriceAlert]


def _alert_from_dict(data: Dict[str, Any]) -> Alert:
    if data.get("kind") == "arb":
        return AlertEvent.from_dict(data)
    return PriceAlert.from_dict(data)


class AlertBook:
    """Persisted list of alerts."""

    def __init__(self, alerts: Optional[Iterable[Alert]] = None):
        self.alerts: List[Alert] = list(alerts or [])

    def __len__(self) -> int:
        return len(self.alerts)

    def append(self, alert: Alert) -> None:
        self.alerts.append(alert)

    def list(self) -> List[Alert]:
        return list(self.alerts)

    def has_pending_for(self, instrument_id: str) -> bool:
        """
        True if an un-triggered alert references the instrument.

        Matches bare ids ("TICKER") and history keys ("k:TICKER").
        """
        for alert in self.alerts:
            if alert.triggered:
                continue
            referenced = alert.instrument_id
            if referenced == instrument_id or referenced.split(":", 1)[-1] == instrument_id:
                return True
        return False

    def create_price_alert(
        self,
        instrument_id: str,
        name: str,
        condition: str,
        target: int,
        now: datetime,
    ) -> PriceAlert:
        """
        Add a manual alert on one instrument.

        Args:
            instrument_id: History key (e.g., "k:TICKER")
            name: Display name
            condition: "above" or "below"
            target: Target price in cents
            now: Creation time

        Returns:
            The new PriceAlert

        Raises:
            ValueError: If condition or target is invalid
        """
        alert = PriceAlert(
            id=make_record_id("alert", now),
            instrument_id=instrument_id,
            name=name,
            condition=condition,
            target=int(target),
            created_at=now,
        )
        self.alerts.append(alert)
        logger.info(f"Alert set: {name} {condition} {target}c")
        return alert

    def delete(self, alert_id: str) -> bool:
        remaining = [a for a in self.alerts if a.id != alert_id]
        removed = len(remaining) != len(self.alerts)
        self.alerts = remaining
        return removed

    def clear(self) -> None:
        self.alerts = []

    def check_prices(self, prices: Dict[str, int], now: datetime) -> List[PriceAlert]:
        """
        Fire manual alerts whose condition holds at the current prices.

        Args:
            prices: History key -> current yes price
            now: Check time

        Returns:
            Alerts triggered by this check
        """
        fired = []
        for alert in self.alerts:
            if not isinstance(alert, PriceAlert) or alert.triggered:
                continue
            price = prices.get(alert.instrument_id)
            if price is None or not alert.is_hit(price):
                continue
            alert.triggered = True
            alert.triggered_at = now
            fired.append(alert)
            logger.info(
                f"TRIGGERED: {alert.name} is {price}c (target: {alert.condition} {alert.target}c)"
            )
        return fired

    def to_list(self) -> List[Dict[str, Any]]:
        return [alert.to_dict() for alert in self.alerts]

    @classmethod
    def from_list(cls, data: Any) -> "AlertBook":
        if not isinstance(data, list):
            if data:
                logger.warning("Ignoring malformed alerts document")
            return cls()

        alerts = []
        for item in data:
            try:
                alerts.append(_alert_from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed alert: {e}")
        return cls(alerts)

    def load(self, store) -> None:
        self.alerts = AlertBook.from_list(store.load(config.ALERTS_STORE, [])).alerts

    def save(self, store) -> None:
        store.save(config.ALERTS_STORE, self.to_list())


class AlertBridge:
    """Emits one alert per newly opened opportunity."""

    def __init__(self, book: AlertBook, min_spread: int = config.DEFAULT_MIN_SPREAD, enabled: bool = True):
        self.book = book
        self.min_spread = min_spread
        self.enabled = enabled

    def notify(self, opened: Iterable[Opportunity], now: datetime) -> List[AlertEvent]:
        """
        Append an AlertEvent for each qualifying new opportunity.

        Skips opportunities below min_spread and those whose venue-A
        instrument already has an un-triggered alert. Alerts are never
        retracted when the opportunity later closes.

        Args:
            opened: Opportunities that moved absent -> open this scan
            now: Scan time

        Returns:
            Alerts emitted
        """
        if not self.enabled:
            return []

        emitted = []
        for opportunity in opened:
            if opportunity.spread < self.min_spread:
                continue
            if self.book.has_pending_for(opportunity.id_a):
                logger.debug(f"Pending alert already covers {opportunity.id_a}")
                continue

            alert = AlertEvent(
                id=make_record_id("arb-alert", now),
                opportunity_key=opportunity.key,
                instrument_id=opportunity.id_a,
                name=f"ARB: {opportunity.title_a[:40]} ({opportunity.spread}c)",
                spread=opportunity.spread,
                direction=opportunity.direction,
                price_a=opportunity.price_a,
                price_b=opportunity.price_b,
                created_at=now,
            )
            self.book.append(alert)
            emitted.append(alert)
            logger.info(f"Auto-alert created for {opportunity.spread}c spread")

        return emitted
