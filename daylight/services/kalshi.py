"""
Kalshi data collector using their public API.

Documentation: https://docs.kalshi.com/
API Endpoint: https://api.elections.kalshi.com/trade-api/v2
Authentication: not needed for public market data
"""

import logging
from typing import Any, Dict, List, Optional

from .. import config
from ..canonicalizer import canonicalize_kalshi
from ..models import CanonicalInstrument
from .base import BaseCollector

logger = logging.getLogger(__name__)


class KalshiCollector(BaseCollector):
    """Collector for Kalshi open events (venue A)."""

    venue = config.VENUE_KALSHI

    def __init__(
        self,
        base_url: str = config.KALSHI_API_BASE,
        timeout: float = config.DEFAULT_FETCH_TIMEOUT,
        limit: Optional[int] = config.DEFAULT_KALSHI_LIMIT,
        **kwargs
    ):
        """
        Initialize Kalshi collector.

        Args:
            base_url: Kalshi trade API base URL
            timeout: Request timeout in seconds
            limit: Most active instruments to keep (None = all)
        """
        super().__init__(base_url, timeout=timeout, **kwargs)
        self.limit = limit

    def fetch_snapshot(self) -> List[Dict[str, Any]]:
        """
        Fetch open events with nested markets.

        Returns:
            List of raw event dicts

        Raises:
            requests.RequestException: On transport failure
        """
        params = {
            "limit": config.KALSHI_EVENTS_LIMIT,
            "status": "open",
            "with_nested_markets": "true",
        }

        logger.info("Fetching Kalshi events...")
        data = self._request_with_retry("GET", "/events", params=params)

        events = data.get("events", []) if isinstance(data, dict) else []
        logger.info(f"Fetched {len(events)} Kalshi events")
        return events

    def canonicalize(self, snapshot: Any) -> List[CanonicalInstrument]:
        return canonicalize_kalshi(snapshot, limit=self.limit)
