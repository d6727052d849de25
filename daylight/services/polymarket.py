"""
Polymarket data collector using Gamma API.

Documentation: https://docs.polymarket.com/#gamma-markets-api
"""

import logging
from typing import Any, Dict, List, Optional

from .. import config
from ..canonicalizer import canonicalize_polymarket
from ..models import CanonicalInstrument
from .base import BaseCollector

logger = logging.getLogger(__name__)


class PolymarketCollector(BaseCollector):
    """Collector for Polymarket data via Gamma API (venue B)."""

    venue = config.VENUE_POLY

    def __init__(
        self,
        base_url: str = config.GAMMA_API_BASE,
        timeout: float = config.DEFAULT_FETCH_TIMEOUT,
        limit: Optional[int] = config.DEFAULT_POLY_LIMIT,
        **kwargs
    ):
        """
        Initialize Polymarket collector.

        Args:
            base_url: Gamma API base URL
            timeout: Request timeout in seconds
            limit: Instruments to keep, in 24h volume order (None = all)
        """
        super().__init__(base_url, timeout=timeout, **kwargs)
        self.limit = limit

    def fetch_snapshot(self) -> List[Dict[str, Any]]:
        """
        Fetch open events ordered by 24h volume.

        Returns:
            List of raw event dicts

        Raises:
            requests.RequestException: On transport failure
        """
        params = {
            "closed": "false",
            "limit": config.POLY_EVENTS_LIMIT,
            "order": "volume24hr",
            "ascending": "false",
        }

        logger.info("Fetching Polymarket events...")
        events = self._request_with_retry("GET", "/events", params=params)

        # Response can be a list or a dict with a 'data' key
        if isinstance(events, dict):
            events = events.get("data", [])
        if not isinstance(events, list):
            logger.warning(f"Unexpected response format: {type(events)}")
            return []

        logger.info(f"Fetched {len(events)} Polymarket events")
        return events

    def canonicalize(self, snapshot: Any) -> List[CanonicalInstrument]:
        return canonicalize_polymarket(snapshot, limit=self.limit)
