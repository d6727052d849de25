"""
Watchlist of starred instruments.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from . import config
from .models import WatchItem

logger = logging.getLogger(__name__)


class Watchlist:
    def __init__(self, items: Optional[List[WatchItem]] = None):
        self._items: List[WatchItem] = list(items or [])

    def __len__(self) -> int:
        return len(self._items)

    def items(self) -> List[WatchItem]:
        return list(self._items)

    def add(self, item_id: str, title: str, now: datetime, source: str = "unknown", link: str = "#") -> WatchItem:
        """Star an instrument; adding an id twice keeps the first entry."""
        for item in self._items:
            if item.id == item_id:
                return item
        item = WatchItem(id=item_id, title=title, source=source, link=link, added_at=now)
        self._items.append(item)
        return item

    def remove(self, item_id: str) -> bool:
        remaining = [item for item in self._items if item.id != item_id]
        removed = len(remaining) != len(self._items)
        self._items = remaining
        return removed

    def enrich(
        self,
        prices: Dict[str, int],
        deltas: Dict[str, Optional[int]],
    ) -> List[Dict[str, Any]]:
        """
        Attach live price and delta to each item.

        Items are matched by history key first, then by bare venue id.

        Args:
            prices: History key -> current yes price
            deltas: History key -> delta since previous cycle

        Returns:
            Item dicts with "yes_price" (None when not in the feeds) and "delta"
        """
        by_bare_id = {key.split(":", 1)[-1]: key for key in prices}

        enriched = []
        for item in self._items:
            key = item.id if item.id in prices else by_bare_id.get(item.id)
            row = item.to_dict()
            row["yes_price"] = prices.get(key) if key else None
            row["delta"] = deltas.get(key) if key else None
            enriched.append(row)
        return enriched

    def load(self, store) -> None:
        data = store.load(config.WATCHLIST_STORE, [])
        items = []
        for entry in data if isinstance(data, list) else []:
            try:
                items.append(WatchItem.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed watchlist entry: {e}")
        self._items = items

    def save(self, store) -> None:
        store.save(config.WATCHLIST_STORE, [item.to_dict() for item in self._items])
