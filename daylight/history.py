"""
Bounded per-instrument price history.

Each scan appends exactly one sample per instrument; identical consecutive
prices are kept so flat runs still draw as flat trends.
"""

import logging
from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from . import config
from .models import PriceSample

logger = logging.getLogger(__name__)


class PriceHistoryStore:
    """Most recent samples per instrument key, oldest first."""

    def __init__(self, max_samples: int = config.DEFAULT_MAX_HISTORY):
        self.max_samples = max_samples
        self._series: Dict[str, Deque[PriceSample]] = {}

    def __len__(self) -> int:
        return len(self._series)

    def __contains__(self, instrument_id: str) -> bool:
        return instrument_id in self._series

    def keys(self) -> List[str]:
        return list(self._series)

    def append(self, instrument_id: str, price: int, timestamp: int) -> None:
        """
        Push one sample, evicting the oldest beyond the cap.

        Args:
            instrument_id: History key (e.g., "k:TICKER")
            price: Yes price in cents
            timestamp: Epoch milliseconds
        """
        series = self._series.get(instrument_id)
        if series is None:
            series = deque(maxlen=self.max_samples)
            self._series[instrument_id] = series
        series.append(PriceSample(t=int(timestamp), p=int(price)))

    def latest(self, instrument_id: str) -> Optional[PriceSample]:
        series = self._series.get(instrument_id)
        if not series:
            return None
        return series[-1]

    def delta(self, instrument_id: str, current_price: int) -> Optional[int]:
        """
        Change from the previous cycle's price.

        Call before appending the current cycle's sample.

        Returns:
            current_price - previous price, or None on first sighting
        """
        previous = self.latest(instrument_id)
        if previous is None:
            return None
        return current_price - previous.p

    def series(self, instrument_id: str) -> List[PriceSample]:
        """Copy of the samples for one instrument, oldest first."""
        return list(self._series.get(instrument_id, ()))

    def to_dict(self) -> Dict[str, List[Dict[str, int]]]:
        return {
            key: [sample.to_dict() for sample in series]
            for key, series in self._series.items()
        }

    @classmethod
    def from_dict(cls, data: Any, max_samples: int = config.DEFAULT_MAX_HISTORY) -> "PriceHistoryStore":
        """
        Rebuild from a stored document, skipping malformed entries.

        Args:
            data: Mapping of key -> list of {"t", "p"} dicts
            max_samples: Per-instrument cap

        Returns:
            PriceHistoryStore instance
        """
        store = cls(max_samples=max_samples)
        if not isinstance(data, dict):
            if data:
                logger.warning("Ignoring malformed price history document")
            return store

        for key, samples in data.items():
            if not isinstance(samples, list):
                continue
            for sample in samples:
                try:
                    store.append(str(key), int(sample["p"]), int(sample["t"]))
                except (KeyError, TypeError, ValueError):
                    logger.debug(f"Skipping malformed sample for {key}: {sample}")
        return store

    def load(self, store) -> None:
        """Replace contents with the persisted document."""
        loaded = PriceHistoryStore.from_dict(
            store.load(config.PRICE_HISTORY_STORE, {}),
            max_samples=self.max_samples,
        )
        self._series = loaded._series

    def save(self, store) -> None:
        store.save(config.PRICE_HISTORY_STORE, self.to_dict())

    def to_frame(self) -> pd.DataFrame:
        """
        Flatten into a DataFrame.

        Returns:
            DataFrame with columns: instrument, ts (UTC), price
        """
        rows = [
            {"instrument": key, "ts": sample.t, "price": sample.p}
            for key, series in self._series.items()
            for sample in series
        ]
        df = pd.DataFrame(rows, columns=["instrument", "ts", "price"])
        if not df.empty:
            df["ts"] = pd.to_datetime(df["ts"], unit="ms", utc=True)
            df = df.sort_values(["instrument", "ts"]).reset_index(drop=True)
        return df


def sparkline_points(
    samples: Sequence[PriceSample],
    width: float = 60.0,
    height: float = 20.0,
) -> Tuple[List[Tuple[float, float]], Optional[str]]:
    """
    Scale samples into a width x height box for drawing.

    Fewer than two samples means no trend.

    Args:
        samples: Samples oldest first
        width: Box width
        height: Box height (y grows downwards)

    Returns:
        (points, trend) where trend is "up" (last >= first), "down" or None
    """
    if len(samples) < 2:
        return [], None

    prices = [sample.p for sample in samples]
    low = min(prices)
    span = (max(prices) - low) or 1
    last_index = len(prices) - 1

    points = [
        (
            round(index / last_index * width, 1),
            round(height - (price - low) / span * height, 1),
        )
        for index, price in enumerate(prices)
    ]
    trend = "up" if prices[-1] >= prices[0] else "down"
    return points, trend


def record_snapshot(
    history: PriceHistoryStore,
    instruments: Iterable,
    timestamp: int,
) -> Dict[str, Optional[int]]:
    """
    Compute deltas for a snapshot, then append it to the history.

    Args:
        history: Store to update
        instruments: CanonicalInstrument objects from one cycle
        timestamp: Epoch milliseconds for every sample of this cycle

    Returns:
        Mapping history key -> delta (None on first sighting)
    """
    deltas: Dict[str, Optional[int]] = {}
    for instrument in instruments:
        key = instrument.history_key
        if key in deltas:
            continue
        deltas[key] = history.delta(key, instrument.yes_price)
        history.append(key, instrument.yes_price, timestamp)
    return deltas
