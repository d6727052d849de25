"""Services package for data collection."""

from .base import BaseCollector
from .kalshi import KalshiCollector
from .polymarket import PolymarketCollector

__all__ = ["BaseCollector", "KalshiCollector", "PolymarketCollector"]
