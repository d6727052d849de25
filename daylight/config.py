"""
Configuration module for Daylight.

Contains API endpoints, store names, default parameters and the
ArbConfig value handed to the scan engine.
"""

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

# API Base URLs
KALSHI_API_BASE = "https://api.elections.kalshi.com/trade-api/v2"
GAMMA_API_BASE = "https://gamma-api.polymarket.com"

# Venue identifiers (venue A = Kalshi, venue B = Polymarket)
VENUE_KALSHI = "kalshi"
VENUE_POLY = "poly"
VENUE_PREFIXES: Dict[str, str] = {
    VENUE_KALSHI: "k",
    VENUE_POLY: "p",
}
VENUE_LABELS: Dict[str, str] = {
    VENUE_KALSHI: "Kalshi",
    VENUE_POLY: "Poly",
}

# Default parameters
DEFAULT_MIN_SPREAD = 5  # cents, standalone monitor
DEFAULT_DISPLAY_MIN_SPREAD = 2  # cents, interactive view
DEFAULT_AUTO_ALERT = True
DEFAULT_CHECK_INTERVAL_MS = 300_000  # 5 minutes
DEFAULT_SIMILARITY_THRESHOLD = 0.4
DEFAULT_MAX_OPPORTUNITIES = 200
DEFAULT_MAX_HISTORY = 20
DEFAULT_TOP_MOVERS = 5
DEFAULT_FETCH_TIMEOUT = 30.0  # seconds
DEFAULT_KALSHI_LIMIT = 20
DEFAULT_POLY_LIMIT = 15

# Feed request parameters
KALSHI_EVENTS_LIMIT = 100
POLY_EVENTS_LIMIT = 50

# Rate limiting
RETRY_ATTEMPTS = 3  # Number of retry attempts for failed requests
RETRY_BACKOFF_BASE = 1.0  # Base delay for exponential backoff (seconds)
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

# Store names (one JSON document each)
LEDGER_STORE = "arb-history"
PRICE_HISTORY_STORE = "price-history"
CONFIG_STORE = "arb-config"
ALERTS_STORE = "alerts"
WATCHLIST_STORE = "watchlist"

# Data directory (relative to the working directory)
DATA_DIR = Path("data")

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE = "daylight.log"


@dataclass
class ArbConfig:
    """Settings for one engine instance."""

    min_spread: int = DEFAULT_MIN_SPREAD
    auto_alert: bool = DEFAULT_AUTO_ALERT
    check_interval: int = DEFAULT_CHECK_INTERVAL_MS
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    display_min_spread: int = DEFAULT_DISPLAY_MIN_SPREAD
    max_opportunities: int = DEFAULT_MAX_OPPORTUNITIES
    max_history: int = DEFAULT_MAX_HISTORY
    top_movers: int = DEFAULT_TOP_MOVERS
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    kalshi_limit: int = DEFAULT_KALSHI_LIMIT
    poly_limit: int = DEFAULT_POLY_LIMIT

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.min_spread < 0 or self.display_min_spread < 0:
            raise ValueError("Spread thresholds must be >= 0")
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValueError(
                f"similarity_threshold must be within [0, 1]: {self.similarity_threshold}"
            )
        if self.check_interval <= 0:
            raise ValueError(f"check_interval must be positive: {self.check_interval}")
        if self.max_opportunities <= 0 or self.max_history <= 0:
            raise ValueError("Store caps must be positive")

    @property
    def check_interval_seconds(self) -> float:
        return self.check_interval / 1000.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArbConfig":
        """
        Build a config from a stored document.

        Unknown keys are ignored and missing ones fall back to defaults.

        Args:
            data: Decoded config document

        Returns:
            ArbConfig instance
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        return cls(**values)

    def replace(self, **changes: Any) -> "ArbConfig":
        """Return a copy with the given fields changed."""
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise ValueError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
        values = self.to_dict()
        values.update(changes)
        return ArbConfig(**values)


def load_config(store) -> ArbConfig:
    """
    Load the persisted config, falling back to defaults.

    Args:
        store: Key-value store with load/save

    Returns:
        ArbConfig instance
    """
    data = store.load(CONFIG_STORE, {})
    if not isinstance(data, dict):
        logger.warning("Ignoring malformed config document")
        return ArbConfig()

    try:
        return ArbConfig.from_dict(data)
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid stored config, using defaults: {e}")
        return ArbConfig()


def save_config(store, config: ArbConfig) -> None:
    """Persist the config document."""
    store.save(CONFIG_STORE, config.to_dict())
