"""
Data storage module.

Named JSON documents behind a minimal load/save interface, plus CSV
export of price history.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Union

import pandas as pd

from . import config
from .utils.timeutil import to_epoch_ms, utc_now

logger = logging.getLogger(__name__)


class JsonStore:
    """
    One JSON file per named store under a base directory.

    Reads never raise: a missing, unreadable or corrupt document yields the
    caller's default. Writes raise OSError on failure. Last write wins.
    """

    def __init__(self, base_path: Union[str, Path] = config.DATA_DIR):
        """
        Initialize the store.

        Args:
            base_path: Directory holding the <key>.json files
        """
        self.base_path = Path(base_path)

    def path_for(self, key: str) -> Path:
        return self.base_path / f"{key}.json"

    def load(self, key: str, default: Any = None) -> Any:
        """
        Load a named document.

        Args:
            key: Store name (e.g., "arb-history")
            default: Value returned when nothing usable is stored

        Returns:
            Decoded document or a copy of default
        """
        path = self.path_for(key)

        if not path.exists():
            logger.debug(f"Store not found, starting empty: {path}")
            return copy.deepcopy(default)

        try:
            with open(path, "r") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read store {path}, starting empty: {e}")
            return copy.deepcopy(default)

    def save(self, key: str, state: Any) -> None:
        """
        Write a named document.

        Args:
            key: Store name
            state: JSON-serializable document

        Raises:
            OSError: If the file cannot be written
        """
        self.base_path.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)

        with open(path, "w") as f:
            json.dump(state, f, indent=2)

        logger.debug(f"Saved store: {path}")


def export_price_history(df: pd.DataFrame, path: Union[str, Path]) -> Path:
    """
    Save a price history frame to CSV.

    Args:
        df: DataFrame with columns: instrument, ts, price
        path: Target CSV path (a directory gets a timestamped file name)

    Returns:
        Path written
    """
    path = Path(path)
    if path.is_dir():
        path = path / f"price_history_{to_epoch_ms(utc_now())}.csv"
    path.parent.mkdir(parents=True, exist_ok=True)

    if df.empty:
        logger.warning("Price history is empty, writing header only")

    df.to_csv(path, index=False)
    logger.info(f"Saved price history CSV: {path}")
    return path
