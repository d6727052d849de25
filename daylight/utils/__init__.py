"""Utilities package."""

from .text_processing import normalize_title, similarity, tokenize
from .timeutil import (
    format_timestamp,
    minutes_between,
    parse_timestamp,
    setup_logging,
    to_epoch_ms,
    utc_now,
)

__all__ = [
    "normalize_title",
    "tokenize",
    "similarity",
    "format_timestamp",
    "minutes_between",
    "parse_timestamp",
    "setup_logging",
    "to_epoch_ms",
    "utc_now",
]
