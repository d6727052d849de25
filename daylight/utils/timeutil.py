"""
Time and logging helpers for Daylight.

Provides logging setup, timestamp parsing and epoch conversions.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Union

from dateutil import parser as date_parser

from .. import config


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = config.LOG_FILE) -> logging.Logger:
    """
    Configure structured logging with timestamps.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional file to mirror log output into

    Returns:
        Configured logger instance
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        datefmt=config.LOG_DATE_FORMAT,
        handlers=handlers,
    )
    logger = logging.getLogger("daylight")
    return logger


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(ts: Union[str, int, float, datetime]) -> datetime:
    """
    Convert ISO dates or unix timestamps to an aware UTC datetime.

    Args:
        ts: ISO string (e.g., "2025-12-01T10:00:00Z"), unix seconds or datetime

    Returns:
        Datetime object (UTC)

    Raises:
        ValueError: If timestamp format is invalid
    """
    if isinstance(ts, datetime):
        dt = ts
    elif isinstance(ts, bool):
        raise ValueError(f"Unsupported timestamp type: {type(ts)}")
    elif isinstance(ts, (int, float)):
        dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    elif isinstance(ts, str):
        try:
            dt = date_parser.isoparse(ts)
        except ValueError as e:
            try:
                dt = datetime.fromtimestamp(float(ts), tz=timezone.utc)
            except ValueError:
                raise ValueError(f"Invalid timestamp format: {ts}") from e
    else:
        raise ValueError(f"Unsupported timestamp type: {type(ts)}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 with a trailing Z, the format written to the stores."""
    return parse_timestamp(dt).isoformat().replace("+00:00", "Z")


def to_epoch_ms(dt: datetime) -> int:
    """
    Convert datetime to unix timestamp (milliseconds).

    Args:
        dt: Datetime object

    Returns:
        Unix timestamp in milliseconds
    """
    return int(parse_timestamp(dt).timestamp() * 1000)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded to nearest."""
    return int(round((parse_timestamp(end) - parse_timestamp(start)).total_seconds() / 60.0))
