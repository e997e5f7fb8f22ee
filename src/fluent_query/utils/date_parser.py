"""
Date parsing utilities for fluent-query.

Normalizes the loose date inputs accepted by the date/time condition and
assignment helpers into ``datetime`` objects:

- ``datetime``, ``date`` and ``time`` objects
- the literal token ``"now"`` (case-insensitive)
- any string ``dateutil`` can parse (``"2024-01-15"``, ``"15 Jan 2024 10:30"``, ...)
- a positive integer Unix timestamp

Anything else parses to ``None``. Callers bind that ``None`` as a null
parameter instead of raising.
"""

import logging
from datetime import date, datetime, time
from typing import Any, Optional

import dateutil.parser as dp

logger = logging.getLogger(__name__)

NOW_TOKEN = "now"


def _from_timestamp(value: int) -> Optional[datetime]:
    if value <= 0:
        return None
    try:
        return datetime.fromtimestamp(value)
    except (OverflowError, OSError, ValueError):
        logger.debug("Timestamp %r out of range", value)
        return None


def _from_string(value: str) -> Optional[datetime]:
    raw = value.strip()
    if not raw:
        return None
    if raw.lower() == NOW_TOKEN:
        return datetime.now()
    try:
        return dp.parse(raw)
    except (ValueError, OverflowError):
        logger.debug("Unable to parse date value %r", value)
        return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a loose date/time input into a ``datetime``.

    ``date`` objects become midnight of that day and ``time`` objects are
    placed on today's date. Booleans, floats and non-positive integers are
    rejected.

    Examples:
        >>> parse_datetime("2024-01-15")
        datetime.datetime(2024, 1, 15, 0, 0)
        >>> parse_datetime("not a date") is None
        True
    """
    if not value:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime.combine(value, time())

    if isinstance(value, time):
        return datetime.combine(date.today(), value)

    if isinstance(value, str):
        return _from_string(value)

    if isinstance(value, int) and not isinstance(value, bool):
        return _from_timestamp(value)

    logger.debug("Unsupported date value type %s", type(value).__name__)
    return None
