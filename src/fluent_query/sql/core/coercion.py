"""
Value coercion for typed condition and assignment helpers.

Every helper turns caller input into the exact string that gets bound:

- decimals are rendered as fixed-point text with ``.`` as separator and no
  digit grouping, rounding half away from zero;
- integers go through the decimal path with zero fractional digits;
- date/time values are rendered in MySQL's canonical formats.

Input that cannot be interpreted does not raise. Numbers fall back to ``0``
and dates fall back to ``None``.
"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any, Optional

from fluent_query.utils.date_parser import parse_datetime
from fluent_query.utils.logging import get_logger

logger = get_logger(__name__)

# Leading numeric prefix of a string, e.g. "12.5kg" -> "12.5"
_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")
_LEADING_INTEGER = re.compile(r"^\s*([-+]?\d+)")

_DECIMAL_CONTEXT_PRECISION = 200


class DateReturn(str, Enum):
    """Canonical output formats for date/time coercion."""

    DATETIME = "%Y-%m-%d %H:%M:%S"
    DATE = "%Y-%m-%d"
    TIME = "%H:%M:%S"


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        return Decimal(int(value))

    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal(0)

    if isinstance(value, int):
        return Decimal(value)

    if isinstance(value, float):
        return Decimal(str(value)) if math.isfinite(value) else Decimal(0)

    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if match:
            try:
                return Decimal(match.group(1))
            except InvalidOperation:
                pass

    return Decimal(0)


def format_decimal(value: Any, precision: int = 2) -> str:
    """
    Render ``value`` as fixed-point text with ``precision`` fractional digits.

    Examples:
        >>> format_decimal("3.14159")
        '3.14'
        >>> format_decimal(2.5, 0)
        '3'
        >>> format_decimal("abc")
        '0.00'
    """
    precision = max(int(precision), 0)
    number = _to_decimal(value)
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_CONTEXT_PRECISION
        try:
            rounded = number.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)
        except InvalidOperation:
            logger.debug("decimal_out_of_range", value=repr(value), precision=precision)
            rounded = Decimal(0).quantize(Decimal(1).scaleb(-precision))
    if rounded.is_zero():
        rounded = abs(rounded)
    return f"{rounded:f}"


def format_integer(value: Any) -> str:
    """
    Render ``value`` as an integer string (decimal path, zero precision).

    Examples:
        >>> format_integer("30")
        '30'
        >>> format_integer(4.5)
        '5'
    """
    return format_decimal(value, 0)


def to_int(value: Any) -> int:
    """
    Coerce ``value`` to ``int`` for clauses that are rendered inline.

    Numbers are truncated toward zero, strings contribute their leading
    integer, anything else becomes ``0``.

    Examples:
        >>> to_int("10; DROP TABLE users")
        10
        >>> to_int(7.9)
        7
        >>> to_int(None)
        0
    """
    if isinstance(value, bool):
        return int(value)

    if isinstance(value, int):
        return value

    if isinstance(value, (float, Decimal)):
        try:
            return int(value)
        except (OverflowError, ValueError, InvalidOperation):
            return 0

    if isinstance(value, str):
        match = _LEADING_INTEGER.match(value)
        if match:
            return int(match.group(1))

    return 0


def format_date(value: Any, returns: DateReturn = DateReturn.DATETIME) -> Optional[str]:
    """
    Render a loose date input in one of the canonical formats.

    Returns ``None`` when the input cannot be parsed; the caller binds that
    as a null parameter.

    Examples:
        >>> format_date("2024-01-15 10:30", DateReturn.DATE)
        '2024-01-15'
        >>> format_date("2024-01-15 10:30", DateReturn.TIME)
        '10:30:00'
        >>> format_date("not a date") is None
        True
    """
    parsed = parse_datetime(value)
    if parsed is None:
        if value:
            logger.debug("date_coercion_failed", value=repr(value), returns=returns.name)
        return None
    return parsed.strftime(returns.value)
