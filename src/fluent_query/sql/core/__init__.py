"""Core SQL utilities package."""

from .coercion import DateReturn, format_date, format_decimal, format_integer, to_int
from .identifier import qualify_table, quote_identifier
from .parameters import ParameterRegistry, normalize_key
from .types import Combinator, ReturnFormat, RowMapper

__all__ = [
    "Combinator",
    "DateReturn",
    "ParameterRegistry",
    "ReturnFormat",
    "RowMapper",
    "format_date",
    "format_decimal",
    "format_integer",
    "normalize_key",
    "qualify_table",
    "quote_identifier",
    "to_int",
]
