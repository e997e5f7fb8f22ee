"""
SQL module for building parameterized statements.

Provides the chain-able ``Query`` builder together with the identifier,
parameter and coercion utilities it is built from, and the MySQL dialect that
renders accumulated fragments into statements.
"""

from .core.coercion import DateReturn, format_date, format_decimal, format_integer, to_int
from .core.identifier import qualify_table, quote_identifier
from .core.parameters import ParameterRegistry
from .core.types import Combinator, ReturnFormat, RowMapper
from .dialects.mysql import MySQLDialect
from .exceptions import ConfigurationError, QueryError
from .operations.query import Query

__all__ = [
    "Combinator",
    "ConfigurationError",
    "DateReturn",
    "MySQLDialect",
    "ParameterRegistry",
    "Query",
    "QueryError",
    "ReturnFormat",
    "RowMapper",
    "format_date",
    "format_decimal",
    "format_integer",
    "qualify_table",
    "quote_identifier",
    "to_int",
]
