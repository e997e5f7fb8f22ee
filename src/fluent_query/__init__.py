"""
fluent-query

Chain-able SQL query builder producing parameterized statements.
"""

__version__ = "0.1.0"

from fluent_query.io.executors import Executor, PreparedStatement, SqlAlchemyExecutor
from fluent_query.sql import (
    Combinator,
    ConfigurationError,
    DateReturn,
    Query,
    QueryError,
    ReturnFormat,
)

__all__ = [
    "Combinator",
    "ConfigurationError",
    "DateReturn",
    "Executor",
    "PreparedStatement",
    "Query",
    "QueryError",
    "ReturnFormat",
    "SqlAlchemyExecutor",
]
