"""
SQLAlchemy-backed database executor.

Runs builder output through ``sqlalchemy.text`` so the same named placeholders
(``:P1``, ``:user_id``) work on every backend SQLAlchemy supports.

Two binding modes are supported:

- ``Engine``: each statement runs in its own ``engine.begin()`` block and is
  committed on success.
- ``Connection``: statements run on the caller's connection; committing or
  rolling back is left to the caller.

Usage:
    executor = SqlAlchemyExecutor.from_url("mysql+pymysql://user:pw@host/db")
    rows = Query(executor).from_("users").where_true("active").select()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import sqlalchemy as sa
from sqlalchemy.engine import Connection, Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from fluent_query.config import Settings, get_settings
from fluent_query.sql.core.parameters import PARAM_MARKER
from fluent_query.sql.exceptions import ConfigurationError
from fluent_query.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ExecutionOutcome:
    """Everything needed from a result after its connection is released."""

    rows: List[Row] = field(default_factory=list)
    rowcount: int = 0
    lastrowid: Any = None
    returns_rows: bool = False


def _bind_parameters(parameters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Strip the placeholder marker, SQLAlchemy expects bare bind names."""
    if not parameters:
        return {}
    return {
        key[len(PARAM_MARKER):] if key.startswith(PARAM_MARKER) else key: value
        for key, value in parameters.items()
    }


class SqlAlchemyStatement:
    """
    Prepared statement with cursor-style fetching over buffered rows.

    Rows are buffered on execute so they stay readable after an engine-owned
    connection has been returned to the pool.
    """

    def __init__(self, executor: "SqlAlchemyExecutor", sql: str):
        self.sql = sql
        self._executor = executor
        self._clause = sa.text(sql)
        self._outcome = ExecutionOutcome()
        self._position = 0

    def execute(self, parameters: Optional[Mapping[str, Any]] = None) -> bool:
        """Execute the statement; returns False if the database reported an error."""
        try:
            self._outcome = self._executor._run(self._clause, _bind_parameters(parameters))
        except SQLAlchemyError as e:
            logger.error(
                "statement_failed",
                sql=self.sql,
                parameter_keys=list(parameters or {}),
                error_type=type(e).__name__,
                error=str(e),
            )
            self._outcome = ExecutionOutcome()
            self._position = 0
            return False

        self._position = 0
        return True

    def row_count(self) -> int:
        """Rows returned by a query, or rows affected by a data change."""
        if self._outcome.returns_rows:
            return len(self._outcome.rows)
        return self._outcome.rowcount

    def _next_row(self) -> Optional[Row]:
        if self._position >= len(self._outcome.rows):
            return None
        row = self._outcome.rows[self._position]
        self._position += 1
        return row

    def _remaining_rows(self) -> List[Row]:
        rows = self._outcome.rows[self._position:]
        self._position = len(self._outcome.rows)
        return rows

    def fetch_one(self) -> Optional[Dict[str, Any]]:
        row = self._next_row()
        return dict(row._mapping) if row is not None else None

    def fetch_all(self) -> List[Dict[str, Any]]:
        return [dict(row._mapping) for row in self._remaining_rows()]

    def fetch_column_all(self, index: int = 0) -> List[Any]:
        return [row[index] for row in self._remaining_rows()]

    def fetch_row_as_positional(self) -> Optional[Sequence[Any]]:
        row = self._next_row()
        return tuple(row) if row is not None else None


class SqlAlchemyExecutor:
    """
    Executor adapter over a SQLAlchemy ``Engine`` or ``Connection``.

    Satisfies the ``fluent_query.io.executors.base.Executor`` protocol.
    """

    def __init__(self, bind: Union[Engine, Connection], log_statements: Optional[bool] = None):
        """
        Initialize the executor.

        Args:
            bind: SQLAlchemy engine (statements auto-commit) or connection
                (caller manages the transaction)
            log_statements: Log every statement at debug level. Defaults to
                the ``log_statements`` setting.
        """
        self._bind = bind
        self._last_insert_id: Any = None
        if log_statements is None:
            log_statements = get_settings().log_statements
        self.log_statements = log_statements

    @classmethod
    def from_url(cls, url: str, echo: bool = False, **engine_kwargs: Any) -> "SqlAlchemyExecutor":
        """Create an executor owning a new engine for ``url``."""
        return cls(sa.create_engine(url, echo=echo, **engine_kwargs))

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SqlAlchemyExecutor":
        """
        Create an executor from DATABASE_URL / DB_ECHO settings.

        Raises:
            ConfigurationError: If DATABASE_URL is not configured
        """
        settings = settings or get_settings()
        if not settings.DATABASE_URL:
            raise ConfigurationError("DATABASE_URL is not configured.")
        return cls.from_url(settings.DATABASE_URL, echo=settings.DB_ECHO)

    @property
    def bind(self) -> Union[Engine, Connection]:
        return self._bind

    @property
    def dialect(self) -> sa.engine.Dialect:
        return self._bind.dialect

    def prepare(self, sql: str) -> SqlAlchemyStatement:
        return SqlAlchemyStatement(self, sql)

    def last_insert_id(self) -> Any:
        """Primary key generated by the most recent INSERT, if the driver reports one."""
        return self._last_insert_id

    def quote(self, value: Any) -> str:
        """
        Render ``value`` as a SQL literal for the bound dialect.

        NOT safe for building statements that get executed; intended for
        debug output and hashing only.
        """
        if value is None:
            return "NULL"
        compiled = sa.literal(value).compile(
            dialect=self.dialect, compile_kwargs={"literal_binds": True}
        )
        return str(compiled)

    def _run(self, clause: sa.TextClause, parameters: Dict[str, Any]) -> ExecutionOutcome:
        if self.log_statements:
            logger.debug("statement_executing", sql=str(clause), parameter_keys=list(parameters))

        if isinstance(self._bind, Connection):
            outcome = self._collect(self._bind.execute(clause, parameters))
        else:
            with self._bind.begin() as conn:
                outcome = self._collect(conn.execute(clause, parameters))

        if not outcome.returns_rows:
            self._last_insert_id = outcome.lastrowid or None
        return outcome

    @staticmethod
    def _collect(result: sa.CursorResult) -> ExecutionOutcome:
        if result.returns_rows:
            rows = list(result.all())
            return ExecutionOutcome(rows=rows, rowcount=len(rows), returns_rows=True)
        return ExecutionOutcome(rowcount=result.rowcount, lastrowid=result.lastrowid)
