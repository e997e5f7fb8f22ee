"""
Chain-able query builder.

``Query`` accumulates clause fragments and bound parameters through a chain of
method calls, renders them into SELECT / COUNT / INSERT / UPDATE / DELETE
statements, and optionally runs the result through a database executor.

Example:
    >>> from fluent_query import Query
    >>> sql, params = (
    ...     Query()
    ...     .from_("users", "u")
    ...     .where_true("u.active")
    ...     .where_integer("u.age", 30, ">=")
    ...     .returns("u.id", "u.name")
    ...     .build_select()
    ... )
    >>> sql
    'SELECT u.id, u.name FROM `users` u WHERE u.active IS TRUE AND u.age >= :P1'
    >>> params
    {':P1': '30'}

Typed condition helpers accept a single column name or a list of names. With
several names the conditions of that one call are OR'd together inside
parentheses; separate calls are joined by the builder's combinator (AND by
default, see ``inclusive()``).
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy.engine import Connection, Engine

from fluent_query.config import get_settings
from fluent_query.io.executors.base import Executor, PreparedStatement
from fluent_query.utils.logging import get_logger

from ..core.coercion import DateReturn, format_date, format_decimal, to_int
from ..core.parameters import ParameterRegistry
from ..core.types import Combinator, ReturnFormat, SelectFormat
from ..dialects.mysql import ALL_COLUMNS, MySQLDialect
from ..exceptions import ConfigurationError

logger = get_logger(__name__)

FieldNames = Union[str, Sequence[str]]
Built = Union[Tuple[str, Dict[str, Any]], str]

_INCLUSIVE_VALUES = {
    "and": Combinator.AND,
    "yes": Combinator.AND,
    "or": Combinator.OR,
    "no": Combinator.OR,
}

# SQL wrapper function per date coercion kind
_DATE_FUNCTIONS = {
    DateReturn.DATE: "DATE",
    DateReturn.TIME: "TIME",
    DateReturn.DATETIME: "DATETIME",
}


def _field_list(fieldname: FieldNames) -> List[str]:
    if isinstance(fieldname, str):
        return [fieldname]
    return list(fieldname)


def _flatten(args: Iterable[Any]) -> List[str]:
    columns: List[str] = []
    for arg in args:
        if isinstance(arg, (list, tuple)):
            columns.extend(arg)
        else:
            columns.append(arg)
    return columns


def _is_blank(value: Any) -> bool:
    """Empty bounds are falsy values and the string ``"0"``."""
    return not value or value == "0"


class Query:
    """
    Fluent SQL query builder.

    State is only changed through the builder's own methods and every
    mutating method returns the builder. The ``build_*`` methods never change
    state, so one builder can render a SELECT and a COUNT over the same
    conditions.
    """

    def __init__(self, executor: Any = None, dialect: Optional[MySQLDialect] = None):
        """
        Initialize an empty builder.

        Args:
            executor: Optional database executor, or a SQLAlchemy engine/connection
            dialect: Statement renderer, MySQL by default
        """
        self.dialect = dialect or MySQLDialect()
        self._executor: Optional[Executor] = None
        self._table: Optional[str] = None
        self._parameters = ParameterRegistry(prefix=get_settings().param_prefix)
        self._where: List[str] = []
        self._set: List[str] = []
        self._joins: List[str] = []
        self._returns: List[str] = [ALL_COLUMNS]
        self._combinator = Combinator.AND
        self._order_by: Optional[str] = None
        self._group_by: Optional[str] = None
        self._distinct: Union[bool, str] = False
        self._limit = ""

        if executor is not None:
            self.set_executor(executor)

    @classmethod
    def make(cls, executor: Any = None) -> "Query":
        """Return a new builder, so a chain can start without a variable."""
        return cls(executor)

    def __repr__(self) -> str:
        return f"Query(table={self._table!r}, where={len(self._where)}, set={len(self._set)})"

    # ------------------------------------------------------------------
    # Executor
    # ------------------------------------------------------------------

    def set_executor(self, executor: Any) -> "Query":
        """
        Define the executor used for running statements.

        SQLAlchemy engines and connections are wrapped in ``SqlAlchemyExecutor``.

        Raises:
            TypeError: If ``executor`` is not usable as an executor
        """
        if isinstance(executor, (Engine, Connection)):
            from fluent_query.io.executors.sqlalchemy_executor import SqlAlchemyExecutor

            executor = SqlAlchemyExecutor(executor)
        if not isinstance(executor, Executor):
            raise TypeError(
                f"Expected an Executor or SQLAlchemy Engine/Connection, "
                f"got {type(executor).__name__}"
            )
        self._executor = executor
        return self

    def get_executor(self) -> Executor:
        """
        Return the executor.

        Raises:
            ConfigurationError: If no executor has been defined
        """
        if self._executor is None:
            raise ConfigurationError("No database executor has been defined.")
        return self._executor

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def create_param(self, value: Any) -> str:
        """Add an unnamed value to the parameters and return its generated name."""
        return self._parameters.create(value)

    def insert_param(self, value: Any, key: str) -> "Query":
        """
        Add a named value; a missing leading ``:`` is prepended. Replaces any previous value.

        Raises:
            ConfigurationError: If ``key`` is a generated key already in use
        """
        self._parameters.insert(value, key)
        return self

    @property
    def parameters(self) -> Dict[str, Any]:
        return self._parameters.as_dict()

    def _push(self, target: List[str], fragments: List[str]) -> "Query":
        if len(fragments) == 1:
            target.append(fragments[0])
        elif fragments:
            target.append("(" + " OR ".join(fragments) + ")")
        return self

    # ------------------------------------------------------------------
    # WHERE conditions
    # ------------------------------------------------------------------

    def where_string(self, fieldname: FieldNames, value: Any, operator: str = "=") -> "Query":
        """
        Add a string condition against one or more columns.

        Args:
            fieldname: Column name, or list of names tested as an OR group
            value: Value to compare with
            operator: Comparison operator, equality by default
        """
        fields = _field_list(fieldname)
        if not fields:
            return self
        param = self.create_param(value)
        return self._push(self._where, [f"{f} {operator} {param}" for f in fields])

    def where_string_like(self, fieldname: FieldNames, value: Any) -> "Query":
        """Wildcard search: ``field LIKE %value%``."""
        return self.where_string(fieldname, f"%{value}%", "LIKE")

    def where_string_not(self, fieldname: FieldNames, value: Any) -> "Query":
        return self.where_string(fieldname, value, "!=")

    def where_integer(self, fieldname: FieldNames, value: Any, operator: str = "=") -> "Query":
        """Add an integer condition; the value is bound as a whole number string."""
        return self.where_decimal(fieldname, value, 0, operator)

    def where_integer_not(self, fieldname: FieldNames, value: Any) -> "Query":
        return self.where_integer(fieldname, value, "!=")

    def where_integer_in_range(
        self, fieldname: FieldNames, from_: Any = None, to: Any = None
    ) -> "Query":
        """Integer flavour of ``where_decimal_in_range``."""
        return self.where_decimal_in_range(fieldname, from_, to, 0)

    def where_decimal(
        self, fieldname: FieldNames, value: Any, precision: int = 2, operator: str = "="
    ) -> "Query":
        """
        Add a decimal condition against one or more columns.

        The value is bound as fixed-point text with ``precision`` digits;
        non-numeric input binds as zero.
        """
        fields = _field_list(fieldname)
        if not fields:
            return self
        param = self.create_param(format_decimal(value, precision))
        return self._push(self._where, [f"{f} {operator} {param}" for f in fields])

    def where_decimal_not(self, fieldname: FieldNames, value: Any, precision: int = 2) -> "Query":
        return self.where_decimal(fieldname, value, precision, "!=")

    def where_decimal_in_range(
        self,
        fieldname: FieldNames,
        from_: Any = None,
        to: Any = None,
        precision: int = 2,
    ) -> "Query":
        """
        Add an inclusive numeric range condition.

        A bound of ``None`` is open: only ``from_`` gives ``>=``, only ``to``
        gives ``<=``, neither adds nothing. Equal bounds collapse to ``=``.
        """
        fields = _field_list(fieldname)
        if not fields or (from_ is None and to is None):
            return self

        low = format_decimal(from_, precision) if from_ is not None else None
        high = format_decimal(to, precision) if to is not None else None

        if low is not None and low == high:
            param = self.create_param(low)
            return self._push(self._where, [f"{f} = {param}" for f in fields])

        if low is not None and high is not None:
            param_from = self.create_param(low)
            param_to = self.create_param(high)
            fragments = [f"({f} >= {param_from} AND {f} <= {param_to})" for f in fields]
        elif low is not None:
            param_from = self.create_param(low)
            fragments = [f"{f} >= {param_from}" for f in fields]
        else:
            param_to = self.create_param(high)
            fragments = [f"{f} <= {param_to}" for f in fields]

        return self._push(self._where, fragments)

    def where_boolean(self, fieldname: FieldNames, value: Any = True) -> "Query":
        """Add ``IS TRUE`` / ``IS FALSE`` tests; nothing is bound."""
        test = "IS TRUE" if value else "IS FALSE"
        return self._push(self._where, [f"{f} {test}" for f in _field_list(fieldname)])

    def where_true(self, fieldname: FieldNames) -> "Query":
        return self.where_boolean(fieldname, True)

    def where_false(self, fieldname: FieldNames) -> "Query":
        return self.where_boolean(fieldname, False)

    def _where_temporal(
        self, fieldname: FieldNames, value: Any, returns: DateReturn, operator: str
    ) -> "Query":
        fields = _field_list(fieldname)
        if not fields:
            return self
        func = _DATE_FUNCTIONS[returns]
        param = self.create_param(format_date(value, returns))
        return self._push(
            self._where, [f"{func}({f}) {operator} {func}({param})" for f in fields]
        )

    def where_date(self, fieldname: FieldNames, value: Any, operator: str = "=") -> "Query":
        """
        Compare the date part of one or more columns.

        ``value`` may be a date/datetime, ``"now"``, a parseable string or a
        positive Unix timestamp. Unparseable input binds NULL.
        """
        return self._where_temporal(fieldname, value, DateReturn.DATE, operator)

    def where_time(self, fieldname: FieldNames, value: Any, operator: str = "=") -> "Query":
        return self._where_temporal(fieldname, value, DateReturn.TIME, operator)

    def where_datetime(self, fieldname: FieldNames, value: Any, operator: str = "=") -> "Query":
        return self._where_temporal(fieldname, value, DateReturn.DATETIME, operator)

    def _where_temporal_range(
        self, fieldname: str, from_: Any, to: Any, returns: DateReturn
    ) -> "Query":
        func = _DATE_FUNCTIONS[returns]
        column = f"{func}({fieldname})"
        if _is_blank(from_):
            from_ = None
        if _is_blank(to):
            to = None

        if from_ and from_ == to:
            param_from = self.create_param(format_date(from_, returns))
            self._where.append(f"{column} = {func}({param_from})")
        elif from_ and to:
            param_from = self.create_param(format_date(from_, returns))
            param_to = self.create_param(format_date(to, returns))
            self._where.append(f"{column} BETWEEN {func}({param_from}) AND {func}({param_to})")
        elif from_:
            param_from = self.create_param(format_date(from_, returns))
            self._where.append(f"{column} >= {func}({param_from})")
        elif to:
            param_to = self.create_param(format_date(to, returns))
            self._where.append(f"{column} <= {func}({param_to})")

        return self

    def where_date_in_range(self, fieldname: str, from_: Any = None, to: Any = None) -> "Query":
        """
        Add an inclusive date range condition on a single column.

        Empty bounds are open; equal bounds collapse to a single equality test.
        """
        return self._where_temporal_range(fieldname, from_, to, DateReturn.DATE)

    def where_time_in_range(self, fieldname: str, from_: Any = None, to: Any = None) -> "Query":
        return self._where_temporal_range(fieldname, from_, to, DateReturn.TIME)

    def where_datetime_in_range(
        self, fieldname: str, from_: Any = None, to: Any = None
    ) -> "Query":
        return self._where_temporal_range(fieldname, from_, to, DateReturn.DATETIME)

    def where_in_list(self, fieldname: str, values: Iterable[Any], negate: bool = False) -> "Query":
        """
        Compare a column against a list of values, one bound parameter per value.

        A single string is one value, not a sequence of characters. An empty
        list adds nothing.
        """
        if isinstance(values, (str, bytes)):
            values = [values]
        keys = [self.create_param(value) for value in values]
        if not keys:
            return self
        operator = "NOT IN" if negate else "IN"
        self._where.append(f"{fieldname} {operator} ({','.join(keys)})")
        return self

    def where_not_in_list(self, fieldname: str, values: Iterable[Any]) -> "Query":
        return self.where_in_list(fieldname, values, negate=True)

    def where(self, condition: str, data: Any = None) -> "Query":
        """
        Add a raw condition.

        ``condition`` is used verbatim. Placeholders it references must be
        supplied through ``data`` (a mapping, a list of positional values or
        a single value) or registered with ``insert_param``.

        Raises:
            ConfigurationError: If ``data`` rebinds a generated key such as ``:P1``
        """
        self._parameters.merge(data)
        self._where.append(condition)
        return self

    # ------------------------------------------------------------------
    # SET assignments
    # ------------------------------------------------------------------

    def set_string(self, fieldname: str, value: Any) -> "Query":
        self._set.append(f"{fieldname} = {self.create_param(value)}")
        return self

    def set_integer(self, fieldname: str, value: Any) -> "Query":
        return self.set_decimal(fieldname, value, 0)

    def set_decimal(self, fieldname: str, value: Any, precision: int = 2) -> "Query":
        self._set.append(f"{fieldname} = {self.create_param(format_decimal(value, precision))}")
        return self

    def set_date(self, fieldname: str, value: Any) -> "Query":
        self._set.append(f"{fieldname} = {self.create_param(format_date(value, DateReturn.DATE))}")
        return self

    def set_time(self, fieldname: str, value: Any) -> "Query":
        self._set.append(f"{fieldname} = {self.create_param(format_date(value, DateReturn.TIME))}")
        return self

    def set_datetime(self, fieldname: str, value: Any) -> "Query":
        param = self.create_param(format_date(value, DateReturn.DATETIME))
        self._set.append(f"{fieldname} = {param}")
        return self

    def set_boolean(self, fieldname: str, value: Any) -> "Query":
        self._set.append(f"{fieldname} = {'TRUE' if value else 'FALSE'}")
        return self

    def set_true(self, fieldname: str) -> "Query":
        return self.set_boolean(fieldname, True)

    def set_false(self, fieldname: str) -> "Query":
        return self.set_boolean(fieldname, False)

    def set(self, assignment: str, data: Any = None) -> "Query":
        """Add a raw assignment, merging ``data`` the same way ``where()`` does."""
        self._parameters.merge(data)
        self._set.append(assignment)
        return self

    # ------------------------------------------------------------------
    # Query shape
    # ------------------------------------------------------------------

    def from_(self, table: str, alias: str = "") -> "Query":
        """Define the table (quoted) and an optional alias."""
        self._table = self.dialect.qualify(table, alias)
        return self

    def returns(self, *columns: Union[str, Sequence[str]]) -> "Query":
        """
        Define the columns to return, replacing the previous list (default ``*``).

        Accepts names and lists of names in any mix.

        Raises:
            ConfigurationError: If called without columns
        """
        if not columns:
            raise ConfigurationError("Query.returns: empty return list.")
        self._returns = _flatten(columns)
        return self

    def join(self, join: str, data: Any = None) -> "Query":
        """Add a raw join clause, merging ``data`` the same way ``where()`` does."""
        self._parameters.merge(data)
        self._joins.append(join)
        return self

    def inner_join(self, join: str, data: Any = None) -> "Query":
        return self.join(f"INNER JOIN {join}", data)

    def left_join(self, join: str, data: Any = None) -> "Query":
        return self.join(f"LEFT JOIN {join}", data)

    def right_join(self, join: str, data: Any = None) -> "Query":
        return self.join(f"RIGHT JOIN {join}", data)

    def outer_join(self, join: str, data: Any = None) -> "Query":
        return self.join(f"OUTER JOIN {join}", data)

    def inclusive(self, condition: Any) -> "Query":
        """
        Choose how separate conditions are combined.

        ``True``/``"and"``/``"yes"`` select AND, ``False``/``"or"``/``"no"``
        select OR. Other values leave the combinator unchanged.
        """
        if isinstance(condition, Combinator):
            self._combinator = condition
        elif isinstance(condition, bool):
            self._combinator = Combinator.AND if condition else Combinator.OR
        elif isinstance(condition, str) and condition.lower() in _INCLUSIVE_VALUES:
            self._combinator = _INCLUSIVE_VALUES[condition.lower()]
        else:
            logger.warning("inclusive_value_ignored", value=repr(condition))
        return self

    def order_by(self, *columns: Union[str, Sequence[str]]) -> "Query":
        """Define ORDER BY, replacing any previous ordering."""
        self._order_by = ",".join(_flatten(columns))
        return self

    def group_by(self, *columns: Union[str, Sequence[str]]) -> "Query":
        """Define GROUP BY, replacing any previous grouping."""
        self._group_by = ",".join(_flatten(columns))
        return self

    def distinct(self, on: Union[bool, str] = True) -> "Query":
        """
        Toggle DISTINCT.

        A column name makes ``count()`` count the distinct values of that column.
        """
        self._distinct = on
        return self

    def limit(self, max: Any = 0, offset: Any = 0) -> "Query":
        """
        Limit the rows returned; ignored by ``count()``.

        A ``max`` that coerces to zero (``0``, ``"0"``, ``None``) removes the
        limit. Both values are rendered inline, coerced to integers.
        """
        if to_int(max):
            self._limit = f"LIMIT {to_int(offset)}, {to_int(max)}"
        else:
            self._limit = ""
        return self

    # ------------------------------------------------------------------
    # Statement building
    # ------------------------------------------------------------------

    def _require_table(self) -> str:
        if self._table is None:
            raise ConfigurationError("No table has been defined; call from_() first.")
        return self._table

    def _finish(self, sql: str, debug: bool) -> Built:
        if debug:
            return self._unprepare(sql)
        return sql, self._parameters.as_dict()

    def build_select(self, debug: bool = False) -> Built:
        """
        Build the SELECT statement.

        Args:
            debug: Return a single string with every value inlined through the
                executor's ``quote()``. For logging and hashing only, never
                for execution.

        Returns:
            Tuple of (sql, parameters), or the inlined string in debug mode
        """
        sql = self.dialect.build_select(
            table=self._require_table(),
            columns=self._returns,
            joins=self._joins,
            where=self._where,
            combinator=self._combinator,
            distinct=self._distinct,
            group_by=self._group_by,
            order_by=self._order_by,
            limit=self._limit,
            separator="\n" if debug else " ",
        )
        return self._finish(sql, debug)

    def build_count(self, debug: bool = False) -> Built:
        """Build the COUNT statement over the same joins and conditions, without ORDER BY / LIMIT."""
        sql = self.dialect.build_count(
            table=self._require_table(),
            joins=self._joins,
            where=self._where,
            combinator=self._combinator,
            distinct=self._distinct,
            group_by=self._group_by,
            separator="\n" if debug else " ",
        )
        return self._finish(sql, debug)

    def build_delete(self, debug: bool = False) -> Built:
        sql = self.dialect.build_delete(
            table=self._require_table(),
            columns=self._returns,
            joins=self._joins,
            where=self._where,
            combinator=self._combinator,
            separator="\n" if debug else " ",
        )
        return self._finish(sql, debug)

    def build_insert(self, debug: bool = False) -> Built:
        sql = self.dialect.build_insert(
            table=self._require_table(),
            assignments=self._set,
            separator="\n" if debug else " ",
        )
        return self._finish(sql, debug)

    def build_update(self, debug: bool = False) -> Built:
        sql = self.dialect.build_update(
            table=self._require_table(),
            assignments=self._set,
            joins=self._joins,
            where=self._where,
            combinator=self._combinator,
            separator="\n" if debug else " ",
        )
        return self._finish(sql, debug)

    def build_select_into(
        self, target: str, *columns: Union[str, Sequence[str]], debug: bool = False
    ) -> Built:
        """Build ``INSERT INTO target (columns) SELECT ...`` from the current state."""
        select_sql = self.dialect.build_select(
            table=self._require_table(),
            columns=self._returns,
            joins=self._joins,
            where=self._where,
            combinator=self._combinator,
            distinct=self._distinct,
            group_by=self._group_by,
            order_by=self._order_by,
            limit=self._limit,
            separator="\n" if debug else " ",
        )
        sql = self.dialect.build_select_into(target, _flatten(columns), select_sql)
        return self._finish(sql, debug)

    def _unprepare(self, sql: str) -> str:
        """
        Inline every bound value into ``sql``.

        THIS IS FOR DEBUG PURPOSES ONLY, the result is not injection safe.
        """
        executor = self.get_executor()
        values = self._parameters.as_dict()
        if not values:
            return sql

        keys = sorted(values, key=len, reverse=True)
        pattern = re.compile("|".join(re.escape(key) for key in keys) + r"(?!\w)")
        return pattern.sub(lambda match: executor.quote(values[match.group(0)]), sql)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self, sql: str, parameters: Dict[str, Any]) -> Optional[PreparedStatement]:
        statement = self.get_executor().prepare(sql)
        if statement.execute(parameters or None):
            return statement
        logger.error("query_execution_failed", sql=sql, parameter_keys=list(parameters))
        return None

    def select(self, format: SelectFormat = ReturnFormat.FULL) -> Any:
        """
        Run the SELECT statement and shape the result.

        Args:
            format: A ``ReturnFormat`` member, or a callable (for example a
                class) that receives each row mapping and returns an object

        Returns:
            Result shaped per ``format``, or None if execution failed

        Raises:
            ConfigurationError: If no executor has been defined
            TypeError: If ``format`` is neither a ReturnFormat nor callable
        """
        if not isinstance(format, ReturnFormat) and not callable(format):
            raise TypeError(f"Unsupported return format: {format!r}")

        sql, parameters = self.build_select()
        statement = self._execute(sql, parameters)
        if statement is None:
            return None

        count = statement.row_count()

        if not isinstance(format, ReturnFormat):
            rows = statement.fetch_all() if count else []
            return [format(row) for row in rows]

        if format is ReturnFormat.NONE:
            return count

        if format is ReturnFormat.SINGLE_ROW:
            return (statement.fetch_one() or {}) if count else {}

        if format is ReturnFormat.SINGLE_COLUMN:
            return statement.fetch_column_all(0) if count else []

        if format is ReturnFormat.SINGLE_CELL:
            if not count:
                return None
            row = statement.fetch_row_as_positional()
            return row[0] if row else None

        return statement.fetch_all() if count else []

    def count(self) -> Optional[int]:
        """Run the COUNT statement; None if it failed or returned no row."""
        sql, parameters = self.build_count()
        statement = self._execute(sql, parameters)
        if statement is None or not statement.row_count():
            return None
        row = statement.fetch_row_as_positional()
        return int(row[0]) if row else None

    def delete(self) -> Union[int, bool]:
        """Run the DELETE statement; affected rows, or False on failure."""
        sql, parameters = self.build_delete()
        statement = self._execute(sql, parameters)
        if statement is None:
            return False
        return statement.row_count()

    def update(self) -> Union[int, bool]:
        """Run the UPDATE statement; affected rows, or False on failure."""
        sql, parameters = self.build_update()
        statement = self._execute(sql, parameters)
        if statement is None:
            return False
        return statement.row_count()

    def insert(self) -> Any:
        """Run the INSERT statement; the new id, True if there is none, False on failure."""
        sql, parameters = self.build_insert()
        return self._execute_insert(sql, parameters)

    def select_into(self, target: str, *columns: Union[str, Sequence[str]]) -> Any:
        """Copy the selected rows into ``target``; same return contract as ``insert()``."""
        sql, parameters = self.build_select_into(target, *columns)
        return self._execute_insert(sql, parameters)

    def _execute_insert(self, sql: str, parameters: Dict[str, Any]) -> Any:
        statement = self._execute(sql, parameters)
        if statement is None:
            return False
        return self.get_executor().last_insert_id() or True
