"""
MySQL-specific SQL dialect implementation.

Assembles complete statements from already-rendered fragments. Every method
is a pure function of its arguments; placeholders inside fragments are left
untouched.
"""

from typing import List, Optional, Sequence, Union

from ..core.identifier import qualify_table, quote_identifier
from ..core.types import Combinator

ALL_COLUMNS = "*"


class MySQLDialect:
    """MySQL SQL dialect implementation."""

    name = "mysql"

    def quote(self, identifier: str) -> str:
        """Quote an identifier using MySQL syntax (backticks)."""
        return quote_identifier(identifier)

    def qualify(self, table: str, alias: str = "") -> str:
        """Create a quoted table reference with an optional alias."""
        return qualify_table(table, alias)

    def where_clause(
        self, where: Sequence[str], combinator: Combinator = Combinator.AND
    ) -> Optional[str]:
        """
        Join WHERE fragments with the combinator.

        Returns:
            ``WHERE ...`` clause, or None when there are no fragments
        """
        if not where:
            return None
        return "WHERE " + f" {Combinator(combinator).value} ".join(where)

    def build_select(
        self,
        table: str,
        columns: Sequence[str],
        joins: Sequence[str] = (),
        where: Sequence[str] = (),
        combinator: Combinator = Combinator.AND,
        distinct: Union[bool, str] = False,
        group_by: Optional[str] = None,
        order_by: Optional[str] = None,
        limit: str = "",
        separator: str = " ",
    ) -> str:
        """
        Build a SELECT statement.

        Args:
            table: Quoted table reference
            columns: Columns to return
            joins: Join fragments, in order
            where: WHERE fragments, in order
            combinator: Operator joining the WHERE fragments
            distinct: Any truthy value adds DISTINCT
            group_by: GROUP BY expression
            order_by: ORDER BY expression
            limit: Rendered LIMIT clause
            separator: Text placed between statement parts

        Returns:
            SELECT SQL statement
        """
        column_list = ", ".join(columns)
        if distinct:
            column_list = f"DISTINCT {column_list}"

        parts: List[str] = [f"SELECT {column_list}", f"FROM {table}", *joins]
        where_sql = self.where_clause(where, combinator)
        if where_sql:
            parts.append(where_sql)
        if group_by:
            parts.append(f"GROUP BY {group_by}")
        if order_by:
            parts.append(f"ORDER BY {order_by}")
        if limit:
            parts.append(limit)
        return separator.join(parts)

    def build_count(
        self,
        table: str,
        joins: Sequence[str] = (),
        where: Sequence[str] = (),
        combinator: Combinator = Combinator.AND,
        distinct: Union[bool, str] = False,
        group_by: Optional[str] = None,
        separator: str = " ",
    ) -> str:
        """
        Build a COUNT statement.

        ORDER BY and LIMIT never apply to a count. A string ``distinct`` is a
        column name and counts its distinct values.
        """
        if distinct and isinstance(distinct, str):
            counted = f"DISTINCT {distinct}"
        else:
            counted = ALL_COLUMNS

        parts: List[str] = [f"SELECT COUNT({counted})", f"FROM {table}", *joins]
        where_sql = self.where_clause(where, combinator)
        if where_sql:
            parts.append(where_sql)
        if group_by:
            parts.append(f"GROUP BY {group_by}")
        return separator.join(parts)

    def build_delete(
        self,
        table: str,
        columns: Sequence[str] = (ALL_COLUMNS,),
        joins: Sequence[str] = (),
        where: Sequence[str] = (),
        combinator: Combinator = Combinator.AND,
        separator: str = " ",
    ) -> str:
        """
        Build a DELETE statement.

        Columns other than ``*`` name the tables to delete from in a
        multi-table delete (``DELETE u FROM `users` u JOIN ...``).
        """
        column_list = ", ".join(columns)
        head = "DELETE" if column_list == ALL_COLUMNS else f"DELETE {column_list}"

        parts: List[str] = [head, f"FROM {table}", *joins]
        where_sql = self.where_clause(where, combinator)
        if where_sql:
            parts.append(where_sql)
        return separator.join(parts)

    def build_insert(
        self,
        table: str,
        assignments: Sequence[str] = (),
        separator: str = " ",
    ) -> str:
        """Build an ``INSERT INTO ... SET ...`` statement."""
        parts: List[str] = [f"INSERT INTO {table}"]
        if assignments:
            parts.append("SET " + ", ".join(assignments))
        return separator.join(parts)

    def build_update(
        self,
        table: str,
        assignments: Sequence[str] = (),
        joins: Sequence[str] = (),
        where: Sequence[str] = (),
        combinator: Combinator = Combinator.AND,
        separator: str = " ",
    ) -> str:
        """Build an UPDATE statement."""
        parts: List[str] = [f"UPDATE {table}", *joins]
        if assignments:
            parts.append("SET " + ", ".join(assignments))
        where_sql = self.where_clause(where, combinator)
        if where_sql:
            parts.append(where_sql)
        return separator.join(parts)

    def build_select_into(
        self,
        target: str,
        columns: Sequence[str],
        select_sql: str,
    ) -> str:
        """
        Wrap a SELECT statement as ``INSERT INTO target (columns) SELECT ...``.

        Example:
            >>> MySQLDialect().build_select_into("archive", ["id", "name"], "SELECT id, name FROM `users`")
            'INSERT INTO `archive` (id,name) SELECT id, name FROM `users`'
        """
        return f"INSERT INTO {self.quote(target)} ({','.join(columns)}) {select_sql}"
