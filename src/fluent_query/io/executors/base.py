"""
Database executor protocol.

The builder never talks to a driver directly. It hands rendered SQL and the
parameter map to an object satisfying ``Executor`` and reads results back
through ``PreparedStatement``.

DESIGN PRINCIPLES:
-----------------
1. Placeholders are named and keep their ``:`` marker in the parameter map
2. ``execute`` reports failure by returning False, never by raising
3. Rows are returned as plain mappings (column name -> value)
"""

from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class PreparedStatement(Protocol):
    """A statement prepared by an ``Executor``."""

    def execute(self, parameters: Optional[Mapping[str, Any]] = None) -> bool: ...

    def row_count(self) -> int: ...

    def fetch_one(self) -> Optional[Dict[str, Any]]: ...

    def fetch_all(self) -> List[Dict[str, Any]]: ...

    def fetch_column_all(self, index: int = 0) -> List[Any]: ...

    def fetch_row_as_positional(self) -> Optional[Sequence[Any]]: ...


@runtime_checkable
class Executor(Protocol):
    """Prepares statements and exposes connection-level helpers."""

    def prepare(self, sql: str) -> PreparedStatement: ...

    def last_insert_id(self) -> Any: ...

    def quote(self, value: Any) -> str: ...
